"""
Prompt Manager

Prompts live in YAML files under ``quotex/prompts`` so they can be edited
without code changes. Each file holds a ``system_prompt`` and a Jinja2
``user_prompt_template``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from jinja2 import Template

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent.parent.parent / "prompts"


class PromptManager:
    """Loads and renders prompt files"""

    def __init__(self, prompts_dir: Optional[Union[str, Path]] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir else DEFAULT_PROMPTS_DIR
        self._prompts_cache: Dict[str, Dict[str, Any]] = {}

    def load_prompt(self, prompt_name: str, use_cache: bool = True) -> Dict[str, Any]:
        """
        Load a prompt from YAML file

        Args:
            prompt_name: Name of the prompt (without .yaml extension)
            use_cache: Whether to use cached prompts

        Returns:
            Dictionary with 'system_prompt' and 'user_prompt_template' keys

        Raises:
            FileNotFoundError: If the prompt file does not exist
        """
        if use_cache and prompt_name in self._prompts_cache:
            return self._prompts_cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"
        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        try:
            with open(prompt_file, 'r', encoding='utf-8') as f:
                prompt_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load prompt {prompt_name}: {e}")
            raise

        if use_cache:
            self._prompts_cache[prompt_name] = prompt_data
        return prompt_data

    def get_system_prompt(self, prompt_name: str) -> str:
        """Get system prompt for a given prompt name"""
        return self.load_prompt(prompt_name).get('system_prompt', '')

    def get_user_prompt(self, prompt_name: str, **kwargs) -> str:
        """
        Get user prompt with template variables filled in

        Args:
            prompt_name: Name of the prompt
            **kwargs: Variables to fill in the template

        Returns:
            Rendered user prompt string
        """
        template_str = self.load_prompt(prompt_name).get('user_prompt_template', '{{ content }}')
        return Template(template_str).render(**kwargs)

    def clear_cache(self):
        self._prompts_cache.clear()

    def list_prompts(self) -> List[str]:
        if not self.prompts_dir.exists():
            return []
        return sorted(f.stem for f in self.prompts_dir.glob("*.yaml"))


_default_prompt_manager: Optional[PromptManager] = None


def get_prompt_manager(prompts_dir: Optional[Union[str, Path]] = None) -> PromptManager:
    """Get the default prompt manager instance"""
    global _default_prompt_manager

    if prompts_dir is not None:
        return PromptManager(prompts_dir)
    if _default_prompt_manager is None:
        _default_prompt_manager = PromptManager()
    return _default_prompt_manager
