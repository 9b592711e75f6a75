"""
Claude (Anthropic) LLM Service

Async Claude client used by the vision extractor and the semantic matcher.
"""

import json
import logging
import os
from typing import Any, Dict, NamedTuple, Optional

import anthropic

from quotex.config.quotex_config import LLMSettings
from quotex.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = 'application/pdf'
IMAGE_MEDIA_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')


def clean_json_response(content: str) -> str:
    """
    Strip markdown fences and surrounding prose from a JSON reply

    Args:
        content: Raw response text

    Returns:
        The outermost ``{...}`` span, or the stripped text when none is found
    """
    content = content.strip()
    if content.startswith('```'):
        content = content.split('\n', 1)[1] if '\n' in content else content[3:]
    if content.endswith('```'):
        content = content[:-3]
    content = content.strip()

    start = content.find('{')
    end = content.rfind('}')
    if start >= 0 and end > start:
        content = content[start:end + 1]
    return content


def parse_json_response(content: str) -> Dict[str, Any]:
    """Parse a JSON object reply; raises ValueError when it is not one"""
    data = json.loads(clean_json_response(content))
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object in the model response")
    return data


class ClaudeResponse(NamedTuple):
    text: str
    stop_reason: Optional[str]

    @property
    def truncated(self) -> bool:
        return self.stop_reason == 'max_tokens'


def describe_api_error(error: Exception) -> str:
    """Readable message for an Anthropic API error"""
    if isinstance(error, anthropic.AuthenticationError):
        return "Authentication failed: the Anthropic API key is invalid or not configured"
    if isinstance(error, anthropic.RateLimitError):
        return "Rate limit exceeded: wait a moment and try again"
    if isinstance(error, anthropic.APITimeoutError):
        return "The model request timed out"
    if isinstance(error, anthropic.APIConnectionError):
        return "Could not reach the Anthropic API"
    return f"Model request failed: {error}"


class ClaudeLLMService:
    """Claude (Anthropic) LLM service"""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 16384,
        temperature: float = 0.0,
        client: Optional[Any] = None,
    ):
        """
        Initialize Claude LLM service

        Args:
            api_key: Anthropic API key
            model: Model to use
            max_tokens: Default completion budget
            temperature: Default sampling temperature
            client: Pre-built ``AsyncAnthropic`` client
        """
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> 'ClaudeLLMService':
        api_key = os.getenv(settings.api_key_env)
        if not api_key:
            raise ConfigurationError(
                f"Anthropic API key is required. Set the {settings.api_key_env} environment variable."
            )
        return cls(
            api_key=api_key,
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )

    async def _create(self, content: Any, system_prompt: Optional[str],
                      temperature: Optional[float], max_tokens: Optional[int]) -> ClaudeResponse:
        request_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if system_prompt:
            request_kwargs["system"] = system_prompt

        response = await self.client.messages.create(**request_kwargs)
        text = ''.join(
            getattr(block, 'text', '') for block in response.content
            if getattr(block, 'type', 'text') == 'text'
        )
        return ClaudeResponse(text=text, stop_reason=getattr(response, 'stop_reason', None))

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Text completion for a plain prompt"""
        try:
            response = await self._create(prompt, system_prompt, temperature, max_tokens)
        except anthropic.APIError as e:
            logger.error(f"Claude completion error: {e}")
            raise
        return response.text

    async def generate_document_completion(
        self,
        data_b64: str,
        media_type: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ClaudeResponse:
        """
        Completion over an attached image or PDF

        Args:
            data_b64: Base64-encoded document
            media_type: One of the supported image types or application/pdf
            prompt: Instruction text sent after the document

        Returns:
            ClaudeResponse with the reply text and stop reason
        """
        if media_type == PDF_MEDIA_TYPE:
            block_type = 'document'
        elif media_type in IMAGE_MEDIA_TYPES:
            block_type = 'image'
        else:
            raise ValueError(f"Unsupported media type for Claude: {media_type}")

        content = [
            {
                "type": block_type,
                "source": {"type": "base64", "media_type": media_type, "data": data_b64},
            },
            {"type": "text", "text": prompt},
        ]
        try:
            return await self._create(content, system_prompt, temperature, max_tokens)
        except anthropic.APIError as e:
            logger.error(f"Claude document completion error: {e}")
            raise
