"""
LLM services for quotex

Claude-backed implementations of the vision model and semantic matcher
collaborators, and the prompt files they render.
"""

from .claude_service import (
    ClaudeLLMService,
    ClaudeResponse,
    clean_json_response,
    describe_api_error,
    parse_json_response,
)
from .prompt_manager import PromptManager, get_prompt_manager

__all__ = [
    'ClaudeLLMService',
    'ClaudeResponse',
    'clean_json_response',
    'describe_api_error',
    'parse_json_response',
    'PromptManager',
    'get_prompt_manager',
]
