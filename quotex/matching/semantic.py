"""
Semantic matching

Asks a language model whether an extracted record and a catalog entry are
the same physical product. Used only for borderline fuzzy candidates.
"""

import logging
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

from quotex.config.quotex_config import QuotexConfig
from quotex.exceptions import SemanticMatchError
from quotex.models.extraction import ExtractedRecord
from quotex.models.matching import CatalogEntry
from quotex.processors.llm.claude_service import ClaudeLLMService, parse_json_response
from quotex.processors.llm.prompt_manager import PromptManager, get_prompt_manager

logger = logging.getLogger(__name__)


class SemanticVerdict(NamedTuple):
    confidence: float
    reasoning: str = ""


class SemanticMatcher(ABC):
    """Equivalence judgement between a record and a catalog entry"""

    @abstractmethod
    async def evaluate(self, record: ExtractedRecord, entry: CatalogEntry) -> float:
        """Confidence in [0, 1] that both describe the same product"""
        pass

    async def assess(self, record: ExtractedRecord, entry: CatalogEntry) -> SemanticVerdict:
        """Confidence with a short explanation"""
        return SemanticVerdict(await self.evaluate(record, entry), "Semantic equivalence")


class ClaudeSemanticMatcher(SemanticMatcher):
    """SemanticMatcher backed by Claude"""

    def __init__(
        self,
        service: ClaudeLLMService,
        config: Optional[QuotexConfig] = None,
        prompt_manager: Optional[PromptManager] = None,
    ):
        self.service = service
        self.config = config or QuotexConfig.default()
        self.prompt_manager = prompt_manager or get_prompt_manager(self.config.llm.prompts_dir)

    @classmethod
    def from_config(cls, config: Optional[QuotexConfig] = None) -> 'ClaudeSemanticMatcher':
        config = config or QuotexConfig.default()
        return cls(ClaudeLLMService.from_settings(config.llm), config)

    async def evaluate(self, record, entry) -> float:
        return (await self.assess(record, entry)).confidence

    async def assess(self, record, entry) -> SemanticVerdict:
        completion = await self.service.generate_completion(
            prompt=self.prompt_manager.get_user_prompt('semantic_match', record=record, entry=entry),
            system_prompt=self.prompt_manager.get_system_prompt('semantic_match'),
            max_tokens=self.config.llm.semantic_max_tokens,
        )
        try:
            data = parse_json_response(completion)
            confidence = float(data.get('confidence', 0.0))
        except (ValueError, TypeError) as e:
            raise SemanticMatchError(f"Unreadable semantic match response: {e}") from e

        confidence = min(max(confidence, 0.0), 1.0)
        if not data.get('is_match', False):
            confidence = 0.0
        reasoning = str(data.get('reasoning') or '').strip()
        logger.debug(f"Semantic check {record.name!r} vs entry {entry.id}: {confidence:.2f} {reasoning}")
        return SemanticVerdict(confidence, reasoning)
