from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from quotex.config.quotex_config import QuotexConfig
from quotex.models.extraction import (
    PRICE_FIELDS,
    Currency,
    DocumentPayload,
    ExtractedRecord,
    ExtractionResult,
    ExtractionWarning,
    ExtractorKind,
    WarningType,
)
from quotex.processors.confidence import ConfidenceScorer
from quotex.processors.field_recognizer import CategoryResolver
from quotex.processors.price_normalizer import PriceNormalizer

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """Base class for quotex document extractors"""

    kind: ExtractorKind = ExtractorKind.UNRECOGNIZED

    def __init__(self, config: Optional[QuotexConfig] = None):
        self.config = config or QuotexConfig.default()
        self.normalizer = PriceNormalizer(self.config)
        self.scorer = ConfidenceScorer(self.config)
        self.categories = CategoryResolver(self.config)

    @abstractmethod
    async def extract(self, payload: DocumentPayload) -> ExtractionResult:
        """Extract records from a document

        Args:
            payload: Document bytes and declared metadata

        Returns:
            ExtractionResult; expected failures are reported, not raised
        """
        pass

    def failure(self, error: str, metadata: Optional[Dict[str, Any]] = None) -> ExtractionResult:
        return ExtractionResult.failure(error, metadata=metadata, extractor=self.kind)

    def build_record(
        self,
        name: Optional[str],
        price: Optional[float] = None,
        currency: Optional[Currency] = None,
        **fields: Any,
    ) -> Optional[ExtractedRecord]:
        """Build a validated record, or None when the fields do not form one

        The price lands in the field of ``currency``; callers resolve the
        currency before calling.
        """
        data: Dict[str, Any] = {'name': name, **fields}
        if price is not None:
            currency = currency or self.normalizer.default_currency
            data[PRICE_FIELDS[currency]] = price
            data['currency'] = currency
        try:
            return ExtractedRecord(**data)
        except ValidationError as e:
            logger.debug(f"Discarding malformed record {data}: {e}")
            return None

    def finish(
        self,
        records: List[ExtractedRecord],
        metadata: Dict[str, Any],
        cap: Optional[float] = None,
        warnings: Optional[List[ExtractionWarning]] = None,
        message: Optional[str] = None,
    ) -> ExtractionResult:
        """Score records and wrap them in a successful result"""
        scored = [self.scorer.with_score(r, cap) for r in records]
        confidence = self.scorer.cap(self.scorer.aggregate(r.confidence for r in scored), cap)
        return self.success(scored, metadata, confidence, warnings, message)

    def success(
        self,
        records: List[ExtractedRecord],
        metadata: Dict[str, Any],
        confidence: float,
        warnings: Optional[List[ExtractionWarning]] = None,
        message: Optional[str] = None,
    ) -> ExtractionResult:
        """Wrap already-scored records in a successful result"""
        warnings = list(warnings or [])
        threshold = self.config.confidence.low_confidence_threshold
        if records and confidence < threshold:
            warnings.append(ExtractionWarning(
                type=WarningType.LOW_CONFIDENCE,
                message=f"Low extraction confidence ({confidence:.0%}); review the records",
            ))
        return ExtractionResult(
            success=True,
            records=records,
            metadata=metadata,
            confidence=confidence,
            error=message,
            warnings=warnings,
            extractor=self.kind,
        )
