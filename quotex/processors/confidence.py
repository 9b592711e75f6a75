"""
Confidence Scorer

Weighted completeness score for extracted records. Weights are relative
and normalized by their total.
"""

from typing import Dict, Iterable, Optional

from quotex.config.quotex_config import QuotexConfig
from quotex.models.extraction import ExtractedRecord


class ConfidenceScorer:
    """Scores records by which fields they carry"""

    def __init__(self, config: Optional[QuotexConfig] = None):
        self.config = config or QuotexConfig.default()
        self.weights: Dict[str, float] = dict(self.config.confidence.weights)
        self.total = sum(self.weights.values())

    @staticmethod
    def present_fields(record: ExtractedRecord) -> Dict[str, bool]:
        return {
            'name': bool(record.name),
            'price': record.has_price,
            'part_number': bool(record.manufacturer_part_number),
            'manufacturer': bool(record.manufacturer),
            'category': bool(record.category),
            'quantity': record.quantity is not None,
            'notes': bool(record.notes),
        }

    def score(self, record: ExtractedRecord) -> float:
        """Score in [0, 1]"""
        present = self.present_fields(record)
        earned = sum(w for field, w in self.weights.items() if present.get(field))
        return earned / self.total

    @staticmethod
    def aggregate(scores: Iterable[float]) -> float:
        """Arithmetic mean; 0.0 for no scores"""
        scores = list(scores)
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    @staticmethod
    def cap(score: float, limit: Optional[float]) -> float:
        return score if limit is None else min(score, limit)

    def with_score(self, record: ExtractedRecord, limit: Optional[float] = None) -> ExtractedRecord:
        """Copy of the record carrying its computed (and optionally capped) score"""
        return record.model_copy(update={'confidence': self.cap(self.score(record), limit)})
