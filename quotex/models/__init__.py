"""
quotex data models
"""

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
from quotex.models.matching import (
    CatalogEntry,
    DecidedBy,
    DecisionState,
    MatchCandidate,
    MatchDecision,
    MatchTier,
)

__all__ = [
    'PRICE_FIELDS',
    'Currency',
    'DocumentPayload',
    'ExtractedRecord',
    'ExtractionResult',
    'ExtractionWarning',
    'ExtractorKind',
    'WarningType',
    'CatalogEntry',
    'DecidedBy',
    'DecisionState',
    'MatchCandidate',
    'MatchDecision',
    'MatchTier',
]
