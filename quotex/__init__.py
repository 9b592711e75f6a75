"""
quotex

Supplier quote extraction and catalog reconciliation.
"""

from quotex.config.quotex_config import QuotexConfig
from quotex.models import (
    CatalogEntry,
    Currency,
    DecisionState,
    DocumentPayload,
    ExtractedRecord,
    ExtractionResult,
    MatchCandidate,
    MatchDecision,
    MatchTier,
)
from quotex.processors.router import ExtractionRouter, ExtractorKind
from quotex.matching.matcher import TieredMatcher
from quotex.pipeline import ImportBatch, ImportPipeline

__version__ = "1.0.0"

__all__ = [
    'QuotexConfig',
    'CatalogEntry',
    'Currency',
    'DecisionState',
    'DocumentPayload',
    'ExtractedRecord',
    'ExtractionResult',
    'MatchCandidate',
    'MatchDecision',
    'MatchTier',
    'ExtractionRouter',
    'ExtractorKind',
    'TieredMatcher',
    'ImportBatch',
    'ImportPipeline',
]
