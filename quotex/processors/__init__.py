"""
quotex extractors

Tabular, text-pattern and vision extractors, the helpers they share, and
the router that chooses between them.
"""

from quotex.processors.base import BaseExtractor
from quotex.processors.confidence import ConfidenceScorer
from quotex.processors.field_recognizer import CategoryResolver, FieldRecognizer
from quotex.processors.price_normalizer import ParsedPrice, PriceNormalizer
from quotex.processors.router import ExtractionRouter
from quotex.processors.tabular import TabularExtractor
from quotex.processors.text_pattern import TextPatternExtractor
from quotex.processors.vision import ClaudeVisionModel, VisionExtractor, VisionModel, VisionResponse

__all__ = [
    'BaseExtractor',
    'ConfidenceScorer',
    'CategoryResolver',
    'FieldRecognizer',
    'ParsedPrice',
    'PriceNormalizer',
    'ExtractionRouter',
    'TabularExtractor',
    'TextPatternExtractor',
    'ClaudeVisionModel',
    'VisionExtractor',
    'VisionModel',
    'VisionResponse',
]
