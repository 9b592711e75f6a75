"""
Catalog matching for quotex
"""

from quotex.matching.catalog import CatalogReader, InMemoryCatalog
from quotex.matching.decisions import DecisionBook
from quotex.matching.matcher import TieredMatcher
from quotex.matching.semantic import ClaudeSemanticMatcher, SemanticMatcher, SemanticVerdict
from quotex.matching.similarity import fuzzy_score, normalize_identifier, normalize_key, similarity
from quotex.matching.sql_catalog import CatalogComponent, SQLCatalog

__all__ = [
    'CatalogReader',
    'InMemoryCatalog',
    'DecisionBook',
    'TieredMatcher',
    'ClaudeSemanticMatcher',
    'SemanticMatcher',
    'SemanticVerdict',
    'fuzzy_score',
    'normalize_identifier',
    'normalize_key',
    'similarity',
    'CatalogComponent',
    'SQLCatalog',
]
