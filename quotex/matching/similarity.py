"""
String similarity for catalog matching

Identifiers are compared with difflib's SequenceMatcher ratio after
lowercasing and dropping everything except letters and digits, so
"6ES7 512-1DK01-0AB0" and "6es7512-1dk01-0ab0" compare as equal.
"""

import re
from difflib import SequenceMatcher
from typing import Dict, Mapping, Optional, Tuple

from quotex.models.extraction import ExtractedRecord
from quotex.models.matching import CatalogEntry

_NON_ALNUM = re.compile(r'[\W_]+', re.UNICODE)


def normalize_key(value: Optional[str]) -> str:
    """Exact-match key: lowercase with all whitespace removed"""
    if not value:
        return ''
    return ''.join(str(value).lower().split())


def normalize_identifier(value: Optional[str]) -> str:
    """Lowercase letters and digits only"""
    if not value:
        return ''
    return _NON_ALNUM.sub('', str(value).lower())


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """Similarity in [0, 1]; 0.0 when either side is missing"""
    a, b = normalize_identifier(a), normalize_identifier(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def fuzzy_score(
    record: ExtractedRecord,
    entry: CatalogEntry,
    weights: Mapping[str, float],
) -> Tuple[float, Dict[str, float]]:
    """Weighted similarity of part number, manufacturer and name

    Returns:
        Overall score and the per-field similarities
    """
    breakdown = {
        'part_number': similarity(record.manufacturer_part_number, entry.manufacturer_part_number),
        'manufacturer': similarity(record.manufacturer, entry.manufacturer),
        'name': similarity(record.name, entry.name),
    }
    total = sum(weights.values()) or 1.0
    score = sum(breakdown[field] * weights.get(field, 0.0) for field in breakdown) / total
    return min(score, 1.0), breakdown


def describe_breakdown(breakdown: Mapping[str, float]) -> str:
    return (
        f"Fuzzy match: manufacturer {breakdown['manufacturer']:.0%}, "
        f"part number {breakdown['part_number']:.0%}, name {breakdown['name']:.0%}"
    )
