"""
Catalog readers

The matcher only reads the catalog. CatalogReader is the narrow interface
it needs; InMemoryCatalog serves snapshots loaded from memory or JSON, and
SQLCatalog (see sql_catalog) reads a relational table.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from quotex.matching.similarity import normalize_key
from quotex.models.matching import CatalogEntry

logger = logging.getLogger(__name__)


class CatalogReader(ABC):
    """Read-only catalog access used during matching"""

    @abstractmethod
    def lookup_exact(self, manufacturer: Optional[str], part_number: Optional[str]) -> Optional[CatalogEntry]:
        """Entry whose manufacturer and part number equal the given pair, ignoring case and whitespace"""
        pass

    @abstractmethod
    def lookup_candidates(self) -> Iterable[CatalogEntry]:
        """All entries that may be compared against a record"""
        pass

    def get_supplier(self, entry: CatalogEntry) -> Optional[str]:
        return entry.supplier


class InMemoryCatalog(CatalogReader):
    """Immutable in-memory catalog snapshot"""

    def __init__(self, entries: Iterable[Union[CatalogEntry, Dict[str, Any]]] = ()):
        self._entries: Tuple[CatalogEntry, ...] = tuple(
            e if isinstance(e, CatalogEntry) else CatalogEntry(**e) for e in entries
        )
        self._index: Dict[Tuple[str, str], CatalogEntry] = {}
        for entry in self._entries:
            key = (normalize_key(entry.manufacturer), normalize_key(entry.manufacturer_part_number))
            if all(key):
                self._index.setdefault(key, entry)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'InMemoryCatalog':
        """Load a JSON list of catalog entries (or ``{"entries": [...]}``)"""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get('entries', [])
        catalog = cls(data)
        logger.info(f"Loaded {len(catalog)} catalog entries from {path}")
        return catalog

    def __len__(self) -> int:
        return len(self._entries)

    def lookup_exact(self, manufacturer, part_number):
        key = (normalize_key(manufacturer), normalize_key(part_number))
        if not all(key):
            return None
        return self._index.get(key)

    def lookup_candidates(self) -> List[CatalogEntry]:
        return list(self._entries)
