"""
Column and Category Recognition

Maps spreadsheet headers in English or Hebrew onto canonical record fields,
and resolves free-form category text onto the configured category list.
"""

import logging
from typing import Dict, List, Optional, Sequence

from quotex.config.quotex_config import QuotexConfig

logger = logging.getLogger(__name__)


class FieldRecognizer:
    """
    Greedy header-to-field assignment

    Headers are visited left to right. Each header goes to the first
    unclaimed field (in configured field order) with a keyword that the
    header contains or that contains the header. Assignments are final.
    """

    def __init__(self, config: Optional[QuotexConfig] = None):
        self.config = config or QuotexConfig.default()
        self.field_keywords = {
            field: tuple(k.lower().strip() for k in keywords if k and k.strip())
            for field, keywords in self.config.fields.items()
        }

    @staticmethod
    def normalize_header(header) -> str:
        return '' if header is None else str(header).lower().strip()

    def matches(self, field: str, header: str) -> bool:
        """Whether a normalized header matches one of the field's keywords"""
        if not header:
            return False
        return any(kw in header or header in kw for kw in self.field_keywords.get(field, ()))

    def detect(self, headers: Sequence) -> Dict[str, int]:
        """Detect column indices for canonical fields

        Args:
            headers: Header row cells

        Returns:
            Mapping of canonical field name to 0-based column index
        """
        detected: Dict[str, int] = {}
        for index, raw in enumerate(headers):
            header = self.normalize_header(raw)
            if not header:
                continue
            for field in self.field_keywords:
                if field in detected:
                    continue
                if self.matches(field, header):
                    detected[field] = index
                    break
        logger.debug(f"Detected columns {detected} from headers {list(headers)}")
        return detected

    def header_score(self, headers: Sequence) -> int:
        """Number of fields a header row would map"""
        return len(self.detect(headers))


class CategoryResolver:
    """Resolves category text to an allowed category"""

    def __init__(self, config: Optional[QuotexConfig] = None):
        self.config = config or QuotexConfig.default()
        self.settings = self.config.categories
        self._allowed_lower = {c.lower(): c for c in self.settings.allowed}

    @property
    def default(self) -> str:
        return self.settings.default

    @property
    def allowed(self) -> List[str]:
        return list(self.settings.allowed)

    def infer(self, text: Optional[str]) -> Optional[str]:
        """Category suggested by keywords in the text, if any"""
        if not text:
            return None
        lower = str(text).lower()
        for category, keywords in self.settings.keywords.items():
            if any(kw.lower() in lower for kw in keywords):
                return category
        return None

    def resolve(self, raw: Optional[str]) -> str:
        """Allowed category for a raw value; unknown values fall back to the default"""
        if raw is None or not str(raw).strip():
            return self.default
        value = str(raw).strip()
        exact = self._allowed_lower.get(value.lower())
        if exact:
            return exact
        return self.infer(value) or self.default
