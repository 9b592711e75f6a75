"""
Extraction Data Models with Pydantic Validation

Records extracted from supplier quotes and the result envelope every
extractor returns. Failures are carried inside ExtractionResult rather than
raised, so callers always receive something they can render.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Currency(str, Enum):
    """Supported currencies"""
    NIS = "NIS"
    USD = "USD"
    EUR = "EUR"


PRICE_FIELDS = {
    Currency.NIS: 'unit_price_nis',
    Currency.USD: 'unit_price_usd',
    Currency.EUR: 'unit_price_eur',
}


class ExtractorKind(str, Enum):
    """Extraction strategy chosen for a document"""
    TABULAR = "tabular"
    TEXT_PATTERN = "text_pattern"
    VISION = "vision"
    UNRECOGNIZED = "unrecognized"


class WarningType(str, Enum):
    RTL_DOCUMENT = "rtl_document"
    POTENTIAL_REVERSAL = "potential_reversal"
    LOW_CONFIDENCE = "low_confidence"
    MISSING_DATA = "missing_data"


class ExtractionWarning(BaseModel):
    """A non-fatal observation about an extraction"""
    type: WarningType
    message: str
    record_index: Optional[int] = None
    severity: str = "warning"  # info, warning, error


class ExtractedRecord(BaseModel):
    """One priced line item extracted from a supplier document"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    manufacturer: Optional[str] = None
    manufacturer_part_number: Optional[str] = None
    category: Optional[str] = None
    supplier: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)

    unit_price_nis: Optional[float] = Field(None, gt=0)
    unit_price_usd: Optional[float] = Field(None, gt=0)
    unit_price_eur: Optional[float] = Field(None, gt=0)
    currency: Optional[Currency] = None

    notes: Optional[str] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    @field_validator('manufacturer', 'manufacturer_part_number', 'category',
                     'supplier', 'notes', mode='before')
    @classmethod
    def empty_to_none(cls, v: Any) -> Optional[str]:
        """Blank optional strings are absent"""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @model_validator(mode='after')
    def validate_currency(self) -> 'ExtractedRecord':
        """A priced record names its currency, and that currency's price is set"""
        if self.has_price:
            if self.currency is None:
                raise ValueError("currency is required when a price is present")
            if self.price_in(self.currency) is None:
                raise ValueError(
                    f"currency {self.currency.value} does not match the populated price field"
                )
        return self

    @property
    def has_price(self) -> bool:
        return any(getattr(self, f) is not None for f in PRICE_FIELDS.values())

    def price_in(self, currency: Currency) -> Optional[float]:
        return getattr(self, PRICE_FIELDS[Currency(currency)])

    @property
    def original_price(self) -> Optional[float]:
        """Price in the currency the source quoted"""
        return self.price_in(self.currency) if self.currency else None


class ExtractionResult(BaseModel):
    """Output of one extractor invocation"""
    success: bool
    records: List[ExtractedRecord] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    error: Optional[str] = None
    warnings: List[ExtractionWarning] = Field(default_factory=list)
    extractor: Optional[ExtractorKind] = None

    @model_validator(mode='after')
    def validate_failure(self) -> 'ExtractionResult':
        if not self.success:
            if self.records:
                raise ValueError("a failed extraction cannot carry records")
            if not self.error:
                raise ValueError("a failed extraction must carry an error message")
        return self

    @classmethod
    def failure(
        cls,
        error: str,
        metadata: Optional[Dict[str, Any]] = None,
        extractor: Optional[ExtractorKind] = None,
    ) -> 'ExtractionResult':
        return cls(success=False, error=error, metadata=metadata or {}, extractor=extractor)

    @property
    def record_count(self) -> int:
        return len(self.records)


class DocumentPayload(BaseModel):
    """Raw document bytes and their declared metadata"""
    data: bytes
    content_type: str = ""
    filename: str = ""

    @field_validator('content_type', mode='before')
    @classmethod
    def normalize_content_type(cls, v: Optional[str]) -> str:
        return (v or "").strip().lower()

    @field_validator('filename', mode='before')
    @classmethod
    def normalize_filename(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        name = (self.filename or "").lower()
        return name.rsplit('.', 1)[-1] if '.' in name else ""
