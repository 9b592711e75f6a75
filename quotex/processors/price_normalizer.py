"""
Price and Currency Normalizer

Parses free-form price cells such as ``$1,234.56``, ``1.234,56 EUR`` or
``₪ 450`` into an amount and, when the text names one, a currency.

Separator rules:
- comma and period both present: the last one is the decimal separator
  (``1,234.56`` and ``1.234,56`` both read as 1234.56)
- only commas: decimal when exactly two digits follow the last comma,
  thousands otherwise
- several periods and no comma: thousands separators
"""

import logging
import math
import re
from decimal import Decimal
from typing import Any, NamedTuple, Optional

from quotex.config.quotex_config import QuotexConfig
from quotex.models.extraction import Currency

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)')
_DECIMAL_COMMA = re.compile(r',(\d{2})$')


class ParsedPrice(NamedTuple):
    amount: float
    currency: Optional[Currency]


class PriceNormalizer:
    """Turns price and quantity cells into numbers"""

    def __init__(self, config: Optional[QuotexConfig] = None):
        self.config = config or QuotexConfig.default()
        self.currencies = self.config.currencies
        tokens = self.currencies.all_tokens()
        self._strip_pattern = re.compile('|'.join(re.escape(t) for t in tokens), re.IGNORECASE)

    @property
    def default_currency(self) -> Currency:
        return self.currencies.default

    def parse(self, value: Any) -> Optional[ParsedPrice]:
        """Parse a price cell

        Args:
            value: Numeric or string cell value

        Returns:
            ParsedPrice, or None when no positive amount can be read
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float, Decimal)):
            amount = float(value)
            if math.isnan(amount) or math.isinf(amount) or amount <= 0:
                return None
            return ParsedPrice(amount, None)

        text = str(value)
        amount = self.parse_amount(text)
        if amount is None:
            return None
        return ParsedPrice(amount, self.detect_currency(text))

    def parse_amount(self, text: str) -> Optional[float]:
        """Numeric part of a price string, or None when absent or not positive"""
        cleaned = self._strip_pattern.sub('', text)
        cleaned = re.sub(r'\s', '', cleaned)
        if not cleaned:
            return None

        has_comma = ',' in cleaned
        has_period = '.' in cleaned
        if has_comma and has_period:
            if cleaned.rfind(',') > cleaned.rfind('.'):
                cleaned = cleaned.replace('.', '').replace(',', '.')
            else:
                cleaned = cleaned.replace(',', '')
        elif has_comma:
            if _DECIMAL_COMMA.search(cleaned):
                head, _, tail = cleaned.rpartition(',')
                cleaned = head.replace(',', '') + '.' + tail
            else:
                cleaned = cleaned.replace(',', '')
        elif cleaned.count('.') > 1:
            cleaned = cleaned.replace('.', '')

        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return None
        try:
            amount = float(match.group(0))
        except ValueError:
            return None
        if math.isnan(amount) or amount <= 0:
            return None
        return amount

    def detect_currency(self, text: Any) -> Optional[Currency]:
        """First configured currency whose token appears in the text"""
        if text is None:
            return None
        upper = str(text).upper()
        for currency, tokens in self.currencies.tokens.items():
            if any(token.upper() in upper for token in tokens):
                return currency
        return None

    def resolve_currency(self, *candidates: Optional[Currency]) -> Currency:
        """First non-empty candidate, else the configured default"""
        for currency in candidates:
            if currency is not None:
                return currency
        return self.default_currency

    def parse_quantity(self, value: Any) -> Optional[int]:
        """Positive whole quantity, or None"""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float, Decimal)):
            amount = float(value)
        else:
            amount = self.parse_amount(str(value))
        if amount is None or math.isnan(amount) or math.isinf(amount):
            return None
        quantity = int(amount)
        return quantity if quantity >= 1 else None
