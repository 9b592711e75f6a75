"""
Currency conversion

Fills the parallel NIS/USD/EUR price fields from a record's original price
using configured exchange rates. The original currency is kept as quoted.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, Field

from quotex.config.quotex_config import QuotexConfig
from quotex.models.extraction import PRICE_FIELDS, Currency, ExtractedRecord


class ExchangeRates(BaseModel):
    """Rates expressed as NIS per unit of foreign currency"""
    usd_to_nis: float = Field(..., gt=0)
    eur_to_nis: float = Field(..., gt=0)

    @classmethod
    def from_config(cls, config: Optional[QuotexConfig] = None) -> 'ExchangeRates':
        settings = (config or QuotexConfig.default()).exchange_rates
        return cls(usd_to_nis=settings.usd_to_nis, eur_to_nis=settings.eur_to_nis)

    @property
    def usd_to_eur(self) -> float:
        return self.usd_to_nis / self.eur_to_nis


class CurrencyPrices(BaseModel):
    unit_price_nis: float
    unit_price_usd: float
    unit_price_eur: float
    currency: Currency
    original_price: float


def _round(value: float) -> float:
    return round(value, 2)


def convert_to_all_currencies(amount: float, currency: Currency, rates: ExchangeRates) -> CurrencyPrices:
    """Express an amount in all three currencies; the original amount is kept unrounded"""
    currency = Currency(currency)
    if currency == Currency.NIS:
        nis, usd, eur = amount, _round(amount / rates.usd_to_nis), _round(amount / rates.eur_to_nis)
    elif currency == Currency.USD:
        nis, usd, eur = _round(amount * rates.usd_to_nis), amount, _round(amount * rates.usd_to_eur)
    else:
        nis, usd, eur = _round(amount * rates.eur_to_nis), _round(amount / rates.usd_to_eur), amount
    return CurrencyPrices(
        unit_price_nis=nis,
        unit_price_usd=usd,
        unit_price_eur=eur,
        currency=currency,
        original_price=amount,
    )


def detect_original_currency(
    unit_price_nis: Optional[float] = None,
    unit_price_usd: Optional[float] = None,
    unit_price_eur: Optional[float] = None,
    declared: Optional[Currency] = None,
) -> Optional[Tuple[Currency, float]]:
    """Original currency and amount

    The declared currency wins when its price is positive; otherwise the
    first positive price in NIS, USD, EUR order. None when no price is set.
    """
    prices = {
        Currency.NIS: unit_price_nis,
        Currency.USD: unit_price_usd,
        Currency.EUR: unit_price_eur,
    }
    if declared is not None and (prices.get(Currency(declared)) or 0) > 0:
        return Currency(declared), prices[Currency(declared)]
    for currency, amount in prices.items():
        if amount and amount > 0:
            return currency, amount
    return None


def fill_record_prices(record: ExtractedRecord, rates: ExchangeRates) -> ExtractedRecord:
    """Copy of the record with all three price fields populated"""
    original = detect_original_currency(
        record.unit_price_nis, record.unit_price_usd, record.unit_price_eur, record.currency
    )
    if original is None:
        return record
    currency, amount = original
    prices = convert_to_all_currencies(amount, currency, rates)
    update = {field: getattr(prices, field) for field in PRICE_FIELDS.values()}
    update['currency'] = currency
    return record.model_copy(update=update)
