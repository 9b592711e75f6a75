"""
quotex utilities
"""

from quotex.utils.currency_conversion import (
    CurrencyPrices,
    ExchangeRates,
    convert_to_all_currencies,
    detect_original_currency,
    fill_record_prices,
)

__all__ = [
    'CurrencyPrices',
    'ExchangeRates',
    'convert_to_all_currencies',
    'detect_original_currency',
    'fill_record_prices',
]
