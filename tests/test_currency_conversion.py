"""
Tests for currency conversion
"""

import pytest

from quotex.models import Currency, ExtractedRecord
from quotex.utils.currency_conversion import (
    ExchangeRates,
    convert_to_all_currencies,
    detect_original_currency,
    fill_record_prices,
)


@pytest.fixture
def rates():
    return ExchangeRates(usd_to_nis=3.7, eur_to_nis=4.0)


class TestConversion:
    """Test conversion between NIS, USD and EUR"""

    def test_from_usd(self, rates):
        """Test a USD price expressed in all currencies"""
        prices = convert_to_all_currencies(100.0, Currency.USD, rates)
        assert prices.unit_price_usd == 100.0
        assert prices.unit_price_nis == 370.0
        assert prices.unit_price_eur == 92.5
        assert prices.currency == Currency.USD
        assert prices.original_price == 100.0

    def test_from_nis(self, rates):
        """Test a NIS price expressed in all currencies"""
        prices = convert_to_all_currencies(370.0, Currency.NIS, rates)
        assert prices.unit_price_usd == 100.0
        assert prices.unit_price_eur == 92.5

    def test_from_eur(self, rates):
        """Test a EUR price expressed in all currencies"""
        prices = convert_to_all_currencies(92.5, Currency.EUR, rates)
        assert prices.unit_price_nis == 370.0
        assert prices.unit_price_usd == 100.0

    def test_rates_from_config(self, config):
        """Test rates come from configuration"""
        rates = ExchangeRates.from_config(config)
        assert rates.usd_to_nis == 3.7
        assert rates.eur_to_nis == 4.0
        assert rates.usd_to_eur == pytest.approx(0.925)


class TestOriginalCurrency:
    """Test detection of the quoted currency"""

    def test_declared_currency_wins(self):
        """Test the declared currency is used when its price is set"""
        assert detect_original_currency(370.0, 100.0, None, Currency.USD) == (Currency.USD, 100.0)

    def test_first_positive_price(self):
        """Test NIS, USD, EUR order when the declared price is missing"""
        assert detect_original_currency(None, 100.0, 90.0, Currency.NIS) == (Currency.USD, 100.0)

    def test_no_price(self):
        """Test None when nothing is priced"""
        assert detect_original_currency() is None


class TestFillRecordPrices:
    """Test filling record price fields"""

    def test_fill_prices(self, rates):
        """Test all fields are filled and the original currency is kept"""
        record = ExtractedRecord(name='Valve', unit_price_eur=92.5, currency='EUR')
        filled = fill_record_prices(record, rates)
        assert filled.currency == Currency.EUR
        assert filled.original_price == 92.5
        assert filled.unit_price_nis == 370.0
        assert filled.unit_price_usd == 100.0
        assert record.unit_price_nis is None

    def test_unpriced_record_unchanged(self, rates):
        """Test records without a price are returned as they are"""
        record = ExtractedRecord(name='Valve')
        assert fill_record_prices(record, rates) is record
