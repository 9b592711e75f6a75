"""
Shared fixtures for quotex tests
"""

import pytest

from quotex.config import QuotexConfig
from quotex.matching import InMemoryCatalog
from quotex.models import CatalogEntry


@pytest.fixture
def config():
    return QuotexConfig.default()


@pytest.fixture
def siemens_entry():
    return CatalogEntry(
        id='cat-1',
        name='CPU 1512C PLC Controller',
        manufacturer='Siemens',
        manufacturer_part_number='6ES7512-1DK01-0AB0',
        category='Controllers',
        supplier='Rexel Israel',
        unit_price_usd=2450.0,
        currency='USD',
    )


@pytest.fixture
def sensor_entry():
    return CatalogEntry(
        id='cat-2',
        name='Inductive Proximity Sensor M12',
        manufacturer='Sick',
        manufacturer_part_number='IME12-04BPSZC0S',
        category='Sensors',
        supplier='Sick Israel',
    )


@pytest.fixture
def catalog(siemens_entry, sensor_entry):
    return InMemoryCatalog([siemens_entry, sensor_entry])
