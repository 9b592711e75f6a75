"""
Tests for the SQLAlchemy catalog reader
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from quotex.matching import InMemoryCatalog, TieredMatcher
from quotex.matching.sql_catalog import CatalogComponent, SQLCatalog
from quotex.models import Currency, DecisionState, ExtractedRecord


@pytest.fixture
def sql_catalog():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    catalog = SQLCatalog(engine)
    catalog.create_schema()
    with catalog.Session() as session:
        session.add_all([
            CatalogComponent(
                id='cat-1',
                name='CPU 1512C PLC Controller',
                manufacturer='Siemens',
                manufacturer_part_number='6ES7 512-1DK01-0AB0',
                supplier='Rexel Israel',
                unit_price_nis=9000.0,
                currency='NIS',
            ),
            CatalogComponent(
                id='cat-2',
                name='Inductive Proximity Sensor M12',
                manufacturer='Sick',
                manufacturer_part_number='IME12-04BPSZC0S',
            ),
        ])
        session.commit()
    return catalog


class TestSQLCatalog:
    """Test catalog reads through SQLAlchemy"""

    def test_lookup_exact(self, sql_catalog):
        """Test exact lookups ignore case and whitespace"""
        entry = sql_catalog.lookup_exact('SIEMENS', '6es7512-1dk01-0ab0')
        assert entry is not None
        assert entry.id == 'cat-1'
        assert entry.currency == Currency.NIS
        assert sql_catalog.get_supplier(entry) == 'Rexel Israel'

    def test_lookup_exact_unicode_whitespace(self, sql_catalog):
        """Test stored keys with non-breaking and narrow spaces match like the in-memory catalog"""
        with sql_catalog.Session() as session:
            session.add(CatalogComponent(
                id='cat-3',
                name='Power Supply 24V',
                manufacturer='Phoenix\u202fContact',
                manufacturer_part_number='QUINT\u00a02904600',
            ))
            session.commit()

        entry = sql_catalog.lookup_exact('phoenix contact', 'QUINT 2904600')
        assert entry is not None
        assert entry.id == 'cat-3'
        assert entry == InMemoryCatalog(sql_catalog.lookup_candidates()).lookup_exact('phoenix contact', 'QUINT 2904600')

    def test_lookup_exact_missing(self, sql_catalog):
        """Test misses and incomplete keys return None"""
        assert sql_catalog.lookup_exact('Siemens', 'nope') is None
        assert sql_catalog.lookup_exact(None, '6ES7512-1DK01-0AB0') is None

    def test_lookup_candidates(self, sql_catalog):
        """Test all rows are returned in id order"""
        assert [e.id for e in sql_catalog.lookup_candidates()] == ['cat-1', 'cat-2']

    def test_component_repr(self):
        """Test the row representation"""
        row = CatalogComponent(id='x', name='n', manufacturer='m', manufacturer_part_number='p')
        assert repr(row) == "<CatalogComponent(id='x', manufacturer='m', part_number='p')>"

    @pytest.mark.asyncio
    async def test_matcher_over_sql(self, sql_catalog, config):
        """Test the matcher works against the SQL catalog"""
        record = ExtractedRecord(name='PLC', manufacturer='siemens', manufacturer_part_number='6ES7512-1DK01-0AB0')
        decision = await TieredMatcher(sql_catalog, config=config).match(record)
        assert decision.state == DecisionState.ACCEPT_UPDATE
        assert decision.selected_candidate_id == 'cat-1'
