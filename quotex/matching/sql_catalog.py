"""
SQL Catalog Reader

Reads catalog entries from a relational table through SQLAlchemy. Each
call opens its own short-lived session, so concurrent matchers can share
one reader.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy import Column, Float, String, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from quotex.matching.catalog import CatalogReader
from quotex.matching.similarity import normalize_key
from quotex.models.matching import CatalogEntry

logger = logging.getLogger(__name__)

Base = declarative_base()


class CatalogComponent(Base):
    """
    Catalog component row

    Attributes:
        id: Catalog identifier
        name: Display name
        manufacturer: Manufacturer name
        manufacturer_part_number: Manufacturer part number
        category: Catalog category
        supplier: Supplier the price was last quoted by
        unit_price_nis / unit_price_usd / unit_price_eur: Stored prices
        currency: Currency the price was quoted in
    """
    __tablename__ = 'catalog_components'

    id = Column(String(64), primary_key=True)
    name = Column(String(500), nullable=False)
    manufacturer = Column(String(255), nullable=True, index=True)
    manufacturer_part_number = Column(String(255), nullable=True, index=True)
    category = Column(String(255), nullable=True)
    supplier = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    unit_price_nis = Column(Float, nullable=True)
    unit_price_usd = Column(Float, nullable=True)
    unit_price_eur = Column(Float, nullable=True)
    currency = Column(String(8), nullable=True)

    def __repr__(self):
        return (
            f"<CatalogComponent(id='{self.id}', manufacturer='{self.manufacturer}', "
            f"part_number='{self.manufacturer_part_number}')>"
        )

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            id=self.id,
            name=self.name,
            manufacturer=self.manufacturer,
            manufacturer_part_number=self.manufacturer_part_number,
            category=self.category,
            supplier=self.supplier,
            notes=self.notes,
            unit_price_nis=self.unit_price_nis,
            unit_price_usd=self.unit_price_usd,
            unit_price_eur=self.unit_price_eur,
            currency=self.currency or None,
        )


# Every character str.split() treats as whitespace
KEY_WHITESPACE = (
    '\t\n\x0b\x0c\r\x1c\x1d\x1e\x1f \x85\xa0\u1680'
    '\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a'
    '\u2028\u2029\u202f\u205f\u3000'
)


def _key_expression(column):
    """SQL form of normalize_key

    SQLite's lower() folds ASCII letters only, so stored keys with non-ASCII
    capitals match only when the lookup uses the same case.
    """
    stripped = column
    for ch in KEY_WHITESPACE:
        stripped = func.replace(stripped, ch, '')
    return func.lower(stripped)


class SQLCatalog(CatalogReader):
    """Catalog reader over the ``catalog_components`` table"""

    def __init__(self, engine: Union[str, Engine]):
        """
        Args:
            engine: SQLAlchemy engine or database URL
        """
        self.engine = create_engine(engine) if isinstance(engine, str) else engine
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False, autoflush=False)

    def create_schema(self) -> None:
        """Create the catalog table if it does not exist"""
        Base.metadata.create_all(self.engine)

    def lookup_exact(self, manufacturer, part_number) -> Optional[CatalogEntry]:
        manufacturer_key = normalize_key(manufacturer)
        part_key = normalize_key(part_number)
        if not manufacturer_key or not part_key:
            return None
        query = (
            select(CatalogComponent)
            .where(_key_expression(CatalogComponent.manufacturer) == manufacturer_key)
            .where(_key_expression(CatalogComponent.manufacturer_part_number) == part_key)
            .order_by(CatalogComponent.id)
        )
        with self.Session() as session:
            for row in session.scalars(query):
                if (normalize_key(row.manufacturer) == manufacturer_key
                        and normalize_key(row.manufacturer_part_number) == part_key):
                    return row.to_entry()
        return None

    def lookup_candidates(self) -> List[CatalogEntry]:
        with self.Session() as session:
            rows = session.scalars(select(CatalogComponent).order_by(CatalogComponent.id)).all()
            return [row.to_entry() for row in rows]
