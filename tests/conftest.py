from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from price_quoting.config.settings import Settings, get_sample_data_dir
from price_quoting.data.repository import InMemoryPricingRepository
from price_quoting.engine import PriceBasis, QuotingEngine
from price_quoting.engine.models import PriceBook, PriceEntry, Product, TaxRule

D = Decimal


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def settings():
    return Settings(
        project_root=Path(__file__).resolve().parent.parent,
        data_dir=get_sample_data_dir(),
    )


@pytest.fixture
def price_books():
    return [
        PriceBook(id="PB1", name="EU Retail 2024", currency="EUR", is_default=True,
                  created_at=utc(2024, 1, 1)),
        PriceBook(id="PB-GROSS", name="EU Gross", currency="EUR",
                  price_basis=PriceBasis.INCLUSIVE, created_at=utc(2024, 2, 1)),
        PriceBook(id="PB-OFF", name="Retired", currency="EUR", is_active=False),
    ]


@pytest.fixture
def price_entries():
    return [
        PriceEntry(id="E1", price_book_id="PB1", product_id="P1", unit_price=D("10.00"),
                   min_qty=D(1), max_qty=D(9), created_at=utc(2024, 1, 1)),
        PriceEntry(id="E2", price_book_id="PB1", product_id="P1", unit_price=D("8.00"),
                   min_qty=D(10), discount_pct=D(20), created_at=utc(2024, 1, 1)),
        PriceEntry(id="EV", price_book_id="PB1", variant_id="P1-RED", unit_price=D("9.00"),
                   min_qty=D(1), max_qty=D(4), created_at=utc(2024, 1, 1)),
        PriceEntry(id="EG", price_book_id="PB-GROSS", product_id="P1", unit_price=D("11.90"),
                   min_qty=D(1), created_at=utc(2024, 2, 1)),
    ]


@pytest.fixture
def tax_rules():
    return [
        TaxRule(id="T-DE", name="DE VAT", rate_pct=D(19), country="DE"),
        TaxRule(id="T-CA-GST", name="GST", rate_pct=D(10), country="CA", priority=10),
        TaxRule(id="T-CA-PST", name="PST", rate_pct=D(5), country="CA", compound=True, priority=20),
    ]


@pytest.fixture
def products():
    return [Product(id="P1", name="Widget", tax_class_id="STANDARD")]


@pytest.fixture
def repository(price_books, price_entries, tax_rules, products):
    return InMemoryPricingRepository(
        price_books=price_books,
        price_entries=price_entries,
        tax_rules=tax_rules,
        products=products,
    )


@pytest.fixture
def engine(repository, settings):
    return QuotingEngine(repository, settings)
