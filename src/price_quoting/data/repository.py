"""
Pricing Repository - read-only access to price books, entries, products and tax rules.

The quoting engine takes one snapshot per quote() call through this
interface. Implementations must not cache across calls: price and tax
configuration can change between requests.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol

from ..engine.models import PriceBook, PriceEntry, Product, TaxRule
from .validators import (
    load_table,
    parse_price_book_row,
    parse_price_entry_row,
    parse_product_row,
    parse_tax_rule_row,
)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class PricingRepository(Protocol):
    """Collaborator read interface the engine depends on."""

    def list_price_books(self) -> list[PriceBook]: ...

    def get_price_book(self, price_book_id: str) -> Optional[PriceBook]: ...

    def get_default_price_book(self) -> Optional[PriceBook]: ...

    def get_product(self, product_id: str) -> Optional[Product]: ...

    def list_price_entries(
        self, price_book_id: str, product_id: str, variant_id: Optional[str] = None
    ) -> list[PriceEntry]: ...

    def list_tax_rules(self, country: Optional[str] = None) -> list[TaxRule]: ...


def pick_default_book(books: Iterable[PriceBook]) -> Optional[PriceBook]:
    """The active default book; the newest one wins if several are flagged."""
    defaults = [b for b in books if b.is_active and b.is_default]
    if not defaults:
        return None
    defaults.sort(key=lambda b: (b.created_at or _OLDEST, b.id), reverse=True)
    return defaults[0]


def entries_in_scope(
    entries: Iterable[PriceEntry], price_book_id: str, product_id: str, variant_id: Optional[str]
) -> list[PriceEntry]:
    """Entries of one book scoped to the product itself or to the requested variant."""
    return [
        e for e in entries
        if e.price_book_id == price_book_id and (
            (e.variant_id is None and e.product_id == product_id)
            or (variant_id is not None and e.variant_id == variant_id)
        )
    ]


def rules_for_country(rules: Iterable[TaxRule], country: Optional[str]) -> list[TaxRule]:
    """Active rules that could apply in a country (rules without a country always could)."""
    wanted = country.strip().upper() if country else None
    return [
        r for r in rules
        if r.is_active and (
            not r.country or (wanted is not None and r.country.strip().upper() == wanted)
        )
    ]


class InMemoryPricingRepository:
    """Repository over plain collections; used by tests and embedding callers."""

    def __init__(
        self,
        price_books: Iterable[PriceBook] = (),
        price_entries: Iterable[PriceEntry] = (),
        tax_rules: Iterable[TaxRule] = (),
        products: Iterable[Product] = (),
    ):
        self.price_books = tuple(price_books)
        self.price_entries = tuple(price_entries)
        self.tax_rules = tuple(tax_rules)
        self.products = tuple(products)

    def list_price_books(self) -> list[PriceBook]:
        return list(self.price_books)

    def get_price_book(self, price_book_id: str) -> Optional[PriceBook]:
        for book in self.price_books:
            if book.id == price_book_id:
                return book
        return None

    def get_default_price_book(self) -> Optional[PriceBook]:
        return pick_default_book(self.price_books)

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def list_price_entries(
        self, price_book_id: str, product_id: str, variant_id: Optional[str] = None
    ) -> list[PriceEntry]:
        return entries_in_scope(self.price_entries, price_book_id, product_id, variant_id)

    def list_tax_rules(self, country: Optional[str] = None) -> list[TaxRule]:
        return rules_for_country(self.tax_rules, country)


class CsvPricingRepository:
    """
    Repository over a directory of CSV tables.

    Files: price_books.csv, price_entries.csv, products.csv, tax_rules.csv.
    Every call re-reads the relevant file, so each quote sees the data as it
    is on disk at that moment.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    @property
    def price_books_path(self) -> Path:
        return self.data_dir / 'price_books.csv'

    @property
    def price_entries_path(self) -> Path:
        return self.data_dir / 'price_entries.csv'

    @property
    def products_path(self) -> Path:
        return self.data_dir / 'products.csv'

    @property
    def tax_rules_path(self) -> Path:
        return self.data_dir / 'tax_rules.csv'

    def list_price_books(self) -> list[PriceBook]:
        return load_table(self.price_books_path, parse_price_book_row)

    def get_price_book(self, price_book_id: str) -> Optional[PriceBook]:
        for book in self.list_price_books():
            if book.id == price_book_id:
                return book
        return None

    def get_default_price_book(self) -> Optional[PriceBook]:
        return pick_default_book(self.list_price_books())

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in load_table(self.products_path, parse_product_row):
            if product.id == product_id:
                return product
        return None

    def list_all_price_entries(self) -> list[PriceEntry]:
        return load_table(self.price_entries_path, parse_price_entry_row)

    def list_price_entries(
        self, price_book_id: str, product_id: str, variant_id: Optional[str] = None
    ) -> list[PriceEntry]:
        return entries_in_scope(self.list_all_price_entries(), price_book_id, product_id, variant_id)

    def list_tax_rules(self, country: Optional[str] = None) -> list[TaxRule]:
        return rules_for_country(load_table(self.tax_rules_path, parse_tax_rule_row), country)
