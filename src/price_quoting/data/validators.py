"""
Row Validators - parse and validate pricing CSV rows into model objects.

Each parser returns (obj, errors); obj is None when validation failed.
Errors carry the CSV line number so a data owner can fix the source file.
"""
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

import pandas as pd

from ..engine.models import PriceBasis, PriceBook, PriceEntry, Product, TaxRule, to_utc
from ..engine.money import HUNDRED, ZERO, to_decimal

logger = logging.getLogger(__name__)

PRICE_BOOK_COLUMNS = [
    'id', 'name', 'currency', 'is_default', 'is_active', 'price_basis',
    'valid_from', 'valid_to', 'created_at'
]
PRICE_ENTRY_COLUMNS = [
    'id', 'price_book_id', 'product_id', 'variant_id', 'unit_price', 'min_qty',
    'max_qty', 'discount_pct', 'unit_id', 'valid_from', 'valid_to', 'created_at'
]
PRODUCT_COLUMNS = ['id', 'name', 'tax_class_id', 'unit_id', 'is_active']
TAX_RULE_COLUMNS = [
    'id', 'name', 'rate_pct', 'compound', 'priority', 'country', 'region',
    'postal_pattern', 'tax_class_id', 'is_active', 'valid_from', 'valid_to'
]


def parse_bool(value: str, default: bool = False) -> bool:
    """Parse a boolean from CSV string."""
    if value is None or str(value).strip() == '':
        return default
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def parse_optional_str(value: str) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if value is None or str(value).strip() == '':
        return None
    return str(value).strip()


class _RowErrors:
    """Collects 'Line N: ...' messages while parsing one row."""

    def __init__(self, line_num: int):
        self.line_num = line_num
        self.errors: list[str] = []

    def add(self, message: str):
        self.errors.append(f"Line {self.line_num}: {message}")

    def decimal(self, row: dict, column: str, required: bool = False) -> Optional[Decimal]:
        raw = parse_optional_str(row.get(column, ''))
        if raw is None:
            if required:
                self.add(f"{column} is required")
            return None
        try:
            value = to_decimal(raw)
        except ValueError:
            self.add(f"{column} must be numeric, got '{raw}'")
            return None
        if not value.is_finite():
            self.add(f"{column} must be finite, got '{raw}'")
            return None
        return value

    def timestamp(self, row: dict, column: str) -> Optional[datetime]:
        raw = parse_optional_str(row.get(column, ''))
        if raw is None:
            return None
        try:
            return to_utc(raw)
        except ValueError:
            self.add(f"{column} must be an ISO-8601 date or timestamp, got '{raw}'")
            return None

    def window(self, valid_from: Optional[datetime], valid_to: Optional[datetime]):
        if valid_from and valid_to and valid_to <= valid_from:
            self.add("valid_to must be after valid_from")


def parse_price_book_row(row: dict, line_num: int) -> tuple[Optional[PriceBook], list[str]]:
    errs = _RowErrors(line_num)

    book_id = parse_optional_str(row.get('id', ''))
    if not book_id:
        errs.add("id is required")
        return None, errs.errors

    currency = parse_optional_str(row.get('currency', ''))
    if not currency or len(currency) != 3 or not currency.isalpha():
        errs.add(f"currency must be a 3-letter code, got '{currency or ''}'")

    try:
        basis = PriceBasis.parse(row.get('price_basis'))
    except ValueError:
        errs.add(f"price_basis must be EXCLUSIVE or INCLUSIVE, got '{row.get('price_basis')}'")
        basis = PriceBasis.EXCLUSIVE

    valid_from = errs.timestamp(row, 'valid_from')
    valid_to = errs.timestamp(row, 'valid_to')
    errs.window(valid_from, valid_to)
    created_at = errs.timestamp(row, 'created_at')

    if errs.errors:
        return None, errs.errors

    return PriceBook(
        id=book_id,
        name=parse_optional_str(row.get('name', '')) or book_id,
        currency=currency.upper(),
        is_default=parse_bool(row.get('is_default', '')),
        is_active=parse_bool(row.get('is_active', ''), default=True),
        price_basis=basis,
        valid_from=valid_from,
        valid_to=valid_to,
        created_at=created_at,
    ), []


def parse_price_entry_row(row: dict, line_num: int) -> tuple[Optional[PriceEntry], list[str]]:
    errs = _RowErrors(line_num)

    entry_id = parse_optional_str(row.get('id', ''))
    if not entry_id:
        errs.add("id is required")
        return None, errs.errors

    price_book_id = parse_optional_str(row.get('price_book_id', ''))
    if not price_book_id:
        errs.add("price_book_id is required")

    product_id = parse_optional_str(row.get('product_id', ''))
    variant_id = parse_optional_str(row.get('variant_id', ''))
    if bool(product_id) == bool(variant_id):
        errs.add("provide exactly one of product_id or variant_id")

    unit_price = errs.decimal(row, 'unit_price', required=True)

    min_qty = errs.decimal(row, 'min_qty')
    max_qty = errs.decimal(row, 'max_qty')
    if min_qty is not None and min_qty < ZERO:
        errs.add("min_qty must not be negative")
    if max_qty is not None and max_qty <= ZERO:
        errs.add("max_qty must be positive")
    if min_qty is not None and max_qty is not None and max_qty < min_qty:
        errs.add("max_qty must be >= min_qty")

    discount_pct = errs.decimal(row, 'discount_pct')
    if discount_pct is not None and not (ZERO <= discount_pct < HUNDRED):
        errs.add("discount_pct must be in [0, 100)")

    valid_from = errs.timestamp(row, 'valid_from')
    valid_to = errs.timestamp(row, 'valid_to')
    errs.window(valid_from, valid_to)
    created_at = errs.timestamp(row, 'created_at')

    if errs.errors:
        return None, errs.errors

    return PriceEntry(
        id=entry_id,
        price_book_id=price_book_id,
        product_id=product_id,
        variant_id=variant_id,
        unit_price=unit_price,
        min_qty=min_qty,
        max_qty=max_qty,
        discount_pct=discount_pct,
        unit_id=parse_optional_str(row.get('unit_id', '')),
        valid_from=valid_from,
        valid_to=valid_to,
        created_at=created_at,
    ), []


def parse_product_row(row: dict, line_num: int) -> tuple[Optional[Product], list[str]]:
    errs = _RowErrors(line_num)

    product_id = parse_optional_str(row.get('id', ''))
    if not product_id:
        errs.add("id is required")
        return None, errs.errors

    return Product(
        id=product_id,
        name=parse_optional_str(row.get('name', '')) or product_id,
        tax_class_id=parse_optional_str(row.get('tax_class_id', '')),
        unit_id=parse_optional_str(row.get('unit_id', '')),
        is_active=parse_bool(row.get('is_active', ''), default=True),
    ), []


def parse_tax_rule_row(row: dict, line_num: int) -> tuple[Optional[TaxRule], list[str]]:
    errs = _RowErrors(line_num)

    rule_id = parse_optional_str(row.get('id', ''))
    if not rule_id:
        errs.add("id is required")
        return None, errs.errors

    rate = errs.decimal(row, 'rate_pct', required=True)
    if rate is not None and not (ZERO <= rate <= HUNDRED):
        errs.add("rate_pct must be between 0 and 100")

    priority_raw = parse_optional_str(row.get('priority', '')) or '0'
    try:
        priority = int(priority_raw)
    except ValueError:
        errs.add("priority must be an integer")
        priority = 0

    valid_from = errs.timestamp(row, 'valid_from')
    valid_to = errs.timestamp(row, 'valid_to')
    errs.window(valid_from, valid_to)

    if errs.errors:
        return None, errs.errors

    return TaxRule(
        id=rule_id,
        name=parse_optional_str(row.get('name', '')) or rule_id,
        rate_pct=rate,
        compound=parse_bool(row.get('compound', '')),
        priority=priority,
        country=parse_optional_str(row.get('country', '')),
        region=parse_optional_str(row.get('region', '')),
        postal_pattern=parse_optional_str(row.get('postal_pattern', '')),
        tax_class_id=parse_optional_str(row.get('tax_class_id', '')),
        is_active=parse_bool(row.get('is_active', ''), default=True),
        valid_from=valid_from,
        valid_to=valid_to,
    ), []


def read_rows(path: Path) -> list[dict]:
    """Read a CSV as a list of stripped string dicts (empty cells become '')."""
    if not path.exists():
        return []
    df = pd.read_csv(path, dtype=str, keep_default_na=False).fillna('')
    df.columns = [str(c).strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df.to_dict(orient='records')


def parse_rows(rows: list[dict], parser: Callable) -> tuple[list, list[str]]:
    """Parse all rows, returning (valid objects, errors)."""
    parsed = []
    all_errors = []
    for line_num, row in enumerate(rows, start=2):  # +2 for 1-indexed header row
        obj, errors = parser(row, line_num)
        if errors:
            all_errors.extend(errors)
        elif obj is not None:
            parsed.append(obj)
    return parsed, all_errors


def load_table(path: Path, parser: Callable) -> list:
    """Load and parse a CSV table, skipping invalid rows with a warning."""
    parsed, errors = parse_rows(read_rows(path), parser)
    for err in errors:
        logger.warning("%s: skipped invalid row (%s)", path.name, err)
    return parsed
