"""
Data Validator - checks a pricing data directory and builds a report.

Reports invalid rows per file plus data-quality warnings the engine would
otherwise only notice at quote time (overlapping tiers, several default
books, entries pointing at unknown books or products).
"""
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config.settings import get_settings
from ..engine.models import PriceEntry
from .validators import (
    PRICE_BOOK_COLUMNS,
    PRICE_ENTRY_COLUMNS,
    PRODUCT_COLUMNS,
    TAX_RULE_COLUMNS,
    parse_price_book_row,
    parse_price_entry_row,
    parse_product_row,
    parse_rows,
    parse_tax_rule_row,
    read_rows,
)

TABLES = {
    'price_books.csv': (parse_price_book_row, PRICE_BOOK_COLUMNS),
    'price_entries.csv': (parse_price_entry_row, PRICE_ENTRY_COLUMNS),
    'products.csv': (parse_product_row, PRODUCT_COLUMNS),
    'tax_rules.csv': (parse_tax_rule_row, TAX_RULE_COLUMNS),
}

REQUIRED_TABLES = ('price_books.csv', 'price_entries.csv')


def tiers_overlap(a: PriceEntry, b: PriceEntry) -> bool:
    """True when two inclusive quantity tiers share at least one quantity."""
    a_hi = a.max_qty
    b_hi = b.max_qty
    if a_hi is not None and a_hi < b.lower_bound:
        return False
    if b_hi is not None and b_hi < a.lower_bound:
        return False
    return True


def find_overlapping_tiers(entries: list[PriceEntry]) -> list[tuple[str, str]]:
    """Pairs of entry ids whose tiers overlap within one (book, product-or-variant) scope."""
    scopes = defaultdict(list)
    for e in entries:
        scope = ('variant', e.variant_id) if e.variant_id else ('product', e.product_id)
        scopes[(e.price_book_id, scope)].append(e)

    pairs = []
    for scoped in scopes.values():
        scoped.sort(key=lambda e: e.id)
        for i, a in enumerate(scoped):
            for b in scoped[i + 1:]:
                if tiers_overlap(a, b):
                    pairs.append((a.id, b.id))
    return pairs


def validate_data_dir(data_dir: Optional[Path] = None, verbose: bool = False) -> dict:
    """
    Validate every pricing table in a directory.

    Args:
        data_dir: Directory to check (defaults to the configured data dir)
        verbose: Print progress messages

    Returns:
        Report dictionary with status, per-file counts, errors and warnings
    """
    data_dir = Path(data_dir or get_settings().data_dir)

    report = {
        "timestamp": datetime.now().isoformat(),
        "data_dir": str(data_dir),
        "status": "pending",
        "files": {},
        "warnings": [],
        "errors": []
    }

    parsed = {}
    for filename, (parser, columns) in TABLES.items():
        path = data_dir / filename
        if not path.exists():
            if filename in REQUIRED_TABLES:
                report["errors"].append(f"{filename}: file not found")
            else:
                report["warnings"].append(f"{filename}: file not found")
            parsed[filename] = []
            continue

        rows = read_rows(path)
        if rows:
            missing = [c for c in columns if c not in rows[0]]
            if missing:
                report["warnings"].append(f"{filename}: missing columns {', '.join(missing)}")
        objects, errors = parse_rows(rows, parser)
        parsed[filename] = objects
        report["files"][filename] = {"rows": len(rows), "valid": len(objects), "invalid": len(rows) - len(objects)}
        report["errors"].extend(f"{filename}: {err}" for err in errors)

        ids = [o.id for o in objects]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        for dup in duplicates:
            report["errors"].append(f"{filename}: duplicate id '{dup}'")

        if verbose:
            print(f"  {filename}: {len(objects)}/{len(rows)} valid rows")

    books = parsed['price_books.csv']
    entries = parsed['price_entries.csv']
    products = parsed['products.csv']

    active_defaults = [b.id for b in books if b.is_active and b.is_default]
    if not active_defaults:
        report["warnings"].append("No active default price book")
    elif len(active_defaults) > 1:
        report["warnings"].append(
            f"Several active default price books: {', '.join(active_defaults)} (newest wins)"
        )

    book_ids = {b.id for b in books}
    for e in entries:
        if e.price_book_id not in book_ids:
            report["warnings"].append(f"Entry {e.id} references unknown price book '{e.price_book_id}'")

    if products:
        product_ids = {p.id for p in products}
        for e in entries:
            if e.product_id and e.product_id not in product_ids:
                report["warnings"].append(f"Entry {e.id} references unknown product '{e.product_id}'")

    for a, b in find_overlapping_tiers(entries):
        report["warnings"].append(f"Entries {a} and {b} have overlapping quantity tiers")

    report["status"] = "failed" if report["errors"] else "success"
    return report
