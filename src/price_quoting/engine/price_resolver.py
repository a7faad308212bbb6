"""
Price Resolver - selects the single applicable PriceEntry for a quantity.

Resolution order:
1. Variant-scoped entries covering the quantity (when a variant is given)
2. Product-scoped entries covering the quantity
3. Overlapping tiers are settled by: narrowest range, newest entry, lowest id
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from .errors import InvalidQuantityError, NoPriceForQuantityError
from .models import PriceEntry, in_window

logger = logging.getLogger(__name__)

SCOPE_VARIANT = "variant"
SCOPE_PRODUCT = "product"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Resolution:
    """The chosen entry plus how it was chosen."""
    entry: PriceEntry
    scope: str
    ambiguous: bool
    candidates: tuple[PriceEntry, ...]


def validate_quantity(quantity: Decimal):
    if not isinstance(quantity, Decimal) or not quantity.is_finite():
        raise InvalidQuantityError(f"Quantity must be a finite number, got {quantity!r}")
    if quantity <= 0:
        raise InvalidQuantityError(f"Quantity must be > 0, got {quantity}")


def range_width(entry: PriceEntry) -> Decimal:
    """Width of the tier; unbounded tiers are infinitely wide."""
    if entry.max_qty is None:
        return Decimal("Infinity")
    return entry.max_qty - entry.lower_bound


def _tie_break_key(entry: PriceEntry):
    created = entry.created_at or _OLDEST
    # Narrowest first, then newest first, then id ascending
    return (range_width(entry), -created.timestamp(), entry.id)


class PriceResolver:
    """
    Chooses one price entry for a (product/variant, quantity) pair.

    Entries are the snapshot fetched for one price book; the resolver never
    reads storage itself.
    """

    def resolve(
        self,
        entries: Iterable[PriceEntry],
        product_id: str,
        variant_id: Optional[str],
        quantity: Decimal,
        as_of: Optional[datetime] = None
    ) -> Resolution:
        validate_quantity(quantity)
        as_of = as_of or datetime.now(timezone.utc)
        entries = tuple(entries)

        scopes = []
        if variant_id:
            scopes.append((SCOPE_VARIANT, [e for e in entries if e.variant_id == variant_id]))
        scopes.append((SCOPE_PRODUCT, [
            e for e in entries
            if e.variant_id is None and e.product_id == product_id
        ]))

        for scope, scoped in scopes:
            candidates = [
                e for e in scoped
                if e.covers(quantity) and in_window(as_of, e.valid_from, e.valid_to)
            ]
            if not candidates:
                continue

            candidates.sort(key=_tie_break_key)
            ambiguous = len(candidates) > 1
            if ambiguous:
                logger.warning(
                    "Overlapping price tiers for %s %s at quantity %s: %s; chose %s",
                    scope,
                    variant_id if scope == SCOPE_VARIANT else product_id,
                    quantity,
                    ", ".join(f"{e.id}{e.describe_range()}" for e in candidates),
                    candidates[0].id,
                )
            return Resolution(
                entry=candidates[0],
                scope=scope,
                ambiguous=ambiguous,
                candidates=tuple(candidates),
            )

        target = f"variant {variant_id} of product {product_id}" if variant_id else f"product {product_id}"
        raise NoPriceForQuantityError(
            f"No pricing available for {target} at quantity {quantity}"
        )
