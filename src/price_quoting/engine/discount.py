"""
Discount Calculator - turns an entry's discount percentage into display values.

The stored unit price is already net; the percentage only lets us show the
pre-discount list price next to it.
"""
import logging

from .models import DiscountedPrice, PriceEntry
from .money import HUNDRED, ONE, ZERO

logger = logging.getLogger(__name__)


def apply_discount(entry: PriceEntry) -> DiscountedPrice:
    """Return the net unit price, its discount and the reconstructed list price."""
    net = entry.unit_price
    pct = entry.discount_pct

    if pct is None or pct <= ZERO:
        return DiscountedPrice(net_unit_price=net, discount_pct=None, list_unit_price=net)

    if pct >= HUNDRED:
        logger.warning(
            "Price entry %s has discount %s%%; list price cannot be reconstructed",
            entry.id, pct,
        )
        return DiscountedPrice(net_unit_price=net, discount_pct=pct, list_unit_price=None)

    return DiscountedPrice(
        net_unit_price=net,
        discount_pct=pct,
        list_unit_price=net / (ONE - pct / HUNDRED),
    )
