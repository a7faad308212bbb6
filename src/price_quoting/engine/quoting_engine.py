"""
Quoting Engine - the quote(request) boundary.

Pipeline for one line:
1. Validate quantity
2. Resolve the price book (explicit id, else the active default)
3. Load the product (for its tax class)
4. Snapshot price entries and tax rules once
5. Resolve entry → discount → tax on unit price × quantity → assemble

Every PricingError becomes a QuoteErr value; nothing here is fatal to the caller.
"""
import logging
from datetime import datetime, timezone
from decimal import DecimalException
from typing import Iterable, Optional

from ..config.settings import Settings, get_settings
from .assembler import assemble
from .discount import apply_discount
from .errors import (
    InvalidQuantityError,
    PriceBookInactiveError,
    PriceBookNotFoundError,
    PricingError,
    ProductNotFoundError,
)
from .models import (
    PriceBook,
    QuoteErr,
    QuoteOk,
    QuoteOutcome,
    QuoteRequest,
    TraceStep,
    in_window,
)
from .money import to_decimal
from .price_resolver import PriceResolver, validate_quantity
from .tax_engine import TaxEngine

logger = logging.getLogger(__name__)


class QuoteTrace:
    """Mutable collector for trace steps and warnings while one quote is built."""

    def __init__(self):
        self.steps: list[TraceStep] = []
        self.warnings: list[str] = []

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this quote."""
        self.steps.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this quote."""
        if warning not in self.warnings:
            self.warnings.append(warning)


class QuotingEngine:
    """
    Pure quoting over a repository snapshot.

    The engine holds no pricing data between calls: each quote() reads the
    entries and rules it needs, computes, and returns a fresh result.
    """

    def __init__(self, repository, settings: Optional[Settings] = None):
        self.repository = repository
        self.settings = settings or get_settings()
        self.resolver = PriceResolver()

    def quote(self, request: QuoteRequest) -> QuoteOutcome:
        """Quote one line; returns QuoteOk or QuoteErr, never raises a PricingError."""
        try:
            return QuoteOk(self._quote_line(request))
        except PricingError as e:
            logger.info(
                "Quote rejected for product %s (%s): %s",
                request.product_id, e.kind.value, e.message,
            )
            return QuoteErr(kind=e.kind, message=e.message)

    def quote_many(self, requests: Iterable[QuoteRequest]) -> list[QuoteOutcome]:
        """Quote lines independently; a failed line never aborts the others."""
        return [self.quote(request) for request in requests]

    def resolve_price_book(self, price_book_id: Optional[str], as_of: datetime) -> PriceBook:
        """Explicit book must exist and be active; otherwise fall back to the active default."""
        if price_book_id:
            book = self.repository.get_price_book(price_book_id)
            if book is None:
                raise PriceBookNotFoundError(f"Price book '{price_book_id}' not found")
            if not book.is_active:
                raise PriceBookInactiveError(f"Price book '{price_book_id}' is inactive")
        else:
            book = self.repository.get_default_price_book()
            if book is None:
                raise PriceBookNotFoundError("No active default price book")

        if not in_window(as_of, book.valid_from, book.valid_to):
            raise PriceBookInactiveError(
                f"Price book '{book.id}' is not valid at {as_of.isoformat()}"
            )
        return book

    def _quote_line(self, request: QuoteRequest):
        trace = QuoteTrace()

        try:
            quantity = to_decimal(request.quantity)
        except ValueError:
            raise InvalidQuantityError(f"Quantity must be a number, got {request.quantity!r}")
        validate_quantity(quantity)

        as_of = request.as_of or datetime.now(timezone.utc)

        book = self.resolve_price_book(request.price_book_id, as_of)
        trace.add_trace(
            "Price Book",
            f"Using {'requested' if request.price_book_id else 'default'} price book {book.id}",
            f"{book.currency}, {book.price_basis.value}",
        )

        product = self.repository.get_product(request.product_id)
        if product is None:
            raise ProductNotFoundError(f"Product '{request.product_id}' not found")
        if not product.is_active:
            raise ProductNotFoundError(f"Product '{request.product_id}' is inactive")
        trace.add_trace("Product", f"Found product {product.id}", product.tax_class_id)

        # One snapshot of each collaborator per quote
        entries = tuple(self.repository.list_price_entries(
            book.id, product.id, request.variant_id
        ))
        ship_to = request.ship_to
        tax_rules = tuple(self.repository.list_tax_rules(ship_to.country if ship_to else None))

        resolution = self.resolver.resolve(
            entries, product.id, request.variant_id, quantity, as_of
        )
        entry = resolution.entry
        trace.add_trace(
            "Price Resolution",
            f"Matched {resolution.scope} tier {entry.describe_range()} (entry {entry.id})",
            f"{entry.unit_price}",
        )
        if resolution.ambiguous:
            others = ", ".join(e.id for e in resolution.candidates[1:])
            trace.add_warning(
                f"Overlapping price tiers for quantity {quantity}; "
                f"entry {entry.id} chosen over {others}"
            )

        discounted = apply_discount(entry)
        if discounted.discount_pct is not None:
            trace.add_trace(
                "Discount",
                f"{discounted.discount_pct}% off list price",
                f"{discounted.list_unit_price}" if discounted.list_unit_price is not None else None,
            )
            if discounted.list_unit_price is None:
                trace.add_warning(f"List price not available for entry {entry.id}")

        unit_id = request.unit_id or entry.unit_id or product.unit_id
        if unit_id:
            source = "requested" if request.unit_id else ("entry" if entry.unit_id else "product")
            trace.add_trace("Unit", f"Using {source} unit", unit_id)

        tax_engine = TaxEngine(tax_rules)
        matched = tax_engine.match(ship_to, product.tax_class_id, as_of)
        if matched:
            for m in matched:
                trace.add_trace(
                    "Tax Rule",
                    f"{m.rule.name} ({m.rule.id}{', compound' if m.rule.compound else ''}) [{m.match_reason}]",
                    f"{m.rule.rate_pct}%",
                )
        else:
            trace.add_trace("Tax Rule", "No tax rules apply", "0%")

        places = self.settings.minor_units(book.currency)
        try:
            extended = discounted.net_unit_price * quantity
            tax_result = tax_engine.compute_tax(extended, ship_to, product.tax_class_id, as_of)
            return assemble(
                discounted.net_unit_price,
                discounted.discount_pct,
                quantity,
                tax_result,
                book.price_basis,
                currency=book.currency,
                product_id=product.id,
                variant_id=entry.variant_id,
                price_book_id=book.id,
                entry_id=entry.id,
                unit_id=unit_id,
                list_unit_price=discounted.list_unit_price,
                places=places,
                warnings=trace.warnings,
                trace=trace.steps + [TraceStep(
                    "Extension",
                    f"Quantity {quantity} × {discounted.net_unit_price} ({book.price_basis.value})",
                    f"{extended}",
                )],
            )
        except DecimalException as e:
            raise InvalidQuantityError(
                f"Quantity {quantity} is out of range for unit price {discounted.net_unit_price}"
            ) from e
