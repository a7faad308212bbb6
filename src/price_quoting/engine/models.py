"""
Data models for the quoting engine.

Uses frozen dataclasses: price books, entries and tax rules are a read-only
snapshot, and a quote result is never mutated after it is assembled.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from .errors import ErrorKind, InvalidQuantityError, InvalidRequestError
from .money import to_decimal


class PriceBasis(str, Enum):
    """Whether a price book's unit prices already contain tax."""
    EXCLUSIVE = "EXCLUSIVE"
    INCLUSIVE = "INCLUSIVE"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'PriceBasis':
        if value is None or str(value).strip() == "":
            return cls.EXCLUSIVE
        return cls(str(value).strip().upper())


def to_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Parse an ISO string or datetime into an aware UTC datetime (naive means UTC)."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        value = datetime.fromisoformat(text)
    elif not isinstance(value, datetime):
        raise TypeError(f"Expected an ISO string or datetime, got {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def in_window(as_of: datetime, valid_from: Optional[datetime], valid_to: Optional[datetime]) -> bool:
    """Half-open validity check: valid_from <= as_of < valid_to."""
    if valid_from is not None and as_of < valid_from:
        return False
    if valid_to is not None and as_of >= valid_to:
        return False
    return True


@dataclass(frozen=True)
class PriceBook:
    id: str
    currency: str
    name: str = ""
    is_default: bool = False
    is_active: bool = True
    price_basis: PriceBasis = PriceBasis.EXCLUSIVE
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PriceEntry:
    """One quantity tier for a product or a variant within a price book."""
    id: str
    price_book_id: str
    unit_price: Decimal
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    min_qty: Optional[Decimal] = None
    max_qty: Optional[Decimal] = None  # None = unbounded
    discount_pct: Optional[Decimal] = None
    unit_id: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def lower_bound(self) -> Decimal:
        return self.min_qty if self.min_qty is not None else Decimal(0)

    def covers(self, quantity: Decimal) -> bool:
        """True when quantity falls inside the inclusive [min_qty, max_qty] tier."""
        if quantity < self.lower_bound:
            return False
        if self.max_qty is not None and quantity > self.max_qty:
            return False
        return True

    def describe_range(self) -> str:
        upper = f"{self.max_qty}" if self.max_qty is not None else "∞"
        return f"[{self.lower_bound}, {upper}]"


@dataclass(frozen=True)
class Product:
    id: str
    name: str = ""
    tax_class_id: Optional[str] = None
    unit_id: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class TaxRule:
    """A named rate with a jurisdiction filter and a compounding flag."""
    id: str
    name: str
    rate_pct: Decimal
    compound: bool = False
    priority: int = 0
    country: Optional[str] = None
    region: Optional[str] = None
    postal_pattern: Optional[str] = None
    tax_class_id: Optional[str] = None
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    @property
    def is_global(self) -> bool:
        """A rule with no jurisdiction requirement."""
        return not (self.country or self.region or self.postal_pattern)


@dataclass(frozen=True)
class ShipTo:
    country: Optional[str] = None
    region: Optional[str] = None
    postal: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['ShipTo']:
        if not data:
            return None
        ship_to = cls(
            country=_clean(data.get('country')),
            region=_clean(data.get('region')),
            postal=_clean(data.get('postal')),
        )
        if ship_to.is_empty:
            return None
        return ship_to

    @property
    def is_empty(self) -> bool:
        return not (self.country or self.region or self.postal)


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(data: dict, *keys):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class QuoteRequest:
    """A quoting request for a single line."""
    product_id: str
    quantity: Union[Decimal, int, float, str]
    variant_id: Optional[str] = None
    price_book_id: Optional[str] = None  # None = the active default book
    unit_id: Optional[str] = None  # None = the entry's unit, else the product's
    ship_to: Optional[ShipTo] = None
    as_of: Optional[datetime] = None  # None = now

    @classmethod
    def from_dict(cls, data: dict) -> 'QuoteRequest':
        """Build a request from the wire shape; accepts camelCase or snake_case keys."""
        if not isinstance(data, dict):
            raise InvalidRequestError("Request body must be an object")

        product_id = _clean(_first(data, 'productId', 'product_id'))
        if not product_id:
            raise InvalidRequestError("productId is required")

        raw_qty = _first(data, 'quantity')
        if raw_qty is None:
            raise InvalidQuantityError("quantity is required")
        try:
            quantity = to_decimal(raw_qty)
        except ValueError:
            raise InvalidQuantityError(f"Quantity must be a number, got {raw_qty!r}")

        as_of_raw = _first(data, 'asOf', 'as_of')
        try:
            as_of = to_utc(as_of_raw)
        except (TypeError, ValueError):
            raise InvalidRequestError(f"asOf must be an ISO-8601 timestamp, got {as_of_raw!r}")

        ship_to_raw = _first(data, 'shipTo', 'ship_to')
        if ship_to_raw is not None and not isinstance(ship_to_raw, dict):
            raise InvalidRequestError("shipTo must be an object")

        return cls(
            product_id=product_id,
            quantity=quantity,
            variant_id=_clean(_first(data, 'variantId', 'variant_id')),
            price_book_id=_clean(_first(data, 'priceBookId', 'price_book_id')),
            unit_id=_clean(_first(data, 'unitId', 'unit_id')),
            ship_to=ShipTo.from_dict(ship_to_raw),
            as_of=as_of,
        )


@dataclass(frozen=True)
class TraceStep:
    """A single step in the quote resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class DiscountedPrice:
    net_unit_price: Decimal
    discount_pct: Optional[Decimal]
    list_unit_price: Optional[Decimal]  # None when it cannot be reconstructed


@dataclass(frozen=True)
class AppliedTaxRule:
    rule_id: str
    name: str
    rate_pct: Decimal
    compound: bool
    amount: Decimal


@dataclass(frozen=True)
class TaxResult:
    rules: tuple[AppliedTaxRule, ...]
    tax_amount: Decimal
    effective_rate_pct: Decimal
    class_id: Optional[str] = None


@dataclass(frozen=True)
class PriceQuoteResult:
    """Complete, rounded result of quoting one line."""
    product_id: str
    variant_id: Optional[str]
    price_book_id: str
    entry_id: str
    quantity: Decimal
    currency: str
    basis: PriceBasis
    unit_price: Decimal
    list_unit_price: Optional[Decimal]
    discount_pct: Optional[Decimal]
    tax: TaxResult
    line_subtotal: Decimal
    line_total: Decimal
    unit_id: Optional[str] = None
    warnings: tuple[str, ...] = ()
    trace: tuple[TraceStep, ...] = ()

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_response(self) -> dict:
        """Wire format used by the HTTP API and copied verbatim into quote/invoice lines."""
        return {
            "ok": True,
            "productId": self.product_id,
            "variantId": self.variant_id,
            "priceBookId": self.price_book_id,
            "entryId": self.entry_id,
            "unitId": self.unit_id,
            "quantity": _fmt(self.quantity),
            "basis": self.basis.value,
            "currency": self.currency,
            "unitPrice": _fmt(self.unit_price),
            "listUnitPrice": _fmt(self.list_unit_price),
            "discountPct": _fmt(self.discount_pct),
            "tax": {
                "classId": self.tax.class_id,
                "rules": [
                    {
                        "ruleId": r.rule_id,
                        "name": r.name,
                        "ratePct": _fmt(r.rate_pct),
                        "compound": r.compound,
                        "amount": _fmt(r.amount),
                    }
                    for r in self.tax.rules
                ],
                "taxAmount": _fmt(self.tax.tax_amount),
                "effectiveRatePct": _fmt(self.tax.effective_rate_pct),
            },
            "lineSubtotal": _fmt(self.line_subtotal),
            "lineTotal": _fmt(self.line_total),
            "warnings": list(self.warnings),
        }


def _fmt(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:f}"


@dataclass(frozen=True)
class QuoteOk:
    """Successful quote. Only this variant exposes pricing fields."""
    result: PriceQuoteResult
    ok: bool = field(default=True, init=False)

    def to_response(self) -> dict:
        return self.result.to_response()


@dataclass(frozen=True)
class QuoteErr:
    """Failed quote; callers show a "no pricing available" placeholder."""
    kind: ErrorKind
    message: str
    ok: bool = field(default=False, init=False)

    def to_response(self) -> dict:
        return {"ok": False, "error": self.message, "kind": self.kind.value}


QuoteOutcome = Union[QuoteOk, QuoteErr]
