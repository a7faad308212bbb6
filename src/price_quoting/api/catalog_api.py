"""
Catalog API - FastAPI router for price quoting and read-only catalog listings.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..engine.errors import PricingError
from ..engine.models import QuoteErr, QuoteRequest
from ..engine.quoting_engine import QuotingEngine
from .state import get_engine

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


# Pydantic models for API
class QuoteBody(BaseModel):
    """Request model for quoting one line."""
    model_config = ConfigDict(populate_by_name=True)

    # Untyped: QuoteRequest.from_dict validates, so bad values come back as {ok: false}
    product_id: Any = Field(default=None, alias="productId")
    variant_id: Any = Field(default=None, alias="variantId")
    price_book_id: Any = Field(default=None, alias="priceBookId")
    unit_id: Any = Field(default=None, alias="unitId")
    quantity: Any = 1
    ship_to: Any = Field(default=None, alias="shipTo", description="{country, region, postal}")
    as_of: Any = Field(default=None, alias="asOf")


class PriceBookResponse(BaseModel):
    """Response model for a price book."""
    id: str
    name: str
    currency: str
    isDefault: bool
    isActive: bool
    priceBasis: str


class PriceEntryResponse(BaseModel):
    """Response model for a price entry."""
    id: str
    productId: Optional[str]
    variantId: Optional[str]
    unitPrice: str
    minQty: Optional[str]
    maxQty: Optional[str]
    discountPct: Optional[str]
    unitId: Optional[str]


def _str(value) -> Optional[str]:
    return None if value is None else f"{value:f}"


def quote_body(engine: QuotingEngine, body: QuoteBody):
    """Run one body through the engine; malformed bodies become QuoteErr too."""
    try:
        request = QuoteRequest.from_dict(body.model_dump())
    except PricingError as e:
        return QuoteErr(kind=e.kind, message=e.message)
    return engine.quote(request)


# Endpoints

@router.post("/price/quote")
async def quote_price(body: QuoteBody, engine: QuotingEngine = Depends(get_engine)):
    """Quote one line. 200 with {ok: true, ...} or 400 with {ok: false, error}."""
    outcome = quote_body(engine, body)
    if not outcome.ok:
        return JSONResponse(status_code=400, content=outcome.to_response())
    return outcome.to_response()


@router.post("/price/quote-lines")
async def quote_lines(bodies: list[QuoteBody], engine: QuotingEngine = Depends(get_engine)):
    """Quote several lines independently; failed lines are flagged, not dropped."""
    return [quote_body(engine, body).to_response() for body in bodies]


@router.get("/pricebooks", response_model=list[PriceBookResponse])
async def list_price_books(engine: QuotingEngine = Depends(get_engine)):
    """List all price books."""
    return [
        PriceBookResponse(
            id=b.id,
            name=b.name,
            currency=b.currency,
            isDefault=b.is_default,
            isActive=b.is_active,
            priceBasis=b.price_basis.value,
        )
        for b in engine.repository.list_price_books()
    ]


@router.get("/pricebooks/{price_book_id}/entries", response_model=list[PriceEntryResponse])
async def list_price_book_entries(
    price_book_id: str,
    product_id: str,
    variant_id: Optional[str] = None,
    engine: QuotingEngine = Depends(get_engine)
):
    """List the entries of a book for a product (and optionally one of its variants)."""
    if engine.repository.get_price_book(price_book_id) is None:
        raise HTTPException(status_code=404, detail=f"Price book '{price_book_id}' not found")

    entries = engine.repository.list_price_entries(price_book_id, product_id, variant_id)
    return [
        PriceEntryResponse(
            id=e.id,
            productId=e.product_id,
            variantId=e.variant_id,
            unitPrice=_str(e.unit_price),
            minQty=_str(e.min_qty),
            maxQty=_str(e.max_qty),
            discountPct=_str(e.discount_pct),
            unitId=e.unit_id,
        )
        for e in sorted(entries, key=lambda e: (e.variant_id or "", e.lower_bound, e.id))
    ]
