"""
Quote Assembler - combines resolved price, discount and tax into a line result.

Math runs at full precision; every monetary output is rounded half-up to the
currency's minor unit exactly once, here.
"""
from decimal import Decimal, localcontext
from typing import Iterable, Optional

from .models import (
    AppliedTaxRule,
    PriceBasis,
    PriceQuoteResult,
    TaxResult,
    TraceStep,
)
from .money import HUNDRED, ONE, ZERO, round_money, round_rate, working_precision


def split_line(unit_price: Decimal, quantity: Decimal, tax: TaxResult, basis: PriceBasis):
    """
    Unrounded (subtotal, tax_amount, total, scale) for a line.

    scale converts per-rule amounts from the taxed base to the final subtotal
    (1 for EXCLUSIVE; subtotal / gross for INCLUSIVE).
    """
    extended = unit_price * quantity

    if basis == PriceBasis.INCLUSIVE:
        subtotal = extended / (ONE + tax.effective_rate_pct / HUNDRED)
        tax_amount = extended - subtotal
        scale = subtotal / extended if extended != ZERO else ONE
        return subtotal, tax_amount, extended, scale

    return extended, tax.tax_amount, extended + tax.tax_amount, ONE


def assemble(
    unit_price: Decimal,
    discount_pct: Optional[Decimal],
    quantity: Decimal,
    tax_result: TaxResult,
    basis: PriceBasis,
    *,
    currency: str,
    product_id: str,
    price_book_id: str,
    entry_id: str,
    variant_id: Optional[str] = None,
    unit_id: Optional[str] = None,
    list_unit_price: Optional[Decimal] = None,
    places: int = 2,
    warnings: Iterable[str] = (),
    trace: Iterable[TraceStep] = ()
) -> PriceQuoteResult:
    """
    Build the final, reconciled PriceQuoteResult.

    After rounding, line_subtotal + tax_amount == line_total holds exactly:
    EXCLUSIVE rounds subtotal and tax and sums them; INCLUSIVE rounds the
    (tax-included) total and tax and derives the subtotal.
    """
    subtotal, tax_amount, total, scale = split_line(unit_price, quantity, tax_result, basis)

    with localcontext() as ctx:
        # Sums of rounded amounts must stay exact for very large lines
        ctx.prec = working_precision(max(abs(total), abs(subtotal), abs(tax_amount)), places)
        rounded_tax = round_money(tax_amount, places)
        if basis == PriceBasis.INCLUSIVE:
            rounded_total = round_money(total, places)
            rounded_subtotal = rounded_total - rounded_tax
        else:
            rounded_subtotal = round_money(subtotal, places)
            rounded_total = rounded_subtotal + rounded_tax

    rules = tuple(
        AppliedTaxRule(
            rule_id=r.rule_id,
            name=r.name,
            rate_pct=r.rate_pct,
            compound=r.compound,
            amount=round_money(r.amount * scale, places),
        )
        for r in tax_result.rules
    )

    return PriceQuoteResult(
        product_id=product_id,
        variant_id=variant_id,
        price_book_id=price_book_id,
        entry_id=entry_id,
        unit_id=unit_id,
        quantity=quantity,
        currency=currency,
        basis=basis,
        unit_price=round_money(unit_price, places),
        list_unit_price=round_money(list_unit_price, places) if list_unit_price is not None else None,
        discount_pct=discount_pct,
        tax=TaxResult(
            rules=rules,
            tax_amount=rounded_tax,
            effective_rate_pct=round_rate(tax_result.effective_rate_pct),
            class_id=tax_result.class_id,
        ),
        line_subtotal=rounded_subtotal,
        line_total=rounded_total,
        warnings=tuple(warnings),
        trace=tuple(trace),
    )
