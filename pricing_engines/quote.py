"""
pricing_engines.quote -- Quote-level discount and totals.

Responsibility:
    Pick the discount that applies to a costed line (line discount vs.
    overall quote discount), apply it together with VAT, and sum lines into
    quote totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - An approved, positive individual line discount always takes priority
      over the overall quote discount.
    - The overall discount applies only to lines explicitly flagged
      ``eligible_for_overall_discount`` (lines added after the overall
      discount was approved never receive it).
    - VAT is charged on the discounted taxable part of the subtotal; the
      discount is spread proportionally over taxable and exempt amounts.
    - Percentages of any numeric type are read as Decimal; non-numeric
      values count as 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from pricing_engines.conditions import to_decimal
from pricing_kernel.domain.pricing import HUNDRED, ZERO, CostBreakdown
from pricing_kernel.domain.quote import (
    DiscountStatus,
    LineDiscountState,
    QuoteDiscountState,
    QuoteLine,
    QuoteTotals,
)

ONE = Decimal("1")


def effective_discount_percentage(
    line: LineDiscountState,
    quote: QuoteDiscountState,
) -> Decimal:
    """Return the discount percentage that applies to one line."""
    if (
        line.line_discount_status is DiscountStatus.APPROVED
        and line.manual_discount_percentage > ZERO
    ):
        return line.manual_discount_percentage
    if (
        quote.discount_status is DiscountStatus.APPROVED
        and quote.overall_discount_percentage > ZERO
        and line.eligible_for_overall_discount
    ):
        return quote.overall_discount_percentage
    return ZERO


def apply_quote_discount(
    breakdown: CostBreakdown,
    discount_percent: Decimal,
    vat_rate: Decimal,
) -> QuoteLine:
    """Apply a quote-level discount and VAT to a costed line's subtotal."""
    discount_percent = _percent(discount_percent)
    keep = ONE - discount_percent / HUNDRED
    discount_amount = breakdown.subtotal * (discount_percent / HUNDRED)
    net = breakdown.subtotal - discount_amount
    tax_amount = breakdown.taxable_subtotal * keep * (_percent(vat_rate) / HUNDRED)
    return QuoteLine(
        breakdown=breakdown,
        discount_percent=discount_percent,
        discount_amount=discount_amount,
        net_subtotal=net,
        tax_amount=tax_amount,
        total_amount=net + tax_amount,
    )


def calculate_quote_totals(lines: Sequence[QuoteLine]) -> QuoteTotals:
    """Sum quote lines.  An empty quote totals to zero."""
    if not lines:
        return QuoteTotals()
    return QuoteTotals(
        subtotal=sum((line.breakdown.subtotal for line in lines), ZERO),
        discount_amount=sum((line.discount_amount for line in lines), ZERO),
        tax_amount=sum((line.tax_amount for line in lines), ZERO),
        total_amount=sum((line.total_amount for line in lines), ZERO),
        line_count=len(lines),
    )


def _percent(value: object) -> Decimal:
    number = to_decimal(value)
    return number if number is not None else ZERO
