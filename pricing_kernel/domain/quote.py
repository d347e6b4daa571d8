"""
Quote-level value objects (``pricing_kernel.domain.quote``).

Line item selections, discount state for the effective-discount rule,
and quote totals.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from pricing_kernel.domain.pricing import ZERO, CostBreakdown


@dataclass(frozen=True)
class LineItemSelections:
    """What the client asked for on one quote line.

    ``nationality_cost_components`` are the default component ids of the
    selected nationality, resolved by the caller from reference data.
    """

    nationality: str | None = None
    location: str | None = None
    quantity: int = 1
    contract_duration: int = 12
    nationality_cost_components: tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)


class DiscountStatus(str, Enum):
    """Approval state of a requested discount."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class LineDiscountState:
    """Discount fields carried by one quote line."""

    line_discount_status: DiscountStatus = DiscountStatus.NONE
    manual_discount_percentage: Decimal = ZERO
    eligible_for_overall_discount: bool = False


@dataclass(frozen=True)
class QuoteDiscountState:
    """Overall discount fields carried by the quote header."""

    discount_status: DiscountStatus = DiscountStatus.NONE
    overall_discount_percentage: Decimal = ZERO


@dataclass(frozen=True)
class QuoteLine:
    """A costed line after the quote-level discount and VAT.

    VAT is charged on the discounted amount.
    """

    breakdown: CostBreakdown
    discount_percent: Decimal
    discount_amount: Decimal
    net_subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class QuoteTotals:
    """Sums across all costed lines of a quote."""

    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    line_count: int = 0
