"""
Discount approval domain types (``pricing_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for discount-approval routing: the approval matrix
rows and the routing result.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Range semantics: a row covers ``pct`` iff
  ``min_percentage < pct <= max_percentage`` (lower bound exclusive,
  upper bound inclusive).
* Routing distinguishes "no discount" from "no covering row"; the
  resolver never guesses between approve and escalate.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    """Where a requested discount applies."""

    LINE_ITEM = "line_item"
    OVERALL_QUOTE = "overall_quote"


@dataclass(frozen=True)
class DiscountApprovalRule:
    """One row of the discount approval matrix."""

    discount_type: DiscountType
    min_percentage: Decimal
    max_percentage: Decimal
    approver_role_id: str
    priority: int | Decimal = 0
    is_active: bool = True
    rule_id: str | None = None

    def covers(self, discount_percent: Decimal) -> bool:
        """Check ``min < discount_percent <= max``."""
        return self.min_percentage < discount_percent <= self.max_percentage


class ApprovalOutcome(str, Enum):
    """Routing outcome for a requested discount."""

    NOT_REQUIRED = "not_required"
    ROUTED = "routed"
    UNCOVERED = "uncovered"


@dataclass(frozen=True)
class ApprovalRouting:
    """Result of classifying a discount against the approval matrix.

    ``UNCOVERED`` means a positive discount fell outside every active
    range; the caller decides whether that escalates or auto-approves.
    """

    outcome: ApprovalOutcome
    discount_percent: Decimal
    discount_type: DiscountType
    approver_role_id: str | None = None
    matched_rule: DiscountApprovalRule | None = None
    reason: str = ""

    @property
    def requires_approval(self) -> bool:
        return self.outcome is not ApprovalOutcome.NOT_REQUIRED
