"""
pricing_engines.approval -- Discount approval threshold resolver.

Responsibility:
    Decide which approver role, if any, must sign off on a requested
    discount percentage, by matching it against the discount approval
    matrix.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel/domain types.

Invariants enforced:
    - Only active rows of the requested ``discount_type`` participate.
    - Rows are evaluated by descending ``priority``; equal priorities keep
      the caller's order (stable sort).  First covering row wins.
    - Range test is ``min_percentage < pct <= max_percentage``.
    - ``pct <= 0`` never requires approval.
    - Purity: no clock access, no I/O.

Failure modes:
    - ``resolve_approver`` returns None both for "no discount" and for
      "no row covers this discount".  ``classify_discount`` separates the
      two (``NOT_REQUIRED`` vs ``UNCOVERED``) and never picks a fallback
      approver itself.
    - A non-numeric percentage resolves to None / ``UNCOVERED``.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from pricing_engines.conditions import to_decimal
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.approval import (
    ApprovalOutcome,
    ApprovalRouting,
    DiscountApprovalRule,
    DiscountType,
)
from pricing_kernel.domain.pricing import ZERO


def select_approval_rule(
    discount_percent: Decimal,
    discount_type: DiscountType | str,
    rules: Iterable[DiscountApprovalRule],
) -> DiscountApprovalRule | None:
    """Return the first active, same-type rule covering ``discount_percent``."""
    wanted = _coerce_discount_type(discount_type)
    if wanted is None:
        return None
    candidates = [r for r in rules if r.is_active and r.discount_type is wanted]
    for rule in sorted(candidates, key=lambda r: r.priority, reverse=True):
        if rule.covers(discount_percent):
            return rule
    return None


@traced_engine(
    "approval_resolver",
    "1.0",
    fingerprint_fields=("discount_percent", "discount_type", "rules"),
)
def resolve_approver(
    discount_percent: Decimal | int | str,
    discount_type: DiscountType | str,
    rules: Iterable[DiscountApprovalRule],
) -> str | None:
    """Return the approver role id required for a discount, or None.

    None means either no approval is needed (``discount_percent <= 0``) or
    no active rule covers the percentage; use ``classify_discount`` to
    tell the two apart.
    """
    pct = to_decimal(discount_percent)
    if pct is None or pct <= ZERO:
        return None
    rule = select_approval_rule(pct, discount_type, rules)
    return rule.approver_role_id if rule is not None else None


def classify_discount(
    discount_percent: Decimal | int | str,
    discount_type: DiscountType | str,
    rules: Iterable[DiscountApprovalRule],
) -> ApprovalRouting:
    """Classify a requested discount as not required, routed or uncovered.

    Args:
        discount_percent: Requested discount percentage.
        discount_type: ``line_item`` or ``overall_quote``.
        rules: The discount approval matrix.

    Returns:
        ApprovalRouting.  ``ROUTED`` carries the role and the matched row;
        ``UNCOVERED`` leaves the escalation decision to the caller.
    """
    wanted = _coerce_discount_type(discount_type)
    pct = to_decimal(discount_percent)
    kind = wanted if wanted is not None else DiscountType.LINE_ITEM

    if pct is None:
        return ApprovalRouting(
            outcome=ApprovalOutcome.UNCOVERED,
            discount_percent=ZERO,
            discount_type=kind,
            reason=f"Discount percentage {discount_percent!r} is not numeric",
        )
    if pct <= ZERO:
        return ApprovalRouting(
            outcome=ApprovalOutcome.NOT_REQUIRED,
            discount_percent=pct,
            discount_type=kind,
            reason="No discount requested",
        )
    if wanted is None:
        return ApprovalRouting(
            outcome=ApprovalOutcome.UNCOVERED,
            discount_percent=pct,
            discount_type=kind,
            reason=f"Unknown discount type {discount_type!r}",
        )

    rule = select_approval_rule(pct, wanted, rules)
    if rule is None:
        return ApprovalRouting(
            outcome=ApprovalOutcome.UNCOVERED,
            discount_percent=pct,
            discount_type=wanted,
            reason=f"No active {wanted.value} rule covers {pct}%",
        )
    return ApprovalRouting(
        outcome=ApprovalOutcome.ROUTED,
        discount_percent=pct,
        discount_type=wanted,
        approver_role_id=rule.approver_role_id,
        matched_rule=rule,
        reason=(
            f"{pct}% within ({rule.min_percentage}, {rule.max_percentage}] "
            f"requires {rule.approver_role_id}"
        ),
    )


def _coerce_discount_type(value: Any) -> DiscountType | None:
    if isinstance(value, DiscountType):
        return value
    try:
        return DiscountType(value)
    except ValueError:
        return None
