"""
pricing_engines.line_item -- End-to-end pricing of one quote line.

Responsibility:
    Compose the fact builder, the base-component selection, the rule
    matcher and the cost aggregator into the single call UI/service code
    uses to cost a line item.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``as_of`` is supplied by
    the caller (services derive it from an injected Clock).

Invariants enforced:
    - One snapshot: the rule and component collections are materialized
      once and every stage of the evaluation reads that same snapshot.
    - Determinism: identical inputs and ``as_of`` yield an identical
      CostBreakdown with identical trace ordering.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from pricing_engines.aggregation import aggregate_costs
from pricing_engines.conditions import to_decimal
from pricing_engines.facts import build_line_item_facts
from pricing_engines.matcher import match_rules, select_base_components
from pricing_kernel.domain.pricing import (
    ZERO,
    CostBreakdown,
    CostComponent,
    JobProfile,
    PricingRule,
)
from pricing_kernel.domain.quote import LineItemSelections
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.line_item")


def evaluate_line_item(
    job_profile: JobProfile,
    selections: LineItemSelections,
    rules: Iterable[PricingRule],
    components: Iterable[CostComponent],
    as_of: date,
    lead: Mapping[str, Any] | None = None,
    vat_rate: Decimal = ZERO,
) -> CostBreakdown:
    """Cost one quote line.

    Args:
        job_profile: The selected job profile.
        selections: Nationality, location, quantity, duration for the line.
        rules: Pricing rules, pre-sorted by descending priority.
        components: Cost component reference collection.
        as_of: Evaluation date for rule and component validity windows.
        lead: Optional lead/account facts.
        vat_rate: VAT percentage charged on the taxable part of the
            subtotal (0 = none).

    Returns:
        CostBreakdown including trace and VAT.
    """
    rule_snapshot = tuple(rules)
    component_snapshot = tuple(components)

    facts = build_line_item_facts(job_profile, selections, lead)
    defaults = job_profile.default_cost_components + selections.nationality_cost_components
    base = select_base_components(defaults, component_snapshot, facts, as_of)
    result = match_rules(rule_snapshot, facts, component_snapshot, as_of, seed=base)

    breakdown = aggregate_costs(
        job_profile.base_cost,
        result.applied_components,
        result.markup_percent,
        result.discount_percent,
        selections.quantity,
        selections.contract_duration,
        trace=result.trace,
    )

    logger.info(
        "line_item_priced",
        extra={
            "job_profile_id": job_profile.job_profile_id,
            "matched_rules": list(result.matched_rule_ids),
            "halted": result.halted,
            "component_count": len(result.applied_components),
            "subtotal": breakdown.subtotal,
        },
    )
    vat = to_decimal(vat_rate)
    return breakdown.with_tax(vat if vat is not None else ZERO)
