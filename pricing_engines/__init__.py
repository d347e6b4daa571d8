"""
Module: pricing_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    calculation engine sub-modules.  This is the canonical import surface
    for higher layers (pricing_services, UI/service callers).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel (domain types, logging) and sibling
    engine modules.  MUST NOT import pricing_services or pricing_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Evaluation dates are passed in as explicit ``as_of`` parameters.
    - Decimal-only arithmetic: costs and percentages use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.
    - Totality: engines never raise for data-shape reasons; malformed
      rules are rejected at ingestion by ``pricing_config.loader``.

Audit relevance:
    Public engine entry points are traced via ``@traced_engine`` (see
    ``pricing_engines.tracer``), emitting PRICING_ENGINE_TRACE log records
    with engine name, version, input fingerprint and duration.

Usage:
    from pricing_engines import evaluate_line_item, resolve_approver
    from pricing_engines.conditions import evaluate_conditions
    from pricing_engines.matcher import match_rules
    from pricing_engines.aggregation import aggregate_costs
"""

from pricing_kernel.logging_config import get_logger

logger = get_logger("engines")

from pricing_engines.aggregation import aggregate_costs, component_contribution
from pricing_engines.approval import (
    classify_discount,
    resolve_approver,
    select_approval_rule,
)
from pricing_engines.conditions import (
    evaluate_condition,
    evaluate_conditions,
    loose_equals,
    stringify,
    to_decimal,
)
from pricing_engines.facts import build_line_item_facts
from pricing_engines.line_item import evaluate_line_item
from pricing_engines.matcher import match_rules, select_base_components
from pricing_engines.quote import (
    apply_quote_discount,
    calculate_quote_totals,
    effective_discount_percentage,
)

__all__ = [
    # Condition evaluator
    "evaluate_conditions",
    "evaluate_condition",
    "loose_equals",
    "stringify",
    "to_decimal",
    # Fact builder
    "build_line_item_facts",
    # Rule matcher
    "match_rules",
    "select_base_components",
    # Cost aggregator
    "aggregate_costs",
    "component_contribution",
    # Line item pricing
    "evaluate_line_item",
    # Approval resolver
    "resolve_approver",
    "classify_discount",
    "select_approval_rule",
    # Quote totals
    "effective_discount_percentage",
    "apply_quote_discount",
    "calculate_quote_totals",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 7,
    "modules": [
        "conditions", "facts", "matcher", "aggregation",
        "line_item", "approval", "quote",
    ],
})
