"""
pricing_engines.matcher -- Priority-ordered pricing rule matcher.

Responsibility:
    Walk a priority-ordered rule collection against a fact record, gate
    each rule on its validity window and condition group, and accumulate
    the effects of every matching rule: applied cost components, markup
    percentage and discount percentage, plus a human-readable trace.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel/domain types and sibling engines.

Invariants enforced:
    - Caller ordering: rules MUST arrive sorted by descending priority.
      The matcher never re-sorts; ties keep the caller's order.
      (``pricing_config.loader.order_rules`` produces this ordering.)
    - Halt-on-match: after a matching rule with ``stop_if_matched`` has
      applied its actions, no later rule is considered.
    - Component override: adding an already-applied component id replaces
      its applied value in place (last wins, not additive).
    - Percentages compose additively across matching rules.
    - Purity: the evaluation date is the explicit ``as_of`` argument; no
      clock access, no I/O.  Same inputs produce identical results.

Failure modes:
    - A rule that fails its gate is skipped; matching never aborts.
    - ``add_cost_component`` referencing an unknown id is a logged no-op.
    - An action of an unrecognised kind is a logged no-op.
    - Numeric action values of any type (float, int, numeric string) are
      read as Decimal; a non-numeric percentage counts as 0 and a
      non-numeric override falls back to the component's own value.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from pricing_engines.conditions import evaluate_conditions, to_decimal
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.facts import FactRecord
from pricing_kernel.domain.pricing import (
    ZERO,
    AddCostComponent,
    AppliedComponent,
    ApplyDiscountPercentage,
    ApplyMarkupPercentage,
    CostComponent,
    PricingRule,
    RuleMatchResult,
    TraceEntry,
)
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.matcher")

HALT_TRACE_NAME = "Halt"
HALT_TRACE_DETAIL = "Stopped further rule evaluation."


@traced_engine("rule_matcher", "1.0", fingerprint_fields=("rules", "facts", "as_of"))
def match_rules(
    rules: Sequence[PricingRule],
    facts: FactRecord,
    components: Iterable[CostComponent],
    as_of: date,
    seed: RuleMatchResult | None = None,
) -> RuleMatchResult:
    """Evaluate ``rules`` in the given order and accumulate their effects.

    Args:
        rules: Pricing rules, pre-sorted by descending priority.
        facts: The fact record for this line.
        components: Cost component reference collection for
            ``add_cost_component`` lookups.
        as_of: Evaluation date for validity windows.
        seed: Optional prior result (default / smart components) that the
            rules continue from and may override.

    Returns:
        RuleMatchResult with applied components, composed percentages,
        trace and the ids of the rules that fired.
    """
    index = _index_components(components)

    applied: dict[str, AppliedComponent] = {}
    markup = ZERO
    discount = ZERO
    trace: list[TraceEntry] = []
    matched: list[str] = []
    if seed is not None:
        applied.update((a.component_id, a) for a in seed.applied_components)
        markup = _percent(seed.markup_percent)
        discount = _percent(seed.discount_percent)
        trace.extend(seed.trace)
        matched.extend(seed.matched_rule_ids)

    halted = False
    for rule in rules:
        if not rule.is_effective(as_of):
            continue
        if not evaluate_conditions(rule.conditions, facts):
            continue

        matched.append(rule.rule_id)
        trace.append(TraceEntry(
            rule_name=f"Rule: {rule.name}",
            detail=f"Priority {rule.priority}. Conditions met.",
            rule_id=rule.rule_id,
        ))
        logger.debug(
            "rule_matched",
            extra={"rule_id": rule.rule_id, "rule_name": rule.name, "priority": rule.priority},
        )

        for action in rule.actions:
            match action:
                case AddCostComponent(component_id=component_id, value=override):
                    component = index.get(component_id)
                    if component is None:
                        logger.warning(
                            "component_not_found",
                            extra={"rule_id": rule.rule_id, "component_id": component_id},
                        )
                        continue
                    value = to_decimal(override) if override is not None else None
                    applied[component_id] = AppliedComponent(
                        component=component,
                        applied_value=value if value is not None else component.value,
                        source=rule.name,
                    )
                case ApplyMarkupPercentage(value=value):
                    markup += _percent(value)
                case ApplyDiscountPercentage(value=value):
                    discount += _percent(value)
                case _:
                    logger.warning(
                        "unknown_action_type",
                        extra={"rule_id": rule.rule_id, "action": repr(action)},
                    )

        if rule.stop_if_matched:
            trace.append(TraceEntry(
                rule_name=HALT_TRACE_NAME,
                detail=HALT_TRACE_DETAIL,
                rule_id=rule.rule_id,
            ))
            logger.debug("rule_halted", extra={"rule_id": rule.rule_id})
            halted = True
            break

    return RuleMatchResult(
        applied_components=tuple(applied.values()),
        markup_percent=markup,
        discount_percent=discount,
        trace=tuple(trace),
        matched_rule_ids=tuple(matched),
        halted=halted,
    )


def select_base_components(
    default_component_ids: Sequence[str],
    components: Iterable[CostComponent],
    facts: FactRecord,
    as_of: date,
) -> RuleMatchResult:
    """Select the components that apply before any pricing rule runs.

    Order of application:
    1. Defaults named by the job profile / nationality, in the order given.
    2. Smart components (components with their own condition group) whose
       window is open and whose conditions hold, in collection order.

    Both use the component's own value.  Pricing rules seeded with this
    result may override any of them by id.
    """
    component_list = list(components)
    index = _index_components(component_list)

    applied: dict[str, AppliedComponent] = {}
    trace: list[TraceEntry] = []

    for component_id in default_component_ids:
        component = index.get(component_id)
        if component is None:
            logger.warning("default_component_not_found", extra={"component_id": component_id})
            continue
        applied[component_id] = AppliedComponent(
            component=component,
            applied_value=component.value,
            source="default",
        )

    for component in component_list:
        if not component.is_smart or not component.is_effective(as_of):
            continue
        if not evaluate_conditions(component.conditions, facts):
            continue
        applied[component.component_id] = AppliedComponent(
            component=component,
            applied_value=component.value,
            source="smart",
        )
        trace.append(TraceEntry(
            rule_name=f"Smart Component: {component.name}",
            detail="Auto-applied based on its own conditions.",
        ))

    return RuleMatchResult(applied_components=tuple(applied.values()), trace=tuple(trace))


def _percent(value: object) -> Decimal:
    number = to_decimal(value)
    return number if number is not None else ZERO


def _index_components(components: Iterable[CostComponent]) -> dict[str, CostComponent]:
    # First occurrence wins for duplicated ids.
    index: dict[str, CostComponent] = {}
    for component in components:
        index.setdefault(component.component_id, component)
    return index
