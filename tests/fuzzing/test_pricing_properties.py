"""
Hypothesis-based property tests for the pricing and approval engines.

Properties fuzzed here:
- Condition evaluation is total: arbitrary operands never raise
- Rule matching is deterministic and percentages compose additively
- Halt-on-match suppresses every lower rule
- Cost formula: markup applied before discount on the monthly figure
- Approval ranges: lower bound exclusive, upper bound inclusive
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from pricing_engines.aggregation import aggregate_costs
from pricing_engines.approval import classify_discount, resolve_approver
from pricing_engines.conditions import evaluate_condition
from pricing_engines.matcher import match_rules
from pricing_kernel.domain.approval import (
    ApprovalOutcome,
    DiscountApprovalRule,
    DiscountType,
)
from pricing_kernel.domain.facts import FactRecord, LineItemFacts
from pricing_kernel.domain.pricing import (
    ApplyDiscountPercentage,
    ApplyMarkupPercentage,
    Condition,
    ConditionOperator,
    PricingRule,
)

AS_OF = date(2026, 3, 15)

percentages = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

operands = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=True, allow_infinity=True),
    st.text(max_size=20),
    st.decimals(allow_nan=True, allow_infinity=True),
    st.lists(st.integers(), max_size=3),
)


@composite
def pricing_rules(draw, rule_id: str):
    """Generate a rule carrying markup/discount actions and a random window."""
    start = draw(st.integers(min_value=-30, max_value=30))
    length = draw(st.integers(min_value=0, max_value=60))
    from_date = AS_OF + timedelta(days=start)
    return PricingRule(
        rule_id=rule_id,
        name=rule_id,
        priority=draw(st.integers(min_value=0, max_value=100)),
        actions=(
            ApplyMarkupPercentage(draw(percentages)),
            ApplyDiscountPercentage(draw(percentages)),
        ),
        stop_if_matched=draw(st.booleans()),
        from_date=from_date,
        to_date=from_date + timedelta(days=length),
    )


@composite
def rule_sets(draw):
    count = draw(st.integers(min_value=0, max_value=8))
    return tuple(draw(pricing_rules(f"R-{i}")) for i in range(count))


FACTS = FactRecord(
    line_item=LineItemFacts(nationality="IN", location="Dubai", quantity=2),
    base_cost=Decimal("100"),
)


class TestConditionTotality:

    @given(
        operator=st.sampled_from(list(ConditionOperator)),
        fact=st.sampled_from(["line_item.quantity", "line_item.location", "base_cost", "lead.x"]),
        value=operands,
    )
    @settings(max_examples=300)
    def test_never_raises(self, operator, fact, value):
        result = evaluate_condition(Condition(fact, operator, value), FACTS)
        assert result in (True, False)


class TestMatcherProperties:

    @given(rules=rule_sets())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_deterministic(self, rules):
        assert match_rules(rules, FACTS, (), AS_OF) == match_rules(rules, FACTS, (), AS_OF)

    @given(rules=rule_sets())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_percentages_sum_over_fired_rules(self, rules):
        result = match_rules(rules, FACTS, (), AS_OF)

        fired = [r for r in rules if r.rule_id in result.matched_rule_ids]
        assert result.markup_percent == sum((r.actions[0].value for r in fired), Decimal("0"))
        assert result.discount_percent == sum((r.actions[1].value for r in fired), Decimal("0"))

    @given(rules=rule_sets())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_only_effective_rules_fire_and_halt_stops(self, rules):
        result = match_rules(rules, FACTS, (), AS_OF)

        effective = [r for r in rules if r.is_effective(AS_OF)]
        expected: list[str] = []
        for rule in effective:
            expected.append(rule.rule_id)
            if rule.stop_if_matched:
                break
        assert list(result.matched_rule_ids) == expected
        assert result.halted == any(r.stop_if_matched for r in effective)


class TestCostFormula:

    @given(
        base=st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2),
        markup=percentages,
        discount=percentages,
        quantity=st.integers(min_value=1, max_value=50),
        months=st.integers(min_value=1, max_value=60),
    )
    @settings(max_examples=200)
    def test_markup_then_discount(self, base, markup, discount, quantity, months):
        breakdown = aggregate_costs(base, (), markup, discount, quantity, months)

        monthly = base * (1 + markup / 100) * (1 - discount / 100)
        assert breakdown.monthly_cost_per_unit == monthly
        assert breakdown.total_monthly_cost == monthly * quantity
        assert breakdown.subtotal == monthly * months * quantity


class TestApprovalBoundaries:

    @given(
        low=st.decimals(min_value=Decimal("0"), max_value=Decimal("50"), places=2),
        width=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("50"), places=2),
        pct=st.decimals(min_value=Decimal("-10"), max_value=Decimal("120"), places=2),
    )
    @settings(max_examples=300)
    def test_single_range(self, low, width, pct):
        high = low + width
        rules = (DiscountApprovalRule(DiscountType.LINE_ITEM, low, high, "R"),)

        role = resolve_approver(pct, DiscountType.LINE_ITEM, rules)

        if pct > 0 and low < pct <= high:
            assert role == "R"
        else:
            assert role is None

    @given(pct=st.decimals(min_value=Decimal("-10"), max_value=Decimal("120"), places=2))
    @settings(max_examples=200)
    def test_classification_partitions_outcomes(self, pct):
        rules = (
            DiscountApprovalRule(DiscountType.LINE_ITEM, Decimal("0"), Decimal("10"), "R1"),
            DiscountApprovalRule(DiscountType.LINE_ITEM, Decimal("10"), Decimal("25"), "R2"),
        )

        routing = classify_discount(pct, DiscountType.LINE_ITEM, rules)

        if pct <= 0:
            assert routing.outcome is ApprovalOutcome.NOT_REQUIRED
        elif pct <= 25:
            assert routing.outcome is ApprovalOutcome.ROUTED
            assert routing.approver_role_id == ("R1" if pct <= 10 else "R2")
        else:
            assert routing.outcome is ApprovalOutcome.UNCOVERED
