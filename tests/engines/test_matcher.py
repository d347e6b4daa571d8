"""
Tests for the pure rule matcher.

Tests cover:
- match_rules: caller ordering, validity windows, halt-on-match, additive
  percentages, component override, dangling references, determinism
- select_base_components: job profile defaults, smart components
"""

from datetime import date
from decimal import Decimal

from pricing_engines.matcher import match_rules, select_base_components
from pricing_kernel.domain.facts import FactRecord, LineItemFacts
from pricing_kernel.domain.pricing import (
    AddCostComponent,
    ApplyDiscountPercentage,
    ApplyMarkupPercentage,
    Condition,
    ConditionGroup,
    ConditionOperator,
    CostComponent,
    PricingRule,
)

AS_OF = date(2026, 3, 15)


# =========================================================================
# Factory helpers
# =========================================================================


def make_facts(nationality: str = "IN", quantity: int = 1) -> FactRecord:
    return FactRecord(
        line_item=LineItemFacts(
            job_profile_id="JP-1",
            nationality=nationality,
            quantity=quantity,
        ),
        base_cost=Decimal("100"),
    )


def make_component(
    component_id: str = "visa",
    value: str = "20",
    conditions: ConditionGroup | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> CostComponent:
    return CostComponent(
        component_id=component_id,
        name=component_id.title(),
        value=Decimal(value),
        conditions=conditions,
        from_date=from_date,
        to_date=to_date,
    )


def make_rule(
    rule_id: str = "R-1",
    priority: int = 10,
    actions: tuple = (),
    conditions: tuple[Condition, ...] = (),
    stop_if_matched: bool = False,
    from_date: date | None = None,
    to_date: date | None = None,
) -> PricingRule:
    return PricingRule(
        rule_id=rule_id,
        name=f"Rule {rule_id}",
        priority=priority,
        conditions=ConditionGroup(all_of=conditions),
        actions=actions,
        stop_if_matched=stop_if_matched,
        from_date=from_date,
        to_date=to_date,
    )


def nationality_is(value: str) -> Condition:
    return Condition("line_item.nationality", ConditionOperator.EQUAL, value)


COMPONENTS = (
    make_component("visa", "20"),
    make_component("insurance", "15"),
)


# =========================================================================
# 1. Matching and ordering
# =========================================================================


class TestMatchRules:

    def test_no_rules_yields_empty_result(self):
        result = match_rules((), make_facts(), COMPONENTS, AS_OF)

        assert result.applied_components == ()
        assert result.markup_percent == Decimal("0")
        assert result.discount_percent == Decimal("0")
        assert result.trace == ()
        assert result.halted is False

    def test_matching_rule_adds_component_and_trace(self):
        rule = make_rule(actions=(AddCostComponent("visa"),))

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert [a.component_id for a in result.applied_components] == ["visa"]
        assert result.component("visa").applied_value == Decimal("20")
        assert result.trace[0].rule_name == "Rule: Rule R-1"
        assert result.trace[0].detail == "Priority 10. Conditions met."
        assert result.matched_rule_ids == ("R-1",)

    def test_non_matching_rule_contributes_nothing(self):
        rule = make_rule(
            conditions=(nationality_is("PK"),),
            actions=(ApplyMarkupPercentage(Decimal("10")),),
        )

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("0")
        assert result.matched_rule_ids == ()

    def test_rules_evaluated_in_given_order(self):
        """The matcher never re-sorts; the caller's order is the evaluation order."""
        low_first = (
            make_rule("LOW", priority=1),
            make_rule("HIGH", priority=99),
        )

        result = match_rules(low_first, make_facts(), COMPONENTS, AS_OF)

        assert result.matched_rule_ids == ("LOW", "HIGH")

    def test_markup_and_discount_compose_additively(self):
        rules = (
            make_rule("A", actions=(ApplyMarkupPercentage(Decimal("5")),)),
            make_rule("B", actions=(
                ApplyMarkupPercentage(Decimal("5")),
                ApplyDiscountPercentage(Decimal("2.5")),
            )),
            make_rule("C", actions=(ApplyDiscountPercentage(Decimal("2.5")),)),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("10")
        assert result.discount_percent == Decimal("5")

    def test_action_values_of_any_numeric_type(self):
        rules = (
            make_rule("A", actions=(
                ApplyMarkupPercentage(5.5),
                ApplyDiscountPercentage("2"),
                AddCostComponent("visa", 35.0),
            )),
            make_rule("B", actions=(ApplyMarkupPercentage(4),)),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("9.5")
        assert result.discount_percent == Decimal("2")
        assert result.component("visa").applied_value == Decimal("35")

    def test_non_numeric_action_values_are_inert(self):
        rules = (
            make_rule("A", actions=(
                ApplyMarkupPercentage("lots"),
                ApplyDiscountPercentage(None),
                AddCostComponent("visa", "free"),
            )),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("0")
        assert result.discount_percent == Decimal("0")
        assert result.component("visa").applied_value == Decimal("20")

    def test_component_override_last_wins(self):
        rules = (
            make_rule("A", actions=(AddCostComponent("visa"), AddCostComponent("insurance"))),
            make_rule("B", actions=(AddCostComponent("visa", Decimal("35")),)),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert [a.component_id for a in result.applied_components] == ["visa", "insurance"]
        assert result.component("visa").applied_value == Decimal("35")
        assert result.component("visa").source == "Rule B"

    def test_unknown_component_is_logged_noop(self, captured_logs):
        rule = make_rule(actions=(
            AddCostComponent("does-not-exist"),
            ApplyMarkupPercentage(Decimal("3")),
        ))

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert result.applied_components == ()
        assert result.markup_percent == Decimal("3")
        missing = [r for r in captured_logs() if r["message"] == "component_not_found"]
        assert missing[0]["component_id"] == "does-not-exist"

    def test_unknown_action_is_logged_noop(self, captured_logs):
        rule = make_rule(actions=("set_price", ApplyMarkupPercentage(Decimal("1"))))

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("1")
        assert any(r["message"] == "unknown_action_type" for r in captured_logs())


# =========================================================================
# 2. Validity windows
# =========================================================================


class TestValidityWindow:

    def test_rule_outside_window_never_contributes(self):
        expired = make_rule(
            "OLD",
            actions=(ApplyMarkupPercentage(Decimal("10")),),
            to_date=date(2026, 3, 14),
        )
        future = make_rule(
            "NEW",
            actions=(ApplyMarkupPercentage(Decimal("10")),),
            from_date=date(2026, 3, 16),
        )

        result = match_rules((expired, future), make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("0")
        assert result.trace == ()

    def test_window_bounds_are_inclusive(self):
        rule = make_rule(
            actions=(ApplyMarkupPercentage(Decimal("10")),),
            from_date=AS_OF,
            to_date=AS_OF,
        )

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert result.markup_percent == Decimal("10")

    def test_same_rules_different_as_of(self):
        rule = make_rule(
            actions=(ApplyMarkupPercentage(Decimal("10")),),
            from_date=date(2026, 1, 1),
            to_date=date(2026, 1, 31),
        )

        in_window = match_rules((rule,), make_facts(), COMPONENTS, date(2026, 1, 31))
        after = match_rules((rule,), make_facts(), COMPONENTS, date(2026, 2, 1))

        assert in_window.markup_percent == Decimal("10")
        assert after.markup_percent == Decimal("0")


# =========================================================================
# 3. Halt
# =========================================================================


class TestHalt:

    def test_halt_suppresses_lower_rules(self):
        rules = (
            make_rule("TOP", priority=100, stop_if_matched=True,
                      actions=(ApplyDiscountPercentage(Decimal("5")),)),
            make_rule("LOW", priority=1, actions=(ApplyMarkupPercentage(Decimal("50")),)),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert result.halted is True
        assert result.matched_rule_ids == ("TOP",)
        assert result.markup_percent == Decimal("0")
        assert result.discount_percent == Decimal("5")
        assert result.trace[-1].rule_name == "Halt"
        assert result.trace[-1].detail == "Stopped further rule evaluation."

    def test_halt_only_when_rule_matches(self):
        rules = (
            make_rule("TOP", stop_if_matched=True, conditions=(nationality_is("PK"),)),
            make_rule("NEXT", actions=(ApplyMarkupPercentage(Decimal("7")),)),
        )

        result = match_rules(rules, make_facts(), COMPONENTS, AS_OF)

        assert result.halted is False
        assert result.markup_percent == Decimal("7")

    def test_halting_rule_actions_still_apply(self):
        rule = make_rule(stop_if_matched=True, actions=(AddCostComponent("visa"),))

        result = match_rules((rule,), make_facts(), COMPONENTS, AS_OF)

        assert result.component("visa") is not None
        assert [t.rule_name for t in result.trace] == ["Rule: Rule R-1", "Halt"]


# =========================================================================
# 4. Determinism
# =========================================================================


class TestDeterminism:

    def test_repeated_evaluation_is_identical(self):
        rules = (
            make_rule("A", actions=(AddCostComponent("visa"), ApplyMarkupPercentage(Decimal("5")))),
            make_rule("B", actions=(AddCostComponent("insurance"),)),
        )
        facts = make_facts()

        first = match_rules(rules, facts, COMPONENTS, AS_OF)
        second = match_rules(rules, facts, COMPONENTS, AS_OF)

        assert first == second
        assert first.trace == second.trace

    def test_emits_engine_trace(self, captured_logs):
        match_rules((), make_facts(), COMPONENTS, AS_OF)

        traces = [r for r in captured_logs() if r["message"] == "PRICING_ENGINE_TRACE"]
        assert traces[0]["engine_name"] == "rule_matcher"
        assert len(traces[0]["input_fingerprint"]) == 16


# =========================================================================
# 5. Base components
# =========================================================================


class TestSelectBaseComponents:

    def test_defaults_applied_in_order(self):
        result = select_base_components(("insurance", "visa"), COMPONENTS, make_facts(), AS_OF)

        assert [a.component_id for a in result.applied_components] == ["insurance", "visa"]
        assert all(a.source == "default" for a in result.applied_components)
        assert result.trace == ()

    def test_missing_default_is_skipped(self, captured_logs):
        result = select_base_components(("ghost",), COMPONENTS, make_facts(), AS_OF)

        assert result.applied_components == ()
        assert any(r["message"] == "default_component_not_found" for r in captured_logs())

    def test_smart_component_applies_itself(self):
        smart = make_component(
            "gcc_levy", "12",
            conditions=ConditionGroup(all_of=(nationality_is("IN"),)),
        )

        result = select_base_components((), COMPONENTS + (smart,), make_facts(), AS_OF)

        assert [a.component_id for a in result.applied_components] == ["gcc_levy"]
        assert result.applied_components[0].source == "smart"
        assert result.trace[0].rule_name == "Smart Component: Gcc_Levy"

    def test_smart_component_respects_conditions_and_window(self):
        wrong_nationality = make_component(
            "levy_pk", "12", conditions=ConditionGroup(all_of=(nationality_is("PK"),)),
        )
        expired = make_component(
            "levy_old", "12",
            conditions=ConditionGroup(all_of=(nationality_is("IN"),)),
            to_date=date(2025, 12, 31),
        )

        result = select_base_components((), (wrong_nationality, expired), make_facts(), AS_OF)

        assert result.applied_components == ()

    def test_component_without_conditions_is_not_smart(self):
        result = select_base_components((), COMPONENTS, make_facts(), AS_OF)
        assert result.applied_components == ()

    def test_rules_can_override_smart_component(self):
        smart = make_component(
            "gcc_levy", "12",
            conditions=ConditionGroup(all_of=(nationality_is("IN"),)),
        )
        components = COMPONENTS + (smart,)
        base = select_base_components(("visa",), components, make_facts(), AS_OF)
        rule = make_rule(actions=(AddCostComponent("gcc_levy", Decimal("4")),))

        result = match_rules((rule,), make_facts(), components, AS_OF, seed=base)

        assert [a.component_id for a in result.applied_components] == ["visa", "gcc_levy"]
        assert result.component("gcc_levy").applied_value == Decimal("4")
        assert result.trace[0].rule_name == "Smart Component: Gcc_Levy"
        assert result.trace[1].rule_name == "Rule: Rule R-1"
