"""
Tests for the pure cost aggregator.

Tests cover:
- The worked example: markup first, discount on the post-markup figure
- Fixed vs percentage-of-base components, monthly vs one-time buckets
- No clamping of quantity / duration / missing base rate
- Operands of mixed numeric types
- The taxable part of the subtotal (VAT-exempt components)
"""

from decimal import Decimal

import pytest

from pricing_engines.aggregation import aggregate_costs, component_contribution
from pricing_kernel.domain.pricing import (
    AppliedComponent,
    CalculationMethod,
    CostComponent,
    Periodicity,
    TraceEntry,
)


# =========================================================================
# Factory helpers
# =========================================================================


def applied(
    component_id: str,
    value: str,
    method: CalculationMethod = CalculationMethod.FIXED,
    periodicity: Periodicity = Periodicity.MONTHLY,
    vat_applicable: bool = False,
) -> AppliedComponent:
    component = CostComponent(
        component_id=component_id,
        name=component_id,
        value=Decimal(value),
        calculation_method=method,
        periodicity=periodicity,
        vat_applicable=vat_applicable,
    )
    return AppliedComponent(component=component, applied_value=Decimal(value))


# =========================================================================
# 1. Worked example
# =========================================================================


class TestWorkedExample:
    """base 100, one monthly fixed 20, markup 10%, discount 5%, qty 2, 6 months."""

    @pytest.fixture
    def breakdown(self):
        return aggregate_costs(
            Decimal("100"),
            (applied("visa", "20"),),
            markup_percent=Decimal("10"),
            discount_percent=Decimal("5"),
            quantity=2,
            duration_months=6,
        )

    def test_monthly_per_unit(self, breakdown):
        assert breakdown.monthly_cost_per_unit == Decimal("125.4")

    def test_total_monthly(self, breakdown):
        assert breakdown.total_monthly_cost == Decimal("250.8")

    def test_subtotal(self, breakdown):
        assert breakdown.subtotal == Decimal("1504.8")

    def test_no_one_time_costs(self, breakdown):
        assert breakdown.one_time_cost_per_unit == Decimal("0")
        assert breakdown.total_one_time_cost == Decimal("0")

    def test_echoes_inputs(self, breakdown):
        assert breakdown.base_rate == Decimal("100")
        assert breakdown.markup_percent == Decimal("10")
        assert breakdown.discount_percent == Decimal("5")
        assert breakdown.quantity == 2
        assert breakdown.duration_months == 6

    def test_component_lines(self, breakdown):
        (line,) = breakdown.components
        assert line.component_id == "visa"
        assert line.contribution == Decimal("20")
        assert line.periodicity is Periodicity.MONTHLY

    def test_no_tax_until_applied(self, breakdown):
        assert breakdown.tax_amount == Decimal("0")
        assert breakdown.total_amount == breakdown.subtotal


# =========================================================================
# 2. Component arithmetic
# =========================================================================


class TestComponentContribution:

    def test_fixed_contributes_value(self):
        assert component_contribution(Decimal("100"), applied("a", "20")) == Decimal("20")

    def test_percentage_of_base(self):
        item = applied("a", "15", CalculationMethod.PERCENTAGE_OF_BASE)
        assert component_contribution(Decimal("200"), item) == Decimal("30")


class TestBuckets:

    def test_one_time_is_not_marked_up_or_discounted(self):
        breakdown = aggregate_costs(
            Decimal("100"),
            (applied("recruitment", "500", periodicity=Periodicity.ONE_TIME),),
            markup_percent=Decimal("10"),
            discount_percent=Decimal("10"),
            quantity=3,
            duration_months=12,
        )

        assert breakdown.one_time_cost_per_unit == Decimal("500")
        assert breakdown.total_one_time_cost == Decimal("1500")
        assert breakdown.monthly_cost_per_unit == Decimal("99")
        assert breakdown.subtotal == (Decimal("99") * 12 + Decimal("500")) * 3

    def test_percentage_component_uses_base_before_markup(self):
        breakdown = aggregate_costs(
            Decimal("1000"),
            (applied("accommodation", "10", CalculationMethod.PERCENTAGE_OF_BASE),),
            markup_percent=Decimal("20"),
            discount_percent=Decimal("0"),
            quantity=1,
            duration_months=1,
        )

        assert breakdown.monthly_cost_per_unit == Decimal("1320")

    def test_trace_carried_through(self):
        trace = (TraceEntry("Rule: Gulf uplift", "Priority 5. Conditions met.", "R-5"),)

        breakdown = aggregate_costs(
            Decimal("100"), (), Decimal("0"), Decimal("0"), 1, 12, trace=trace
        )

        assert breakdown.trace == trace


# =========================================================================
# 3. No clamping
# =========================================================================


class TestNoClamping:

    def test_missing_base_rate_treated_as_zero(self):
        breakdown = aggregate_costs(
            None, (applied("visa", "20"),), Decimal("0"), Decimal("0"), 1, 12
        )

        assert breakdown.base_rate == Decimal("0")
        assert breakdown.monthly_cost_per_unit == Decimal("20")

    def test_zero_quantity_yields_zero_subtotal(self):
        breakdown = aggregate_costs(Decimal("100"), (), Decimal("0"), Decimal("0"), 0, 12)
        assert breakdown.subtotal == Decimal("0")

    def test_negative_duration_flows_through(self):
        breakdown = aggregate_costs(Decimal("100"), (), Decimal("0"), Decimal("0"), 1, -2)
        assert breakdown.subtotal == Decimal("-200")

    def test_discount_over_hundred_goes_negative(self):
        breakdown = aggregate_costs(Decimal("100"), (), Decimal("0"), Decimal("150"), 1, 1)
        assert breakdown.monthly_cost_per_unit == Decimal("-50")


# =========================================================================
# 4. Operand types
# =========================================================================


class TestOperandTypes:

    def test_float_percentages(self):
        breakdown = aggregate_costs(Decimal("100"), (), 10.0, 5.0, 2, 6)

        assert breakdown.monthly_cost_per_unit == Decimal("104.5")
        assert breakdown.subtotal == Decimal("1254")
        assert breakdown.markup_percent == Decimal("10")
        assert breakdown.discount_percent == Decimal("5")

    def test_int_string_and_float_inputs(self):
        component = CostComponent("visa", "Visa", Decimal("20"))
        visa = AppliedComponent(component=component, applied_value=20.5)

        breakdown = aggregate_costs(100, (visa,), "10", 0, 1.0, "3")

        assert breakdown.monthly_cost_per_unit == Decimal("132.55")
        assert breakdown.subtotal == Decimal("397.65")
        assert breakdown.components[0].applied_value == Decimal("20.5")

    @pytest.mark.parametrize("junk", ["lots", None, float("nan"), Decimal("sNaN")])
    def test_non_numeric_percentage_counts_as_zero(self, junk):
        breakdown = aggregate_costs(Decimal("100"), (), junk, junk, 1, 1)

        assert breakdown.subtotal == Decimal("100")


# =========================================================================
# 5. Taxable subtotal
# =========================================================================


class TestTaxableSubtotal:
    """base 100, exempt monthly visa 20, taxable one-time medical 300."""

    @pytest.fixture
    def breakdown(self):
        return aggregate_costs(
            Decimal("100"),
            (
                applied("visa", "20"),
                applied("medical", "300", periodicity=Periodicity.ONE_TIME, vat_applicable=True),
            ),
            markup_percent=Decimal("10"),
            discount_percent=Decimal("5"),
            quantity=2,
            duration_months=6,
        )

    def test_exempt_share_excluded_after_markup_and_discount(self, breakdown):
        # visa: 20 * 1.1 * 0.95 * 6 months * 2 units = 250.8
        assert breakdown.subtotal == Decimal("2104.8")
        assert breakdown.taxable_subtotal == Decimal("1854")

    def test_vat_charged_on_taxable_part_only(self, breakdown):
        taxed = breakdown.with_tax(Decimal("5"))

        assert taxed.tax_amount == Decimal("92.7")
        assert taxed.total_amount == Decimal("2197.5")

    def test_component_lines_carry_flag(self, breakdown):
        assert [line.vat_applicable for line in breakdown.components] == [False, True]

    def test_everything_taxable_without_exempt_components(self):
        breakdown = aggregate_costs(
            Decimal("100"),
            (applied("visa", "20", vat_applicable=True),),
            Decimal("0"),
            Decimal("0"),
            1,
            12,
        )

        assert breakdown.taxable_subtotal == breakdown.subtotal
