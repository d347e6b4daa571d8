"""
pricing_engines.aggregation -- Cost aggregator for a priced line item.

Responsibility:
    Fold the matcher's effects (applied components, composed markup and
    discount percentages) together with the job's base rate into monthly
    and one-time per-unit costs, totals and a contract subtotal.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Component contribution: ``applied_value`` for fixed components,
      ``base_rate * applied_value / 100`` for percentage-of-base ones.
      Percentage components always use the raw base rate, not the
      running monthly figure.
    - Percentages apply to the monthly per-unit cost only, markup first
      then discount on the post-markup figure:
      ``monthly * (1 + markup/100) * (1 - discount/100)``.
      One-time costs are never marked up or discounted.
    - ``subtotal = (monthly * duration + one_time) * quantity``.
    - Decimal-only arithmetic; no rounding is applied here.  Numeric
      inputs of any type are read as Decimal and anything non-numeric
      counts as 0, so the aggregator never raises on operand types.
    - ``taxable_subtotal`` excludes the share of components whose
      ``vat_applicable`` is false, after the same markup and discount.

Failure modes:
    - No clamping or validation: quantity < 1, duration <= 0 or negative
      percentages flow straight through the arithmetic.  A missing or
      non-numeric base rate is treated as 0.  Input validation belongs to
      the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from pricing_engines.conditions import to_decimal
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.pricing import (
    HUNDRED,
    ZERO,
    AppliedComponent,
    CalculationMethod,
    ComponentLine,
    CostBreakdown,
    Periodicity,
    TraceEntry,
)

ONE = Decimal("1")


def component_contribution(base_rate: Decimal, applied: AppliedComponent) -> Decimal:
    """Per-unit amount one applied component adds to its periodicity bucket."""
    value = _number(applied.applied_value)
    if applied.component.calculation_method is CalculationMethod.PERCENTAGE_OF_BASE:
        return base_rate * (value / HUNDRED)
    return value


@traced_engine(
    "cost_aggregator",
    "1.0",
    fingerprint_fields=(
        "base_rate",
        "applied_components",
        "markup_percent",
        "discount_percent",
        "quantity",
        "duration_months",
    ),
)
def aggregate_costs(
    base_rate: Decimal | None,
    applied_components: Sequence[AppliedComponent],
    markup_percent: Decimal,
    discount_percent: Decimal,
    quantity: int | Decimal,
    duration_months: int | Decimal,
    trace: Sequence[TraceEntry] = (),
) -> CostBreakdown:
    """Compute the cost breakdown for one line.

    Args:
        base_rate: Monthly base cost per unit of the job profile.
        applied_components: Components selected by matching, in order.
        markup_percent: Composed markup percentage.
        discount_percent: Composed rule discount percentage.
        quantity: Number of units (workers).
        duration_months: Contract duration in months.
        trace: Matcher trace, carried through for display/audit.

    Returns:
        CostBreakdown with per-unit costs, totals, subtotal and the
        taxable part of the subtotal.
    """
    base = _number(base_rate)
    markup = _number(markup_percent)
    discount = _number(discount_percent)
    units = _number(quantity)
    months = _number(duration_months)

    monthly = base
    one_time = ZERO
    exempt_monthly = ZERO
    exempt_one_time = ZERO
    lines: list[ComponentLine] = []
    for applied in applied_components:
        contribution = component_contribution(base, applied)
        component = applied.component
        if component.periodicity is Periodicity.MONTHLY:
            monthly += contribution
            if not component.vat_applicable:
                exempt_monthly += contribution
        elif component.periodicity is Periodicity.ONE_TIME:
            one_time += contribution
            if not component.vat_applicable:
                exempt_one_time += contribution
        lines.append(ComponentLine(
            component_id=component.component_id,
            name=component.name,
            applied_value=_number(applied.applied_value),
            contribution=contribution,
            periodicity=component.periodicity,
            calculation_method=component.calculation_method,
            component_type=component.component_type,
            vat_applicable=component.vat_applicable,
        ))

    monthly = monthly * (ONE + markup / HUNDRED) * (ONE - discount / HUNDRED)
    exempt_monthly = exempt_monthly * (ONE + markup / HUNDRED) * (ONE - discount / HUNDRED)
    subtotal = (monthly * months + one_time) * units
    exempt = (exempt_monthly * months + exempt_one_time) * units

    return CostBreakdown(
        base_rate=base,
        monthly_cost_per_unit=monthly,
        one_time_cost_per_unit=one_time,
        total_monthly_cost=monthly * units,
        total_one_time_cost=one_time * units,
        subtotal=subtotal,
        quantity=quantity,
        duration_months=duration_months,
        markup_percent=markup,
        discount_percent=discount,
        components=tuple(lines),
        trace=tuple(trace),
        taxable_subtotal=subtotal - exempt,
    )


def _number(value: object) -> Decimal:
    number = to_decimal(value)
    return number if number is not None else ZERO
