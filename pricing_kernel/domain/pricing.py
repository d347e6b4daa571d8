"""
Pricing domain types (``pricing_kernel.domain.pricing``).

Responsibility
--------------
Pure value objects for the dynamic pricing rule engine: the predicate
language (conditions and condition groups), rule actions as closed tagged
variants, pricing rules, cost components, and the results produced by the
matcher and the aggregator.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Imported by
``pricing_engines`` and ``pricing_config``; imports nothing outside
``pricing_kernel.domain``.

Invariants enforced
-------------------
* Operators and action kinds are closed sets (``ConditionOperator``,
  ``RuleAction``).  Unknown kinds are rejected by the ingestion parsers,
  never constructed here.
* Validity windows are inclusive on both ends: a record is effective on
  ``as_of`` iff ``from_date <= as_of <= to_date`` (open ends unbounded).
* All monetary and percentage values are ``Decimal``.
* Every collection field is a tuple; all dataclasses are frozen, so one
  evaluation always observes one snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

ZERO = Decimal("0")
HUNDRED = Decimal("100")


# =========================================================================
# Predicate language
# =========================================================================


class ConditionOperator(str, Enum):
    """Comparison operators available to rule conditions."""

    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    IN = "in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    BETWEEN = "between"


NUMERIC_OPERATORS: frozenset[ConditionOperator] = frozenset({
    ConditionOperator.GREATER_THAN,
    ConditionOperator.LESS_THAN,
    ConditionOperator.GREATER_THAN_OR_EQUAL,
    ConditionOperator.LESS_THAN_OR_EQUAL,
    ConditionOperator.BETWEEN,
})


@dataclass(frozen=True)
class Condition:
    """A single ``fact <operator> value`` predicate.

    ``fact`` is a dotted path into the fact record (``line_item.quantity``).
    ``value`` is a scalar, a tuple (for ``in``), or a two-item tuple
    (for ``between``).
    """

    fact: str
    operator: ConditionOperator
    value: Any = None


@dataclass(frozen=True)
class ConditionGroup:
    """Pure conjunction of conditions.  An empty group always holds."""

    all_of: tuple[Condition, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.all_of


# =========================================================================
# Rule actions (closed tagged variants)
# =========================================================================


class ActionType(str, Enum):
    """Effects a matching pricing rule can apply."""

    ADD_COST_COMPONENT = "add_cost_component"
    APPLY_MARKUP_PERCENTAGE = "apply_markup_percentage"
    APPLY_DISCOUNT_PERCENTAGE = "apply_discount_percentage"


@dataclass(frozen=True)
class AddCostComponent:
    """Insert (or overwrite) a cost component in the applied set.

    ``value`` overrides the component's own base value when present.
    """

    component_id: str
    value: Decimal | None = None

    action_type: ClassVar[ActionType] = ActionType.ADD_COST_COMPONENT


@dataclass(frozen=True)
class ApplyMarkupPercentage:
    """Add ``value`` percent onto the running markup."""

    value: Decimal = ZERO

    action_type: ClassVar[ActionType] = ActionType.APPLY_MARKUP_PERCENTAGE


@dataclass(frozen=True)
class ApplyDiscountPercentage:
    """Add ``value`` percent onto the running rule discount."""

    value: Decimal = ZERO

    action_type: ClassVar[ActionType] = ActionType.APPLY_DISCOUNT_PERCENTAGE


RuleAction = AddCostComponent | ApplyMarkupPercentage | ApplyDiscountPercentage


# =========================================================================
# Validity windows
# =========================================================================


def is_within_window(
    as_of: date,
    from_date: date | None,
    to_date: date | None,
) -> bool:
    """Inclusive ``[from_date, to_date]`` check; ``None`` ends are open."""
    if from_date is not None and as_of < from_date:
        return False
    if to_date is not None and as_of > to_date:
        return False
    return True


# =========================================================================
# Rules and components
# =========================================================================


@dataclass(frozen=True)
class PricingRule:
    """A prioritized, time-windowed condition -> actions pairing.

    Higher ``priority`` is evaluated first.  The matcher relies on the
    caller to supply rules already ordered; see
    ``pricing_config.loader.order_rules``.
    """

    rule_id: str
    name: str
    priority: int | Decimal = 0
    conditions: ConditionGroup = field(default_factory=ConditionGroup)
    actions: tuple[RuleAction, ...] = ()
    stop_if_matched: bool = False
    from_date: date | None = None
    to_date: date | None = None

    def is_effective(self, as_of: date) -> bool:
        """Check if this rule's validity window includes ``as_of``."""
        return is_within_window(as_of, self.from_date, self.to_date)


class CalculationMethod(str, Enum):
    """How a component's value turns into a per-unit amount."""

    FIXED = "fixed"
    PERCENTAGE_OF_BASE = "percentage_of_base"


class Periodicity(str, Enum):
    """Whether a cost recurs monthly or is charged once."""

    MONTHLY = "monthly"
    ONE_TIME = "one_time"


@dataclass(frozen=True)
class CostComponent:
    """Reference cost component (visa fee, insurance, accommodation...).

    A component with a non-empty ``conditions`` group is a *smart*
    component: it applies itself when its own conditions and window hold,
    without any pricing rule referencing it.
    """

    component_id: str
    name: str
    value: Decimal
    calculation_method: CalculationMethod = CalculationMethod.FIXED
    periodicity: Periodicity = Periodicity.MONTHLY
    component_type: str = ""
    vat_applicable: bool = False
    conditions: ConditionGroup | None = None
    from_date: date | None = None
    to_date: date | None = None

    @property
    def is_smart(self) -> bool:
        return self.conditions is not None and not self.conditions.is_empty

    def is_effective(self, as_of: date) -> bool:
        """Check if this component's validity window includes ``as_of``."""
        return is_within_window(as_of, self.from_date, self.to_date)


@dataclass(frozen=True)
class JobProfile:
    """Job reference data used to build facts and supply the base rate."""

    job_profile_id: str
    job_title: str
    base_cost: Decimal | None
    job_id: str | None = None
    skill_level_id: str | None = None
    category: str | None = None
    default_cost_components: tuple[str, ...] = ()


# =========================================================================
# Matcher results
# =========================================================================


@dataclass(frozen=True)
class AppliedComponent:
    """A cost component selected during matching, with its effective value."""

    component: CostComponent
    applied_value: Decimal
    source: str = ""

    @property
    def component_id(self) -> str:
        return self.component.component_id


@dataclass(frozen=True)
class TraceEntry:
    """One human-readable explanation line (which rule fired and why)."""

    rule_name: str
    detail: str
    rule_id: str | None = None


@dataclass(frozen=True)
class RuleMatchResult:
    """Accumulated effects of a rule-matching pass.

    ``applied_components`` preserves first-insertion order; an overwrite by
    a later rule replaces the value in place.
    """

    applied_components: tuple[AppliedComponent, ...] = ()
    markup_percent: Decimal = ZERO
    discount_percent: Decimal = ZERO
    trace: tuple[TraceEntry, ...] = ()
    matched_rule_ids: tuple[str, ...] = ()
    halted: bool = False

    def component(self, component_id: str) -> AppliedComponent | None:
        for applied in self.applied_components:
            if applied.component_id == component_id:
                return applied
        return None


# =========================================================================
# Aggregator results
# =========================================================================


@dataclass(frozen=True)
class ComponentLine:
    """Display line for one applied component in a cost breakdown."""

    component_id: str
    name: str
    applied_value: Decimal
    contribution: Decimal
    periodicity: Periodicity
    calculation_method: CalculationMethod
    component_type: str = ""
    vat_applicable: bool = False


@dataclass(frozen=True)
class CostBreakdown:
    """Costed quote line: per-unit, totals, tax and the explanation trace.

    ``taxable_subtotal`` is the part of ``subtotal`` VAT is charged on: the
    base rate always, components only when ``vat_applicable``.  It defaults
    to the whole subtotal.
    """

    base_rate: Decimal
    monthly_cost_per_unit: Decimal
    one_time_cost_per_unit: Decimal
    total_monthly_cost: Decimal
    total_one_time_cost: Decimal
    subtotal: Decimal
    quantity: int | Decimal
    duration_months: int | Decimal
    markup_percent: Decimal = ZERO
    discount_percent: Decimal = ZERO
    components: tuple[ComponentLine, ...] = ()
    trace: tuple[TraceEntry, ...] = ()
    tax_percentage: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal | None = None
    taxable_subtotal: Decimal | None = None

    def __post_init__(self) -> None:
        if self.taxable_subtotal is None:
            object.__setattr__(self, "taxable_subtotal", self.subtotal)
        if self.total_amount is None:
            object.__setattr__(self, "total_amount", self.subtotal + self.tax_amount)

    def with_tax(self, vat_rate: Decimal) -> CostBreakdown:
        """Return a copy carrying VAT on the taxable part of the subtotal."""
        tax_amount = self.taxable_subtotal * (vat_rate / HUNDRED)
        return replace(
            self,
            tax_percentage=vat_rate,
            tax_amount=tax_amount,
            total_amount=self.subtotal + tax_amount,
        )
