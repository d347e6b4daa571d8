"""
pricing_engines.conditions -- Pure condition-group evaluator.

Responsibility:
    Decide whether a condition group holds for a fact record.  This is the
    predicate language shared by pricing rules and smart cost components.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel/domain types.

Invariants enforced:
    - An absent or empty group always holds.
    - Groups are pure conjunctions; evaluation stops at the first failing
      condition.
    - Total: no operator, operand or fact shape makes this module raise.
      Missing facts, non-numeric operands to numeric operators and unknown
      operators all resolve to "condition fails".

Operator semantics:
    equal / not_equal      loose equality: numeric strings compare equal to
                           numbers, booleans compare as 1/0.
    greater_than ...       both sides parsed as Decimal; non-numeric fails.
    between                inclusive ``[low, high]``; all three parsed.
    in                     tuple/list value or comma-separated string;
                           compared as strings.
    contains / starts_with string test after stringifying both sides.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from pricing_kernel.domain.facts import FactRecord
from pricing_kernel.domain.pricing import Condition, ConditionGroup, ConditionOperator
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.conditions")


def evaluate_conditions(group: ConditionGroup | None, facts: FactRecord) -> bool:
    """Return True if every condition in ``group`` holds for ``facts``.

    Args:
        group: The condition group (None = unconditional).
        facts: The fact record for this evaluation.
    """
    if group is None or group.is_empty:
        return True
    for condition in group.all_of:
        if not evaluate_condition(condition, facts):
            return False
    return True


def evaluate_condition(condition: Condition, facts: FactRecord) -> bool:
    """Evaluate a single condition.  Never raises."""
    fact_value = facts.lookup(condition.fact)
    if fact_value is None:
        return False

    operator = _coerce_operator(condition.operator)
    if operator is None:
        logger.warning(
            "unknown_operator",
            extra={"operator": str(condition.operator), "fact": condition.fact},
        )
        return False

    expected = condition.value
    match operator:
        case ConditionOperator.EQUAL:
            return loose_equals(fact_value, expected)
        case ConditionOperator.NOT_EQUAL:
            return not loose_equals(fact_value, expected)
        case ConditionOperator.GREATER_THAN:
            return _compare(fact_value, expected, lambda a, b: a > b)
        case ConditionOperator.LESS_THAN:
            return _compare(fact_value, expected, lambda a, b: a < b)
        case ConditionOperator.GREATER_THAN_OR_EQUAL:
            return _compare(fact_value, expected, lambda a, b: a >= b)
        case ConditionOperator.LESS_THAN_OR_EQUAL:
            return _compare(fact_value, expected, lambda a, b: a <= b)
        case ConditionOperator.BETWEEN:
            return _between(fact_value, expected)
        case ConditionOperator.IN:
            return stringify(fact_value) in _membership_list(expected)
        case ConditionOperator.CONTAINS:
            return stringify(expected) in stringify(fact_value)
        case ConditionOperator.STARTS_WITH:
            return stringify(fact_value).startswith(stringify(expected))
    return False


# ---------------------------------------------------------------------------
# Operand coercion
# ---------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal | None:
    """Parse a numeric operand; None for anything non-numeric or non-finite."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def stringify(value: Any) -> str:
    """Render a fact or operand the way it is stored in reference data."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value.is_finite():
        if value == value.to_integral_value():
            return str(int(value))
        return str(value.normalize())
    return str(value)


def loose_equals(left: Any, right: Any) -> bool:
    """Type-coercing equality for mixed string/number reference data."""
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    left_num = _loose_number(left)
    right_num = _loose_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    # sNaN signals on ==
    if _is_signaling(left) or _is_signaling(right):
        return False
    return left == right


def _is_signaling(value: Any) -> bool:
    return isinstance(value, Decimal) and value.is_snan()


def _loose_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, str) and not value.strip():
        return Decimal(0)
    return to_decimal(value)


def _coerce_operator(operator: Any) -> ConditionOperator | None:
    if isinstance(operator, ConditionOperator):
        return operator
    try:
        return ConditionOperator(operator)
    except ValueError:
        return None


def _compare(fact_value: Any, expected: Any, op: Any) -> bool:
    left = to_decimal(fact_value)
    right = to_decimal(expected)
    if left is None or right is None:
        return False
    return op(left, right)


def _between(fact_value: Any, bounds: Any) -> bool:
    if not isinstance(bounds, Sequence) or isinstance(bounds, str) or len(bounds) != 2:
        return False
    low = to_decimal(bounds[0])
    high = to_decimal(bounds[1])
    value = to_decimal(fact_value)
    if low is None or high is None or value is None:
        return False
    return low <= value <= high


def _membership_list(expected: Any) -> list[str]:
    if isinstance(expected, (list, tuple, set, frozenset)):
        return [stringify(item) for item in expected]
    return [part.strip() for part in stringify(expected).split(",")]
