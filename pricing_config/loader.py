"""
Reference Data and Settings Loader (``pricing_config.loader``).

Responsibility
--------------
Turns already-loaded reference data records (plain mappings, as returned
by the persistence layer) into frozen ``pricing_kernel.domain`` objects,
and loads ``EngineSettings`` from YAML plus environment overrides.

This is the ingestion boundary: every structural check the engines rely
on happens here, once, so the evaluation hot path never has to raise.

Architecture position
---------------------
**Config layer** -- boundary tooling.  Consumed by ``pricing_services``
and by callers that hand collections to the engines.  Depends on
``pricing_kernel`` only; never on ``pricing_engines``.

Invariants enforced
-------------------
* Operators and action types are closed sets: unknown values raise
  ``UnknownOperatorError`` / ``UnknownActionTypeError``.
* Required fields raise ``MissingRuleFieldError`` when absent.
* Numeric fields are parsed to ``Decimal``; bad values raise
  ``InvalidFieldValueError``.
* Flags accept bools, 0/1 and "true"/"false"; window dates accept dates
  and ISO strings.  Anything else raises ``InvalidFieldValueError``.
* Validity windows must not be inverted (``InvalidDateWindowError``);
  approval ranges must not be empty or inverted (``InvalidApprovalRangeError``).
* ``order_rules`` sorts by descending priority with a stable tie-break,
  the ordering ``pricing_engines.matcher`` requires of its callers.

Failure modes
-------------
* Missing YAML settings file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid settings values  -> ``SettingsError``.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from pricing_config.schema import EngineSettings
from pricing_kernel.domain.approval import DiscountApprovalRule, DiscountType
from pricing_kernel.domain.pricing import (
    NUMERIC_OPERATORS,
    ActionType,
    AddCostComponent,
    ApplyDiscountPercentage,
    ApplyMarkupPercentage,
    CalculationMethod,
    Condition,
    ConditionGroup,
    ConditionOperator,
    CostComponent,
    JobProfile,
    Periodicity,
    PricingRule,
    RuleAction,
)
from pricing_kernel.domain.quote import LineItemSelections
from pricing_kernel.exceptions import (
    InvalidApprovalRangeError,
    InvalidConditionValueError,
    InvalidDateWindowError,
    InvalidFieldValueError,
    MissingRuleFieldError,
    SettingsError,
    UnknownActionTypeError,
    UnknownDiscountTypeError,
    UnknownOperatorError,
)
from pricing_kernel.logging_config import get_logger

logger = get_logger("config.loader")

ENV_PREFIX = "PRICING_"


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> date | None:
    """
    Parse an optional date (date object, datetime, or ISO string).

    Postconditions:
        - Returns None for None or empty strings.
    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, record_kind: str, field_name: str, record_id: Any = None) -> Decimal:
    """Parse a number to Decimal or raise ``InvalidFieldValueError``."""
    if isinstance(value, bool) or value is None:
        raise InvalidFieldValueError(record_kind, field_name, value, record_id)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidFieldValueError(record_kind, field_name, value, record_id) from None
    if not number.is_finite():
        raise InvalidFieldValueError(record_kind, field_name, value, record_id)
    return number


_TRUE_STRINGS = frozenset({"true", "1"})
_FALSE_STRINGS = frozenset({"false", "0"})


def parse_bool(
    value: Any, record_kind: str, field_name: str, record_id: Any = None, default: bool = False
) -> bool:
    """
    Parse a flag stored as a bool, 0/1 or "true"/"false" (any case).

    None yields ``default``.  Anything else raises ``InvalidFieldValueError``
    so a stored "false" can never read as truthy.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidFieldValueError(record_kind, field_name, value, record_id)


def _priority(value: Any, record_kind: str, record_id: Any) -> int | Decimal:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    number = parse_decimal(value, record_kind, "priority", record_id)
    return int(number) if number == number.to_integral_value() else number


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    try:
        return Decimal(str(value).strip()).is_finite()
    except InvalidOperation:
        return False


def _require(data: Mapping[str, Any], key: str, record_kind: str, record_id: Any = None) -> Any:
    if data.get(key) is None:
        raise MissingRuleFieldError(record_kind, key, record_id)
    return data[key]


def _date_field(data: Mapping[str, Any], key: str, record_kind: str, record_id: Any) -> date | None:
    value = data.get(key)
    try:
        return parse_date(value)
    except ValueError:
        raise InvalidFieldValueError(record_kind, key, value, record_id) from None


def _window(
    data: Mapping[str, Any], record_kind: str, record_id: Any
) -> tuple[date | None, date | None]:
    from_date = _date_field(data, "from_date", record_kind, record_id)
    to_date = _date_field(data, "to_date", record_kind, record_id)
    if from_date is not None and to_date is not None and from_date > to_date:
        raise InvalidDateWindowError(record_id, from_date, to_date)
    return from_date, to_date


def _enum(enum_type: Any, value: Any, record_kind: str, field_name: str, record_id: Any) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidFieldValueError(record_kind, field_name, value, record_id) from None


# ---------------------------------------------------------------------------
# Conditions and actions
# ---------------------------------------------------------------------------


def parse_condition(data: Mapping[str, Any]) -> Condition:
    """
    Parse a ``Condition`` from ``{fact, operator, value}``.

    Raises:
        MissingRuleFieldError: if ``fact`` or ``operator`` is absent.
        UnknownOperatorError: if ``operator`` is not recognised.
        InvalidConditionValueError: if a ``between`` value is not a pair, or
            a numeric operator is given a non-numeric operand.
    """
    fact = _require(data, "fact", "condition")
    raw_operator = _require(data, "operator", "condition")
    try:
        operator = ConditionOperator(raw_operator)
    except ValueError:
        raise UnknownOperatorError(raw_operator, fact) from None

    value = data.get("value")
    if operator is ConditionOperator.BETWEEN:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise InvalidConditionValueError(fact, operator.value, value, "expected [low, high]")
        value = tuple(value)
    elif isinstance(value, list):
        value = tuple(value)

    if operator in NUMERIC_OPERATORS:
        for operand in (value if operator is ConditionOperator.BETWEEN else (value,)):
            if not _is_number(operand):
                raise InvalidConditionValueError(fact, operator.value, value, "expected a number")

    return Condition(fact=fact, operator=operator, value=value)


def parse_condition_group(data: Mapping[str, Any] | None) -> ConditionGroup:
    """Parse ``{all: [...]}``.  An absent group or list yields an empty group."""
    if not data:
        return ConditionGroup()
    return ConditionGroup(all_of=tuple(parse_condition(c) for c in data.get("all") or ()))


def parse_action(data: Mapping[str, Any], rule_id: Any = None) -> RuleAction:
    """
    Parse one rule action ``{type, params}`` into its tagged variant.

    Raises:
        UnknownActionTypeError: if ``type`` is not a supported action.
        MissingRuleFieldError: if ``add_cost_component`` lacks a component id.
        InvalidFieldValueError: if a ``value`` param is not numeric.
    """
    raw_type = data.get("type")
    try:
        action_type = ActionType(raw_type)
    except ValueError:
        raise UnknownActionTypeError(raw_type, rule_id) from None

    params = data.get("params") or {}
    raw_value = params.get("value")

    if action_type is ActionType.ADD_COST_COMPONENT:
        component_id = params.get("component_id")
        if component_id is None:
            raise MissingRuleFieldError("add_cost_component action", "params.component_id", rule_id)
        value = None
        if raw_value is not None and raw_value != "":
            value = parse_decimal(raw_value, "add_cost_component action", "params.value", rule_id)
        return AddCostComponent(component_id=str(component_id), value=value)

    value = Decimal("0")
    if raw_value is not None and raw_value != "":
        value = parse_decimal(raw_value, f"{action_type.value} action", "params.value", rule_id)
    if action_type is ActionType.APPLY_MARKUP_PERCENTAGE:
        return ApplyMarkupPercentage(value=value)
    return ApplyDiscountPercentage(value=value)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def parse_pricing_rule(data: Mapping[str, Any]) -> PricingRule:
    """
    Parse a ``PricingRule`` from a persisted rule record.

    Preconditions:
        - ``data`` must contain ``id``.
    Postconditions:
        - Returns a frozen ``PricingRule`` whose conditions and actions are
          fully typed.
    Raises:
        MissingRuleFieldError, UnknownOperatorError, UnknownActionTypeError,
        InvalidDateWindowError, InvalidConditionValueError,
        InvalidFieldValueError.
    """
    rule_id = str(_require(data, "id", "pricing rule"))
    from_date, to_date = _window(data, "pricing rule", rule_id)
    return PricingRule(
        rule_id=rule_id,
        name=data.get("name") or "",
        priority=_priority(data.get("priority", 0), "pricing rule", rule_id),
        conditions=parse_condition_group(data.get("conditions")),
        actions=tuple(parse_action(a, rule_id) for a in data.get("actions") or ()),
        stop_if_matched=parse_bool(
            data.get("stop_if_matched"), "pricing rule", "stop_if_matched", rule_id, default=False
        ),
        from_date=from_date,
        to_date=to_date,
    )


def parse_cost_component(data: Mapping[str, Any]) -> CostComponent:
    """Parse a ``CostComponent`` (optionally a smart component)."""
    component_id = str(_require(data, "id", "cost component"))
    from_date, to_date = _window(data, "cost component", component_id)
    conditions = data.get("conditions")
    return CostComponent(
        component_id=component_id,
        name=data.get("name") or "",
        value=parse_decimal(data.get("value", 0) or 0, "cost component", "value", component_id),
        calculation_method=_enum(
            CalculationMethod, data.get("calculation_method", "fixed"),
            "cost component", "calculation_method", component_id,
        ),
        periodicity=_enum(
            Periodicity, data.get("periodicity", "monthly"),
            "cost component", "periodicity", component_id,
        ),
        component_type=data.get("type") or "",
        vat_applicable=parse_bool(
            data.get("vat_applicable"), "cost component", "vat_applicable", component_id, default=False
        ),
        conditions=parse_condition_group(conditions) if conditions else None,
        from_date=from_date,
        to_date=to_date,
    )


def parse_approval_rule(data: Mapping[str, Any]) -> DiscountApprovalRule:
    """
    Parse one discount approval matrix row.

    Raises:
        UnknownDiscountTypeError: if ``discount_type`` is not recognised.
        MissingRuleFieldError: if a bound or the approver role is absent.
        InvalidApprovalRangeError: if ``min_percentage >= max_percentage``
            (an empty range covers nothing).
    """
    rule_id = data.get("id")
    raw_type = data.get("discount_type")
    try:
        discount_type = DiscountType(raw_type)
    except ValueError:
        raise UnknownDiscountTypeError(raw_type) from None

    kind = "discount approval rule"
    role = str(_require(data, "approver_role_id", kind, rule_id))
    low = parse_decimal(_require(data, "min_percentage", kind, rule_id), kind, "min_percentage", rule_id)
    high = parse_decimal(_require(data, "max_percentage", kind, rule_id), kind, "max_percentage", rule_id)
    if low >= high:
        raise InvalidApprovalRangeError(low, high, role)

    return DiscountApprovalRule(
        discount_type=discount_type,
        min_percentage=low,
        max_percentage=high,
        approver_role_id=role,
        priority=_priority(data.get("priority", 0), kind, rule_id),
        is_active=parse_bool(data.get("is_active"), kind, "is_active", rule_id, default=True),
        rule_id=str(rule_id) if rule_id is not None else None,
    )


def parse_job_profile(data: Mapping[str, Any]) -> JobProfile:
    """Parse a ``JobProfile``.  A missing ``base_cost`` is kept as None."""
    profile_id = str(_require(data, "id", "job profile"))
    base_cost = data.get("base_cost")
    return JobProfile(
        job_profile_id=profile_id,
        job_title=data.get("job_title") or "",
        base_cost=(
            parse_decimal(base_cost, "job profile", "base_cost", profile_id)
            if base_cost is not None else None
        ),
        job_id=data.get("job_id"),
        skill_level_id=data.get("skill_level_id"),
        category=data.get("category"),
        default_cost_components=tuple(str(c) for c in data.get("default_cost_components") or ()),
    )


def parse_selections(data: Mapping[str, Any], settings: EngineSettings | None = None) -> LineItemSelections:
    """
    Parse line item selections from a form/API payload.

    Unparseable or zero quantity / duration fall back to the configured
    defaults; any other value (including negatives) is kept as given.
    """
    settings = settings or EngineSettings()
    known = {"nationality", "location", "quantity", "contract_duration", "nationality_cost_components"}
    return LineItemSelections(
        nationality=data.get("nationality"),
        location=data.get("location"),
        quantity=_int_or_default(data.get("quantity"), settings.default_quantity),
        contract_duration=_int_or_default(data.get("contract_duration"), settings.default_contract_duration),
        nationality_cost_components=tuple(
            str(c) for c in data.get("nationality_cost_components") or ()
        ),
        extra={k: v for k, v in data.items() if k not in known},
    )


def _int_or_default(value: Any, default: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed or default


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def order_rules(rules: Iterable[PricingRule]) -> tuple[PricingRule, ...]:
    """Sort rules by descending priority, keeping input order for ties."""
    return tuple(sorted(rules, key=lambda r: r.priority, reverse=True))


def parse_pricing_rules(records: Iterable[Mapping[str, Any]]) -> tuple[PricingRule, ...]:
    """Parse and order a pricing rule collection."""
    rules = order_rules(parse_pricing_rule(r) for r in records)
    logger.debug("pricing_rules_loaded", extra={"rule_count": len(rules)})
    return rules


def parse_cost_components(records: Iterable[Mapping[str, Any]]) -> tuple[CostComponent, ...]:
    return tuple(parse_cost_component(r) for r in records)


def parse_approval_rules(records: Iterable[Mapping[str, Any]]) -> tuple[DiscountApprovalRule, ...]:
    return tuple(parse_approval_rule(r) for r in records)


def parse_job_profiles(records: Iterable[Mapping[str, Any]]) -> tuple[JobProfile, ...]:
    return tuple(parse_job_profile(r) for r in records)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_settings(data: Mapping[str, Any]) -> EngineSettings:
    """
    Parse ``EngineSettings`` from a mapping (the ``pricing`` section of a
    YAML file, or the whole file if it has no such section).

    Raises:
        SettingsError: on non-numeric or out-of-range values.
    """
    section = data.get("pricing", data)
    defaults = EngineSettings()

    try:
        vat_rate = Decimal(str(section.get("vat_rate", defaults.vat_rate)))
    except InvalidOperation:
        raise SettingsError("vat_rate", section.get("vat_rate"), "not a number") from None
    if not vat_rate.is_finite() or vat_rate < 0:
        raise SettingsError("vat_rate", vat_rate, "must be a non-negative number")

    currency = str(section.get("currency", defaults.currency)).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise SettingsError("currency", currency, "must be a three-letter code")

    default_quantity = _positive_int(section, "default_quantity", defaults.default_quantity)
    default_duration = _positive_int(
        section, "default_contract_duration", defaults.default_contract_duration
    )
    fallback = section.get("approval_fallback_role_id")

    return EngineSettings(
        vat_rate=vat_rate,
        currency=currency,
        default_quantity=default_quantity,
        default_contract_duration=default_duration,
        approval_fallback_role_id=str(fallback) if fallback else None,
    )


def _positive_int(section: Mapping[str, Any], key: str, default: int) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SettingsError(key, raw, "not an integer") from None
    if value < 1:
        raise SettingsError(key, value, "must be at least 1")
    return value


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineSettings:
    """
    Load engine settings from an optional YAML file, then apply
    ``PRICING_*`` environment overrides (``PRICING_VAT_RATE``,
    ``PRICING_CURRENCY``, ``PRICING_DEFAULT_QUANTITY``,
    ``PRICING_DEFAULT_CONTRACT_DURATION``,
    ``PRICING_APPROVAL_FALLBACK_ROLE_ID``).
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    if path is not None:
        raw = load_yaml_file(path)
        data = dict(raw.get("pricing", raw))

    for key in (
        "vat_rate",
        "currency",
        "default_quantity",
        "default_contract_duration",
        "approval_fallback_role_id",
    ):
        env_value = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            data[key] = env_value

    settings = parse_settings(data)
    logger.info(
        "settings_loaded",
        extra={
            "source": str(path) if path is not None else "defaults",
            "checksum": compute_checksum(data),
        },
    )
    return settings


def compute_checksum(data: Mapping[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
