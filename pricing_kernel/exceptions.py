"""
Typed Exception Hierarchy for the Pricing Kernel.

===============================================================================
WHERE EXCEPTIONS ARE RAISED
===============================================================================

The evaluation hot path (condition evaluation, rule matching, cost
aggregation, approval resolution) is total: it never raises for data-shape
reasons.  Missing facts, malformed operands and dangling component
references degrade to "no match" or "no-op" and are logged.

Exceptions are raised at the boundaries where reference data ENTERS the
system -- the ingestion parsers in ``pricing_config.loader``, the
settings loader, and the reference data cache in ``pricing_services``.  A
corrupt rule is rejected once, when it is loaded, rather than silently
ignored on every evaluation.

Every exception carries:
  1. A typed class (catch by type, not by message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured attributes describing the offending record

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PricingKernelError (base)
    |
    +-- RuleDefinitionError
    |   +-- MissingRuleFieldError
    |   +-- UnknownOperatorError
    |   +-- UnknownActionTypeError
    |   +-- InvalidDateWindowError
    |   +-- InvalidConditionValueError
    |   +-- InvalidFieldValueError
    |
    +-- ApprovalMatrixError
    |   +-- InvalidApprovalRangeError
    |   +-- UnknownDiscountTypeError
    |
    +-- ReferenceDataError
    |   +-- InvalidReferenceDataError
    |   +-- UnknownJobProfileError
    |
    +-- SettingsError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Rule            | MISSING_RULE_FIELD          | Required key absent from a record
                | UNKNOWN_OPERATOR            | Condition operator not recognised
                | UNKNOWN_ACTION_TYPE         | Action type not recognised
                | INVALID_DATE_WINDOW         | from_date after to_date
                | INVALID_CONDITION_VALUE     | Operand shape wrong for the operator
                | INVALID_FIELD_VALUE         | Non-numeric amount, unknown enum value
----------------|-----------------------------|-----------------------------------------
Approval        | INVALID_APPROVAL_RANGE      | min_percentage not below max_percentage
                | UNKNOWN_DISCOUNT_TYPE       | discount_type not recognised
----------------|-----------------------------|-----------------------------------------
Reference data  | INVALID_REFERENCE_DATA      | Loaded collection failed validation
                | UNKNOWN_JOB_PROFILE         | Job profile id not in the snapshot
----------------|-----------------------------|-----------------------------------------
Settings        | SETTINGS_ERROR              | Engine settings unreadable or invalid
"""

from __future__ import annotations

from typing import Any


class PricingKernelError(Exception):
    """
    Base exception for all pricing kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "PRICING_KERNEL_ERROR"


# Rule definition exceptions


class RuleDefinitionError(PricingKernelError):
    """Base exception for malformed pricing rules and cost components."""

    code: str = "RULE_DEFINITION_ERROR"


class MissingRuleFieldError(RuleDefinitionError):
    """A required field is absent from a reference data record."""

    code: str = "MISSING_RULE_FIELD"

    def __init__(self, record_kind: str, field_name: str, record_id: Any = None):
        self.record_kind = record_kind
        self.field_name = field_name
        self.record_id = record_id
        where = f" (id={record_id})" if record_id is not None else ""
        super().__init__(
            f"{record_kind} is missing required field '{field_name}'{where}"
        )


class UnknownOperatorError(RuleDefinitionError):
    """Condition operator is not part of the predicate language."""

    code: str = "UNKNOWN_OPERATOR"

    def __init__(self, operator: Any, fact: str | None = None):
        self.operator = operator
        self.fact = fact
        super().__init__(f"Unknown condition operator {operator!r} on fact {fact!r}")


class UnknownActionTypeError(RuleDefinitionError):
    """Action type is not one of the supported rule effects."""

    code: str = "UNKNOWN_ACTION_TYPE"

    def __init__(self, action_type: Any, rule_id: Any = None):
        self.action_type = action_type
        self.rule_id = rule_id
        super().__init__(f"Unknown action type {action_type!r} in rule {rule_id!r}")


class InvalidDateWindowError(RuleDefinitionError):
    """Validity window closes before it opens."""

    code: str = "INVALID_DATE_WINDOW"

    def __init__(self, record_id: Any, from_date: Any, to_date: Any):
        self.record_id = record_id
        self.from_date = from_date
        self.to_date = to_date
        super().__init__(
            f"Record {record_id!r} has from_date {from_date} after to_date {to_date}"
        )


class InvalidConditionValueError(RuleDefinitionError):
    """Condition operand has the wrong shape for its operator."""

    code: str = "INVALID_CONDITION_VALUE"

    def __init__(self, fact: str, operator: str, value: Any, reason: str):
        self.fact = fact
        self.operator = operator
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid value {value!r} for {operator} on {fact}: {reason}"
        )


class InvalidFieldValueError(RuleDefinitionError):
    """A field holds a value of the wrong type or outside its enum."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, record_kind: str, field_name: str, value: Any, record_id: Any = None):
        self.record_kind = record_kind
        self.field_name = field_name
        self.value = value
        self.record_id = record_id
        where = f" (id={record_id})" if record_id is not None else ""
        super().__init__(
            f"{record_kind} field '{field_name}' has invalid value {value!r}{where}"
        )


# Approval matrix exceptions


class ApprovalMatrixError(PricingKernelError):
    """Base exception for malformed discount approval rules."""

    code: str = "APPROVAL_MATRIX_ERROR"


class InvalidApprovalRangeError(ApprovalMatrixError):
    """Approval range lower bound is not below its upper bound."""

    code: str = "INVALID_APPROVAL_RANGE"

    def __init__(self, min_percentage: Any, max_percentage: Any, approver_role_id: Any):
        self.min_percentage = min_percentage
        self.max_percentage = max_percentage
        self.approver_role_id = approver_role_id
        super().__init__(
            f"Approval range ({min_percentage}, {max_percentage}] for role "
            f"{approver_role_id!r} is empty or inverted"
        )


class UnknownDiscountTypeError(ApprovalMatrixError):
    """discount_type is neither line_item nor overall_quote."""

    code: str = "UNKNOWN_DISCOUNT_TYPE"

    def __init__(self, discount_type: Any):
        self.discount_type = discount_type
        super().__init__(f"Unknown discount type {discount_type!r}")


# Reference data exceptions


class ReferenceDataError(PricingKernelError):
    """Base exception for reference data snapshots served to services."""

    code: str = "REFERENCE_DATA_ERROR"


class InvalidReferenceDataError(ReferenceDataError):
    """A loaded reference data collection failed validation."""

    code: str = "INVALID_REFERENCE_DATA"

    def __init__(self, collection: str, errors: list[str]):
        self.collection = collection
        self.errors = errors
        super().__init__(
            f"Reference data '{collection}' failed validation: {'; '.join(errors)}"
        )


class UnknownJobProfileError(ReferenceDataError):
    """No job profile with the requested id exists in the snapshot."""

    code: str = "UNKNOWN_JOB_PROFILE"

    def __init__(self, job_profile_id: Any):
        self.job_profile_id = job_profile_id
        super().__init__(f"Unknown job profile {job_profile_id!r}")


# Settings exceptions


class SettingsError(PricingKernelError):
    """Engine settings could not be loaded or failed validation."""

    code: str = "SETTINGS_ERROR"

    def __init__(self, setting: str, value: Any, reason: str):
        self.setting = setting
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid setting {setting}={value!r}: {reason}")
