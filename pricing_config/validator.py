"""
Reference Data Validator (``pricing_config.validator``).

Responsibility
--------------
Cross-record checks over parsed reference data.  The parsers in
``pricing_config.loader`` reject malformed individual records; this module
looks at the collections together.

Architecture position
---------------------
**Config layer** -- load-time validation.  Called by
``pricing_services.ReferenceDataCache`` after a snapshot is parsed.  Has
no dependency on engines.

Invariants enforced
-------------------
* Rule id uniqueness -- duplicate pricing rule ids are errors.
* Component references -- ``add_cost_component`` actions and job profile
  defaults naming unknown components are warnings (the matcher skips them).
* Approval coverage -- overlapping ranges at equal priority for the same
  discount type are warnings (the first listed row wins).
* Windowed rules that can never be reached after an unconditional halting
  rule of higher priority are warnings.

Failure modes
-------------
* Errors (``ValidationResult.errors``)  -> the snapshot MUST NOT be served.
* Warnings (``ValidationResult.warnings``)  -> the snapshot may be served
  but should be reviewed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import combinations

from pricing_kernel.domain.approval import DiscountApprovalRule
from pricing_kernel.domain.pricing import (
    AddCostComponent,
    CostComponent,
    JobProfile,
    PricingRule,
)


@dataclass
class ValidationResult:
    """
    Result of reference data validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block serving but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_reference_data(
    rules: Sequence[PricingRule] = (),
    components: Sequence[CostComponent] = (),
    approval_rules: Sequence[DiscountApprovalRule] = (),
    job_profiles: Sequence[JobProfile] = (),
) -> ValidationResult:
    """
    Validate a reference data snapshot.

    Postconditions:
        - Returns a ``ValidationResult`` with errors and warnings.
    """
    result = ValidationResult()

    _validate_rule_uniqueness(rules, result)
    _validate_component_references(rules, components, job_profiles, result)
    _validate_unreachable_rules(rules, result)
    _validate_approval_overlaps(approval_rules, result)

    return result


def _validate_rule_uniqueness(rules: Sequence[PricingRule], result: ValidationResult) -> None:
    seen: set[str] = set()
    for rule in rules:
        if rule.rule_id in seen:
            result.add_error(f"Duplicate pricing rule id: {rule.rule_id}")
        seen.add(rule.rule_id)


def _validate_component_references(
    rules: Sequence[PricingRule],
    components: Sequence[CostComponent],
    job_profiles: Sequence[JobProfile],
    result: ValidationResult,
) -> None:
    """Referenced component ids should exist in the component set."""
    known = {c.component_id for c in components}
    for rule in rules:
        for action in rule.actions:
            if isinstance(action, AddCostComponent) and action.component_id not in known:
                result.add_warning(
                    f"Rule '{rule.rule_id}' adds unknown cost component "
                    f"'{action.component_id}'"
                )
    for profile in job_profiles:
        for component_id in profile.default_cost_components:
            if component_id not in known:
                result.add_warning(
                    f"Job profile '{profile.job_profile_id}' defaults to unknown "
                    f"cost component '{component_id}'"
                )


def _validate_unreachable_rules(rules: Sequence[PricingRule], result: ValidationResult) -> None:
    """An always-on halting rule shadows every lower priority rule."""
    for index, rule in enumerate(rules):
        if (
            rule.stop_if_matched
            and rule.conditions.is_empty
            and rule.from_date is None
            and rule.to_date is None
        ):
            shadowed = [r.rule_id for r in rules[index + 1:] if r.priority < rule.priority]
            if shadowed:
                result.add_warning(
                    f"Rule '{rule.rule_id}' always matches and halts; "
                    f"rules {shadowed} can never fire"
                )
            return


def _validate_approval_overlaps(
    approval_rules: Sequence[DiscountApprovalRule], result: ValidationResult
) -> None:
    active = [r for r in approval_rules if r.is_active]
    for a, b in combinations(active, 2):
        if a.discount_type != b.discount_type or a.priority != b.priority:
            continue
        if a.min_percentage < b.max_percentage and b.min_percentage < a.max_percentage:
            result.add_warning(
                f"Approval ranges ({a.min_percentage}, {a.max_percentage}] -> "
                f"{a.approver_role_id} and ({b.min_percentage}, {b.max_percentage}] -> "
                f"{b.approver_role_id} overlap for {a.discount_type.value} "
                f"at priority {a.priority}"
            )
