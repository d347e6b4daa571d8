"""
pricing_config -- reference data ingestion and engine settings.

Responsibility:
    Turns persisted reference data records (pricing rules, cost
    components, job profiles, discount approval rows) into frozen kernel
    domain objects, validates them as a set, and loads ``EngineSettings``
    from YAML with ``PRICING_*`` environment overrides.

Architecture position:
    Configuration -- sits above ``pricing_kernel`` and below
    ``pricing_services``.  The kernel and the engines MUST NEVER import
    from ``pricing_config``.

Failure modes:
    - ``RuleDefinitionError`` / ``ApprovalMatrixError`` subclasses for
      malformed records.
    - ``SettingsError`` for invalid settings values.
"""

from pricing_config.loader import (
    compute_checksum,
    load_settings,
    order_rules,
    parse_action,
    parse_approval_rule,
    parse_approval_rules,
    parse_condition,
    parse_condition_group,
    parse_cost_component,
    parse_cost_components,
    parse_job_profile,
    parse_job_profiles,
    parse_pricing_rule,
    parse_pricing_rules,
    parse_selections,
    parse_settings,
)
from pricing_config.schema import EngineSettings
from pricing_config.validator import ValidationResult, validate_reference_data

__all__ = [
    "EngineSettings",
    "ValidationResult",
    "compute_checksum",
    "load_settings",
    "order_rules",
    "parse_action",
    "parse_approval_rule",
    "parse_approval_rules",
    "parse_condition",
    "parse_condition_group",
    "parse_cost_component",
    "parse_cost_components",
    "parse_job_profile",
    "parse_job_profiles",
    "parse_pricing_rule",
    "parse_pricing_rules",
    "parse_selections",
    "parse_settings",
    "validate_reference_data",
]
