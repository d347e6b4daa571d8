"""
ReferenceDataCache -- caller-owned snapshot of pricing reference data.

Responsibility:
    Loads the four reference collections (pricing rules, cost components,
    job profiles, discount approval rows) through caller-supplied loader
    callables, parses them into frozen domain objects, and memoizes the
    result until explicitly invalidated.

Architecture position:
    Services -- imperative shell.  Owned by whoever wires the services
    together and passed by reference; there is no module-level cache.

Invariants enforced:
    - One snapshot: every accessor returns an immutable tuple, so a caller
      that reads a collection once evaluates against exactly that data even
      if the cache is invalidated mid-evaluation.
    - Pricing rules are served ordered by descending priority.
    - Duplicate pricing rule ids reject the rule collection.

Failure modes:
    - ``RuleDefinitionError`` / ``ApprovalMatrixError`` from the parsers
      when a loaded record is malformed.
    - ``InvalidReferenceDataError`` when a collection fails validation.
    - ``KeyError`` from ``invalidate(name)`` for an unknown collection.

Usage:
    cache = ReferenceDataCache(
        pricing_rules=lambda: repo.rules(),
        cost_components=lambda: repo.components(),
        job_profiles=lambda: repo.job_profiles(),
        approval_rules=lambda: repo.approval_matrix(),
    )
    cache.pricing_rules()
    cache.invalidate("pricing_rules")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pricing_config.loader import (
    parse_approval_rules,
    parse_cost_components,
    parse_job_profiles,
    parse_pricing_rules,
)
from pricing_config.validator import ValidationResult, validate_reference_data
from pricing_kernel.domain.approval import DiscountApprovalRule
from pricing_kernel.domain.pricing import CostComponent, JobProfile, PricingRule
from pricing_kernel.exceptions import InvalidReferenceDataError
from pricing_kernel.logging_config import get_logger

logger = get_logger("services.reference_cache")

Loader = Callable[[], Iterable[Mapping[str, Any]]]

PRICING_RULES = "pricing_rules"
COST_COMPONENTS = "cost_components"
JOB_PROFILES = "job_profiles"
APPROVAL_RULES = "approval_rules"


def _no_records() -> tuple[Mapping[str, Any], ...]:
    return ()


class ReferenceDataCache:
    """
    Memoizing holder of parsed reference collections.

    Contract:
        Each collection is loaded on first access and served from memory
        until ``invalidate()`` drops it.  Collections without a loader are
        empty.

    Non-goals:
        - Does NOT expire entries on a timer; invalidation is explicit.
        - Does NOT write reference data back anywhere.
    """

    def __init__(
        self,
        pricing_rules: Loader | None = None,
        cost_components: Loader | None = None,
        job_profiles: Loader | None = None,
        approval_rules: Loader | None = None,
    ):
        self._loaders: dict[str, Loader] = {
            PRICING_RULES: pricing_rules or _no_records,
            COST_COMPONENTS: cost_components or _no_records,
            JOB_PROFILES: job_profiles or _no_records,
            APPROVAL_RULES: approval_rules or _no_records,
        }
        self._parsers: dict[str, Callable[[Iterable[Mapping[str, Any]]], tuple]] = {
            PRICING_RULES: parse_pricing_rules,
            COST_COMPONENTS: parse_cost_components,
            JOB_PROFILES: parse_job_profiles,
            APPROVAL_RULES: parse_approval_rules,
        }
        self._snapshot: dict[str, tuple] = {}

    def pricing_rules(self) -> tuple[PricingRule, ...]:
        return self._get(PRICING_RULES)

    def cost_components(self) -> tuple[CostComponent, ...]:
        return self._get(COST_COMPONENTS)

    def job_profiles(self) -> tuple[JobProfile, ...]:
        return self._get(JOB_PROFILES)

    def approval_rules(self) -> tuple[DiscountApprovalRule, ...]:
        return self._get(APPROVAL_RULES)

    def job_profile(self, job_profile_id: str) -> JobProfile | None:
        """Look up one job profile by id in the current snapshot."""
        for profile in self.job_profiles():
            if profile.job_profile_id == job_profile_id:
                return profile
        return None

    def is_loaded(self, name: str) -> bool:
        return name in self._snapshot

    def invalidate(self, name: str | None = None) -> None:
        """Drop one collection (or all of them when ``name`` is None)."""
        if name is None:
            self._snapshot.clear()
            logger.info("reference_cache_invalidated", extra={"collection": "all"})
            return
        if name not in self._loaders:
            raise KeyError(name)
        self._snapshot.pop(name, None)
        logger.info("reference_cache_invalidated", extra={"collection": name})

    def validate(self) -> ValidationResult:
        """Cross-check all collections, loading any that are not cached."""
        result = validate_reference_data(
            rules=self.pricing_rules(),
            components=self.cost_components(),
            approval_rules=self.approval_rules(),
            job_profiles=self.job_profiles(),
        )
        for warning in result.warnings:
            logger.warning("reference_data_warning", extra={"detail": warning})
        return result

    def _get(self, name: str) -> tuple:
        cached = self._snapshot.get(name)
        if cached is not None:
            return cached

        records = self._parsers[name](self._loaders[name]())
        if name == PRICING_RULES:
            result = validate_reference_data(rules=records)
            if not result.is_valid:
                logger.error(
                    "reference_data_rejected",
                    extra={"collection": name, "errors": result.errors},
                )
                raise InvalidReferenceDataError(name, result.errors)

        self._snapshot[name] = records
        logger.info(
            "reference_cache_loaded",
            extra={"collection": name, "record_count": len(records)},
        )
        return records
