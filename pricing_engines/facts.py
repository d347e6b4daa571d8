"""
pricing_engines.facts -- Fact builder for line-item pricing.

Responsibility:
    Assemble the immutable ``FactRecord`` a line item's rules are evaluated
    against, from the selected job profile, the client's selections and the
    optional lead/account context.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Selections are copied verbatim; quantity and duration are not
      clamped or defaulted here (callers validate input).
    - The returned record shares no mutable state with its inputs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pricing_kernel.domain.facts import FactRecord, LineItemFacts
from pricing_kernel.domain.pricing import JobProfile
from pricing_kernel.domain.quote import LineItemSelections


def build_line_item_facts(
    job_profile: JobProfile,
    selections: LineItemSelections,
    lead: Mapping[str, Any] | None = None,
) -> FactRecord:
    """Build the fact record for one quote line.

    Args:
        job_profile: The selected job profile (supplies job attributes and
            ``base_cost``).
        selections: Nationality, location, quantity and duration chosen
            for the line; ``selections.extra`` becomes top-level facts.
        lead: Optional lead/account attributes, addressable as ``lead.*``.

    Returns:
        A new FactRecord.
    """
    line_item = LineItemFacts(
        job_profile_id=job_profile.job_profile_id,
        job_id=job_profile.job_id,
        skill_level_id=job_profile.skill_level_id,
        job_category=job_profile.category,
        job_title=job_profile.job_title,
        nationality=selections.nationality,
        location=selections.location,
        quantity=selections.quantity,
        contract_duration=selections.contract_duration,
    )
    return FactRecord(
        line_item=line_item,
        base_cost=job_profile.base_cost,
        lead=dict(lead or {}),
        extra=dict(selections.extra),
    )
