"""
QuotePricingService -- prices quote lines and routes discounts.

Responsibility:
    Imperative shell around the pure engines.  Pulls one snapshot of
    reference data from the ``ReferenceDataCache``, derives ``as_of`` from
    the injected clock, applies configured VAT, and applies the approval
    fallback policy to uncovered discounts.

Architecture position:
    Services -- may import pricing_kernel, pricing_engines and
    pricing_config.  Engines never import services.

Failure modes:
    - ``UnknownJobProfileError`` when the job profile id is not in the
      snapshot.
    - Ingestion errors propagate from the cache on first load.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from pricing_config.schema import EngineSettings
from pricing_engines.approval import classify_discount
from pricing_engines.line_item import evaluate_line_item
from pricing_engines.quote import (
    apply_quote_discount,
    calculate_quote_totals,
    effective_discount_percentage,
)
from pricing_kernel.domain.approval import ApprovalOutcome, ApprovalRouting, DiscountType
from pricing_kernel.domain.clock import Clock, SystemClock
from pricing_kernel.domain.pricing import CostBreakdown
from pricing_kernel.domain.quote import (
    LineDiscountState,
    LineItemSelections,
    QuoteDiscountState,
    QuoteLine,
    QuoteTotals,
)
from pricing_kernel.exceptions import UnknownJobProfileError
from pricing_kernel.logging_config import LogContext, get_logger
from pricing_services.reference_cache import ReferenceDataCache

logger = get_logger("services.quote_pricing")


class QuotePricingService:
    """
    Prices quote lines against cached reference data.

    Contract:
        ``price_line_item`` returns a ``CostBreakdown`` for the evaluation
        date given by the clock.  ``route_discount`` returns an
        ``ApprovalRouting``; an uncovered discount is routed to
        ``settings.approval_fallback_role_id`` when one is configured.

    Non-goals:
        - Does NOT persist quotes or approval requests.
        - Does NOT notify approvers.
    """

    def __init__(
        self,
        cache: ReferenceDataCache,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
    ):
        self._cache = cache
        self._settings = settings or EngineSettings()
        self._clock = clock or SystemClock()

    def price_line_item(
        self,
        job_profile_id: str,
        selections: LineItemSelections,
        lead: Mapping[str, Any] | None = None,
        quote_id: str | None = None,
        line_item_id: str | None = None,
    ) -> CostBreakdown:
        """
        Cost one quote line.

        Raises:
            UnknownJobProfileError: if ``job_profile_id`` is not cached.
        """
        with LogContext.bind(quote_id=quote_id, line_item_id=line_item_id):
            profile = self._cache.job_profile(job_profile_id)
            if profile is None:
                logger.warning(
                    "job_profile_not_found", extra={"job_profile_id": job_profile_id}
                )
                raise UnknownJobProfileError(job_profile_id)

            as_of = self._clock.today()
            breakdown = evaluate_line_item(
                profile,
                selections,
                self._cache.pricing_rules(),
                self._cache.cost_components(),
                as_of,
                lead=lead,
                vat_rate=self._settings.vat_rate,
            )
            logger.info(
                "line_item_priced_by_service",
                extra={
                    "job_profile_id": job_profile_id,
                    "as_of": as_of,
                    "subtotal": breakdown.subtotal,
                    "currency": self._settings.currency,
                },
            )
            return breakdown

    def route_discount(
        self,
        discount_percent: Decimal | int | str,
        discount_type: DiscountType | str,
        quote_id: str | None = None,
    ) -> ApprovalRouting:
        """Classify a discount and apply the fallback approver policy."""
        with LogContext.bind(quote_id=quote_id):
            routing = classify_discount(
                discount_percent, discount_type, self._cache.approval_rules()
            )
            fallback = self._settings.approval_fallback_role_id
            if routing.outcome is ApprovalOutcome.UNCOVERED and fallback:
                routing = ApprovalRouting(
                    outcome=ApprovalOutcome.ROUTED,
                    discount_percent=routing.discount_percent,
                    discount_type=routing.discount_type,
                    approver_role_id=fallback,
                    reason=f"{routing.reason}; escalated to fallback role {fallback}",
                )
            logger.info(
                "discount_routed",
                extra={
                    "outcome": routing.outcome.value,
                    "discount_percent": routing.discount_percent,
                    "discount_type": routing.discount_type.value,
                    "approver_role_id": routing.approver_role_id,
                },
            )
            return routing

    def price_quote(
        self,
        breakdowns: Sequence[CostBreakdown],
        line_states: Sequence[LineDiscountState],
        quote_state: QuoteDiscountState,
    ) -> tuple[tuple[QuoteLine, ...], QuoteTotals]:
        """Apply each line's effective discount and VAT, then total the quote."""
        if len(breakdowns) != len(line_states):
            raise ValueError("breakdowns and line_states must be the same length")
        vat_rate = self._settings.vat_rate
        lines = tuple(
            apply_quote_discount(
                breakdown, effective_discount_percentage(state, quote_state), vat_rate
            )
            for breakdown, state in zip(breakdowns, line_states)
        )
        return lines, calculate_quote_totals(lines)
