"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- Persistence
- Time/clock (except the Clock abstraction itself)
- I/O

All domain objects are immutable and deterministic.
"""

from pricing_kernel.domain.approval import (
    ApprovalOutcome,
    ApprovalRouting,
    DiscountApprovalRule,
    DiscountType,
)
from pricing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pricing_kernel.domain.facts import FactRecord, LineItemFacts
from pricing_kernel.domain.pricing import (
    NUMERIC_OPERATORS,
    ActionType,
    AddCostComponent,
    AppliedComponent,
    ApplyDiscountPercentage,
    ApplyMarkupPercentage,
    CalculationMethod,
    ComponentLine,
    Condition,
    ConditionGroup,
    ConditionOperator,
    CostBreakdown,
    CostComponent,
    JobProfile,
    Periodicity,
    PricingRule,
    RuleAction,
    RuleMatchResult,
    TraceEntry,
    is_within_window,
)
from pricing_kernel.domain.quote import (
    DiscountStatus,
    LineDiscountState,
    LineItemSelections,
    QuoteDiscountState,
    QuoteLine,
    QuoteTotals,
)

__all__ = [
    # Approval
    "ApprovalOutcome",
    "ApprovalRouting",
    "DiscountApprovalRule",
    "DiscountType",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Facts
    "FactRecord",
    "LineItemFacts",
    # Pricing
    "NUMERIC_OPERATORS",
    "ActionType",
    "AddCostComponent",
    "AppliedComponent",
    "ApplyDiscountPercentage",
    "ApplyMarkupPercentage",
    "CalculationMethod",
    "ComponentLine",
    "Condition",
    "ConditionGroup",
    "ConditionOperator",
    "CostBreakdown",
    "CostComponent",
    "JobProfile",
    "Periodicity",
    "PricingRule",
    "RuleAction",
    "RuleMatchResult",
    "TraceEntry",
    "is_within_window",
    # Quote
    "DiscountStatus",
    "LineDiscountState",
    "LineItemSelections",
    "QuoteDiscountState",
    "QuoteLine",
    "QuoteTotals",
]
