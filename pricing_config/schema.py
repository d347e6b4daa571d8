"""
Engine settings schema.

Defines the operator-tunable settings of the pricing engine.  The loader
parses YAML (plus environment overrides) into these frozen types; services
receive them by constructor injection.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineSettings:
    """Settings consumed by pricing services.

    ``approval_fallback_role_id`` is the role a discount is routed to when
    no approval row covers it.  None leaves such discounts unresolved for
    the caller.
    """

    vat_rate: Decimal = Decimal("5")
    currency: str = "AED"
    default_quantity: int = 1
    default_contract_duration: int = 12
    approval_fallback_role_id: str | None = None
