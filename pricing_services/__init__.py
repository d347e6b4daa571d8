"""
pricing_services -- imperative shell around the pricing engines.

Wires cached reference data, engine settings and an injected clock into
the pure engines.
"""

from pricing_services.quote_pricing_service import QuotePricingService
from pricing_services.reference_cache import ReferenceDataCache

__all__ = [
    "QuotePricingService",
    "ReferenceDataCache",
]
