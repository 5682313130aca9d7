"""
Service layer helpers that orchestrate stores and domain logic.
"""

from .availability import AvailabilityService, BookingStoreProtocol
from .loyalty import LoyaltyService
from .pricing import PricingService, PromoStoreProtocol, Quote

__all__ = [
    "AvailabilityService",
    "BookingStoreProtocol",
    "LoyaltyService",
    "PricingService",
    "PromoStoreProtocol",
    "Quote",
]
