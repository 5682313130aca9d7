"""
Domain layer - Pure business logic without external dependencies.
"""

from .discounts import (
    AppliedPromo,
    DiscountResult,
    DiscountType,
    PromoCandidate,
    apply_promo_to_booking,
    calculate_discount,
    get_discount_label,
    get_price_for_type,
    normalize_promo_code,
    select_best_promo,
)
from .exceptions import ConfigurationError, InvalidPromoError, PromoRejectedError, SenseaError
from .loyalty import LoyaltyCard
from .models import Booking, BookingStatus, DaySchedule, SessionDurations, SessionType, TimeSlot
from .promo_codes import (
    PromoCode,
    check_promo_eligibility,
    find_applicable_automatic,
    is_loyalty_code,
    validate_code_format,
)
from .slot_generator import SlotGenerator, WeightedRandomPolicy, fixed_type, generate_slots

__all__ = [
    "AppliedPromo",
    "Booking",
    "BookingStatus",
    "ConfigurationError",
    "DaySchedule",
    "DiscountResult",
    "DiscountType",
    "InvalidPromoError",
    "LoyaltyCard",
    "PromoCandidate",
    "PromoCode",
    "PromoRejectedError",
    "SenseaError",
    "SessionDurations",
    "SessionType",
    "SlotGenerator",
    "TimeSlot",
    "WeightedRandomPolicy",
    "apply_promo_to_booking",
    "calculate_discount",
    "check_promo_eligibility",
    "find_applicable_automatic",
    "fixed_type",
    "generate_slots",
    "get_discount_label",
    "get_price_for_type",
    "is_loyalty_code",
    "normalize_promo_code",
    "select_best_promo",
    "validate_code_format",
]
