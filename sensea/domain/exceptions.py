"""
Domain-specific exception hierarchy for the booking core.
"""


class SenseaError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(SenseaError, ValueError):
    """Raised when a day schedule or business setting is inconsistent."""


class InvalidPromoError(SenseaError, ValueError):
    """Raised when a promo record cannot be built from its data."""


class PromoRejectedError(SenseaError):
    """Raised when a promo code exists but cannot be used for a booking."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.message = message
        self.code = code


class DataFileError(SenseaError):
    """Raised when a bookings or promo data file cannot be read."""
