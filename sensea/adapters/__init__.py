"""
Adapters layer - JSON data files and sample data.
"""

from .json_store import JsonBookingStore, JsonPromoStore, dump_bookings
from .sample_data import generate_sample_day

__all__ = ["JsonBookingStore", "JsonPromoStore", "dump_bookings", "generate_sample_day"]
