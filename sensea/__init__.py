"""
Sensea booking core - session slots, promo codes and pricing.
"""

__version__ = "0.3.0"
