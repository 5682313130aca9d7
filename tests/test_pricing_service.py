"""
Tests for the PricingService quote flow.
"""

from decimal import Decimal
from typing import Dict, List

import pendulum
import pytest

from sensea.config import AppConfig
from sensea.domain.exceptions import PromoRejectedError
from sensea.domain.models import SessionType
from sensea.domain.promo_codes import ApplicationMode, PromoCode, PromoUsage
from sensea.services.pricing import PricingService

NOW = pendulum.datetime(2030, 1, 15, 10, 0, tz="Europe/Paris")


class StubPromoStore:
    """Minimal stub matching PromoStoreProtocol."""

    def __init__(self, promos: List[PromoCode], usage: Dict[str, PromoUsage] | None = None):
        self._promos = promos
        self._usage = usage or {}

    def find_by_code(self, code):
        for promo in self._promos:
            if promo.code == code:
                return promo
        return None

    def list_promos(self):
        return list(self._promos)

    def get_usage(self, promo_id):
        return self._usage.get(promo_id, PromoUsage())


PROMOS = [
    PromoCode(id="summer", code="SUMMER20", discount_type="percentage", discount_value=20),
    PromoCode(id="loyalty", code="FIDEL-ABC123", discount_type="free_session", discount_value=100, target_user_id="user-1"),
    PromoCode(id="old", code="OLD10", discount_type="fixed_amount", discount_value=10, is_active=False),
    PromoCode(id="auto-5", discount_type="fixed_amount", discount_value=5, application_mode=ApplicationMode.AUTOMATIC),
    PromoCode(
        id="auto-disco",
        discount_type="percentage",
        discount_value=20,
        application_mode=ApplicationMode.AUTOMATIC,
        applies_to_regular=False,
    ),
]


def _build_service(promos: List[PromoCode] = PROMOS, usage=None) -> PricingService:
    return PricingService(config=AppConfig(), promo_store=StubPromoStore(promos, usage))


class TestQuote:
    """Tests for PricingService.quote."""

    def test_manual_code(self):
        """A typed code is normalized and applied."""
        quote = _build_service().quote(SessionType.REGULAR, code=" summer20 ", now=NOW)

        assert quote.original_price == Decimal("45")
        assert quote.final_price == Decimal("36")
        assert quote.applied.promo_code == "SUMMER20"
        assert quote.applied.promo_code_id is None
        assert quote.label == "-20%"

    def test_automatic_promo_regular(self):
        """Without code the best eligible automatic promo is attached."""
        quote = _build_service().quote(SessionType.REGULAR, now=NOW)

        assert quote.promo.id == "auto-5"
        assert quote.applied.promo_code_id == "auto-5"
        assert quote.final_price == Decimal("40")

    def test_automatic_promo_discovery(self):
        """20% of 55 (11 EUR) beats 5 EUR on a discovery session."""
        quote = _build_service().quote(SessionType.DISCOVERY, now=NOW)

        assert quote.promo.id == "auto-disco"
        assert quote.final_price == Decimal("44")

    def test_no_promo(self):
        """Without any promo the full price applies."""
        quote = _build_service(promos=[]).quote(SessionType.DISCOVERY, now=NOW)

        assert quote.applied is None
        assert quote.final_price == Decimal("55")
        assert quote.label == ""

    def test_loyalty_code_for_its_owner(self):
        """A loyalty code makes the session free for its owner."""
        quote = _build_service().quote(SessionType.REGULAR, code="FIDEL-ABC123", user_id="user-1", now=NOW)

        assert quote.final_price == Decimal("0")
        assert quote.label == "Gratuit"

    @pytest.mark.parametrize(
        "code,user_id,message",
        [
            ("NOPE", None, "Code promo invalide"),
            ("   ", None, "Veuillez entrer un code"),
            ("OLD10", None, "Ce code promo n'est plus actif"),
            ("FIDEL-ABC123", "user-2", "Ce code promo n'est pas valide pour votre compte"),
        ],
    )
    def test_rejected_codes(self, code, user_id, message):
        """Unusable codes are refused with the reason."""
        with pytest.raises(PromoRejectedError) as exc_info:
            _build_service().quote(SessionType.REGULAR, code=code, user_id=user_id, now=NOW)

        assert exc_info.value.message == message

    def test_usage_counts_from_store(self):
        """Exhausted codes are refused."""
        promos = [PromoCode(id="once", code="ONCE", discount_type="fixed_amount", discount_value=5, max_uses_per_user=1)]
        usage = {"once": PromoUsage(total=1, per_user={"user-1": 1})}

        with pytest.raises(PromoRejectedError):
            _build_service(promos, usage).quote(SessionType.REGULAR, code="ONCE", user_id="user-1", now=NOW)
