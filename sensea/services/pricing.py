"""
Price quotes for a booking, with manual or automatic promos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Protocol

from pendulum import DateTime

from ..config import AppConfig
from ..domain.discounts import AppliedPromo, apply_promo_to_booking, get_discount_label, get_price_for_type
from ..domain.exceptions import PromoRejectedError
from ..domain.models import SessionType
from ..domain.promo_codes import (
    ClientType,
    PromoCode,
    PromoUsage,
    check_promo_eligibility,
    find_applicable_automatic,
    validate_promo_input,
)

logger = logging.getLogger(__name__)

UNKNOWN_CODE_ERROR = "Code promo invalide"


class PromoStoreProtocol(Protocol):
    """Protocol describing the promo source needed by the service."""

    def find_by_code(self, code: str) -> PromoCode | None:
        """Return the promo with this canonical code, if any."""

    def list_promos(self) -> List[PromoCode]:
        """Return every stored promo."""

    def get_usage(self, promo_id: str) -> PromoUsage:
        """Return usage counters for a promo."""


@dataclass(frozen=True)
class Quote:
    """Price of a session once the best applicable promo is applied."""
    session_type: SessionType
    original_price: Decimal
    final_price: Decimal
    applied: AppliedPromo | None = None
    promo: PromoCode | None = None
    label: str = ""


class PricingService:
    """
    Resolves the promo for a booking and computes its price.

    A code typed by the client must be valid or the quote is refused;
    without a code the best eligible automatic promo is attached.
    """

    def __init__(self, config: AppConfig, promo_store: PromoStoreProtocol) -> None:
        self._config = config
        self._promo_store = promo_store

    def price_for(self, session_type: SessionType) -> Decimal:
        return get_price_for_type(session_type, self._config.prices())

    def resolve_manual(
        self,
        code: str,
        session_type: SessionType,
        user_id: str | None = None,
        client_type: ClientType | None = None,
        now: DateTime | None = None,
    ) -> PromoCode:
        """
        Look up and validate a code typed by the client.

        Raises:
            PromoRejectedError: If the code is empty, unknown or not usable
        """
        entered = validate_promo_input(code)
        if not entered.valid:
            raise PromoRejectedError(entered.error or "", code=code or "")

        promo = self._promo_store.find_by_code(entered.code)
        if promo is None:
            raise PromoRejectedError(UNKNOWN_CODE_ERROR, code=entered.code)

        validation = check_promo_eligibility(
            promo,
            session_type,
            user_id=user_id,
            client_type=client_type,
            usage=self._promo_store.get_usage(promo.id),
            now=now,
        )
        if not validation.valid:
            raise PromoRejectedError(validation.error or "", code=entered.code)

        return promo

    def resolve_automatic(
        self,
        session_type: SessionType,
        user_id: str | None = None,
        client_type: ClientType | None = None,
        now: DateTime | None = None,
    ) -> PromoCode | None:
        promos = self._promo_store.list_promos()
        usage: Dict[str, PromoUsage] = {promo.id: self._promo_store.get_usage(promo.id) for promo in promos}
        return find_applicable_automatic(
            promos,
            session_type,
            self.price_for(session_type),
            user_id=user_id,
            client_type=client_type,
            usage=usage,
            now=now,
        )

    def quote(
        self,
        session_type: SessionType,
        code: str | None = None,
        user_id: str | None = None,
        client_type: ClientType | None = None,
        now: DateTime | None = None,
    ) -> Quote:
        """Compute the price of a session for a client."""
        session_type = SessionType(session_type)
        price = self.price_for(session_type)

        if code is not None:
            promo = self.resolve_manual(code, session_type, user_id=user_id, client_type=client_type, now=now)
        else:
            promo = self.resolve_automatic(session_type, user_id=user_id, client_type=client_type, now=now)

        applied = apply_promo_to_booking(promo, price)
        if promo is None or applied is None:
            return Quote(session_type=session_type, original_price=price, final_price=price)

        logger.debug("Applied promo %s to %s session: %s", promo.id, session_type.value, applied.as_dict())
        return Quote(
            session_type=session_type,
            original_price=applied.original_price,
            final_price=applied.final_price,
            applied=applied,
            promo=promo,
            label=get_discount_label(promo),
        )
