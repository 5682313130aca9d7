"""
Promo code rules: code format, loyalty codes and booking eligibility.
"""

import random
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping

import pendulum
from pendulum import DateTime

from .discounts import PromoCandidate, normalize_promo_code, select_best_promo
from .models import SessionType

LOYALTY_PREFIX = "FIDEL-"

# No I, O, 0 or 1: they are easily confused when typed by hand.
CODE_ALPHABET = "".join(
    c for c in string.ascii_uppercase + string.digits if c not in "IO01"
)

EMPTY_CODE_ERROR = "Veuillez entrer un code"


class ApplicationMode(str, Enum):
    """Whether the client types the code or the system attaches the promo."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class ClientType(str, Enum):
    PERSONAL = "personal"
    ASSOCIATION = "association"


def validate_code_format(code: Any) -> bool:
    """True when the input is a string with something besides whitespace."""
    if not code or not isinstance(code, str):
        return False
    return len(code.strip()) > 0


def is_loyalty_code(code: str | None) -> bool:
    """Loyalty rewards are issued as codes starting with ``FIDEL-``."""
    return normalize_promo_code(code).startswith(LOYALTY_PREFIX)


@dataclass(frozen=True)
class CodeInput:
    """Result of checking what the client typed in the promo field."""
    valid: bool
    code: str = ""
    error: str | None = None


def validate_promo_input(code: str | None) -> CodeInput:
    """Check and normalize a code typed by the client."""
    if not validate_code_format(code):
        return CodeInput(valid=False, error=EMPTY_CODE_ERROR)
    return CodeInput(valid=True, code=normalize_promo_code(code))


def generate_random_code(
    length: int = 8,
    exists: Callable[[str], bool] | None = None,
    rng: random.Random | None = None,
    max_attempts: int = 100,
) -> str:
    """
    Generate a random promo code, retrying while ``exists`` reports a clash.

    Raises:
        ValueError: If no free code was found within max_attempts
    """
    if length <= 0:
        raise ValueError(f"Code length must be positive, got {length}")

    rng = rng or random.SystemRandom()

    for _ in range(max_attempts):
        code = "".join(rng.choice(CODE_ALPHABET) for _ in range(length))
        if exists is None or not exists(code):
            return code

    raise ValueError(f"Could not generate a unique code after {max_attempts} attempts")


@dataclass(frozen=True)
class PromoCode(PromoCandidate):
    """
    A stored promo with its eligibility rules.
    """
    name: str = ""
    application_mode: ApplicationMode = ApplicationMode.MANUAL
    is_active: bool = True
    valid_from: DateTime | None = None
    valid_until: DateTime | None = None
    applies_to_discovery: bool = True
    applies_to_regular: bool = True
    target_client_type: ClientType | None = None
    target_user_id: str | None = None
    max_uses_total: int | None = None
    max_uses_per_user: int | None = None


@dataclass
class PromoUsage:
    """How many times a promo has been used, overall and per user."""
    total: int = 0
    per_user: Dict[str, int] = field(default_factory=dict)

    def for_user(self, user_id: str) -> int:
        return self.per_user.get(user_id, 0)


@dataclass(frozen=True)
class PromoValidation:
    """Outcome of an eligibility check."""
    valid: bool
    promo: PromoCode | None = None
    error: str | None = None


def _reject(message: str) -> PromoValidation:
    return PromoValidation(valid=False, error=message)


def check_promo_eligibility(
    promo: PromoCode,
    session_type: SessionType,
    user_id: str | None = None,
    client_type: ClientType | None = None,
    usage: PromoUsage | None = None,
    now: DateTime | None = None,
) -> PromoValidation:
    """
    Check whether a promo may be used for a booking.

    Rules are checked in a fixed order and the first failure is reported
    with a message suitable for the client.
    """
    now = now or pendulum.now()
    usage = usage or PromoUsage()
    session_type = SessionType(session_type)

    if not promo.is_active:
        return _reject("Ce code promo n'est plus actif")

    if promo.valid_from is not None and now < promo.valid_from:
        return _reject("Ce code promo n'est pas encore valide")

    if promo.valid_until is not None and now > promo.valid_until:
        return _reject("Ce code promo a expiré")

    if session_type is SessionType.DISCOVERY and not promo.applies_to_discovery:
        return _reject("Ce code promo n'est pas valide pour les séances découverte")

    if session_type is SessionType.REGULAR and not promo.applies_to_regular:
        return _reject("Ce code promo n'est pas valide pour les séances classiques")

    if promo.target_client_type is not None and client_type is not None:
        if ClientType(promo.target_client_type) is not ClientType(client_type):
            label = "particuliers" if promo.target_client_type == ClientType.PERSONAL else "associations"
            return _reject(f"Ce code promo est réservé aux {label}")

    if promo.target_user_id and promo.target_user_id != user_id:
        return _reject("Ce code promo n'est pas valide pour votre compte")

    if promo.max_uses_total is not None and usage.total >= promo.max_uses_total:
        return _reject("Ce code promo a atteint son nombre maximum d'utilisations")

    if promo.max_uses_per_user is not None and user_id is not None:
        if usage.for_user(user_id) >= promo.max_uses_per_user:
            return _reject("Vous avez déjà utilisé ce code promo le nombre de fois autorisé")

    return PromoValidation(valid=True, promo=promo)


def find_applicable_automatic(
    promos: Iterable[PromoCode],
    session_type: SessionType,
    original_price: Any,
    user_id: str | None = None,
    client_type: ClientType | None = None,
    usage: Mapping[str, PromoUsage] | None = None,
    now: DateTime | None = None,
) -> PromoCode | None:
    """
    Best automatic promo a booking is eligible for, by discount in euros.
    """
    usage = usage or {}
    eligible: List[PromoCode] = []

    for promo in promos:
        if promo.application_mode != ApplicationMode.AUTOMATIC:
            continue
        validation = check_promo_eligibility(
            promo,
            session_type,
            user_id=user_id,
            client_type=client_type,
            usage=usage.get(promo.id),
            now=now,
        )
        if validation.valid:
            eligible.append(promo)

    return select_best_promo(eligible, original_price)
