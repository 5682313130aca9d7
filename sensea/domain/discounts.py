"""
Discount calculation and best-promo selection.

All amounts are Decimal. Each of the three reported amounts is rounded
half-up to the cent on its own, after clamping the final price at zero.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Sequence

from .exceptions import InvalidPromoError
from .models import SessionType

CENT = Decimal("0.01")

DEFAULT_PRICES = {
    SessionType.DISCOVERY: Decimal("55"),
    SessionType.REGULAR: Decimal("45"),
}


class DiscountType(str, Enum):
    """How a promo reduces the session price."""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SESSION = "free_session"


def to_decimal(value: Any) -> Decimal:
    """Convert an int, float, str or Decimal amount to Decimal."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except ArithmeticError as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def round_money(value: Decimal) -> Decimal:
    """Round an amount to the cent, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_promo_code(code: str | None) -> str:
    """Canonical form of a promo code: trimmed and uppercased."""
    if not code:
        return ""
    return code.strip().upper()


@dataclass(frozen=True)
class PromoCandidate:
    """
    A discount offer considered for a booking.

    ``code`` is None for promos attached automatically by the system.
    ``discount_type`` is kept as given; unknown types yield no discount.
    """
    id: str
    discount_type: str
    discount_value: Decimal
    code: str | None = None

    def __post_init__(self):
        value = to_decimal(self.discount_value)
        if not value.is_finite():
            raise InvalidPromoError(f"Promo {self.id}: discount value must be a finite number, got {value}")
        if value < 0:
            raise InvalidPromoError(f"Promo {self.id}: discount value cannot be negative, got {value}")
        object.__setattr__(self, "discount_value", value)
        object.__setattr__(self, "code", normalize_promo_code(self.code) or None)

    @property
    def is_manual(self) -> bool:
        """True when the promo is used by typing its code."""
        return self.code is not None


@dataclass(frozen=True)
class DiscountResult:
    """Price breakdown for one promo applied to one price."""
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal


@dataclass(frozen=True)
class AppliedPromo:
    """
    Pricing fields stored on a booking.

    Exactly one of ``promo_code`` (manual code) or ``promo_code_id``
    (automatic promo) is set.
    """
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    promo_code: str | None = None
    promo_code_id: str | None = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "original_price": self.original_price,
            "discount_amount": self.discount_amount,
            "final_price": self.final_price,
        }
        if self.promo_code is not None:
            data["promo_code"] = self.promo_code
        else:
            data["promo_code_id"] = self.promo_code_id
        return data


def calculate_discount(promo: PromoCandidate, original_price: Any) -> DiscountResult:
    """
    Compute the discount of one promo on one price.

    An over-large discount is clamped so the final price never goes below
    zero; the reported discount is then recomputed from the clamped price.
    """
    price = to_decimal(original_price)
    value = to_decimal(promo.discount_value)

    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = price * value / Decimal(100)
    elif promo.discount_type == DiscountType.FIXED_AMOUNT:
        discount = value
    elif promo.discount_type == DiscountType.FREE_SESSION:
        discount = price
    else:
        discount = Decimal(0)

    final_price = max(Decimal(0), price - discount)
    discount = price - final_price

    return DiscountResult(
        original_price=round_money(price),
        discount_amount=round_money(discount),
        final_price=round_money(final_price),
    )


def select_best_promo(candidates: Sequence[PromoCandidate], original_price: Any) -> PromoCandidate | None:
    """
    Pick the candidate giving the largest discount in euros.

    Ties keep the earliest candidate. Returns None for an empty list.
    """
    best: PromoCandidate | None = None
    best_amount = Decimal(0)

    for candidate in candidates:
        amount = calculate_discount(candidate, original_price).discount_amount
        if best is None or amount > best_amount:
            best = candidate
            best_amount = amount

    return best


def apply_promo_to_booking(promo: PromoCandidate | None, original_price: Any) -> AppliedPromo | None:
    """Build the booking pricing fields for a promo, or None without promo."""
    if promo is None:
        return None

    result = calculate_discount(promo, original_price)

    if promo.code:
        return AppliedPromo(
            original_price=result.original_price,
            discount_amount=result.discount_amount,
            final_price=result.final_price,
            promo_code=promo.code,
        )

    return AppliedPromo(
        original_price=result.original_price,
        discount_amount=result.discount_amount,
        final_price=result.final_price,
        promo_code_id=promo.id,
    )


def format_euros(amount: Any) -> str:
    """Format an amount the French way: ``1 234,50 €``."""
    rounded = round_money(to_decimal(amount))
    text = f"{rounded:,.2f}".replace(",", " ").replace(".", ",")
    return f"{text} €"


def get_discount_label(promo: PromoCandidate) -> str:
    """Short label shown next to a promo, e.g. ``-20%`` or ``-5,00 €``."""
    value = to_decimal(promo.discount_value)

    if promo.discount_type == DiscountType.PERCENTAGE:
        return f"-{value.quantize(Decimal(1), rounding=ROUND_HALF_UP)}%"
    if promo.discount_type == DiscountType.FIXED_AMOUNT:
        return f"-{format_euros(value)}"
    if promo.discount_type == DiscountType.FREE_SESSION:
        return "Gratuit"
    return ""


def get_price_for_type(session_type: SessionType, prices: Mapping[Any, Any] | None = None) -> Decimal:
    """
    Price of a session type, falling back to the default tariff when the
    configured price is missing or zero.
    """
    session_type = SessionType(session_type)
    prices = prices or {}
    configured = prices.get(session_type, prices.get(session_type.value))

    if configured:
        price = to_decimal(configured)
        if price:
            return price

    return DEFAULT_PRICES[session_type]
