"""
JSON file backed stores for bookings and promo codes.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import DataFileError, InvalidPromoError
from ..domain.discounts import normalize_promo_code
from ..domain.models import Booking, BookingStatus, SessionType
from ..domain.promo_codes import ApplicationMode, ClientType, PromoCode, PromoUsage

logger = logging.getLogger(__name__)


def _read_json(path: Path | None, default: Any) -> Any:
    if path is None or not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise DataFileError(f"Invalid JSON in {path}: {exc}") from exc


def _atomic_write_json(path: Path, data: Any) -> None:
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


def _parse_dt(value: Any, timezone: str) -> DateTime | None:
    if value in (None, ""):
        return None
    parsed = pendulum.parse(str(value), tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Expected a date and time, got {value!r}")
    return parsed


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Expected true or false, got {value!r}")


def _parse_limit(value: Any) -> int | None:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Expected a number of uses, got {value!r}")
    limit = int(value)
    if limit < 0:
        raise ValueError(f"Usage limit cannot be negative, got {limit}")
    return limit


def _usage_map(path: Path | None) -> Dict[str, Any]:
    usage = _read_json(path, {})
    if not isinstance(usage, dict):
        raise DataFileError(f"{path} must contain an object of promo usage counters")
    return usage


class JsonBookingStore:
    """
    Reads bookings from a JSON list.

    Each entry holds ``id``, ``start`` (ISO date-time), ``blocked_minutes``,
    ``status`` and ``session_type``. Entries that cannot be parsed are
    skipped with a warning.
    """

    def __init__(self, path: Path | None, timezone: str = "Europe/Paris"):
        self.path = path
        self.timezone = timezone
        self._bookings: List[Booking] | None = None

    def load(self) -> List[Booking]:
        if self._bookings is None:
            raw = _read_json(self.path, [])
            if not isinstance(raw, list):
                raise DataFileError(f"{self.path} must contain a list of bookings")
            self._bookings = list(self._parse_all(raw))
        return self._bookings

    def _parse_all(self, entries: Iterable[Dict[str, Any]]) -> Iterable[Booking]:
        for index, entry in enumerate(entries):
            try:
                start = _parse_dt(entry["start"], self.timezone)
                if start is None:
                    raise ValueError("missing start")
                yield Booking(
                    id=str(entry.get("id", index)),
                    start=start,
                    blocked_minutes=int(entry["blocked_minutes"]),
                    status=BookingStatus(entry.get("status", BookingStatus.CONFIRMED.value)),
                    session_type=SessionType(entry.get("session_type", SessionType.REGULAR.value)),
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping booking entry %s in %s: %s", index, self.path, exc)

    def get_bookings_for_date(self, day: Date) -> List[Booking]:
        return [
            booking for booking in self.load()
            if booking.start.in_timezone(self.timezone).date() == day
        ]


def dump_bookings(bookings: Iterable[Booking], path: Path) -> None:
    """Write bookings in the format read by JsonBookingStore."""
    data = [
        {
            "id": booking.id,
            "start": booking.start.to_iso8601_string(),
            "blocked_minutes": booking.blocked_minutes,
            "status": booking.status.value,
            "session_type": booking.session_type.value,
        }
        for booking in bookings
    ]
    _atomic_write_json(path, data)


class JsonPromoStore:
    """
    Reads promo codes from a JSON list and usage counters from a JSON map.

    Usage file format: ``{promo_id: {"total": n, "users": {user_id: n}}}``.
    """

    def __init__(self, promos_path: Path | None, usage_path: Path | None = None, timezone: str = "Europe/Paris"):
        self.promos_path = promos_path
        self.usage_path = usage_path
        self.timezone = timezone
        self._promos: List[PromoCode] | None = None

    def list_promos(self) -> List[PromoCode]:
        if self._promos is None:
            raw = _read_json(self.promos_path, [])
            if not isinstance(raw, list):
                raise DataFileError(f"{self.promos_path} must contain a list of promo codes")
            self._promos = [promo for promo in map(self._parse_promo, raw) if promo is not None]
        return self._promos

    def _parse_promo(self, entry: Dict[str, Any]) -> PromoCode | None:
        try:
            target_client_type = entry.get("target_client_type")
            return PromoCode(
                id=str(entry["id"]),
                code=entry.get("code"),
                name=entry.get("name", ""),
                discount_type=str(entry["discount_type"]),
                discount_value=entry.get("discount_value", 0),
                application_mode=ApplicationMode(entry.get("application_mode", ApplicationMode.MANUAL.value)),
                is_active=_parse_flag(entry.get("is_active", True)),
                valid_from=_parse_dt(entry.get("valid_from"), self.timezone),
                valid_until=_parse_dt(entry.get("valid_until"), self.timezone),
                applies_to_discovery=_parse_flag(entry.get("applies_to_discovery", True)),
                applies_to_regular=_parse_flag(entry.get("applies_to_regular", True)),
                target_client_type=ClientType(target_client_type) if target_client_type else None,
                target_user_id=entry.get("target_user_id"),
                max_uses_total=_parse_limit(entry.get("max_uses_total")),
                max_uses_per_user=_parse_limit(entry.get("max_uses_per_user")),
            )
        except (KeyError, TypeError, ValueError, InvalidPromoError) as exc:
            logger.warning("Skipping promo entry %s in %s: %s", entry.get("id"), self.promos_path, exc)
            return None

    def find_by_code(self, code: str) -> PromoCode | None:
        code = normalize_promo_code(code)
        if not code:
            return None
        for promo in self.list_promos():
            if promo.code == code:
                return promo
        return None

    def find_by_id(self, promo_id: str) -> PromoCode | None:
        for promo in self.list_promos():
            if promo.id == promo_id:
                return promo
        return None

    def code_exists(self, code: str) -> bool:
        return self.find_by_code(code) is not None

    def get_usage(self, promo_id: str) -> PromoUsage:
        entry = _usage_map(self.usage_path).get(promo_id, {})
        return PromoUsage(
            total=int(entry.get("total", 0)),
            per_user={str(k): int(v) for k, v in entry.get("users", {}).items()},
        )

    def record_usage(self, promo_id: str, user_id: str | None = None) -> PromoUsage:
        """Increment the usage counters of a promo and persist them."""
        if self.usage_path is None:
            raise DataFileError("No promo usage file configured")

        usage = _usage_map(self.usage_path)
        entry = usage.get(promo_id, {"total": 0, "users": {}})
        entry["total"] = int(entry.get("total", 0)) + 1
        if user_id is not None:
            users = entry.setdefault("users", {})
            users[user_id] = int(users.get(user_id, 0)) + 1
        usage[promo_id] = entry
        _atomic_write_json(self.usage_path, usage)

        return self.get_usage(promo_id)
