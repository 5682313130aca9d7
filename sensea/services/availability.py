"""
Application services for public booking availability.

The service combines the configured day schedule, the domain-level
``SlotGenerator`` and the bookings already stored for a day. Bookings are
read through a simple protocol so the JSON store or a stub can be plugged in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Protocol

import pendulum
from pendulum import Date, DateTime

from ..config import AppConfig
from ..domain.models import AvailableSlot, Booking, SessionType, TimeRange, TimeSlot
from ..domain.slot_generator import SlotGenerator, fixed_type

logger = logging.getLogger(__name__)

# Past this hour the current day is no longer offered.
LAST_BOOKING_HOUR = 23


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking source needed by the service."""

    def get_bookings_for_date(self, day: Date) -> List[Booking]:
        """Return the bookings starting on the given date."""


@dataclass(frozen=True)
class DurationLabel:
    label: str
    description: str
    display_minutes: int
    blocked_minutes: int


class AvailabilityService:
    """
    Computes which session slots can still be booked.
    """

    def __init__(self, config: AppConfig, booking_store: BookingStoreProtocol) -> None:
        self._config = config
        self._booking_store = booking_store

    @property
    def timezone(self) -> str:
        return self._config.timezone

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)

    def possible_slots(self, day: Date, session_type: SessionType = SessionType.REGULAR) -> List[TimeSlot]:
        """All slots of the day for a session type, ignoring bookings."""
        schedule = self._config.schedule_for(day)
        if schedule is None:
            return []
        generator = SlotGenerator(policy=fixed_type(session_type))
        return generator.generate_list(schedule)

    def get_available_slots(
        self,
        day: Date,
        session_type: SessionType = SessionType.REGULAR,
        now: DateTime | None = None,
    ) -> List[AvailableSlot]:
        """
        Slots of the day that start in the future and do not collide with
        a pending or confirmed booking.
        """
        session_type = SessionType(session_type)
        possible = self.possible_slots(day, session_type)
        if not possible:
            return []

        now = now or self.now()
        blocked_minutes = self._config.sessions.for_type(session_type).durations().blocked_minutes
        busy = self._busy_ranges(day)

        available: List[AvailableSlot] = []
        for slot in possible:
            start = self._at(day, slot.start_minutes)
            if start <= now:
                continue

            time_range = TimeRange(start=start, end=start.add(minutes=blocked_minutes))
            if any(time_range.overlaps(other) for other in busy):
                continue

            available.append(AvailableSlot(time_range=time_range, session_type=session_type))

        logger.debug(
            "%s: %d possible %s slots, %d available",
            day.isoformat(),
            len(possible),
            session_type.value,
            len(available),
        )
        return available

    def get_available_dates(
        self,
        year: int,
        month: int,
        session_type: SessionType = SessionType.REGULAR,
        now: DateTime | None = None,
    ) -> List[Date]:
        """Dates of the month, from today on, with at least one free slot."""
        now = now or self.now()
        today = now.date()
        if now.hour >= LAST_BOOKING_HOUR:
            today = today.add(days=1)

        first = pendulum.date(year, month, 1)
        last = first.end_of("month")

        dates: List[Date] = []
        current = max(first, today)
        while current <= last:
            if self._config.is_day_open(current) and self.get_available_slots(current, session_type, now=now):
                dates.append(current)
            current = current.add(days=1)

        return dates

    def validate_slot(
        self,
        requested: DateTime,
        session_type: SessionType = SessionType.REGULAR,
        now: DateTime | None = None,
    ) -> List[str]:
        """
        Check a requested start time before creating a booking.

        Returns a list with the first problem found, or an empty list when
        the slot can be booked.
        """
        session_type = SessionType(session_type)
        now = now or self.now()
        requested = requested.in_timezone(self.timezone)
        day = requested.date()

        if requested <= now:
            return ["Le créneau demandé est dans le passé"]

        hours = self._config.hours_for(day)
        if hours is None:
            return ["Ce jour est fermé"]

        minutes = requested.hour * 60 + requested.minute
        if minutes < hours.open_minutes():
            return [f"L'établissement ouvre à {hours.open}"]

        durations = self._config.sessions.for_type(session_type).durations()
        if minutes + durations.display_minutes > hours.close_minutes():
            return [f"Le créneau dépasse l'heure de fermeture ({hours.close})"]

        starts = {slot.start_minutes for slot in self.possible_slots(day, session_type)}
        if requested.second or minutes not in starts:
            return ["Créneau horaire non valide"]

        requested_range = TimeRange(start=requested, end=requested.add(minutes=durations.blocked_minutes))
        if any(requested_range.overlaps(other) for other in self._busy_ranges(day)):
            return ["Ce créneau n'est plus disponible"]

        return []

    def duration_labels(self) -> Dict[SessionType, DurationLabel]:
        discovery = self._config.sessions.discovery.durations()
        regular = self._config.sessions.regular.durations()
        return {
            SessionType.DISCOVERY: DurationLabel(
                label="Séance découverte",
                description=f"Première séance - {discovery.display_minutes}min",
                display_minutes=discovery.display_minutes,
                blocked_minutes=discovery.blocked_minutes,
            ),
            SessionType.REGULAR: DurationLabel(
                label="Séance classique",
                description=f"Séance habituelle - {regular.display_minutes}min",
                display_minutes=regular.display_minutes,
                blocked_minutes=regular.blocked_minutes,
            ),
        }

    def _busy_ranges(self, day: Date) -> List[TimeRange]:
        bookings = self._booking_store.get_bookings_for_date(day)
        busy = [booking.time_range() for booking in bookings if booking.status.occupies_slot]
        logger.debug("%s: %d of %d bookings occupy the agenda", day.isoformat(), len(busy), len(bookings))
        return busy

    def _at(self, day: Date, minutes: int) -> DateTime:
        return pendulum.datetime(
            day.year, day.month, day.day, minutes // 60, minutes % 60, tz=self.timezone
        )
