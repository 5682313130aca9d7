"""
Domain models for day schedules, session slots and bookings.
"""

from dataclasses import dataclass
from enum import Enum

from pendulum import DateTime

from .exceptions import ConfigurationError

MINUTES_PER_DAY = 24 * 60


class SessionType(str, Enum):
    """Kind of sensory session a slot is offered for."""
    DISCOVERY = "discovery"
    REGULAR = "regular"


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def occupies_slot(self) -> bool:
        """Only bookings still expected to happen block the agenda."""
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def parse_hhmm(value: str) -> int:
    """
    Convert an ``HH:MM`` string to minutes since midnight.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours = int(hours_str)
        minutes = int(minutes_str)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from exc

    if not (0 <= hours <= 24 and 0 <= minutes < 60) or hours * 60 + minutes > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('DD/MM/YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SessionDurations:
    """
    Client-visible length of a session and the pause that follows it.
    """
    display_minutes: int
    pause_minutes: int

    def __post_init__(self):
        if self.display_minutes <= 0:
            raise ConfigurationError(
                f"Session display duration must be positive, got {self.display_minutes}"
            )
        if self.pause_minutes < 0:
            raise ConfigurationError(
                f"Session pause duration cannot be negative, got {self.pause_minutes}"
            )

    @property
    def blocked_minutes(self) -> int:
        """Time the session occupies on the agenda before the next one may start."""
        return self.display_minutes + self.pause_minutes


@dataclass(frozen=True)
class DaySchedule:
    """
    Opening window, lunch break and session durations for one day.

    Invariant: day_start < lunch_start <= lunch_end < day_end, all within
    the calendar day. Violations raise ConfigurationError at construction,
    so no slot is ever generated from an inconsistent schedule.
    """
    day_start_minutes: int
    day_end_minutes: int
    lunch_start_minutes: int
    lunch_end_minutes: int
    discovery: SessionDurations
    regular: SessionDurations

    def __post_init__(self):
        if self.day_start_minutes < 0 or self.day_end_minutes > MINUTES_PER_DAY:
            raise ConfigurationError(
                f"Opening hours {format_minutes(self.day_start_minutes)}-"
                f"{format_minutes(self.day_end_minutes)} fall outside the calendar day"
            )
        if not (
            self.day_start_minutes
            < self.lunch_start_minutes
            <= self.lunch_end_minutes
            < self.day_end_minutes
        ):
            raise ConfigurationError(
                "Schedule must satisfy day start < lunch start <= lunch end < day end, got "
                f"{format_minutes(self.day_start_minutes)} / "
                f"{format_minutes(self.lunch_start_minutes)}-{format_minutes(self.lunch_end_minutes)} / "
                f"{format_minutes(self.day_end_minutes)}"
            )

    def durations(self, session_type: SessionType) -> SessionDurations:
        """Get the durations configured for a session type."""
        if SessionType(session_type) is SessionType.DISCOVERY:
            return self.discovery
        return self.regular

    def in_lunch_break(self, minutes: int) -> bool:
        """Check if a point in time falls inside [lunch_start, lunch_end)."""
        return self.lunch_start_minutes <= minutes < self.lunch_end_minutes

    def overlaps_lunch(self, start_minutes: int, end_minutes: int) -> bool:
        """Check if [start, end) overlaps the lunch break."""
        return start_minutes < self.lunch_end_minutes and end_minutes > self.lunch_start_minutes


@dataclass(frozen=True)
class TimeSlot:
    """
    A bookable session start within one day.
    """
    start_minutes: int
    session_type: SessionType

    def __post_init__(self):
        if not 0 <= self.start_minutes < MINUTES_PER_DAY:
            raise ValueError(f"Slot start must be within the day, got {self.start_minutes}")

    @property
    def time_label(self) -> str:
        """Start time as ``HH:MM``."""
        return format_minutes(self.start_minutes)

    def end_minutes(self, schedule: DaySchedule) -> int:
        """End of the client-visible session."""
        return self.start_minutes + schedule.durations(self.session_type).display_minutes

    def blocked_end_minutes(self, schedule: DaySchedule) -> int:
        """End of the session including its trailing pause."""
        return self.start_minutes + schedule.durations(self.session_type).blocked_minutes


@dataclass(frozen=True)
class Booking:
    """
    An existing reservation as seen by the availability computation.
    """
    id: str
    start: DateTime
    blocked_minutes: int
    status: BookingStatus = BookingStatus.CONFIRMED
    session_type: SessionType = SessionType.REGULAR

    def time_range(self) -> TimeRange:
        """Agenda interval the booking occupies, pause included."""
        return TimeRange(start=self.start, end=self.start.add(minutes=self.blocked_minutes))


@dataclass(frozen=True)
class AvailableSlot:
    """
    A generated slot placed on a calendar date, with its blocked interval.
    """
    time_range: TimeRange
    session_type: SessionType

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Jour DD/MM/YYYY | HH:MM
        """
        weekday_names = {
            0: "Lundi",
            1: "Mardi",
            2: "Mercredi",
            3: "Jeudi",
            4: "Vendredi",
            5: "Samedi",
            6: "Dimanche",
        }
        start = self.time_range.start
        weekday = weekday_names[start.weekday()]
        return f"{weekday} {start.format('DD/MM/YYYY')} | {start.format('HH:mm')}"
