"""
Core business logic for generating the bookable slots of a day.

Pure domain logic without any external dependencies (no database, no I/O).
"""

import random
from typing import Callable, Iterator, List

from .models import DaySchedule, SessionType, TimeSlot

# Receives the cursor position (minutes since midnight) and picks the
# session type to try there.
SlotTypePolicy = Callable[[int], SessionType]


def fixed_type(session_type: SessionType) -> SlotTypePolicy:
    """Policy that always offers the same session type."""
    chosen = SessionType(session_type)

    def _policy(cursor: int) -> SessionType:
        return chosen

    return _policy


class WeightedRandomPolicy:
    """
    Policy drawing discovery sessions with a fixed probability.

    Used to synthesize sample agendas. The policy owns its random generator,
    so two policies built with the same seed produce the same sequence.
    """

    def __init__(self, discovery_probability: float = 0.2, seed: int | None = None, rng: random.Random | None = None):
        if not 0.0 <= discovery_probability <= 1.0:
            raise ValueError(
                f"discovery_probability must be between 0 and 1, got {discovery_probability}"
            )
        self.discovery_probability = discovery_probability
        self._rng = rng or random.Random(seed)

    def __call__(self, cursor: int) -> SessionType:
        if self._rng.random() < self.discovery_probability:
            return SessionType.DISCOVERY
        return SessionType.REGULAR


class SlotGenerator:
    """
    Fills a day sequentially with session slots.

    Algorithm:
    1. Start the cursor at the opening time
    2. Ask the policy which session type to place at the cursor
    3. Stop when the session (display duration) would end after closing
    4. If the session overlaps lunch, jump to the end of lunch and retry
    5. Otherwise emit the slot and advance by display + pause
    6. If the cursor lands inside the lunch break, snap it to the end of lunch

    Only the display interval is checked against closing time and lunch;
    a pause may trail past closing or into the lunch break.
    """

    def __init__(self, policy: SlotTypePolicy | None = None):
        self.policy = policy or fixed_type(SessionType.REGULAR)

    def generate(self, schedule: DaySchedule) -> Iterator[TimeSlot]:
        """
        Lazily yield the slots of one day, in chronological order.

        Each call restarts from the opening time; no state is kept between
        calls besides whatever the policy itself holds.
        """
        cursor = schedule.day_start_minutes

        while cursor < schedule.day_end_minutes:
            session_type = SessionType(self.policy(cursor))
            durations = schedule.durations(session_type)
            session_end = cursor + durations.display_minutes

            if session_end > schedule.day_end_minutes:
                break

            if schedule.overlaps_lunch(cursor, session_end):
                cursor = schedule.lunch_end_minutes
                continue

            yield TimeSlot(start_minutes=cursor, session_type=session_type)

            cursor += durations.blocked_minutes

            if schedule.in_lunch_break(cursor):
                cursor = schedule.lunch_end_minutes

    def generate_list(self, schedule: DaySchedule) -> List[TimeSlot]:
        """Materialize the slots of one day."""
        return list(self.generate(schedule))

    @staticmethod
    def max_slot_count(schedule: DaySchedule) -> int:
        """Upper bound on the number of slots a day can hold."""
        shortest = min(schedule.discovery.blocked_minutes, schedule.regular.blocked_minutes)
        # Ceiling: the last slot only needs its display duration to fit.
        return -(-(schedule.day_end_minutes - schedule.day_start_minutes) // shortest)


def generate_slots(schedule: DaySchedule, policy: SlotTypePolicy | None = None) -> List[TimeSlot]:
    """Convenience wrapper returning the slots of one day as a list."""
    return SlotGenerator(policy=policy).generate_list(schedule)
