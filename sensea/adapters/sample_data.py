"""
Sample agenda generation for demos and local testing.

Days are filled with the same sequential algorithm as public availability,
but the session type of each slot is drawn at random.
"""

import random
from typing import List

import pendulum
from pendulum import Date

from ..config import AppConfig
from ..domain.models import Booking, BookingStatus
from ..domain.slot_generator import SlotGenerator, SlotTypePolicy, WeightedRandomPolicy


def _draw_past_status(rng: random.Random) -> BookingStatus:
    roll = rng.randint(1, 100)
    if roll <= 85:
        return BookingStatus.COMPLETED
    if roll <= 95:
        return BookingStatus.NO_SHOW
    return BookingStatus.CANCELLED


def generate_sample_day(
    config: AppConfig,
    day: Date,
    seed: int | None = None,
    policy: SlotTypePolicy | None = None,
    past: bool = True,
) -> List[Booking]:
    """
    Synthesize the bookings of one day.

    Between three and six of the day's first slots are booked. Past days get
    a mix of completed, no-show and cancelled bookings; future days are
    confirmed.
    """
    schedule = config.schedule_for(day)
    if schedule is None:
        return []

    rng = random.Random(seed)
    policy = policy or WeightedRandomPolicy(discovery_probability=0.2, rng=rng)
    slots = SlotGenerator(policy=policy).generate_list(schedule)
    if not slots:
        return []

    count = rng.randint(min(3, len(slots)), min(6, len(slots)))
    bookings: List[Booking] = []

    for index, slot in enumerate(slots[:count]):
        start = pendulum.datetime(
            day.year, day.month, day.day,
            slot.start_minutes // 60, slot.start_minutes % 60,
            tz=config.timezone,
        )
        bookings.append(
            Booking(
                id=f"sample-{day.isoformat()}-{index + 1}",
                start=start,
                blocked_minutes=schedule.durations(slot.session_type).blocked_minutes,
                status=_draw_past_status(rng) if past else BookingStatus.CONFIRMED,
                session_type=slot.session_type,
            )
        )

    return bookings
