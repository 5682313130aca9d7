"""
Loyalty card: every N completed sessions earn a free one.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import pendulum
from pendulum import DateTime

DEFAULT_SESSIONS_REQUIRED = 9


def _check_required(sessions_required: int) -> None:
    if sessions_required <= 0:
        raise ValueError(f"sessions_required must be positive, got {sessions_required}")


@dataclass
class LoyaltyCard:
    """
    Progress of one client towards a free session.

    Once completed, the card waits for the free session to be used; the
    next recorded session after that starts a new card.
    """
    sessions_count: int = 0
    is_completed: bool = False
    completed_at: DateTime | None = None
    free_session_used_at: DateTime | None = None

    @property
    def free_session_available(self) -> bool:
        return self.is_completed and self.free_session_used_at is None

    def reset(self) -> None:
        self.sessions_count = 0
        self.is_completed = False
        self.completed_at = None
        self.free_session_used_at = None

    def record_session(self, sessions_required: int = DEFAULT_SESSIONS_REQUIRED, now: DateTime | None = None) -> None:
        """Count a completed session towards the card."""
        _check_required(sessions_required)

        if self.free_session_available:
            return

        if self.is_completed:
            self.reset()

        self.sessions_count += 1
        if self.sessions_count >= sessions_required:
            self.is_completed = True
            if self.completed_at is None:
                self.completed_at = now or pendulum.now()

    def mark_free_session_used(self, now: DateTime | None = None) -> bool:
        """Consume the free session. Returns False when none is available."""
        if not self.free_session_available:
            return False
        self.free_session_used_at = now or pendulum.now()
        return True

    def progress_percent(self, sessions_required: int = DEFAULT_SESSIONS_REQUIRED) -> int:
        _check_required(sessions_required)
        ratio = Decimal(self.sessions_count) / Decimal(sessions_required) * 100
        return min(100, int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP)))
