"""
Loyalty card bookkeeping using the configured number of sessions.
"""

import logging

from pendulum import DateTime

from ..config import AppConfig
from ..domain.loyalty import LoyaltyCard

logger = logging.getLogger(__name__)


class LoyaltyService:
    """
    Applies the practice's loyalty rule to client cards.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def sessions_required(self) -> int:
        return self._config.loyalty_sessions_required

    def record_session(self, card: LoyaltyCard, now: DateTime | None = None) -> bool:
        """
        Count a completed session on the card.

        Returns True when this session completes the card.
        """
        was_available = card.free_session_available
        card.record_session(self.sessions_required, now=now)
        completed = card.free_session_available and not was_available
        if completed:
            logger.debug("Loyalty card completed after %d sessions", card.sessions_count)
        return completed

    def progress_percent(self, card: LoyaltyCard) -> int:
        return card.progress_percent(self.sessions_required)

    def sessions_remaining(self, card: LoyaltyCard) -> int:
        if card.is_completed:
            return 0
        return max(0, self.sessions_required - card.sessions_count)
