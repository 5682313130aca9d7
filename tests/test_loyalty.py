"""
Tests for the loyalty card.
"""

import pendulum
import pytest

from sensea.config import AppConfig
from sensea.domain.loyalty import LoyaltyCard
from sensea.services.loyalty import LoyaltyService

NOW = pendulum.datetime(2030, 3, 1, 10, 0, tz="Europe/Paris")


class TestLoyaltyCard:
    """Tests for LoyaltyCard."""

    def test_completes_after_required_sessions(self):
        """The card completes on the last required session."""
        card = LoyaltyCard()

        for _ in range(8):
            card.record_session(9, now=NOW)
        assert not card.is_completed

        card.record_session(9, now=NOW)

        assert card.is_completed
        assert card.completed_at == NOW
        assert card.free_session_available

    def test_waits_for_free_session(self):
        """Sessions are not counted while the free session is pending."""
        card = LoyaltyCard(sessions_count=9, is_completed=True, completed_at=NOW)

        card.record_session(9, now=NOW)

        assert card.sessions_count == 9

    def test_restarts_after_free_session(self):
        """Once the free session is used, the next session opens a new card."""
        card = LoyaltyCard(sessions_count=9, is_completed=True, completed_at=NOW)

        assert card.mark_free_session_used(now=NOW)
        card.record_session(9, now=NOW)

        assert card.sessions_count == 1
        assert not card.is_completed
        assert card.free_session_used_at is None

    def test_free_session_needs_completed_card(self):
        """An incomplete card has no free session to use."""
        card = LoyaltyCard(sessions_count=3)

        assert not card.mark_free_session_used(now=NOW)

    @pytest.mark.parametrize("count,expected", [(0, 0), (3, 33), (6, 67), (9, 100), (12, 100)])
    def test_progress_percent(self, count, expected):
        """Progress is rounded and capped at 100."""
        assert LoyaltyCard(sessions_count=count).progress_percent(9) == expected

    def test_invalid_requirement(self):
        """A card needs at least one session."""
        with pytest.raises(ValueError):
            LoyaltyCard().record_session(0)

    def test_progress_needs_positive_requirement(self):
        """Progress cannot be computed against zero sessions."""
        with pytest.raises(ValueError):
            LoyaltyCard(sessions_count=3).progress_percent(0)


class TestLoyaltyService:
    """Tests for LoyaltyService."""

    def test_uses_configured_requirement(self):
        """A card completes after the configured number of sessions."""
        service = LoyaltyService(AppConfig(loyalty_sessions_required=5))
        card = LoyaltyCard()

        results = [service.record_session(card, now=NOW) for _ in range(5)]

        assert results == [False, False, False, False, True]
        assert card.free_session_available
        assert service.progress_percent(card) == 100
        assert service.sessions_remaining(card) == 0

    def test_default_requirement(self):
        """With default settings five sessions are not enough."""
        service = LoyaltyService(AppConfig())
        card = LoyaltyCard()

        for _ in range(5):
            service.record_session(card, now=NOW)

        assert not card.is_completed
        assert service.progress_percent(card) == 56
        assert service.sessions_remaining(card) == 4

    def test_pending_free_session_not_completed_again(self):
        """Sessions recorded while the free one is pending change nothing."""
        service = LoyaltyService(AppConfig(loyalty_sessions_required=2))
        card = LoyaltyCard(sessions_count=2, is_completed=True, completed_at=NOW)

        assert not service.record_session(card, now=NOW)
        assert card.sessions_count == 2
