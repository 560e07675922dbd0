"""
Tests for the DashboardStateController.

These tests drive complete conversational turns through detection, trend
analysis, scoring, persistence and notification.
"""

import random
from datetime import timedelta

import pytest

from conftest import FakeClock
from wellness_dashboard.config import Settings
from wellness_dashboard.controller import DashboardStateController
from wellness_dashboard.events import UpdateBroadcaster
from wellness_dashboard.interpretation import INTERPRETATIONS, InterpretationGenerator
from wellness_dashboard.matcher import PatternMatcher
from wellness_dashboard.models import MatchMode, SentimentClass
from wellness_dashboard.reports import TimeRange
from wellness_dashboard.store import DashboardStore
from wellness_dashboard.trend import TrendAnalyzer


class HistoryUnavailableStore(DashboardStore):
    async def get_recent_utterances(self, user_id, since, limit):
        raise ConnectionError("history service down")


class ReadOnlyStore(DashboardStore):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False

    async def upsert(self, user_id, data, snapshot=True):
        if self.fail_writes:
            raise RuntimeError("write rejected")
        return await super().upsert(user_id, data, snapshot)


def make_controller(store_cls=DashboardStore, clock=None):
    clock = clock or FakeClock()
    store = store_cls(clock=clock)
    matcher = PatternMatcher()
    controller = DashboardStateController(
        store=store,
        broadcaster=UpdateBroadcaster(),
        matcher=matcher,
        analyzer=TrendAnalyzer(store, matcher, clock=clock),
        interpreter=InterpretationGenerator(random.Random(0)),
        clock=clock,
    )
    return controller, store, clock


class TestDashboardLifecycle:
    """Creation and retrieval of dashboards."""

    def setup_method(self):
        self.controller, self.store, self.clock = make_controller()

    async def test_default_dashboard_created_on_first_access(self):
        dashboard = await self.controller.get_dashboard("u1")

        assert dashboard.mood_name == "calm"
        assert dashboard.current_mood_emoji == "😌"
        assert dashboard.wellness_score == 75
        assert await self.store.get("u1") == dashboard

    async def test_existing_record_is_loaded(self):
        await self.controller.get_dashboard("u1")
        fresh, _, _ = make_controller()
        fresh.store = self.store

        assert (await fresh.get_dashboard("u1")) == (await self.store.get("u1"))

    @pytest.mark.parametrize("user_id", ["", "   ", None, 7])
    async def test_invalid_user_id(self, user_id):
        with pytest.raises(ValueError):
            await self.controller.get_dashboard(user_id)

        result = await self.controller.process_turn(user_id, "I'm so happy")
        assert not result.updated
        assert result.dashboard is None
        assert result.detection.mood_name == "neutral"


class TestProcessTurn:
    """Conversational turns."""

    def setup_method(self):
        self.controller, self.store, self.clock = make_controller()
        self.events = []
        self.controller.broadcaster.subscribe(self.events.append)

    async def test_anxious_turn_updates_dashboard(self):
        result = await self.controller.process_turn(
            "u1", "I feel really anxious about work", None, "That sounds hard."
        )

        assert result.updated
        assert result.detection.mood_name == "anxious"
        dashboard = result.dashboard
        assert dashboard.mood_name == "anxious"
        assert dashboard.current_mood_emoji == "😰"
        assert dashboard.sentiment_class is SentimentClass.NEGATIVE
        assert dashboard.last_user_message == "I feel really anxious about work"
        assert dashboard.last_ai_response == "That sounds hard."
        assert dashboard.interpretation_text.split(" (Noticed")[0] in INTERPRETATIONS["anxious"]
        assert '"anxious"' in dashboard.interpretation_text
        # No history yet: base 40, momentum -10.5, change capped at -12
        assert dashboard.wellness_score == 63
        assert result.wellness_score_delta == -12
        assert await self.store.get("u1") == dashboard

    async def test_notification_emitted(self):
        await self.controller.process_turn("u1", "I'm so excited for the weekend")

        assert len(self.events) == 1
        event = self.events[0]
        assert event.user_id == "u1"
        assert event.mood_name == "excited"
        assert event.mood_emoji == "🤩"
        assert event.wellness_score_delta == event.wellness_score - 75
        assert event.timestamp == self.clock.now.timestamp()

    async def test_fallback_tier_updates(self):
        result = await self.controller.process_turn("u1", "things are okay I guess", "neutral")

        assert result.updated
        assert result.detection.confidence == pytest.approx(0.25)
        assert result.dashboard.mood_name == "calm"

    async def test_empty_utterance_leaves_dashboard_unchanged(self):
        before = await self.controller.get_dashboard("u1")

        result = await self.controller.process_turn("u1", "", "positive")

        assert not result.updated
        assert result.detection.mood_name == "neutral"
        assert result.detection.confidence == 0
        assert result.dashboard == before
        assert await self.store.get("u1") == before
        assert self.events == []

    async def test_malformed_sentiment_is_ignored(self):
        result = await self.controller.process_turn(
            "u1", "see you tomorrow", {"error": "upstream timeout"}
        )

        assert not result.updated
        assert result.detection.mood_name == "neutral"

    async def test_history_unavailable_uses_simple_calculator(self):
        controller, store, _ = make_controller(HistoryUnavailableStore)

        result = await controller.process_turn("u1", "I am furious")

        assert result.updated
        assert result.dashboard.mood_name == "angry"
        assert result.dashboard.wellness_score == 67

    async def test_persistence_failure_propagates(self):
        controller, store, _ = make_controller(ReadOnlyStore)
        before = await controller.get_dashboard("u1")
        store.fail_writes = True

        with pytest.raises(RuntimeError):
            await controller.process_turn("u1", "I'm so happy")

        assert await store.get("u1") == before
        assert await controller.get_dashboard("u1") == before
        # The failed turn must not feed later trends
        assert await store.get_recent_utterances("u1", before.last_updated_at, limit=10) == []

    async def test_consistent_positive_history_raises_score_more(self):
        consistent, consistent_store, clock = make_controller()
        mixed, mixed_store, _ = make_controller(clock=clock)

        for hours_ago, (good, other) in enumerate(
            [
                ("I'm so happy", "I feel so sad"),
                ("I'm so glad", "I feel so down"),
                ("I'm so cheerful", "see you tomorrow"),
                ("I feel great", "I'm so happy"),
                ("I'm so happy", "see you tomorrow"),
            ],
            start=1,
        ):
            timestamp = clock.now - timedelta(hours=hours_ago)
            await consistent_store.append_utterance("u1", good, timestamp)
            await mixed_store.append_utterance("u1", other, timestamp)

        up = await consistent.process_turn("u1", "I'm so happy today")
        flat = await mixed.process_turn("u1", "I'm so happy today")

        assert up.detection.mood_name == flat.detection.mood_name == "happy"
        assert up.wellness_score_delta > flat.wellness_score_delta > 0

    async def test_turns_are_recorded_for_trends(self):
        await self.controller.process_turn("u1", "I'm so happy")
        self.clock.advance(hours=1)
        await self.controller.process_turn("u1", "see you tomorrow")

        recent = await self.store.get_recent_utterances(
            "u1", self.clock.now - timedelta(days=1), limit=10
        )
        assert [u.text for u in recent] == ["see you tomorrow", "I'm so happy"]

    async def test_trend_report(self):
        await self.controller.process_turn("u1", "I'm so happy")

        report = await self.controller.trend_report("u1", TimeRange.WEEK)

        assert report.time_range is TimeRange.WEEK
        assert len(report.data) == 8
        today = report.data[-1]
        assert today.mood_name == "happy"
        assert today.message_count == 1

    async def test_viewing_dashboard_is_not_a_check_in(self):
        await self.controller.get_dashboard("u1")

        report = await self.controller.trend_report("u1", TimeRange.WEEK)

        assert [i.title for i in report.insights] == ["Start Your Journey"]
        assert all(p.wellness_score is None for p in report.data)
        assert report.weekly_trends == []


def test_from_settings():
    settings = Settings(match_mode="token", lookback_limit=5, trend_timeout_seconds=1.5)
    controller = DashboardStateController.from_settings(settings)

    assert controller.matcher.match_mode is MatchMode.TOKEN
    assert controller.analyzer.lookback_limit == 5
    assert controller.analyzer.timeout_seconds == 1.5
    assert controller.analyzer.store is controller.store
