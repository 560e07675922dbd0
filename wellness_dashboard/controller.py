"""
Dashboard state controller.

Runs the inference engine for each conversational turn and keeps the
user's dashboard record current. A user's dashboard is created with default
values (calm, score 75) the first time it is accessed.

Turns for the same user are not serialized here: if two turns race, the
later write wins.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from . import lexicon, scoring
from .config import Settings
from .events import UpdateBroadcaster
from .interpretation import InterpretationGenerator
from .matcher import PatternMatcher
from .models import (
    DashboardData,
    MoodDetectionResult,
    MoodUpdateEvent,
    SentimentClass,
    TrendSignals,
    TurnResult,
    coerce_sentiment,
)
from .reports import TimeRange, TrendReport, build_report
from .store import DashboardStore, utc_now
from .trend import TrendAnalyzer, TrendUnavailableError


def is_valid_user_id(user_id: Any) -> bool:
    return isinstance(user_id, str) and bool(user_id.strip())


def default_dashboard(now: datetime) -> DashboardData:
    entry = lexicon.get_entry(lexicon.DEFAULT_MOOD)
    return DashboardData(
        current_mood_emoji=entry.emoji,
        mood_name=entry.name,
        interpretation_text=lexicon.DEFAULT_INTERPRETATION,
        wellness_score=lexicon.DEFAULT_WELLNESS_SCORE,
        sentiment_class=entry.sentiment_class,
        last_updated_at=now,
    )


class DashboardStateController:
    """
    Orchestrates mood detection, trend analysis and scoring per user.

    All collaborators are injected; the controller keeps only a cache of
    the latest record for each user it has seen.
    """

    def __init__(
        self,
        store: DashboardStore,
        broadcaster: UpdateBroadcaster,
        matcher: PatternMatcher | None = None,
        analyzer: TrendAnalyzer | None = None,
        interpreter: InterpretationGenerator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.broadcaster = broadcaster
        self.matcher = matcher or PatternMatcher()
        self.analyzer = analyzer or TrendAnalyzer(store, self.matcher, clock=clock)
        self.interpreter = interpreter or InterpretationGenerator()
        self._clock = clock
        self._cache: dict[str, DashboardData] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: DashboardStore | None = None,
        broadcaster: UpdateBroadcaster | None = None,
    ) -> "DashboardStateController":
        store = store or DashboardStore()
        matcher = PatternMatcher(
            match_mode=settings.match_mode, update_threshold=settings.update_threshold
        )
        analyzer = TrendAnalyzer(
            store,
            matcher,
            lookback_limit=settings.lookback_limit,
            lookback_days=settings.lookback_days,
            timeout_seconds=settings.trend_timeout_seconds,
        )
        return cls(
            store=store,
            broadcaster=broadcaster or UpdateBroadcaster(),
            matcher=matcher,
            analyzer=analyzer,
        )

    async def get_dashboard(self, user_id: str) -> DashboardData:
        """
        Get a user's dashboard, creating the default record on first access.

        Raises:
            ValueError: If the user id is empty or not a string
        """
        if not is_valid_user_id(user_id):
            raise ValueError(f"Invalid user id: {user_id!r}")

        cached = self._cache.get(user_id)
        if cached is not None:
            return cached

        record = await self.store.get(user_id)
        if record is None:
            # Not a check-in: kept out of the mood history.
            record = await self.store.upsert(
                user_id, default_dashboard(self._clock()), snapshot=False
            )
            logger.info("Created default dashboard for user {}", user_id)

        self._cache[user_id] = record
        return record

    async def process_turn(
        self,
        user_id: str,
        utterance: str,
        upstream_sentiment: SentimentClass | str | None = None,
        ai_response: str | None = None,
    ) -> TurnResult:
        """
        Update the dashboard from one conversational turn.

        Args:
            user_id: The user who sent the message
            utterance: The user's message
            upstream_sentiment: Sentiment label from the chat transport
            ai_response: The companion's reply, stored alongside the update

        Returns:
            The detection and, when it qualified, the updated dashboard

        Raises:
            Exception: Whatever the store raises when a write fails
        """
        sentiment = coerce_sentiment(upstream_sentiment)
        if not is_valid_user_id(user_id):
            logger.debug("Ignoring turn with invalid user id {!r}", user_id)
            return TurnResult(detection=self.matcher.detect(""))

        detection = self.matcher.detect(utterance, sentiment)
        current = await self.get_dashboard(user_id)

        if not detection.should_update:
            logger.debug(
                "No dashboard update for {} (confidence {:.2f})",
                user_id,
                detection.confidence,
            )
            await self._record_utterance(user_id, utterance)
            return TurnResult(detection=detection, dashboard=current)

        signals = await self._trend_signals(user_id)

        new_score = scoring.compute_score(
            detection.mood_name,
            sentiment,
            current.wellness_score,
            signals,
            self.matcher.moods,
        )
        updated = DashboardData(
            current_mood_emoji=detection.emoji,
            mood_name=detection.mood_name,
            interpretation_text=self.interpreter.interpret(
                detection.mood_name, detection.matched_evidence
            ),
            wellness_score=new_score,
            sentiment_class=detection.sentiment_class,
            last_updated_at=self._clock(),
            last_user_message=utterance,
            last_ai_response=ai_response,
        )

        try:
            record = await self.store.upsert(user_id, updated)
        except Exception:
            logger.exception("Failed to persist dashboard for user {}", user_id)
            raise

        # Only once stored, and after the trend lookup so a turn is not part
        # of its own trend.
        await self._record_utterance(user_id, utterance)
        self._cache[user_id] = record
        delta = record.wellness_score - current.wellness_score
        logger.info(
            "Dashboard for {} updated: {} {} score {} ({:+d})",
            user_id,
            record.current_mood_emoji,
            record.mood_name,
            record.wellness_score,
            delta,
        )
        await self.broadcaster.publish(
            MoodUpdateEvent(
                user_id=user_id,
                mood_emoji=record.current_mood_emoji,
                mood_name=record.mood_name,
                wellness_score=record.wellness_score,
                wellness_score_delta=delta,
                timestamp=record.last_updated_at.timestamp(),
            )
        )
        return TurnResult(
            detection=detection, dashboard=record, updated=True, wellness_score_delta=delta
        )

    def detect(
        self, utterance: str, upstream_sentiment: SentimentClass | str | None = None
    ) -> MoodDetectionResult:
        return self.matcher.detect(utterance, upstream_sentiment)

    async def trend_report(
        self, user_id: str, time_range: TimeRange = TimeRange.WEEK
    ) -> TrendReport:
        """Build a mood trend report for the user over ``time_range``."""
        if not is_valid_user_id(user_id):
            raise ValueError(f"Invalid user id: {user_id!r}")
        now = self._clock()
        since = now - timedelta(days=time_range.days)
        history = await self.store.get_mood_history(user_id, since)
        utterances = await self.store.get_recent_utterances(user_id, since, limit=10_000)
        return build_report(history, utterances, time_range, now)

    async def _trend_signals(self, user_id: str) -> TrendSignals | None:
        try:
            return await self.analyzer.analyze(user_id)
        except TrendUnavailableError as e:
            logger.warning("Trend data unavailable for {}, using simple scoring: {}", user_id, e)
            return None

    async def _record_utterance(self, user_id: str, utterance: str) -> None:
        if isinstance(utterance, str) and utterance.strip():
            await self.store.append_utterance(user_id, utterance, self._clock())
