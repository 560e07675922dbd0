"""
Trend analysis over a user's recent conversation history.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from loguru import logger

from .matcher import PatternMatcher
from .models import HistoricalUtterance, SentimentClass, TrendSignals
from .store import DashboardStore, utc_now

RECENCY_DECAY = 0.1
TREND_SCALE = 20.0
CONSISTENCY_WINDOW = 5
CONSISTENCY_MIN_COUNT = 3
CONSISTENCY_BONUS = 5.0
RECENT_CHECK_IN_HOURS = 24
STALE_CHECK_IN_HOURS = 72
RECENT_CHECK_IN_BONUS = 2.0
STALE_CHECK_IN_PENALTY = -3.0


class TrendUnavailableError(Exception):
    """History could not be fetched in time; callers fall back to simple scoring."""


class TrendAnalyzer:
    """
    Derives trend signals from a user's recent utterances.

    Each utterance is re-classified with the pattern matcher (text only,
    stored sentiment is ignored) and weighted linearly by recency.
    """

    def __init__(
        self,
        store: DashboardStore,
        matcher: PatternMatcher,
        lookback_limit: int = 20,
        lookback_days: float = 7,
        timeout_seconds: float = 3.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.matcher = matcher
        self.lookback_limit = lookback_limit
        self.lookback_days = lookback_days
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    async def analyze(self, user_id: str) -> TrendSignals:
        """
        Fetch recent history and compute trend signals.

        Raises:
            TrendUnavailableError: If the fetch fails or times out
        """
        now = self._clock()
        since = now - timedelta(days=self.lookback_days)
        try:
            history = await asyncio.wait_for(
                self.store.get_recent_utterances(user_id, since, self.lookback_limit),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TrendUnavailableError(
                f"History lookup timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise TrendUnavailableError(f"History lookup failed: {e}") from e

        # Stores are expected to return newest first; don't rely on it.
        history = sorted(history, key=lambda u: u.timestamp, reverse=True)
        return self.signals_from_history(history[: self.lookback_limit], now)

    def signals_from_history(
        self, history: Sequence[HistoricalUtterance], now: datetime
    ) -> TrendSignals:
        """Compute signals from utterances ordered newest first."""
        if not history:
            return TrendSignals()

        classes = [self.matcher.detect(u.text).sentiment_class for u in history]

        positive = negative = total = 0.0
        for index, sentiment in enumerate(classes):
            weight = max(0.0, 1.0 - index * RECENCY_DECAY)
            total += weight
            if sentiment is SentimentClass.POSITIVE:
                positive += weight
            elif sentiment is SentimentClass.NEGATIVE:
                negative += weight
        trend_factor = ((positive - negative) / total) * TREND_SCALE if total else 0.0

        recent = classes[:CONSISTENCY_WINDOW]
        if recent.count(SentimentClass.POSITIVE) >= CONSISTENCY_MIN_COUNT:
            consistency = CONSISTENCY_BONUS
        elif recent.count(SentimentClass.NEGATIVE) >= CONSISTENCY_MIN_COUNT:
            consistency = -CONSISTENCY_BONUS
        else:
            consistency = 0.0

        hours_since_last = (now - history[0].timestamp).total_seconds() / 3600
        if hours_since_last <= RECENT_CHECK_IN_HOURS:
            time_factor = RECENT_CHECK_IN_BONUS
        elif hours_since_last > STALE_CHECK_IN_HOURS:
            time_factor = STALE_CHECK_IN_PENALTY
        else:
            time_factor = 0.0

        signals = TrendSignals(
            trend_factor=max(-TREND_SCALE, min(TREND_SCALE, trend_factor)),
            consistency_factor=consistency,
            time_since_last_factor=time_factor,
        )
        logger.debug(
            "Trend over {} utterances: trend={:.2f} consistency={} time={}",
            len(history),
            signals.trend_factor,
            signals.consistency_factor,
            signals.time_since_last_factor,
        )
        return signals
