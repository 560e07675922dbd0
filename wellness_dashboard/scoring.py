"""
Wellness score calculation.

The trend-aware calculator pulls the score toward the current mood's base
score, adjusted by recent history, and caps each update at
``MAX_STEP`` points. The simple calculator is used when no trend data
could be fetched.
"""

import math

from . import lexicon
from .models import MoodLexiconEntry, SentimentClass, TrendSignals, coerce_sentiment

MOMENTUM_RATE = 0.3
MAX_MOMENTUM = 15.0
MAX_STEP = 12.0

SENTIMENT_MULTIPLIERS = {
    SentimentClass.POSITIVE: 1.2,
    SentimentClass.NEGATIVE: 0.8,
}


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def base_score(mood_name: str, moods: tuple[MoodLexiconEntry, ...] = lexicon.MOODS) -> int:
    """Base wellness score for a mood, falling back to the static table."""
    entry = lexicon.get_entry(mood_name, moods)
    if entry is not None:
        return entry.base_wellness_score
    return lexicon.FALLBACK_BASE_SCORES.get(mood_name, lexicon.DEFAULT_WELLNESS_SCORE)


def compute_score(
    mood_name: str,
    sentiment: SentimentClass | str | None,
    current_score: int,
    signals: TrendSignals | None,
    moods: tuple[MoodLexiconEntry, ...] = lexicon.MOODS,
) -> int:
    """
    Compute the next wellness score.

    Args:
        mood_name: The detected mood
        sentiment: Upstream sentiment label, used by the simple calculator
        current_score: The score currently on the dashboard
        signals: Trend signals, or None when history is unavailable
        moods: Lexicon providing base scores

    Returns:
        The new score, within [10, 100]
    """
    if signals is None:
        return compute_simple_score(mood_name, sentiment, current_score)

    base = base_score(mood_name, moods)
    momentum = clamp((base - current_score) * MOMENTUM_RATE, -MAX_MOMENTUM, MAX_MOMENTUM)
    target = (
        base
        + signals.trend_factor
        + signals.consistency_factor
        + signals.time_since_last_factor
    )
    change = clamp((target - current_score) + momentum, -MAX_STEP, MAX_STEP)
    return int(
        clamp(
            round_half_up(current_score + change),
            lexicon.MIN_WELLNESS_SCORE,
            lexicon.MAX_WELLNESS_SCORE,
        )
    )


def compute_simple_score(
    mood_name: str, sentiment: SentimentClass | str | None, current_score: int
) -> int:
    """Apply a fixed per-mood adjustment scaled by the upstream sentiment."""
    adjustment = lexicon.MOOD_ADJUSTMENTS.get(mood_name, 0)
    multiplier = SENTIMENT_MULTIPLIERS.get(coerce_sentiment(sentiment), 1.0)
    return int(
        clamp(
            current_score + round_half_up(adjustment * multiplier),
            lexicon.MIN_WELLNESS_SCORE,
            lexicon.MAX_WELLNESS_SCORE,
        )
    )
