"""
Shared data models for the wellness dashboard engine.

This module defines the core domain models used across multiple layers
of the application (inference engine, persistence, API, CLI).
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SentimentClass(str, Enum):
    """Coarse positive/negative/neutral bucket."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class DetectionMethod(str, Enum):
    """Detection tiers, highest priority first."""

    DIRECT_STATEMENT = "direct_statement"
    PHRASE_MATCH = "phrase_match"
    KEYWORD_SCAN = "keyword_scan"
    SENTIMENT_FALLBACK = "sentiment_fallback"


class MatchMode(str, Enum):
    """How keywords are located inside an utterance."""

    SUBSTRING = "substring"
    TOKEN = "token"


def coerce_sentiment(value: Any) -> SentimentClass | None:
    """
    Normalize an upstream sentiment label.

    Accepts enum members and case-insensitive strings. Anything else,
    including error objects from the chat transport, becomes None.
    """
    if isinstance(value, SentimentClass):
        return value
    if not isinstance(value, str):
        return None
    try:
        return SentimentClass(value.strip().lower())
    except ValueError:
        return None


class MoodLexiconEntry(BaseModel):
    """One named mood and its keyword tiers."""

    model_config = ConfigDict(frozen=True)

    name: str
    primary_keywords: tuple[str, ...] = Field(..., min_length=1)
    secondary_keywords: tuple[str, ...] = ()
    expression_phrases: tuple[str, ...] = ()
    statement_phrases: tuple[str, ...] = ()
    emoji: str
    sentiment_class: SentimentClass
    detection_weight: float = Field(1.0, gt=0.0, le=1.0)
    base_wellness_score: int = Field(..., ge=0, le=100)


class MoodDetectionResult(BaseModel):
    """Outcome of classifying a single utterance."""

    model_config = ConfigDict(frozen=True)

    mood_name: str = Field(..., description="Detected mood, or 'neutral'")
    emoji: str
    sentiment_class: SentimentClass
    confidence: float = Field(..., ge=0.0, le=1.0)
    should_update: bool
    matched_evidence: tuple[str, ...] = ()
    detection_method: DetectionMethod | None = None


class DashboardData(BaseModel):
    """The single live dashboard record for a user."""

    current_mood_emoji: str
    mood_name: str
    interpretation_text: str
    wellness_score: int = Field(..., ge=10, le=100)
    sentiment_class: SentimentClass
    last_updated_at: datetime
    last_user_message: str | None = None
    last_ai_response: str | None = None


class HistoricalUtterance(BaseModel):
    """A prior conversational turn, as seen by the trend analyzer."""

    text: str
    timestamp: datetime


class TrendSignals(BaseModel):
    """Factors derived from recent history that feed the score calculator."""

    trend_factor: float = Field(0.0, ge=-20.0, le=20.0)
    consistency_factor: float = 0.0
    time_since_last_factor: float = 0.0


class MoodUpdateEvent(BaseModel):
    """Notification emitted after a dashboard update."""

    user_id: str
    mood_emoji: str
    mood_name: str
    wellness_score: int
    wellness_score_delta: int
    timestamp: float


class TurnResult(BaseModel):
    """What the controller reports back for one conversational turn."""

    detection: MoodDetectionResult
    dashboard: DashboardData | None = None
    updated: bool = False
    wellness_score_delta: int = 0
