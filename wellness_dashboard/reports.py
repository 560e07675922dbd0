"""
Mood trend reports built from stored dashboard snapshots.

A report covers a time range ending now and contains one data point per
calendar day, per-week aggregates and a short list of insights.
"""

from collections import Counter
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field

from . import lexicon
from .models import DashboardData, HistoricalUtterance, SentimentClass

MAX_INSIGHTS = 4


class TimeRange(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"

    @property
    def days(self) -> int:
        return {"week": 7, "month": 30, "quarter": 180}[self.value]


class InsightType(str, Enum):
    IMPROVEMENT = "improvement"
    CONCERN = "concern"
    ACHIEVEMENT = "achievement"
    PATTERN = "pattern"


class MoodDataPoint(BaseModel):
    """Mood state for one calendar day."""

    day: date
    mood: str = lexicon.NEUTRAL_EMOJI
    mood_name: str = lexicon.NEUTRAL_MOOD
    sentiment: SentimentClass = SentimentClass.NEUTRAL
    wellness_score: int | None = None
    message_count: int = 0
    timestamp: datetime


class WeeklyTrend(BaseModel):
    week: date = Field(..., description="First day (Sunday) of the week")
    average_wellness: int
    dominant_mood: str
    total_messages: int
    positive_ratio: float
    improvement: float


class MoodInsight(BaseModel):
    type: InsightType
    title: str
    description: str
    icon: str
    actionable: str | None = None


class TrendReport(BaseModel):
    time_range: TimeRange
    data: list[MoodDataPoint]
    weekly_trends: list[WeeklyTrend]
    insights: list[MoodInsight]


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def build_daily_points(
    history: Sequence[DashboardData],
    utterances: Sequence[HistoricalUtterance],
    start: datetime,
    end: datetime,
) -> list[MoodDataPoint]:
    """One point per day in [start, end]; the last snapshot written on a day wins."""
    points: dict[date, MoodDataPoint] = {}
    day = start.date()
    while day <= end.date():
        points[day] = MoodDataPoint(
            day=day, timestamp=datetime.combine(day, time.min, tzinfo=timezone.utc)
        )
        day += timedelta(days=1)

    for snapshot in history:
        day = snapshot.last_updated_at.date()
        existing = points.get(day)
        if existing is None:
            continue
        if existing.wellness_score is None or snapshot.last_updated_at >= existing.timestamp:
            points[day] = existing.model_copy(
                update={
                    "mood": snapshot.current_mood_emoji,
                    "mood_name": snapshot.mood_name,
                    "sentiment": snapshot.sentiment_class,
                    "wellness_score": snapshot.wellness_score,
                    "timestamp": snapshot.last_updated_at,
                }
            )

    for utterance in utterances:
        existing = points.get(utterance.timestamp.date())
        if existing is not None:
            existing.message_count += 1

    return [points[d] for d in sorted(points)]


def _average(points: Sequence[MoodDataPoint]) -> float:
    return sum(p.wellness_score or 0 for p in points) / len(points)


def calculate_weekly_trends(points: Sequence[MoodDataPoint]) -> list[WeeklyTrend]:
    weeks: dict[date, list[MoodDataPoint]] = {}
    for point in points:
        if point.wellness_score is None:
            continue
        weeks.setdefault(week_start(point.day), []).append(point)

    trends: list[WeeklyTrend] = []
    previous_average: float | None = None
    for key in sorted(weeks):
        week = weeks[key]
        average = _average(week)
        dominant = Counter(p.mood_name for p in week).most_common(1)[0][0]
        positives = sum(1 for p in week if p.sentiment is SentimentClass.POSITIVE)
        trends.append(
            WeeklyTrend(
                week=key,
                average_wellness=round(average),
                dominant_mood=dominant,
                total_messages=sum(p.message_count for p in week),
                positive_ratio=positives / len(week),
                improvement=average - previous_average if previous_average is not None else 0.0,
            )
        )
        previous_average = average
    return trends


def generate_insights(
    points: Sequence[MoodDataPoint], trends: Sequence[WeeklyTrend]
) -> list[MoodInsight]:
    scored = [p for p in points if p.wellness_score is not None]
    total_messages = sum(p.message_count for p in points)

    if not scored and not total_messages:
        return [
            MoodInsight(
                type=InsightType.PATTERN,
                title="Start Your Journey",
                description="Begin tracking your mood by chatting with the companion to see personalized insights here.",
                icon="🌟",
                actionable="Start a conversation to begin mood tracking",
            )
        ]

    insights: list[MoodInsight] = []

    if len(trends) >= 2:
        latest = trends[-1]
        if latest.improvement > 5:
            insights.append(
                MoodInsight(
                    type=InsightType.IMPROVEMENT,
                    title="Significant Progress! 📈",
                    description=f"Your wellness score improved by {round(latest.improvement)} points this week. You're on a positive trajectory!",
                    icon="🎉",
                    actionable="Keep up the great work with your current wellness practices",
                )
            )
        elif latest.improvement < -5:
            insights.append(
                MoodInsight(
                    type=InsightType.CONCERN,
                    title="Wellness Dip Detected",
                    description=f"Your wellness score decreased by {abs(round(latest.improvement))} points. This is normal - let's focus on self-care.",
                    icon="💙",
                    actionable="Consider practicing mindfulness or reaching out to someone you trust",
                )
            )
        if latest.positive_ratio > 0.7:
            insights.append(
                MoodInsight(
                    type=InsightType.ACHIEVEMENT,
                    title="Positivity Champion! ✨",
                    description=f"{round(latest.positive_ratio * 100)}% of your recent interactions were positive. Your mindset is thriving!",
                    icon="🌈",
                )
            )

    if len(scored) >= 5:
        insights.append(
            MoodInsight(
                type=InsightType.ACHIEVEMENT,
                title="Consistency Streak! 🔥",
                description=f"You've been actively tracking your mood for {len(scored)} days. Consistency is key to wellness!",
                icon="⭐",
                actionable="Keep your daily check-ins going to maintain momentum",
            )
        )

    if scored:
        dominant = Counter(p.mood_name for p in scored).most_common(1)[0][0]
        if dominant in ("happy", "excited"):
            insights.append(
                MoodInsight(
                    type=InsightType.PATTERN,
                    title="Joyful Spirit Detected! 😊",
                    description=f'Your most common mood is "{dominant}". You\'re radiating positive energy!',
                    icon="☀️",
                )
            )
        elif dominant == "calm":
            insights.append(
                MoodInsight(
                    type=InsightType.PATTERN,
                    title="Zen Master Mode 🧘",
                    description="You frequently experience calmness. This balanced state is excellent for mental clarity and decision-making.",
                    icon="🕊️",
                )
            )

    if points and total_messages / len(points) >= 3:
        insights.append(
            MoodInsight(
                type=InsightType.ACHIEVEMENT,
                title="Highly Engaged! 💬",
                description=f"You average {round(total_messages / len(points))} messages per day. Your commitment to wellness is inspiring!",
                icon="🎯",
            )
        )

    if scored:
        current = scored[-1].wellness_score
        if current >= 80:
            insights.append(
                MoodInsight(
                    type=InsightType.ACHIEVEMENT,
                    title="Wellness Superstar! 🌟",
                    description=f"Your current wellness score of {current} indicates excellent mental health. You're thriving!",
                    icon="🏆",
                )
            )
        elif current >= 60:
            insights.append(
                MoodInsight(
                    type=InsightType.IMPROVEMENT,
                    title="Steady Progress 📊",
                    description=f"Your wellness score of {current} shows you're on a good path. Small improvements compound over time.",
                    icon="📈",
                    actionable="Focus on one small wellness habit to boost your score further",
                )
            )

    return insights[:MAX_INSIGHTS]


def build_report(
    history: Sequence[DashboardData],
    utterances: Sequence[HistoricalUtterance],
    time_range: TimeRange,
    now: datetime,
) -> TrendReport:
    """Assemble a full trend report for the range ending at ``now``."""
    start = now - timedelta(days=time_range.days)
    points = build_daily_points(history, utterances, start, now)
    trends = calculate_weekly_trends(points)
    return TrendReport(
        time_range=time_range,
        data=points,
        weekly_trends=trends,
        insights=generate_insights(points, trends),
    )
