"""
Tests for the wellness score calculators.
"""

import itertools

import pytest

from wellness_dashboard import scoring
from wellness_dashboard.models import TrendSignals


class TestSimpleCalculator:
    """Fallback calculator used when trend data is unavailable."""

    def test_angry_without_trend_data(self):
        assert scoring.compute_score("angry", None, 75, None) == 67

    def test_sentiment_multiplier(self):
        # 6 * 1.2 = 7.2 -> 7
        assert scoring.compute_simple_score("happy", "positive", 70) == 77
        # -8 * 0.8 = -6.4 -> -6
        assert scoring.compute_simple_score("angry", "negative", 75) == 69

    def test_unknown_mood_has_no_adjustment(self):
        assert scoring.compute_simple_score("neutral", "positive", 50) == 50

    def test_clamped(self):
        assert scoring.compute_simple_score("excited", "positive", 98) == 100
        assert scoring.compute_simple_score("angry", None, 12) == 10


class TestTrendAwareCalculator:
    """Momentum-smoothed calculator."""

    def test_pull_toward_base_score(self):
        # momentum = (85 - 80) * 0.3 = 1.5, target = 85 + 2, change = 7 + 1.5
        signals = TrendSignals(time_since_last_factor=2)
        assert scoring.compute_score("happy", None, 80, signals) == 89

    def test_change_capped_per_update(self):
        signals = TrendSignals(trend_factor=-20, consistency_factor=-5, time_since_last_factor=-3)
        assert scoring.compute_score("angry", "negative", 90, signals) == 78

    def test_consistency_bonus_raises_score(self):
        mixed = TrendSignals(trend_factor=0, consistency_factor=0)
        consistent = TrendSignals(trend_factor=0, consistency_factor=5)

        without_bonus = scoring.compute_score("happy", "positive", 84, mixed)
        with_bonus = scoring.compute_score("happy", "positive", 84, consistent)

        assert without_bonus == 85
        assert with_bonus == 90
        assert with_bonus > without_bonus

    def test_unknown_mood_uses_fallback_table(self):
        assert scoring.base_score("excited") == 90
        assert scoring.base_score("neutral", moods=()) == 75
        assert scoring.base_score("sad", moods=()) == 35

    @pytest.mark.parametrize(
        "mood, current, trend, consistency, time_factor",
        list(
            itertools.product(
                ["excited", "happy", "calm", "confused", "tired", "anxious", "sad", "angry", "neutral"],
                [10, 11, 40, 75, 99, 100],
                [-20.0, 0.0, 20.0],
                [-5.0, 0.0, 5.0],
                [-3.0, 0.0, 2.0],
            )
        ),
    )
    def test_bounds_and_step_cap(self, mood, current, trend, consistency, time_factor):
        signals = TrendSignals(
            trend_factor=trend,
            consistency_factor=consistency,
            time_since_last_factor=time_factor,
        )
        new_score = scoring.compute_score(mood, None, current, signals)

        assert 10 <= new_score <= 100
        assert abs(new_score - current) <= 12
