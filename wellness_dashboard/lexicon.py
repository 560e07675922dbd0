"""
Static mood lexicon.

Declaration order is significant: ties between moods are resolved in
favour of the mood declared first.
"""

import re

from .models import MoodLexiconEntry, SentimentClass

MOODS: tuple[MoodLexiconEntry, ...] = (
    MoodLexiconEntry(
        name="happy",
        primary_keywords=("happy", "joyful", "glad", "cheerful", "delighted"),
        secondary_keywords=(
            "good",
            "great",
            "wonderful",
            "pleased",
            "content",
            "blessed",
            "grateful",
            "thankful",
        ),
        expression_phrases=(
            "on cloud nine",
            "over the moon",
            "made my day",
            "big smile",
            "love it",
        ),
        statement_phrases=(
            "feeling good",
            "feeling great",
            "in a good mood",
            "having a good day",
            "having a great day",
            "life is good",
        ),
        emoji="😊",
        sentiment_class=SentimentClass.POSITIVE,
        detection_weight=1.0,
        base_wellness_score=85,
    ),
    MoodLexiconEntry(
        name="sad",
        primary_keywords=("sad", "depressed", "miserable", "heartbroken"),
        secondary_keywords=(
            "down",
            "upset",
            "lonely",
            "empty",
            "hopeless",
            "crying",
            "hurt",
            "disappointed",
        ),
        expression_phrases=(
            "want to cry",
            "feel like crying",
            "broken inside",
            "can't stop crying",
        ),
        statement_phrases=(
            "feeling down",
            "feeling low",
            "having a bad day",
            "had a rough day",
            "not okay",
        ),
        emoji="😢",
        sentiment_class=SentimentClass.NEGATIVE,
        detection_weight=1.0,
        base_wellness_score=35,
    ),
    MoodLexiconEntry(
        name="angry",
        primary_keywords=("angry", "furious", "mad", "enraged", "livid"),
        secondary_keywords=(
            "frustrated",
            "annoyed",
            "irritated",
            "rage",
            "hate",
            "pissed",
        ),
        expression_phrases=("fed up", "sick of", "drives me crazy", "can't stand"),
        statement_phrases=("so angry right now", "losing my temper", "had it with"),
        emoji="😠",
        sentiment_class=SentimentClass.NEGATIVE,
        detection_weight=1.0,
        base_wellness_score=25,
    ),
    MoodLexiconEntry(
        name="anxious",
        primary_keywords=("anxious", "worried", "nervous", "panicky", "scared"),
        secondary_keywords=(
            "stressed",
            "overwhelmed",
            "afraid",
            "tense",
            "uneasy",
            "panic",
            "restless",
        ),
        expression_phrases=(
            "on edge",
            "freaking out",
            "can't breathe",
            "racing thoughts",
            "butterflies in my stomach",
        ),
        statement_phrases=(
            "having a panic attack",
            "so much pressure",
            "can't stop worrying",
            "stressed out",
        ),
        emoji="😰",
        sentiment_class=SentimentClass.NEGATIVE,
        detection_weight=1.0,
        base_wellness_score=40,
    ),
    MoodLexiconEntry(
        name="calm",
        primary_keywords=("calm", "peaceful", "relaxed", "serene", "tranquil"),
        secondary_keywords=("centered", "balanced", "grounded", "at ease", "chill"),
        expression_phrases=("at peace", "deep breath", "taking it easy", "no worries"),
        statement_phrases=(
            "feeling calm",
            "feeling relaxed",
            "feeling at peace",
            "pretty chill",
        ),
        emoji="😌",
        sentiment_class=SentimentClass.POSITIVE,
        detection_weight=0.95,
        base_wellness_score=75,
    ),
    MoodLexiconEntry(
        name="tired",
        primary_keywords=("tired", "exhausted", "drained", "sleepy", "fatigued"),
        secondary_keywords=(
            "weary",
            "worn out",
            "burnt out",
            "burned out",
            "lethargic",
            "sluggish",
        ),
        expression_phrases=(
            "running on empty",
            "need a nap",
            "can't keep my eyes open",
            "no energy",
        ),
        statement_phrases=("feeling tired", "didn't sleep", "couldn't sleep", "long day"),
        emoji="😴",
        sentiment_class=SentimentClass.NEUTRAL,
        detection_weight=0.95,
        base_wellness_score=50,
    ),
    MoodLexiconEntry(
        name="confused",
        primary_keywords=("confused", "puzzled", "bewildered", "perplexed", "lost"),
        secondary_keywords=(
            "uncertain",
            "unsure",
            "unclear",
            "mixed up",
            "torn",
            "conflicted",
        ),
        expression_phrases=(
            "don't know what to do",
            "no idea",
            "makes no sense",
            "can't decide",
        ),
        statement_phrases=(
            "mixed feelings",
            "not sure how i feel",
            "all over the place",
        ),
        emoji="🤔",
        sentiment_class=SentimentClass.NEUTRAL,
        detection_weight=0.95,
        base_wellness_score=60,
    ),
    MoodLexiconEntry(
        name="excited",
        primary_keywords=("excited", "thrilled", "ecstatic", "pumped", "stoked"),
        secondary_keywords=("eager", "hyped", "psyched", "amazing", "awesome", "fantastic"),
        expression_phrases=("can't wait", "so ready", "looking forward"),
        statement_phrases=("super excited", "so excited", "can't contain"),
        emoji="🤩",
        sentiment_class=SentimentClass.POSITIVE,
        detection_weight=1.0,
        base_wellness_score=90,
    ),
)

# First-person emotional statements. Order matters: the first template whose
# captured clause contains a keyword wins.
STATEMENT_TEMPLATES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bright now i feel (.+)",
        r"\btoday i(?: am|'m) (.+)",
        r"\blately i've been (.+)",
        r"\blately i have been (.+)",
        r"\bi've been feeling (.+)",
        r"\bi have been feeling (.+)",
        r"\bi can't stop feeling (.+)",
        r"\bi'm feeling (.+)",
        r"\bi am feeling (.+)",
        r"\bi feel so (.+)",
        r"\bi feel (.+)",
        r"\bi'm so (.+)",
        r"\bi am so (.+)",
        r"\bi'm really (.+)",
        r"\bi am really (.+)",
        r"\bi'm getting (.+)",
        r"\bi'm (.+)",
        r"\bi am (.+)",
        r"\bi've been (.+)",
        r"\bi have been (.+)",
        r"\bmakes me feel (.+)",
        r"\bmade me feel (.+)",
        r"\bi get (?:so )?(.+)",
        r"\bi got (?:so )?(.+)",
        r"\bfeeling (.+)",
    )
)

# Used when a mood has no lexicon entry.
FALLBACK_BASE_SCORES: dict[str, int] = {
    "excited": 90,
    "happy": 85,
    "calm": 75,
    "confused": 60,
    "tired": 50,
    "anxious": 40,
    "sad": 35,
    "angry": 25,
}

# Simple calculator adjustments, applied when no trend data is available.
MOOD_ADJUSTMENTS: dict[str, int] = {
    "excited": 8,
    "happy": 6,
    "calm": 3,
    "confused": -2,
    "tired": -3,
    "anxious": -5,
    "sad": -6,
    "angry": -8,
}

NEUTRAL_MOOD = "neutral"
NEUTRAL_EMOJI = "😐"

DEFAULT_MOOD = "calm"
DEFAULT_WELLNESS_SCORE = 75
DEFAULT_INTERPRETATION = (
    "You seem calm and balanced today. "
    "Your emotional stability has been consistent over the past week."
)

MIN_WELLNESS_SCORE = 10
MAX_WELLNESS_SCORE = 100


def get_entry(mood_name: str, moods: tuple[MoodLexiconEntry, ...] = MOODS) -> MoodLexiconEntry | None:
    """Look up a lexicon entry by name."""
    for entry in moods:
        if entry.name == mood_name:
            return entry
    return None


def validate_lexicon(moods: tuple[MoodLexiconEntry, ...]) -> None:
    """Raise ValueError if mood names are not unique."""
    seen: set[str] = set()
    for entry in moods:
        if entry.name in seen:
            raise ValueError(f"Duplicate mood in lexicon: {entry.name}")
        seen.add(entry.name)


validate_lexicon(MOODS)
