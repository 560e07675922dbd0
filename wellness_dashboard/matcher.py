"""
Keyword-driven mood detection.

Utterances are classified by a cascade of detection tiers, tried in strict
priority order; the first tier that produces a mood wins:

1. Direct statement: a first-person emotional statement ("i feel ...")
   whose captured clause contains a mood keyword.
2. Phrase match: a full statement phrase anywhere in the utterance.
3. Keyword scan: weighted keyword accumulation across every mood.
4. Sentiment fallback: the upstream sentiment label, if any.

Keywords are located by substring containment by default, so "mad" is
found inside "madrid". Token matching is available as an opt-in mode.
"""

import re
from collections.abc import Iterable

from loguru import logger

from . import lexicon
from .models import (
    DetectionMethod,
    MatchMode,
    MoodDetectionResult,
    MoodLexiconEntry,
    SentimentClass,
    coerce_sentiment,
)

# Confidence multipliers per tier. Scaled by each mood's detection weight.
DIRECT_PRIMARY = 0.95
DIRECT_SECONDARY = 0.85
DIRECT_EXPRESSION = 0.80
PHRASE = 0.75
SCAN_PRIMARY = 0.8
SCAN_SECONDARY = 0.6
SCAN_EXPRESSION = 0.7
SCAN_MIN_SCORE = 0.2
SCAN_BONUS = 0.2
SCAN_MAX_CONFIDENCE = 0.85

DEFAULT_UPDATE_THRESHOLD = 0.15

# Upstream sentiment -> (mood, confidence) for the last tier.
SENTIMENT_FALLBACK: dict[SentimentClass, tuple[str, float]] = {
    SentimentClass.POSITIVE: ("happy", 0.4),
    SentimentClass.NEGATIVE: ("sad", 0.4),
    SentimentClass.NEUTRAL: ("calm", 0.25),
}


def normalize(text: str) -> str:
    """Lowercase and fold typographic apostrophes."""
    return text.lower().replace("’", "'").replace("‘", "'")


class PatternMatcher:
    """
    Classifies free text against a mood lexicon.

    Instances hold no mutable state, so ``detect`` is a pure function of
    its inputs and the lexicon it was built with.
    """

    def __init__(
        self,
        moods: tuple[MoodLexiconEntry, ...] = lexicon.MOODS,
        templates: tuple[re.Pattern[str], ...] = lexicon.STATEMENT_TEMPLATES,
        match_mode: MatchMode = MatchMode.SUBSTRING,
        update_threshold: float = DEFAULT_UPDATE_THRESHOLD,
    ) -> None:
        lexicon.validate_lexicon(moods)
        self.moods = moods
        self.templates = templates
        self.match_mode = MatchMode(match_mode)
        self.update_threshold = update_threshold
        self._token_patterns: dict[str, re.Pattern[str]] = {}
        if self.match_mode is MatchMode.TOKEN:
            for entry in moods:
                for keyword in _all_terms(entry):
                    self._token_patterns[keyword] = re.compile(
                        rf"(?<!\w){re.escape(keyword)}(?!\w)"
                    )

    def detect(
        self, utterance: str, upstream_sentiment: SentimentClass | str | None = None
    ) -> MoodDetectionResult:
        """
        Classify an utterance.

        Args:
            utterance: Raw user text
            upstream_sentiment: Optional sentiment label from the chat
                transport; malformed values are ignored

        Returns:
            The detection result; neutral with zero confidence on a miss
        """
        text = normalize(utterance) if isinstance(utterance, str) else ""
        sentiment = coerce_sentiment(upstream_sentiment)

        if not text.strip():
            return self._neutral()

        result = (
            self._match_statement(text)
            or self._match_phrase(text)
            or self._scan_keywords(text)
        )
        if result is None and sentiment is not None:
            result = self._fallback(sentiment)
        if result is None:
            result = self._neutral()

        logger.debug(
            "Detected mood {} ({}) confidence={:.2f}",
            result.mood_name,
            result.detection_method.value if result.detection_method else "none",
            result.confidence,
        )
        return result

    # MARK: - Tiers

    def _match_statement(self, text: str) -> MoodDetectionResult | None:
        for template in self.templates:
            match = template.search(text)
            if not match:
                continue
            clause = match.group(1)
            for attr, multiplier in (
                ("primary_keywords", DIRECT_PRIMARY),
                ("secondary_keywords", DIRECT_SECONDARY),
                ("expression_phrases", DIRECT_EXPRESSION),
            ):
                for entry in self.moods:
                    keyword = self._first_present(getattr(entry, attr), clause)
                    if keyword is not None:
                        return self._result(
                            entry,
                            multiplier * entry.detection_weight,
                            (keyword,),
                            DetectionMethod.DIRECT_STATEMENT,
                        )
        return None

    def _match_phrase(self, text: str) -> MoodDetectionResult | None:
        for entry in self.moods:
            phrase = self._first_present(entry.statement_phrases, text)
            if phrase is not None:
                return self._result(
                    entry,
                    PHRASE * entry.detection_weight,
                    (phrase,),
                    DetectionMethod.PHRASE_MATCH,
                )
        return None

    def _scan_keywords(self, text: str) -> MoodDetectionResult | None:
        best: MoodLexiconEntry | None = None
        best_score = 0.0
        best_evidence: list[str] = []

        for entry in self.moods:
            score = 0.0
            evidence: list[str] = []
            for keywords, multiplier in (
                (entry.primary_keywords, SCAN_PRIMARY),
                (entry.secondary_keywords, SCAN_SECONDARY),
                (entry.expression_phrases, SCAN_EXPRESSION),
            ):
                for keyword in keywords:
                    if self._contains(text, keyword):
                        score += multiplier * entry.detection_weight
                        evidence.append(keyword)
            # Strict comparison keeps the first-declared mood on ties.
            if score > best_score:
                best, best_score, best_evidence = entry, score, evidence

        if best is None or best_score <= SCAN_MIN_SCORE:
            return None
        return self._result(
            best,
            min(best_score + SCAN_BONUS, SCAN_MAX_CONFIDENCE),
            tuple(best_evidence),
            DetectionMethod.KEYWORD_SCAN,
        )

    def _fallback(self, sentiment: SentimentClass) -> MoodDetectionResult | None:
        mood_name, confidence = SENTIMENT_FALLBACK[sentiment]
        entry = lexicon.get_entry(mood_name, self.moods)
        if entry is None:
            return None
        return self._result(entry, confidence, (), DetectionMethod.SENTIMENT_FALLBACK)

    # MARK: - Helpers

    def _contains(self, text: str, keyword: str) -> bool:
        if self.match_mode is MatchMode.TOKEN:
            return self._token_patterns[keyword].search(text) is not None
        return keyword in text

    def _first_present(self, keywords: Iterable[str], text: str) -> str | None:
        for keyword in keywords:
            if self._contains(text, keyword):
                return keyword
        return None

    def _result(
        self,
        entry: MoodLexiconEntry,
        confidence: float,
        evidence: tuple[str, ...],
        method: DetectionMethod,
    ) -> MoodDetectionResult:
        confidence = max(0.0, min(1.0, confidence))
        return MoodDetectionResult(
            mood_name=entry.name,
            emoji=entry.emoji,
            sentiment_class=entry.sentiment_class,
            confidence=confidence,
            should_update=confidence > self.update_threshold,
            matched_evidence=evidence,
            detection_method=method,
        )

    @staticmethod
    def _neutral() -> MoodDetectionResult:
        return MoodDetectionResult(
            mood_name=lexicon.NEUTRAL_MOOD,
            emoji=lexicon.NEUTRAL_EMOJI,
            sentiment_class=SentimentClass.NEUTRAL,
            confidence=0.0,
            should_update=False,
        )


def _all_terms(entry: MoodLexiconEntry) -> Iterable[str]:
    yield from entry.primary_keywords
    yield from entry.secondary_keywords
    yield from entry.expression_phrases
    yield from entry.statement_phrases
