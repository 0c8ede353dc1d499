import re
import string
from collections import Counter
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from config import Config
from models import AudioMetadata, GrammarError, ScoreSet, TranscriptEntry
from services.rounding import round_half_up

# Each tier list is evaluated top-down; only the first matching tier applies.
Tiers = Sequence[Tuple[float, int]]

WPM_DEVIATION_PENALTIES: Tiers = ((50, -30), (30, -20), (15, -10))
FLUENCY_PAUSE_PENALTIES: Tiers = ((0.15, -20), (0.10, -10), (0.05, -5))
FLUENCY_FILLER_PENALTIES: Tiers = ((0.10, -25), (0.05, -15), (0.03, -5))

GRAMMAR_ERROR_SCORES: Tiers = ((0.10, 40), (0.05, 60), (0.03, 75), (0.01, 85))
GRAMMAR_CLEAN_SCORE = 95

DIVERSITY_BONUSES: Tiers = ((0.6, 25), (0.5, 20), (0.4, 15), (0.3, 10))
COMPLEX_WORD_BONUSES: Tiers = ((0.2, 25), (0.15, 20), (0.1, 15), (0.05, 10))

TOPIC_MATCH_BONUSES: Tiers = ((0.7, 40), (0.5, 30), (0.3, 20), (0.1, 10))

CONFIDENCE_PAUSE_PENALTIES: Tiers = ((0.15, -30), (0.10, -20), (0.05, -10))
LONG_PAUSE_PENALTIES: Tiers = ((3, -20), (2, -10))
CONFIDENCE_FILLER_PENALTIES: Tiers = ((0.10, -25), (0.05, -15))
# Evaluated as "below threshold"
LOW_RECOGNITION_PENALTIES: Tiers = ((0.7, -15), (0.8, -10))

SCORE_WEIGHTS = {
    "fluency": 0.25,
    "grammar": 0.20,
    "clarity": 0.20,
    "relevance": 0.15,
    "confidence": 0.10,
    "vocabulary": 0.10,
}

COMMON_WORDS = frozenset([
    "the", "be", "to", "of", "and", "a", "in", "that", "have", "it",
    "for", "not", "on", "with", "he", "as", "you", "do", "at", "this",
    "but", "his", "by", "from", "they", "we", "say", "her", "she", "or",
    "will", "my", "one", "all", "would", "there", "their", "what", "so",
])

_WORD_RE = re.compile(r"[a-z0-9']+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def tokenize(text: str) -> List[str]:
    return _WORD_RE.findall(text.lower())


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0


def _tier_above(value: float, tiers: Tiers, default: int = 0) -> int:
    for threshold, adjustment in tiers:
        if value > threshold:
            return adjustment
    return default


def _tier_below(value: float, tiers: Tiers, default: int = 0) -> int:
    for threshold, adjustment in tiers:
        if value < threshold:
            return adjustment
    return default


def _clamp(score: float) -> int:
    return max(0, min(100, round_half_up(score)))


def compute_fluency_score(audio_metadata: AudioMetadata) -> int:
    """Score speaking flow from pace, pause rate and filler rate."""
    score = 100
    deviation = abs(audio_metadata.words_per_minute - Config.IDEAL_WPM)
    score += _tier_above(deviation, WPM_DEVIATION_PENALTIES)

    pause_rate = _ratio(audio_metadata.pause_count, audio_metadata.total_words)
    score += _tier_above(pause_rate, FLUENCY_PAUSE_PENALTIES)

    filler_rate = _ratio(audio_metadata.filler_words, audio_metadata.total_words)
    score += _tier_above(filler_rate, FLUENCY_FILLER_PENALTIES)

    return _clamp(score)


def compute_grammar_score(transcript: str, grammar_errors: Optional[Sequence[GrammarError]] = None) -> int:
    """Map the grammar error rate onto a fixed score band."""
    word_count = len(tokenize(transcript))
    if word_count == 0:
        return 0

    error_rate = len(grammar_errors or []) / word_count
    return _clamp(_tier_above(error_rate, GRAMMAR_ERROR_SCORES, default=GRAMMAR_CLEAN_SCORE))


def compute_clarity_score(transcript: str, audio_metadata: AudioMetadata) -> int:
    """Score sentence length, speaking pace and word repetition."""
    score = 100

    sentences = split_sentences(transcript)
    avg_words_per_sentence = _ratio(audio_metadata.total_words, len(sentences))
    if avg_words_per_sentence > 30 or avg_words_per_sentence < 5:
        score -= 20
    elif avg_words_per_sentence > 25 or avg_words_per_sentence < 8:
        score -= 10

    wpm = audio_metadata.words_per_minute
    if wpm > Config.FAST_WPM_THRESHOLD or wpm < Config.SLOW_WPM_THRESHOLD:
        score -= 15

    frequency = Counter(word for word in tokenize(transcript) if len(word) > 3)
    repetitive_words = sum(1 for count in frequency.values() if count > 5)
    if repetitive_words > 5:
        score -= 15

    return _clamp(score)


def compute_vocabulary_score(transcript: str) -> int:
    """Score lexical diversity and use of longer, less common words."""
    words = [word for word in tokenize(transcript) if len(word) > 3]
    if not words:
        return 0

    lexical_diversity = len(set(words)) / len(words)
    complex_words = sum(1 for word in words if len(word) > 6 and word not in COMMON_WORDS)
    complex_word_ratio = complex_words / len(words)

    score = 50
    score += _tier_above(lexical_diversity, DIVERSITY_BONUSES)
    score += _tier_above(complex_word_ratio, COMPLEX_WORD_BONUSES)
    return _clamp(score)


def compute_relevance_score(transcript: str, topic: str, session_type: Optional[str] = None) -> int:
    """
    Score how many topic words show up in the transcript.
    session_type is accepted so callers can pass it through, but no session type
    changes the result yet.
    """
    # "Leadership:" should still match "leadership"
    topic_words = [word.strip(string.punctuation) for word in topic.lower().split()]
    transcript_lower = transcript.lower()

    matches = sum(1 for word in topic_words if len(word) > 3 and word in transcript_lower)
    match_ratio = _ratio(matches, len(topic_words))

    score = 50
    score += _tier_above(match_ratio, TOPIC_MATCH_BONUSES)
    if len(split_sentences(transcript)) >= 3:
        score += 10
    return _clamp(score)


def compute_confidence_score(
    audio_metadata: AudioMetadata,
    transcript_entries: Optional[Iterable[TranscriptEntry]] = None,
) -> int:
    """Score hesitation signals and speech recognition confidence."""
    score = 100

    pause_rate = _ratio(audio_metadata.pause_count, audio_metadata.total_words)
    score += _tier_above(pause_rate, CONFIDENCE_PAUSE_PENALTIES)
    score += _tier_above(audio_metadata.average_pause_duration, LONG_PAUSE_PENALTIES)

    filler_rate = _ratio(audio_metadata.filler_words, audio_metadata.total_words)
    score += _tier_above(filler_rate, CONFIDENCE_FILLER_PENALTIES)

    entries = list(transcript_entries or [])
    if entries:
        confidences = [1.0 if e.confidence is None else e.confidence for e in entries]
        avg_confidence = sum(confidences) / len(confidences)
        score += _tier_below(avg_confidence, LOW_RECOGNITION_PENALTIES)

    return _clamp(score)


def compute_overall_score(scores: Union[Mapping[str, Optional[float]], BaseModel]) -> int:
    """
    Weighted mean of the sub-scores that are present.

    Accepts a mapping or a model such as ScoreSet. Missing (or None) sub-scores
    drop out of both the weighted sum and the weight total, so the remaining
    weights are renormalised. {"fluency": 80} therefore scores 80 overall.
    """
    if isinstance(scores, BaseModel):
        scores = scores.model_dump()

    weighted_sum = 0.0
    total_weight = 0.0
    for key, weight in SCORE_WEIGHTS.items():
        value = scores.get(key)
        if value is not None:
            weighted_sum += value * weight
            total_weight += weight

    if total_weight == 0:
        return 0
    return round_half_up(weighted_sum / total_weight)


class ScoreEngine:
    def calculate_scores(
        self,
        transcript: str,
        audio_metadata: AudioMetadata,
        topic: str = "",
        session_type: Optional[str] = None,
        grammar_errors: Optional[Sequence[GrammarError]] = None,
        transcript_entries: Optional[Iterable[TranscriptEntry]] = None,
    ) -> ScoreSet:
        """Compute every sub-score and the weighted overall score"""
        scores = {
            "fluency": compute_fluency_score(audio_metadata),
            "grammar": compute_grammar_score(transcript, grammar_errors),
            "clarity": compute_clarity_score(transcript, audio_metadata),
            "vocabulary": compute_vocabulary_score(transcript),
            "relevance": compute_relevance_score(transcript, topic, session_type),
            "confidence": compute_confidence_score(audio_metadata, transcript_entries),
        }
        return ScoreSet(**scores, overall=compute_overall_score(scores))
