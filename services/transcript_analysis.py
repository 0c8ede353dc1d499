import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import Config
from models import AudioMetadata, PacingAnalysis, PauseAnalysis, TranscriptAnalysis
from services.pacing import PacingAnalyzer
from services.pause_analysis import PauseAnalyzer
from services.rounding import round_half_up
from services.scoring import tokenize


def count_filler_words(text: str) -> int:
    """Count whole-word filler occurrences, multi-word fillers included"""
    text_lower = text.lower()
    return sum(
        len(re.findall(rf"\b{re.escape(filler)}\b", text_lower))
        for filler in Config.FILLER_WORDS
    )


class TranscriptAnalyzer:
    """
    Builds the AudioMetadata the score engine consumes from a speech-to-text
    result. Word timings give real pause measurements; without them pauses are
    estimated from punctuation.
    """

    def __init__(self):
        self.pacing_analyzer = PacingAnalyzer()
        self.pause_analyzer = PauseAnalyzer()

    def analyze(
        self,
        text: str,
        audio_duration: float,
        words: Optional[List[Dict[str, Any]]] = None,
    ) -> TranscriptAnalysis:
        """Pacing and pause analysis plus the metadata derived from them"""
        # Same word counter as the score engine, so total_words matches what gets scored
        word_count = len(tokenize(text))
        pacing = self.pacing_analyzer.analyze_pacing(word_count, audio_duration)

        if words and len(words) >= 2:
            pauses = self.pause_analyzer.analyze_pauses(words)
        else:
            pauses = self.pause_analyzer.estimate_pauses(text, audio_duration)

        audio_metadata = AudioMetadata(
            words_per_minute=pacing["words_per_minute"],
            pause_count=pauses["pause_count"],
            filler_words=count_filler_words(text),
            total_words=word_count,
            average_pause_duration=pauses["average_pause_duration"],
        )
        return TranscriptAnalysis(
            audio_metadata=audio_metadata,
            pacing=PacingAnalysis(**pacing),
            pauses=PauseAnalysis(**pauses),
        )

    def build_metadata(
        self,
        text: str,
        audio_duration: float,
        words: Optional[List[Dict[str, Any]]] = None,
    ) -> AudioMetadata:
        return self.analyze(text, audio_duration, words).audio_metadata

    def accumulate(self, existing: AudioMetadata, addition: AudioMetadata) -> AudioMetadata:
        """Add a new recording's counts to a running session total.

        Words per minute is carried over unchanged; call recalculate_wpm once the
        session duration is known.
        """
        pause_count = existing.pause_count + addition.pause_count
        total_pause_time = (
            existing.pause_count * existing.average_pause_duration
            + addition.pause_count * addition.average_pause_duration
        )
        return existing.model_copy(update={
            "pause_count": pause_count,
            "filler_words": existing.filler_words + addition.filler_words,
            "total_words": existing.total_words + addition.total_words,
            "average_pause_duration": round_half_up(total_pause_time / pause_count, 2) if pause_count else 0.0,
        })

    def recalculate_wpm(self, metadata: AudioMetadata, session_duration: float) -> AudioMetadata:
        if metadata.total_words == 0 or session_duration <= 0:
            return metadata
        pacing = self.pacing_analyzer.analyze_pacing(metadata.total_words, session_duration)
        return metadata.model_copy(update={"words_per_minute": pacing["words_per_minute"]})

    def analyze_session(self, recordings: Iterable[Tuple[str, float]]) -> AudioMetadata:
        """Fold several (transcript, duration) recordings into one session total"""
        session = AudioMetadata()
        session_duration = 0.0
        for text, audio_duration in recordings:
            session = self.accumulate(session, self.build_metadata(text, audio_duration))
            session_duration += audio_duration
        return self.recalculate_wpm(session, session_duration)
