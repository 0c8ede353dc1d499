from typing import Dict, Any
from config import Config
from services.rounding import round_half_up

class PacingAnalyzer:
    def __init__(self):
        self.slow_threshold = Config.SLOW_WPM_THRESHOLD
        self.fast_threshold = Config.FAST_WPM_THRESHOLD

    def analyze_pacing(self, word_count: int, audio_duration: float) -> Dict[str, Any]:
        """Analyze speaking pace (WPM)"""
        if word_count == 0 or audio_duration <= 0:
            return {
                "words_per_minute": 0,
                "pacing_feedback": "Unable to calculate pacing."
            }

        duration_minutes = audio_duration / 60.0
        wpm = round_half_up(word_count / duration_minutes)

        if wpm < self.slow_threshold:
            feedback = "Your speaking pace is too slow. Try to speak a bit faster."
        elif wpm > self.fast_threshold:
            feedback = "Your speaking pace is too fast. Try to slow down a bit."
        else:
            feedback = "Your speaking pace is appropriate."

        return {
            "words_per_minute": wpm,
            "pacing_feedback": feedback
        }
