import re
from typing import List, Dict, Any
from config import Config
from services.rounding import round_half_up

_PAUSE_PUNCTUATION_RE = re.compile(r"[,.!?;:]")


class PauseAnalyzer:
    def __init__(self):
        self.pause_threshold = Config.PAUSE_THRESHOLD

    def analyze_pauses(self, words: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Analyze pause patterns between timed words"""
        if len(words) < 2:
            return {
                "pause_count": 0,
                "total_pause_time_sec": 0.0,
                "average_pause_duration": 0.0,
                "longest_pause_sec": 0.0,
                "pause_feedback": "Insufficient data for pause analysis."
            }

        pauses = []
        for i in range(1, len(words)):
            pause_duration = words[i]["start"] - words[i-1]["end"]
            if pause_duration > self.pause_threshold:
                pauses.append(pause_duration)

        pause_count = len(pauses)
        total_pause_time = sum(pauses)

        return {
            "pause_count": pause_count,
            "total_pause_time_sec": round_half_up(total_pause_time, 2),
            "average_pause_duration": round_half_up(total_pause_time / pause_count, 2) if pause_count else 0.0,
            "longest_pause_sec": round_half_up(max(pauses), 2) if pauses else 0.0,
            "pause_feedback": self._feedback(pause_count)
        }

    def estimate_pauses(self, text: str, audio_duration: float) -> Dict[str, Any]:
        """Estimate pauses from punctuation when no word timings are available"""
        pause_count = len(_PAUSE_PUNCTUATION_RE.findall(text))
        average = audio_duration / pause_count if pause_count else 0.0

        return {
            "pause_count": pause_count,
            "total_pause_time_sec": None,
            "average_pause_duration": round_half_up(average, 1),
            "longest_pause_sec": None,
            "pause_feedback": self._feedback(pause_count)
        }

    @staticmethod
    def _feedback(pause_count: int) -> str:
        if pause_count == 0:
            return "Great! Your speech flows smoothly without long pauses."
        elif pause_count <= 2:
            return "Good fluency with minimal pauses."
        elif pause_count <= 4:
            return "Try to reduce long pauses to improve fluency."
        return "Your speech has many long pauses. Practice speaking more continuously."
