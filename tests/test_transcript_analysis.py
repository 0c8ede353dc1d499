import pytest

from models import AudioMetadata
from services.pacing import PacingAnalyzer
from services.pause_analysis import PauseAnalyzer
from services.rounding import round_half_up
from services.transcript_analysis import TranscriptAnalyzer, count_filler_words


def timed(*spans):
    return [{"word": f"w{i}", "start": start, "end": end} for i, (start, end) in enumerate(spans)]


class TestRounding:
    @pytest.mark.parametrize("value,digits,expected", [
        (170.5, 0, 171),
        (2.5, 0, 3),
        (170.4, 0, 170),
        (0.25, 1, 0.3),
        (0.125, 2, 0.13),
        (1.2345, 2, 1.23),
    ])
    def test_halves_round_up(self, value, digits, expected):
        assert round_half_up(value, digits) == expected

    def test_whole_numbers_are_ints(self):
        assert isinstance(round_half_up(170.5), int)


class TestPacingAnalyzer:
    @pytest.mark.parametrize("words,expected_wpm,fragment", [
        (150, 150, "appropriate"),
        (50, 50, "too slow"),
        (200, 200, "too fast"),
    ])
    def test_wpm_and_feedback(self, words, expected_wpm, fragment):
        result = PacingAnalyzer().analyze_pacing(words, 60.0)
        assert result["words_per_minute"] == expected_wpm
        assert fragment in result["pacing_feedback"]

    def test_half_word_per_minute_rounds_up(self):
        # 341 words in 2 minutes is 170.5 WPM
        assert PacingAnalyzer().analyze_pacing(341, 120.0)["words_per_minute"] == 171

    def test_zero_duration(self):
        result = PacingAnalyzer().analyze_pacing(10, 0)
        assert result["words_per_minute"] == 0
        assert result["pacing_feedback"] == "Unable to calculate pacing."


class TestPauseAnalyzer:
    def test_gaps_over_threshold_count_as_pauses(self):
        result = PauseAnalyzer().analyze_pauses(timed((0, 0.5), (1.5, 2.0), (2.1, 2.5), (4.5, 5.0)))
        assert result["pause_count"] == 2
        assert result["total_pause_time_sec"] == 3.0
        assert result["average_pause_duration"] == 1.5
        assert result["longest_pause_sec"] == 2.0

    def test_single_word_has_no_pauses(self):
        result = PauseAnalyzer().analyze_pauses(timed((0, 0.4)))
        assert result["pause_count"] == 0
        assert result["average_pause_duration"] == 0.0

    def test_estimate_from_punctuation(self):
        result = PauseAnalyzer().estimate_pauses("Well, I think so. Yes!", 9.0)
        assert result["pause_count"] == 3
        assert result["average_pause_duration"] == 3.0

    def test_estimate_rounds_half_up(self):
        result = PauseAnalyzer().estimate_pauses("a, b", 0.25)
        assert result["pause_count"] == 1
        assert result["average_pause_duration"] == 0.3

    def test_estimate_without_punctuation(self):
        result = PauseAnalyzer().estimate_pauses("no punctuation here", 9.0)
        assert result["pause_count"] == 0
        assert result["average_pause_duration"] == 0.0


class TestFillerWords:
    def test_counts_single_and_multi_word_fillers(self):
        assert count_filler_words("Um, I like, you know, basically think so") == 4

    def test_ignores_partial_matches(self):
        assert count_filler_words("I likely agree with the umbrella policy") == 0

    def test_case_insensitive(self):
        assert count_filler_words("UH Kind Of") == 2


class TestTranscriptAnalyzer:
    def test_build_metadata_from_text(self):
        meta = TranscriptAnalyzer().build_metadata("Hello world, this is a test.", 6.0)
        assert meta == AudioMetadata(
            words_per_minute=60,
            pause_count=2,
            filler_words=0,
            total_words=6,
            average_pause_duration=3.0,
        )

    def test_build_metadata_prefers_word_timings(self):
        words = timed((0, 0.5), (1.5, 2.0), (2.1, 2.5))
        meta = TranscriptAnalyzer().build_metadata("Um, hello there.", 3.0, words)
        assert meta.pause_count == 1
        assert meta.average_pause_duration == 1.0
        assert meta.filler_words == 1
        assert meta.total_words == 3
        assert meta.words_per_minute == 60

    def test_build_metadata_rounds_wpm_half_up(self):
        meta = TranscriptAnalyzer().build_metadata(" ".join(["word"] * 341), 120.0)
        assert meta.words_per_minute == 171

    def test_stray_punctuation_is_not_a_word(self):
        meta = TranscriptAnalyzer().build_metadata("Well - I think ... yes", 60.0)
        assert meta.total_words == 4

    def test_empty_transcript(self):
        meta = TranscriptAnalyzer().build_metadata("", 0)
        assert meta == AudioMetadata()

    def test_analyze_keeps_pacing_and_pause_feedback(self):
        analysis = TranscriptAnalyzer().analyze("Hello world, this is a test.", 6.0)
        assert analysis.pacing.words_per_minute == 60
        assert "too slow" in analysis.pacing.pacing_feedback
        assert analysis.pauses.pause_count == 2
        assert analysis.pauses.total_pause_time_sec is None
        assert analysis.pauses.pause_feedback == "Good fluency with minimal pauses."
        assert analysis.audio_metadata.total_words == 6

    def test_analyze_with_timings_reports_pause_totals(self):
        words = timed((0, 0.5), (1.5, 2.0), (2.1, 2.5), (4.5, 5.0))
        analysis = TranscriptAnalyzer().analyze("one two three four", 5.0, words)
        assert analysis.pauses.total_pause_time_sec == 3.0
        assert analysis.pauses.longest_pause_sec == 2.0
        assert analysis.audio_metadata.average_pause_duration == 1.5

    def test_accumulate_adds_counts(self):
        existing = AudioMetadata(total_words=100, filler_words=3, pause_count=4, average_pause_duration=1.0)
        addition = AudioMetadata(total_words=50, filler_words=2, pause_count=1, average_pause_duration=2.0,
                                 words_per_minute=140)
        combined = TranscriptAnalyzer().accumulate(existing, addition)

        assert combined.total_words == 150
        assert combined.filler_words == 5
        assert combined.pause_count == 5
        assert combined.average_pause_duration == 1.2
        assert combined.words_per_minute == 0
        assert existing.total_words == 100

    def test_accumulate_rounds_average_pause_half_up(self):
        meta = AudioMetadata(pause_count=1, average_pause_duration=0.125)
        combined = TranscriptAnalyzer().accumulate(meta, meta)
        assert combined.average_pause_duration == 0.13

    def test_accumulate_without_pauses(self):
        combined = TranscriptAnalyzer().accumulate(AudioMetadata(), AudioMetadata(total_words=10))
        assert combined.average_pause_duration == 0.0
        assert combined.total_words == 10

    def test_recalculate_wpm(self):
        analyzer = TranscriptAnalyzer()
        meta = AudioMetadata(total_words=150)
        assert analyzer.recalculate_wpm(meta, 60).words_per_minute == 150
        assert analyzer.recalculate_wpm(meta, 0) == meta
        assert analyzer.recalculate_wpm(AudioMetadata(), 60).words_per_minute == 0

    def test_analyze_session_combines_recordings(self):
        meta = TranscriptAnalyzer().analyze_session([
            ("Hello world, this is a test.", 6.0),
            ("Um, yes.", 6.0),
        ])
        assert meta == AudioMetadata(
            words_per_minute=40,
            pause_count=4,
            filler_words=1,
            total_words=8,
            average_pause_duration=3.0,
        )

    def test_analyze_session_without_recordings(self):
        assert TranscriptAnalyzer().analyze_session([]) == AudioMetadata()
