import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from services.transcription import TranscriptionError, TranscriptionService

WHISPER_RESULT = {
    "text": " Machine learning is fun. ",
    "language": "english",
    "duration": 4.2,
    "words": [
        {"word": "Machine", "start": 0.0, "end": 0.4},
        {"word": "learning", "start": 0.45, "end": 0.9},
        {"word": "is", "start": 1.8, "end": 1.9},
        {"word": "fun", "start": 2.0, "end": 2.3},
    ],
}


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "answer.wav"
    path.write_bytes(b"RIFF0000WAVE")
    return str(path)


def service_with(handler, api_key="sk-test"):
    return TranscriptionService(api_key=api_key, transport=httpx.MockTransport(handler))


class TestTranscriptionService:
    def test_successful_transcription(self, audio_file):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.content
            return httpx.Response(200, json=WHISPER_RESULT)

        result = asyncio.run(service_with(handler).transcribe_file(audio_file, "audio/x-wav"))

        assert result["text"] == WHISPER_RESULT["text"]
        assert seen["url"].endswith("/audio/transcriptions")
        assert seen["auth"] == "Bearer sk-test"
        assert b"verbose_json" in seen["body"]
        assert b"audio/wav" in seen["body"]

    @pytest.mark.parametrize("status,message", [
        (401, "Invalid Whisper API key"),
        (413, "File too large"),
        (429, "Rate limit exceeded"),
        (500, "Transcription failed: 500"),
    ])
    def test_error_statuses(self, audio_file, status, message):
        service = service_with(lambda request: httpx.Response(status, text="boom"))
        with pytest.raises(TranscriptionError, match=message):
            asyncio.run(service.transcribe_file(audio_file, "audio/wav"))

    def test_missing_api_key(self, audio_file):
        service = service_with(lambda request: httpx.Response(200, json=WHISPER_RESULT), api_key="")
        with pytest.raises(TranscriptionError, match="not configured"):
            asyncio.run(service.transcribe_file(audio_file, "audio/wav"))

    def test_missing_file(self, tmp_path):
        service = service_with(lambda request: httpx.Response(200, json=WHISPER_RESULT))
        with pytest.raises(TranscriptionError, match="File not found"):
            asyncio.run(service.transcribe_file(str(tmp_path / "missing.wav"), "audio/wav"))

    def test_retries_read_errors(self, audio_file):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadError("connection reset", request=request)
            return httpx.Response(200, json=WHISPER_RESULT)

        with patch("services.transcription.asyncio.sleep", new=AsyncMock()) as sleep:
            result = asyncio.run(service_with(handler).transcribe_file_with_retry(audio_file, "audio/wav"))

        assert result["duration"] == 4.2
        assert len(calls) == 2
        sleep.assert_awaited_once_with(1)

    def test_gives_up_after_max_retries(self, audio_file):
        def handler(request):
            raise httpx.ReadError("connection reset", request=request)

        with patch("services.transcription.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(TranscriptionError, match="after 3 attempts"):
                asyncio.run(service_with(handler).transcribe_file_with_retry(audio_file, "audio/wav"))

    def test_parse_transcription_result(self):
        parsed = TranscriptionService(api_key="").parse_transcription_result(WHISPER_RESULT)
        assert parsed["transcript"] == "Machine learning is fun."
        assert parsed["audio_duration_sec"] == 4.2
        assert parsed["words"][2] == {"word": "is", "start": 1.8, "end": 1.9}

    def test_parse_without_word_timings(self):
        parsed = TranscriptionService(api_key="").parse_transcription_result({"text": "Hi."})
        assert parsed["words"] == []
        assert parsed["audio_duration_sec"] == 0.0
