import asyncio
import httpx
import logging
from typing import Dict, Any, Optional
from config import Config
import os


class TranscriptionError(Exception):
    """Raised when the speech-to-text provider cannot return a transcript."""


class TranscriptionService:
    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else Config.OPENAI_API_KEY
        self.base_url = Config.WHISPER_BASE_URL
        self.model = Config.WHISPER_MODEL
        self.max_retries = Config.MAX_RETRIES
        self.retry_delay = Config.RETRY_DELAY
        self.transport = transport
        self.audio_mime_types = {
            ".mp3": "audio/mpeg",
            ".wav": "audio/wav",
        }

    async def transcribe_file_with_retry(self, file_path: str, mime_type: str) -> Dict[str, Any]:
        """Transcribe with retry logic for network read errors"""
        for attempt in range(self.max_retries):
            try:
                return await self.transcribe_file(file_path, mime_type)
            except httpx.ReadError as e:
                if attempt == self.max_retries - 1:
                    raise TranscriptionError(
                        f"Transcription failed after {self.max_retries} attempts: {str(e)}"
                    ) from e

                wait_time = self.retry_delay ** attempt
                logging.warning(f"Transcription attempt {attempt + 1} failed, retrying in {wait_time}s...")
                await asyncio.sleep(wait_time)

    async def transcribe_file(self, file_path: str, mime_type: str) -> Dict[str, Any]:
        """Send an audio file to Whisper and return the verbose JSON result"""
        if not self.api_key:
            raise TranscriptionError("Whisper API key not configured")

        if not os.path.exists(file_path):
            raise TranscriptionError(f"File not found: {file_path}")

        file_size = os.path.getsize(file_path)
        logging.info(f"Transcribing file: {file_path} ({file_size} bytes)")

        file_extension = os.path.splitext(file_path)[1].lower()
        effective_mime_type = self.audio_mime_types.get(file_extension, mime_type)
        if effective_mime_type != mime_type:
            logging.info(f"Overriding guessed MIME type {mime_type} with {effective_mime_type} for extension {file_extension}")

        headers = {"authorization": f"Bearer {self.api_key}"}
        data = {
            "model": self.model,
            "language": "en",
            "response_format": "verbose_json",
            "timestamp_granularities[]": "word",
        }

        timeout = httpx.Timeout(
            connect=30.0,
            read=Config.UPLOAD_TIMEOUT,
            write=Config.UPLOAD_TIMEOUT,
            pool=300.0
        )

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                with open(file_path, "rb") as f:
                    files_payload = {"file": (os.path.basename(file_path), f, effective_mime_type)}
                    response = await client.post(
                        f"{self.base_url}/audio/transcriptions",
                        files=files_payload,
                        data=data,
                        headers=headers
                    )
        except httpx.ReadError as e:
            logging.error(f"Network read error during transcription: {e}")
            raise  # Re-raise to trigger retry logic
        except httpx.TimeoutException as e:
            logging.error(f"Transcription timeout: {e}")
            raise TranscriptionError("Transcription timeout - try with a smaller file or check your connection") from e

        if response.status_code == 401:
            raise TranscriptionError("Invalid Whisper API key")
        elif response.status_code == 413:
            raise TranscriptionError("File too large for Whisper")
        elif response.status_code == 429:
            raise TranscriptionError("Rate limit exceeded - please try again later")
        elif response.status_code != 200:
            error_text = response.text if response.content else "Unknown error"
            raise TranscriptionError(f"Transcription failed: {response.status_code} - {error_text}")

        result = response.json()
        if "text" not in result:
            raise TranscriptionError("No transcript text returned from Whisper")

        logging.info(f"File transcribed successfully: {file_path}")
        return result

    def parse_transcription_result(self, result: Dict[str, Any]) -> Dict[str, Any]:
        """Parse the Whisper verbose JSON result into our format"""
        words = []
        for word_data in result.get("words") or []:
            words.append({
                "word": word_data["word"],
                "start": float(word_data["start"]),
                "end": float(word_data["end"]),
            })

        return {
            "transcript": result["text"].strip(),
            "words": words,
            "audio_duration_sec": float(result.get("duration") or 0),
            "language": result.get("language"),
        }
