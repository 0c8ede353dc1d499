from dotenv import load_dotenv
import os

load_dotenv()

# Configuration class for the application
class Config:
    # Keys are optional at import; services that need them fail when used
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")

    WHISPER_BASE_URL = os.getenv("WHISPER_BASE_URL", "https://api.openai.com/v1")
    WHISPER_MODEL = "whisper-1"
    GEMINI_MODEL = "gemini-2.0-flash-lite"

    # Network configuration
    UPLOAD_TIMEOUT = 150
    MAX_RETRIES = 3
    RETRY_DELAY = 2  # Base delay for exponential backoff

    # File size limits
    MAX_FILE_SIZE = 25 * 1024 * 1024  # 25MB (Whisper limit)

    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    ALLOWED_EXTENSIONS = {".wav", ".mp3"}
    VALID_MIME_TYPES = {"audio/wav", "audio/x-wav", "audio/mpeg"}

    # Analysis thresholds
    IDEAL_WPM = 155
    SLOW_WPM_THRESHOLD = 100
    FAST_WPM_THRESHOLD = 180
    PAUSE_THRESHOLD = 0.5  # seconds

    FILLER_WORDS = [
        "um", "uh", "like", "you know", "actually",
        "basically", "literally", "sort of", "kind of",
    ]

    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
