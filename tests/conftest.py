import os
import tempfile

# Provider keys are removed so every test runs offline; uploads go to a scratch dir
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("GEMINI_API_KEY", None)
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="scoring-uploads-"))
