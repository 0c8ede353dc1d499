import asyncio
import os
import uuid
import mimetypes
import logging
from typing import List

import httpx
from pathlib import Path
from fastapi import FastAPI, File, Form, UploadFile, HTTPException
from celery import Celery

from config import Config
from models import (
    AnalyzeRequest,
    AudioMetadata,
    FeedbackRequest,
    ImprovementSuggestionsRequest,
    ScoreRequest,
    ScoreSet,
    SessionAnalyzeRequest,
    SessionEvaluationResponse,
    SessionFeedback,
    SessionType,
    TranscriptAnalysis,
    TranscriptEntry,
)
from services.feedback import generate_improvement_suggestions
from services.feedback_generator import FeedbackGenerator
from services.grammar import detect_grammar_errors
from services.scoring import ScoreEngine
from services.transcript_analysis import TranscriptAnalyzer
from services.transcription import TranscriptionService

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

app = FastAPI(title="Speaking Session Scoring Service", version="1.0.0")

celery_app = Celery(
    "session_scoring",
    broker=Config.CELERY_BROKER_URL,
    backend=Config.CELERY_RESULT_BACKEND
)

transcription_service = TranscriptionService()
transcript_analyzer = TranscriptAnalyzer()
score_engine = ScoreEngine()
feedback_generator = FeedbackGenerator()

os.makedirs(Config.UPLOAD_DIR, exist_ok=True)


@celery_app.task(name="evaluate_session_task")
def evaluate_session_task(file_path: str, file_name: str, mime_type: str,
                          topic: str, session_type: str) -> dict:
    """
    Transcribe a recorded answer, then score it and build feedback.
    Runs in a Celery worker; the uploaded file is removed afterwards.
    """
    request_id = str(uuid.uuid4())[:8]
    logging.info(f"[{request_id}] Starting evaluation for file: {file_name}")

    try:
        result = asyncio.run(transcription_service.transcribe_file_with_retry(file_path, mime_type))
        parsed_result = transcription_service.parse_transcription_result(result)
        transcript = parsed_result["transcript"]

        analysis = transcript_analyzer.analyze(
            transcript,
            parsed_result["audio_duration_sec"],
            parsed_result["words"]
        )
        audio_metadata = analysis.audio_metadata
        grammar_errors = detect_grammar_errors(transcript)
        entries = [TranscriptEntry(speaker="user", message=transcript)]

        scores = score_engine.calculate_scores(
            transcript,
            audio_metadata,
            topic=topic,
            session_type=session_type,
            grammar_errors=grammar_errors,
            transcript_entries=entries
        )
        feedback = feedback_generator.generate_feedback(
            scores, audio_metadata, session_type, topic, entries, grammar_errors
        )

        response_data = SessionEvaluationResponse(
            transcription=parsed_result,
            audio_metadata=audio_metadata,
            pacing=analysis.pacing,
            pauses=analysis.pauses,
            scores=scores,
            feedback=feedback
        ).model_dump()

        logging.info(f"[{request_id}] Finished evaluation for file: {file_name} (overall={scores.overall})")
        return response_data

    except Exception as e:
        logging.error(f"[{request_id}] Evaluation error for {file_name}: {str(e)}")
        raise
    finally:
        if os.path.exists(file_path):
            os.remove(file_path)


@app.post("/score", response_model=ScoreSet)
def score_session(request: ScoreRequest):
    """Score a transcript and its audio statistics."""
    scores = score_engine.calculate_scores(
        request.transcript,
        request.audio_metadata,
        topic=request.topic,
        session_type=request.session_type,
        grammar_errors=request.grammar_errors,
        transcript_entries=request.transcript_entries
    )
    logging.info(f"Scored {request.session_type} session on '{request.topic}': overall={scores.overall}")
    return scores


@app.post("/analyze", response_model=TranscriptAnalysis)
def analyze_transcript(request: AnalyzeRequest):
    """Derive audio statistics, pacing and pauses from a transcript and its duration."""
    return transcript_analyzer.analyze(request.transcript, request.duration_sec)


@app.post("/analyze/session", response_model=AudioMetadata)
def analyze_session(request: SessionAnalyzeRequest):
    """Combine the recordings of one session into session-wide audio statistics."""
    metadata = transcript_analyzer.analyze_session(
        (recording.transcript, recording.duration_sec) for recording in request.recordings
    )
    logging.info(f"Analyzed session of {len(request.recordings)} recordings: {metadata.total_words} words")
    return metadata


@app.post("/feedback", response_model=SessionFeedback)
def session_feedback(request: FeedbackRequest):
    return feedback_generator.generate_feedback(
        request.scores,
        request.audio_metadata,
        request.session_type,
        request.topic,
        request.transcript
    )


@app.post("/feedback/suggestions", response_model=List[str])
def improvement_suggestions(request: ImprovementSuggestionsRequest):
    return generate_improvement_suggestions(request.recent_feedbacks)


@app.post("/evaluate", response_model=dict)
async def evaluate_recording(file: UploadFile = File(...),
                             topic: str = Form(""),
                             session_type: SessionType = Form("communication")):
    """
    Receives a recorded answer, saves it, and enqueues evaluation as a background task.
    Returns a task ID.
    """
    request_id = str(uuid.uuid4())[:8]
    logging.info(f"[{request_id}] Received request for file: {file.filename}")
    try:
        if not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")

        file_extension = Path(file.filename).suffix.lower()
        if file_extension not in Config.ALLOWED_EXTENSIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported file format. Allowed: {sorted(Config.ALLOWED_EXTENSIONS)}"
            )

        mime_type, _ = mimetypes.guess_type(file.filename)
        if not mime_type or mime_type not in Config.VALID_MIME_TYPES:
            raise HTTPException(status_code=400, detail="Invalid or unsupported audio format")

        content = await file.read()
        if len(content) == 0:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(content) > Config.MAX_FILE_SIZE:
            raise HTTPException(status_code=400, detail="File too large")

        file_id = str(uuid.uuid4())
        file_path = f"{Config.UPLOAD_DIR}/{file_id}{file_extension}"
        with open(file_path, "wb") as buffer:
            buffer.write(content)

        task = evaluate_session_task.delay(file_path, file.filename, mime_type, topic, session_type)

        logging.info(f"[{request_id}] Enqueued task {task.id} for file: {file.filename}")
        return {"message": "Processing started", "task_id": task.id}

    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"[{request_id}] Error enqueuing task: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to start processing: {str(e)}")


@app.get("/status/{task_id}", response_model=dict)
async def get_task_status(task_id: str):
    """
    Check the status of a background evaluation task.
    """
    task = celery_app.AsyncResult(task_id)

    if task.state == "PENDING":
        response = {
            "status": "PENDING",
            "message": "Task is pending or not found"
        }
    elif task.state == "SUCCESS":
        response = {
            "status": "SUCCESS",
            "result": task.result
        }
    elif task.state == "FAILURE":
        response = {
            "status": "FAILURE",
            "message": str(task.info),
            "traceback": task.traceback
        }
    else:
        response = {
            "status": task.state,
            "message": "Task is in progress"
        }
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "Speaking Session Scoring Service is running"}


@app.get("/health/whisper")
async def whisper_health_check():
    """Check Whisper API connectivity"""
    if not Config.OPENAI_API_KEY:
        return {"status": "error", "message": "Whisper API key not configured"}

    try:
        headers = {"authorization": f"Bearer {Config.OPENAI_API_KEY}"}

        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                f"{Config.WHISPER_BASE_URL}/models/{Config.WHISPER_MODEL}",
                headers=headers
            )

            if response.status_code == 401:
                return {"status": "error", "message": "Invalid API key"}
            elif response.status_code == 429:
                return {"status": "warning", "message": "Rate limited"}
            elif response.status_code == 200:
                return {"status": "healthy", "message": "Whisper is reachable"}
            else:
                return {"status": "error", "message": f"Unexpected status: {response.status_code}"}

    except httpx.ReadError:
        return {"status": "error", "message": "Network connectivity issue"}
    except httpx.TimeoutException:
        return {"status": "error", "message": "Connection timeout"}
    except httpx.HTTPError as e:
        return {"status": "error", "message": f"Health check failed: {str(e)}"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
