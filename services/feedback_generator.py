import json
import logging
from typing import List, Optional

import google.generativeai as genai
from pydantic import BaseModel

from config import Config
from models import (
    AudioMetadata,
    GrammarError,
    ImprovementArea,
    ScoreSet,
    SessionFeedback,
    Strength,
    Tip,
    TranscriptEntry,
)
from services.feedback import build_rule_based_feedback, user_text

PROMPT_TEXT_LIMIT = 1000


class AICoachingNarrative(BaseModel):
    """Subset of SessionFeedback the model is asked to write."""
    strengths: List[Strength] = []
    areas_for_improvement: List[ImprovementArea] = []
    tips: List[Tip] = []
    overall_summary: str = ""
    clarity_analysis: str = ""
    relevance_analysis: str = ""


class FeedbackGenerator:
    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.model = None
        if self.api_key:
            genai.configure(api_key=self.api_key)
            self.model = genai.GenerativeModel(model_name or Config.GEMINI_MODEL)
        else:
            logging.info("GEMINI_API_KEY not set; feedback will be rule-based")

    def generate_feedback(self,
                          scores: ScoreSet,
                          audio_metadata: AudioMetadata,
                          session_type: str,
                          topic: str,
                          transcript: List[TranscriptEntry],
                          grammar_errors: Optional[List[GrammarError]] = None) -> SessionFeedback:
        """Generate coaching feedback with Gemini, falling back to rule-based feedback"""
        text = user_text(transcript)
        rule_based = build_rule_based_feedback(
            scores, audio_metadata, session_type, topic, text, grammar_errors
        )
        if self.model is None:
            return rule_based

        prompt = self._build_prompt(scores, session_type, topic, text)
        try:
            response = self.model.generate_content(
                prompt,
                generation_config={"response_mime_type": "application/json"},
            )
            narrative = self._parse_narrative(response.text)
        except Exception as e:
            logging.error(f"Error generating feedback with Gemini API: {e}. Scores: {scores.model_dump()}")
            return rule_based

        # Keep the deterministic statistics; take only the narrative fields the model filled in
        update = {k: v for k, v in narrative if v}
        update["source"] = "ai"
        return rule_based.model_copy(update=update)

    def _build_prompt(self, scores: ScoreSet, session_type: str, topic: str, text: str) -> str:
        return f"""
        Analyze this {session_type} practice session on "{topic}".
        You are an expert communication coach providing detailed, constructive feedback.

        **User's responses:** {text[:PROMPT_TEXT_LIMIT]}

        **Scores:**
        - Fluency: {scores.fluency}/100
        - Grammar: {scores.grammar}/100
        - Clarity: {scores.clarity}/100
        - Vocabulary: {scores.vocabulary}/100
        - Relevance: {scores.relevance}/100
        - Confidence: {scores.confidence}/100

        **Instructions for Feedback:**
        Return a JSON object with these keys:
        1. strengths: array of {{"title", "description", "examples"}}
        2. areas_for_improvement: array of {{"title", "description", "priority" (high/medium/low), "examples"}}
        3. tips: array of {{"category", "tip", "is_actionable"}}
        4. overall_summary: string
        5. clarity_analysis: string
        6. relevance_analysis: string
        Keep responses constructive and encouraging.
        """

    @staticmethod
    def _parse_narrative(raw_text: str) -> AICoachingNarrative:
        cleaned = raw_text.replace("```json", "").replace("```", "").strip()
        return AICoachingNarrative.model_validate(json.loads(cleaned))
