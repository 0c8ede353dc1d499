from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class AudioMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    words_per_minute: float = Field(0, ge=0)
    pause_count: int = Field(0, ge=0)
    filler_words: int = Field(0, ge=0)
    total_words: int = Field(0, ge=0)
    average_pause_duration: float = Field(0, ge=0, description="Seconds")


class TranscriptEntry(BaseModel):
    speaker: Literal["user", "ai", "system"]
    message: str
    confidence: Optional[float] = Field(None, ge=0, le=1)


class ScoreSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    fluency: int = Field(..., ge=0, le=100)
    grammar: int = Field(..., ge=0, le=100)
    clarity: int = Field(..., ge=0, le=100)
    vocabulary: int = Field(..., ge=0, le=100)
    relevance: int = Field(..., ge=0, le=100)
    confidence: int = Field(..., ge=0, le=100)
    overall: int = Field(..., ge=0, le=100)


class GrammarError(BaseModel):
    type: str
    original: str
    correction: str
    explanation: str


class WordTiming(BaseModel):
    word: str
    start: float
    end: float


class TranscriptionResponse(BaseModel):
    transcript: str
    words: List[WordTiming]
    audio_duration_sec: float
    language: Optional[str] = None


class PacingAnalysis(BaseModel):
    words_per_minute: int
    pacing_feedback: str


class PauseAnalysis(BaseModel):
    pause_count: int
    # None when pauses were estimated from punctuation rather than timings
    total_pause_time_sec: Optional[float] = None
    average_pause_duration: float
    longest_pause_sec: Optional[float] = None
    pause_feedback: str


class TranscriptAnalysis(BaseModel):
    audio_metadata: AudioMetadata
    pacing: PacingAnalysis
    pauses: PauseAnalysis


# --- Feedback ---

class Strength(BaseModel):
    title: str
    description: str
    examples: List[str] = []


class ImprovementArea(BaseModel):
    title: str
    description: str
    priority: Literal["high", "medium", "low"] = "medium"
    examples: List[str] = []


class Tip(BaseModel):
    category: str
    tip: str
    is_actionable: bool = True


class FluencyAnalysis(BaseModel):
    words_per_minute: float
    pause_frequency: Literal["high", "medium", "low"]
    filler_word_count: int
    smoothness: int


class VocabularyStats(BaseModel):
    unique_words: int
    complex_word_usage: int
    repetition_rate: int


class EmotionalAnalysis(BaseModel):
    overall_tone: Literal["enthusiastic", "hesitant", "neutral"]
    engagement: int
    energy_level: Literal["high", "moderate"]


class Resource(BaseModel):
    title: str
    type: str
    url: str


class Recommendations(BaseModel):
    next_steps: List[str]
    practice_areas: List[str]
    resources: List[Resource]


class SessionFeedback(BaseModel):
    strengths: List[Strength]
    areas_for_improvement: List[ImprovementArea]
    tips: List[Tip]
    overall_summary: str
    fluency_analysis: FluencyAnalysis
    clarity_analysis: str
    relevance_analysis: str
    grammar_errors: List[GrammarError]
    vocabulary_stats: VocabularyStats
    emotional_analysis: EmotionalAnalysis
    recommendations: Recommendations
    source: Literal["ai", "rule_based"] = "rule_based"


# --- Request / response bodies ---

SessionType = Literal["interview", "group_discussion", "communication"]


class ScoreRequest(BaseModel):
    transcript: str = ""
    audio_metadata: AudioMetadata = AudioMetadata()
    topic: str = ""
    session_type: SessionType = "communication"
    grammar_errors: Optional[List[GrammarError]] = None
    transcript_entries: List[TranscriptEntry] = []


class AnalyzeRequest(BaseModel):
    transcript: str
    duration_sec: float = Field(..., ge=0)


class FeedbackRequest(BaseModel):
    session_type: SessionType = "communication"
    topic: str = ""
    transcript: List[TranscriptEntry] = []
    audio_metadata: AudioMetadata = AudioMetadata()
    scores: ScoreSet


class SessionAnalyzeRequest(BaseModel):
    recordings: List[AnalyzeRequest] = Field(..., min_length=1)


class SessionEvaluationResponse(BaseModel):
    transcription: TranscriptionResponse
    audio_metadata: AudioMetadata
    pacing: PacingAnalysis
    pauses: PauseAnalysis
    scores: ScoreSet
    feedback: SessionFeedback


class ImprovementSuggestionsRequest(BaseModel):
    recent_feedbacks: List[SessionFeedback] = []
