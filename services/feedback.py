import re
from collections import Counter
from typing import Iterable, List, Optional

from models import (
    AudioMetadata,
    EmotionalAnalysis,
    FluencyAnalysis,
    GrammarError,
    ImprovementArea,
    Recommendations,
    Resource,
    ScoreSet,
    SessionFeedback,
    Strength,
    Tip,
    TranscriptEntry,
    VocabularyStats,
)
from services.grammar import detect_grammar_errors
from services.rounding import round_half_up
from services.scoring import tokenize

STRENGTH_THRESHOLD = 80
WEAKNESS_THRESHOLD = 60
TIP_THRESHOLD = 70

_POSITIVE_RE = re.compile(r"\b(excited|happy|great|excellent|wonderful|amazing)\b", re.IGNORECASE)
_NEGATIVE_RE = re.compile(r"\b(difficult|challenge|problem|issue|concern)\b", re.IGNORECASE)

_STRENGTHS = {
    "fluency": Strength(
        title="Excellent Fluency",
        description="Your speech flows naturally with minimal hesitation.",
        examples=["Smooth delivery", "Natural pace", "Minimal filler words"],
    ),
    "grammar": Strength(
        title="Strong Grammar",
        description="You demonstrate excellent command of grammatical structures.",
        examples=["Correct sentence formation", "Proper tense usage"],
    ),
    "clarity": Strength(
        title="Clear Communication",
        description="Your ideas are well-organized and easy to understand.",
        examples=["Logical structure", "Clear articulation"],
    ),
    "vocabulary": Strength(
        title="Rich Vocabulary",
        description="You use diverse and appropriate vocabulary.",
        examples=["Varied word choice", "Context-appropriate language"],
    ),
    "confidence": Strength(
        title="Confident Delivery",
        description="You speak with assurance and conviction.",
        examples=["Steady voice", "Minimal hesitation"],
    ),
}

_WEAKNESSES = {
    "fluency": ImprovementArea(
        title="Improve Fluency",
        description="Work on reducing pauses and filler words to speak more smoothly.",
        priority="high",
        examples=["Practice speaking without interruption", 'Reduce "um" and "uh"'],
    ),
    "grammar": ImprovementArea(
        title="Grammar Enhancement",
        description="Focus on improving grammatical accuracy in your responses.",
        priority="high",
        examples=["Review verb tenses", "Practice sentence structure"],
    ),
    "clarity": ImprovementArea(
        title="Enhance Clarity",
        description="Organize your thoughts better before speaking.",
        priority="medium",
        examples=["Use clear topic sentences", "Provide examples"],
    ),
    "vocabulary": ImprovementArea(
        title="Expand Vocabulary",
        description="Work on using more varied and precise vocabulary.",
        priority="medium",
        examples=["Learn industry-specific terms", "Use synonyms"],
    ),
    "confidence": ImprovementArea(
        title="Build Confidence",
        description="Practice more to reduce hesitation and speak with more assurance.",
        priority="high",
        examples=["Practice regularly", "Record yourself speaking"],
    ),
}

_TIPS = {
    "fluency": Tip(category="fluency", tip="Read aloud regularly to improve your speaking rhythm and reduce hesitation."),
    "grammar": Tip(category="grammar", tip="Review common grammar patterns and practice constructing sentences."),
    "clarity": Tip(category="content", tip="Use the STAR method (Situation, Task, Action, Result) to structure your responses."),
    "confidence": Tip(category="confidence", tip="Practice with a mirror or record yourself to become more comfortable speaking."),
}


def user_text(transcript: Iterable[TranscriptEntry]) -> str:
    return " ".join(entry.message for entry in transcript if entry.speaker == "user")


def identify_strengths(scores: ScoreSet) -> List[Strength]:
    strengths = [s.model_copy(deep=True) for key, s in _STRENGTHS.items() if getattr(scores, key) >= STRENGTH_THRESHOLD]
    if strengths:
        return strengths
    return [Strength(
        title="Good Effort",
        description="You completed the session and showed engagement.",
        examples=["Active participation"],
    )]


def identify_weaknesses(scores: ScoreSet) -> List[ImprovementArea]:
    return [w.model_copy(deep=True) for key, w in _WEAKNESSES.items() if getattr(scores, key) < WEAKNESS_THRESHOLD]


def generate_tips(scores: ScoreSet, session_type: str) -> List[Tip]:
    tips = [Tip(category="general", tip="Practice speaking daily for at least 10-15 minutes to build consistency.")]
    tips.extend(t.model_copy(deep=True) for key, t in _TIPS.items() if getattr(scores, key) < TIP_THRESHOLD)

    if session_type == "interview":
        tips.append(Tip(category="general", tip="Research common interview questions and prepare structured answers."))
    return tips


def generate_summary(scores: ScoreSet, session_type: str, topic: str) -> str:
    avg_score = round_half_up(
        (scores.fluency + scores.grammar + scores.clarity + scores.relevance + scores.confidence) / 5
    )

    performance = "good"
    if avg_score >= 80:
        performance = "excellent"
    elif avg_score >= 70:
        performance = "very good"
    elif avg_score < 60:
        performance = "needs improvement"

    closing = (
        "Keep up the good work and continue practicing regularly."
        if avg_score >= 70
        else "Focus on the improvement areas highlighted and practice consistently."
    )
    return (
        f'You completed a {session_type} session on "{topic}" with {performance} performance. '
        f"Your average score was {avg_score}/100. {closing}"
    )


def analyze_fluency(score: int, audio_metadata: AudioMetadata) -> FluencyAnalysis:
    if audio_metadata.pause_count > 10:
        frequency = "high"
    elif audio_metadata.pause_count > 5:
        frequency = "medium"
    else:
        frequency = "low"

    return FluencyAnalysis(
        words_per_minute=audio_metadata.words_per_minute,
        pause_frequency=frequency,
        filler_word_count=audio_metadata.filler_words,
        smoothness=score,
    )


def analyze_clarity(score: int) -> str:
    if score >= 80:
        return "Your communication is clear and well-structured. Ideas flow logically."
    elif score >= 60:
        return "Your communication is generally clear but could be more organized."
    return "Work on organizing your thoughts before speaking to improve clarity."


def analyze_relevance(score: int) -> str:
    if score >= 80:
        return "Your responses were highly relevant and on-topic throughout."
    elif score >= 60:
        return "Most of your responses were relevant, but some could be more focused."
    return "Focus more on staying on topic and addressing the questions directly."


def analyze_vocabulary(text: str) -> VocabularyStats:
    words = [word for word in tokenize(text) if len(word) > 3]
    if not words:
        return VocabularyStats(unique_words=0, complex_word_usage=0, repetition_rate=0)

    unique = len(set(words))
    return VocabularyStats(
        unique_words=unique,
        complex_word_usage=round_half_up(unique / len(words) * 100),
        repetition_rate=round_half_up((1 - unique / len(words)) * 100),
    )


def analyze_emotion(text: str) -> EmotionalAnalysis:
    positive = len(_POSITIVE_RE.findall(text))
    negative = len(_NEGATIVE_RE.findall(text))

    tone = "neutral"
    if positive > negative:
        tone = "enthusiastic"
    elif negative > positive:
        tone = "hesitant"

    return EmotionalAnalysis(
        overall_tone=tone,
        engagement=min(100, (positive + negative) * 10 + 50),
        energy_level="high" if positive > 3 else "moderate",
    )


def generate_recommendations(scores: ScoreSet) -> Recommendations:
    practice_areas = [
        key for key in ("fluency", "grammar", "confidence")
        if getattr(scores, key) < TIP_THRESHOLD
    ]
    return Recommendations(
        next_steps=[
            "Schedule regular practice sessions (3-4 times per week)",
            "Record yourself and review to identify improvement areas",
            "Practice with different types of questions and scenarios",
        ],
        practice_areas=practice_areas,
        resources=[
            Resource(title="Speaking Practice Tips", type="article", url="/resources/speaking-tips"),
            Resource(title="Interview Questions Guide", type="article", url="/resources/interview-guide"),
        ],
    )


def generate_improvement_suggestions(recent_feedbacks: Iterable[SessionFeedback]) -> List[str]:
    """Surface the weaknesses that keep recurring across recent sessions."""
    weaknesses = Counter(
        area.title
        for feedback in recent_feedbacks
        for area in feedback.areas_for_improvement
    )
    suggestions = [
        f"Focus on: {title} (appeared in {count} recent sessions)"
        for title, count in weaknesses.most_common(3)
    ]
    return suggestions or ["Keep practicing regularly to maintain your progress"]


def build_rule_based_feedback(
    scores: ScoreSet,
    audio_metadata: AudioMetadata,
    session_type: str,
    topic: str,
    text: str,
    grammar_errors: Optional[List[GrammarError]] = None,
) -> SessionFeedback:
    if grammar_errors is None:
        grammar_errors = detect_grammar_errors(text)

    return SessionFeedback(
        strengths=identify_strengths(scores),
        areas_for_improvement=identify_weaknesses(scores),
        tips=generate_tips(scores, session_type),
        overall_summary=generate_summary(scores, session_type, topic),
        fluency_analysis=analyze_fluency(scores.fluency, audio_metadata),
        clarity_analysis=analyze_clarity(scores.clarity),
        relevance_analysis=analyze_relevance(scores.relevance),
        grammar_errors=grammar_errors,
        vocabulary_stats=analyze_vocabulary(text),
        emotional_analysis=analyze_emotion(text),
        recommendations=generate_recommendations(scores),
        source="rule_based",
    )
