import re
from typing import List

from models import GrammarError

# (pattern, type, original, correction, explanation)
GRAMMAR_PATTERNS = [
    (r"\bdid\s+went\b", "tense", "did went", "went",
     "Use simple past tense, not past with auxiliary"),
    (r"\bcould\s+of\b", "verb form", "could of", "could have",
     "Use 'have' after modal verbs"),
    (r"\bshould\s+of\b", "verb form", "should of", "should have",
     "Use 'have' after modal verbs"),
    (r"\bwould\s+of\b", "verb form", "would of", "would have",
     "Use 'have' after modal verbs"),
]


def detect_grammar_errors(text: str) -> List[GrammarError]:
    """Match the transcript against a small list of common mistakes"""
    errors = []
    for pattern, error_type, original, correction, explanation in GRAMMAR_PATTERNS:
        if re.search(pattern, text, flags=re.IGNORECASE):
            errors.append(GrammarError(
                type=error_type,
                original=original,
                correction=correction,
                explanation=explanation,
            ))
    return errors
