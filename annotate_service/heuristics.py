"""Rule-based text annotators.

Every function here is total over arbitrary strings: no input, including the
empty string, makes them raise.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence, Tuple

CATEGORY_KEYWORDS: Tuple[Tuple[str, Sequence[str]], ...] = (
    ("Sports", ("sports", "game", "team")),
    ("Technology", ("tech", "software", "computer")),
    ("Business", ("business", "market", "economy")),
    ("Health", ("health", "medical", "doctor")),
)
FALLBACK_CATEGORY = "General"

POSITIVE_WORDS = ("good", "great", "excellent", "amazing", "love", "wonderful", "best", "happy")
NEGATIVE_WORDS = ("bad", "terrible", "awful", "hate", "worst", "sad", "poor", "disappointing")

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
URL_RE = re.compile(r"https?://[^\s]+")
CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")

# trailing characters that end a sentence rather than a URL
URL_TRAILING_PUNCTUATION = ".,;:!?)]}'\""
MAX_PERSON_ENTITIES = 3

SUMMARY_MAX_WORDS = 10
SUMMARY_SUFFIX = "..."


def classify_text(text: str) -> str:
    """Return the first category whose keywords occur in ``text``."""

    lower_text = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(word in lower_text for word in keywords):
            return category
    return FALLBACK_CATEGORY


def analyze_sentiment(text: str) -> str:
    """Label ``text`` Positive, Negative or Neutral.

    Mixed signals (positive and negative words together) and no signal at all
    both come out Neutral.
    """

    lower_text = text.lower()
    has_positive = any(word in lower_text for word in POSITIVE_WORDS)
    has_negative = any(word in lower_text for word in NEGATIVE_WORDS)

    if has_positive and not has_negative:
        return "Positive"
    if has_negative and not has_positive:
        return "Negative"
    return "Neutral"


def extract_entities(text: str) -> List[Dict[str, str]]:
    """Extract EMAIL, URL and PERSON entities from ``text``.

    The three patterns run independently, so one token may be reported under
    more than one type. PERSON is any run of capitalized words and only the
    first three runs are kept.
    """

    entities: List[Dict[str, str]] = []

    for match in EMAIL_RE.finditer(text):
        entities.append({"text": match.group(0), "type": "EMAIL"})

    for match in URL_RE.finditer(text):
        url = match.group(0).rstrip(URL_TRAILING_PUNCTUATION)
        if url:
            entities.append({"text": url, "type": "URL"})

    for word in CAPITALIZED_RE.findall(text)[:MAX_PERSON_ENTITIES]:
        entities.append({"text": word, "type": "PERSON"})

    return entities


def summarize_text(text: str) -> str:
    # split on single spaces only, runs of spaces produce empty tokens
    words = text.split(" ")
    if len(words) <= SUMMARY_MAX_WORDS:
        return text
    return " ".join(words[:SUMMARY_MAX_WORDS]) + SUMMARY_SUFFIX
