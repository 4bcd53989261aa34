"""Batch annotation over newline-delimited content."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, List

from .heuristics import analyze_sentiment, classify_text, extract_entities, summarize_text
from .schemas import AnnotateRequest, AnnotateResponse

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 100


class AnnotationKind(str, Enum):
    CLASSIFICATION = "text-classification"
    SENTIMENT = "sentiment-analysis"
    ENTITY_RECOGNITION = "named-entity-recognition"
    SUMMARIZATION = "summarization"
    DEFAULT = "default"

    @classmethod
    def from_wire(cls, value: str) -> "AnnotationKind":
        """Map a wire ``annotation_type`` to a kind; unknown values fall back to DEFAULT."""
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


RowAnnotator = Callable[[str, random.Random], Dict[str, Any]]


def _classification(row: str, rng: random.Random) -> Dict[str, Any]:
    return {"text": row, "category": classify_text(row), "confidence": rng.random() * 0.3 + 0.7}


def _sentiment(row: str, rng: random.Random) -> Dict[str, Any]:
    return {"text": row, "sentiment": analyze_sentiment(row), "score": rng.random() * 2 - 1}


def _entities(row: str, rng: random.Random) -> Dict[str, Any]:
    return {"text": row, "entities": extract_entities(row)}


def _summary(row: str, rng: random.Random) -> Dict[str, Any]:
    return {"text": row, "summary": summarize_text(row)}


def _passthrough(row: str, rng: random.Random) -> Dict[str, Any]:
    return {"text": row, "processed": True}


ANNOTATORS: Dict[AnnotationKind, RowAnnotator] = {
    AnnotationKind.CLASSIFICATION: _classification,
    AnnotationKind.SENTIMENT: _sentiment,
    AnnotationKind.ENTITY_RECOGNITION: _entities,
    AnnotationKind.SUMMARIZATION: _summary,
    AnnotationKind.DEFAULT: _passthrough,
}


def split_rows(content: str) -> List[str]:
    """Split ``content`` on newlines, dropping rows that are blank after stripping.

    Kept rows are returned as-is, without trimming.
    """
    return [row for row in content.split("\n") if row.strip()]


def annotate_row(row: str, kind: AnnotationKind, rng: random.Random) -> Dict[str, Any]:
    return ANNOTATORS[kind](row, rng)


def process_batch(
    request: AnnotateRequest,
    rng: random.Random | None = None,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> AnnotateResponse:
    """Annotate the first ``max_rows`` non-blank rows of ``request.file_content``.

    Rows beyond ``max_rows`` are dropped without error. Annotations come back in
    input order.
    """

    rng = rng if rng is not None else random.Random()
    kind = AnnotationKind.from_wire(request.annotation_type)
    rows = split_rows(request.file_content)
    kept = rows[:max_rows]

    LOGGER.info(
        "event=process_batch status=starting task_id=%s kind=%s rows=%d",
        request.task_id, kind.value, len(rows),
    )
    if len(rows) > max_rows:
        LOGGER.info(
            "event=process_batch status=truncated task_id=%s dropped=%d",
            request.task_id, len(rows) - max_rows,
        )

    annotations = [annotate_row(row, kind, rng) for row in kept]

    LOGGER.info(
        "event=process_batch status=finished task_id=%s total_processed=%d",
        request.task_id, len(annotations),
    )
    return AnnotateResponse(
        task_id=request.task_id,
        annotations=annotations,
        total_processed=len(annotations),
    )
