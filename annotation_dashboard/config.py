from __future__ import annotations
import os

APP_TITLE = "AI Annotate"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./annotate.db")

ANNOTATOR_API_URL = os.getenv("ANNOTATOR_API_URL", "http://localhost:8000/functions/v1/ai-annotate")
ANNOTATOR_API_KEY = os.getenv("ANNOTATOR_API_KEY", "")
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ROLES = ("Admin", "Manager", "Annotator", "Reviewer")
PROJECT_STATUSES = ("Pending", "Active", "Completed", "On Hold")
DATASET_FORMATS = ("CSV", "JSON", "TXT", "XML", "IMAGE")
ANNOTATION_TYPES = {
    "text-classification": "Text Classification",
    "sentiment-analysis": "Sentiment Analysis",
    "named-entity-recognition": "Named Entity Recognition",
    "summarization": "Summarization",
}
