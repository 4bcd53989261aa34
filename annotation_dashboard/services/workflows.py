"""User-facing workflows built on the repository.

Input problems raise ``InputError`` before any store or network call. Store
and transport failures propagate unchanged so the view can show them.
"""

from __future__ import annotations
import json, logging, uuid
from typing import Any, Callable, Dict, Optional, Tuple
from sqlalchemy.orm import Session
from annotate_service.batch import split_rows
from .. import repository
from ..config import DATASET_FORMATS, PROJECT_STATUSES, ROLES
from ..models import AnnotationTask, Dataset, Identity, Project

LOGGER = logging.getLogger(__name__)

Annotate = Callable[[Dict[str, Any]], Tuple[Dict[str, Any], Optional[str]]]
Progress = Callable[[str], None]

class InputError(ValueError):
    pass

class AnnotationServiceError(Exception):
    pass

def _identity_from_profile(profile: Dict[str, Any]) -> Identity:
    return Identity(user_id=profile["id"], role=profile["role"], username=profile["username"])

def sign_up(db: Session, username: str, email: str, role: str = "Annotator") -> Identity:
    username, email = (username or "").strip(), (email or "").strip()
    if not username or not email:
        raise InputError("Username and email are required")
    if role not in ROLES:
        raise InputError(f"Unknown role '{role}'")
    user_id = str(uuid.uuid4())
    # the new profile is inserted under its own identity
    profile = repository.insert_user(db, Identity(user_id, role, username), user_id, username, email, role)
    LOGGER.info("event=sign_up status=finished user_id=%s role=%s", user_id, role)
    return _identity_from_profile(profile)

def sign_in(db: Session, email: str) -> Identity:
    """Look up the profile for ``email`` and return it as the session identity.

    There is no password or token check: whoever knows an email signs in as
    that user, and ``sign_up`` accepts any role including Admin. ``authorize``
    only decides what an identity may do, not who is behind it, so this is
    for trusted local deployments.
    """
    email = (email or "").strip()
    if not email:
        raise InputError("Please enter your email")
    profile = repository.get_user_by_email(db, email)
    if not profile:
        raise InputError("No account found for this email")
    return _identity_from_profile(profile)

def create_project(db: Session, identity: Identity, project_name: str, description: str = "",
                   start_date: Optional[str] = None, end_date: Optional[str] = None,
                   status: str = "Pending") -> Project:
    project_name = (project_name or "").strip()
    if not project_name:
        raise InputError("Please enter a project name")
    if status not in PROJECT_STATUSES:
        raise InputError(f"Unknown project status '{status}'")
    if start_date and end_date and end_date < start_date:
        raise InputError("End date must not be before start date")
    return repository.insert_project(db, identity, project_name, description, start_date, end_date, status)

def upload_dataset(db: Session, identity: Identity, dataset_name: str, description: str,
                   format: str, file_name: Optional[str], data: Optional[bytes]) -> Dataset:
    """Store a dataset and its single raw file.

    ``row_count`` counts the non-blank rows, the same rows auto-annotation
    would see.
    """
    dataset_name = (dataset_name or "").strip()
    if data is None or not file_name:
        raise InputError("Please select a file")
    if not dataset_name:
        raise InputError("Please enter a dataset name")
    if format not in DATASET_FORMATS:
        raise InputError(f"Unsupported format '{format}'")

    content = data.decode("utf-8", errors="replace")
    dataset = repository.insert_dataset(db, identity, dataset_name, description or "", format)
    repository.insert_dataset_file(
        db, identity, dataset.id, file_name, content,
        file_size=len(data), row_count=len(split_rows(content)),
    )
    LOGGER.info("event=upload_dataset status=finished dataset_id=%s size=%d", dataset.id, len(data))
    return dataset

def create_task(db: Session, identity: Identity, project_id: Optional[str], dataset_id: Optional[str],
                due_date: Optional[str] = None) -> AnnotationTask:
    if not project_id:
        raise InputError("Please select a project")
    if not dataset_id:
        raise InputError("Please select a dataset")
    return repository.insert_task(db, identity, project_id, dataset_id, due_date)

def add_manual_annotation(db: Session, identity: Identity, task_id: Optional[str],
                          result: Dict[str, Any]) -> None:
    if not task_id:
        raise InputError("Please select a task")
    if not str(result.get("text") or "").strip():
        raise InputError("Please enter the annotated text")
    repository.insert_annotations(db, identity, [{
        "task_id": task_id, "user_id": identity.user_id, "content": json.dumps(result),
    }])

def run_auto_annotation(db: Session, identity: Identity, dataset_id: str, project_id: Optional[str],
                        annotation_type: str, annotate: Annotate,
                        progress: Progress = lambda _msg: None) -> AnnotationTask:
    """Create a task for ``dataset_id`` and persist one annotation per processed row.

    Runs on the same task are not deduplicated; two concurrent runs store two
    result sets.
    """
    if not project_id:
        raise InputError("Please select a project")

    progress("Fetching dataset...")
    dataset_file = repository.get_dataset_file(db, identity, dataset_id)
    if dataset_file is None:
        raise InputError("No file found for this dataset")

    progress("Creating annotation task...")
    task = repository.insert_task(db, identity, project_id, dataset_id)

    progress("Processing with AI...")
    result, err = annotate({
        "task_id": task.id,
        "file_content": dataset_file.file_content,
        "annotation_type": annotation_type,
    })
    if err:
        raise AnnotationServiceError(err)

    progress("Saving annotations...")
    repository.insert_annotations(db, identity, [
        {"task_id": task.id, "user_id": identity.user_id, "content": json.dumps(annotation)}
        for annotation in result.get("annotations", [])
    ])
    LOGGER.info("event=run_auto_annotation status=finished task_id=%s total_processed=%s",
                task.id, result.get("total_processed"))

    progress("Complete!")
    return task

