from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional
from datetime import datetime, timedelta, timezone
import logging, uuid
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from .authz import authorize
from .models import Identity, Project, Dataset, DatasetFile, AnnotationTask, Annotation

LOGGER = logging.getLogger(__name__)

class StoreError(Exception):
    pass

class PermissionDenied(StoreError):
    pass

def _now(offset_us: int = 0) -> str:
    moment = datetime.now(timezone.utc) + timedelta(microseconds=offset_us)
    return moment.isoformat(timespec="microseconds")

def _new_id() -> str:
    return str(uuid.uuid4())

def _require(identity: Optional[Identity], collection: str, action: str,
             row: Optional[Mapping[str, Any]] = None) -> None:
    decision = authorize(identity, collection, action, row)
    if not decision.allowed:
        LOGGER.info("event=authorize status=denied collection=%s action=%s reason=%s",
                    collection, action, decision.reason)
        raise PermissionDenied(decision.reason)

def _require_signed_in(identity: Optional[Identity]) -> None:
    if identity is None:
        raise PermissionDenied("Not authenticated")

def _visible(identity: Optional[Identity], collection: str,
             rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [dict(r) for r in rows if authorize(identity, collection, "select", r).allowed]

def _execute(db: Session, sql: str, params: Any = None):
    try:
        return db.execute(text(sql), params or {})
    except SQLAlchemyError as e:
        db.rollback()
        message = str(getattr(e, "orig", None) or e)
        LOGGER.warning("event=store_error error=%s", message)
        raise StoreError(message) from e

def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        message = str(getattr(e, "orig", None) or e)
        LOGGER.warning("event=store_error error=%s", message)
        raise StoreError(message) from e

def _insert(db: Session, identity: Optional[Identity], table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    row = {"id": row.get("id") or _new_id(), **row, "created_at": _now()}
    _require(identity, table, "insert", row)
    cols = ", ".join(row)
    marks = ", ".join(f":{c}" for c in row)
    _execute(db, f"INSERT INTO {table} ({cols}) VALUES ({marks})", row)
    _commit(db)
    created = _execute(db, f"SELECT * FROM {table} WHERE id=:id", {"id": row["id"]}).mappings().first()
    return dict(created) if created else {}

# ----------------------------- users ----------------------------------------

def insert_user(db: Session, identity: Optional[Identity], user_id: str, username: str,
                email: str, role: str = "Annotator") -> Dict[str, Any]:
    return _insert(db, identity, "users",
                   {"id": user_id, "username": username, "email": email, "role": role})

def get_user_by_email(db: Session, email: str) -> Optional[Dict[str, Any]]:
    """Profile lookup used at sign-in, before any identity exists."""
    row = _execute(db, "SELECT id, username, email, role, created_at FROM users WHERE email=:email",
                   {"email": email}).mappings().first()
    return dict(row) if row else None

# ----------------------------- projects -------------------------------------

def insert_project(db: Session, identity: Optional[Identity], project_name: str,
                   description: str = "", start_date: Optional[str] = None,
                   end_date: Optional[str] = None, status: str = "Pending") -> Project:
    row = _insert(db, identity, "projects", {
        "project_name": project_name, "description": description,
        "start_date": start_date, "end_date": end_date, "status": status,
    })
    return Project(**row)

def list_projects(db: Session, identity: Optional[Identity]) -> List[Project]:
    _require(identity, "projects", "select")
    cur = _execute(db, "SELECT id, project_name, description, start_date, end_date, status, created_at "
                       "FROM projects ORDER BY created_at DESC")
    return [Project(**r) for r in cur.mappings().all()]

# ----------------------------- datasets -------------------------------------

def insert_dataset(db: Session, identity: Optional[Identity], dataset_name: str,
                   description: str, format: str) -> Dataset:
    row = _insert(db, identity, "datasets",
                  {"dataset_name": dataset_name, "description": description, "format": format})
    return Dataset(**row)

def list_datasets(db: Session, identity: Optional[Identity]) -> List[Dataset]:
    _require(identity, "datasets", "select")
    cur = _execute(db, "SELECT id, dataset_name, description, format, created_at "
                       "FROM datasets ORDER BY created_at DESC")
    return [Dataset(**r) for r in cur.mappings().all()]

def delete_dataset(db: Session, identity: Optional[Identity], dataset_id: str) -> None:
    _require(identity, "datasets", "delete", {"id": dataset_id})
    _execute(db, "DELETE FROM datasets WHERE id=:id", {"id": dataset_id})
    _commit(db)

def insert_dataset_file(db: Session, identity: Optional[Identity], dataset_id: str, file_name: str,
                        file_content: str, file_size: int, row_count: int) -> DatasetFile:
    row = _insert(db, identity, "dataset_files", {
        "dataset_id": dataset_id, "file_name": file_name, "file_content": file_content,
        "file_size": file_size, "row_count": row_count,
    })
    return DatasetFile(**row)

def get_dataset_file(db: Session, identity: Optional[Identity], dataset_id: str) -> Optional[DatasetFile]:
    """The file of a dataset, or None. A dataset holds at most one file."""
    _require(identity, "dataset_files", "select")
    row = _execute(db, "SELECT * FROM dataset_files WHERE dataset_id=:dataset_id "
                       "ORDER BY created_at DESC", {"dataset_id": dataset_id}).mappings().first()
    return DatasetFile(**row) if row else None

# ----------------------------- tasks ----------------------------------------

def insert_task(db: Session, identity: Optional[Identity], project_id: str, dataset_id: str,
                due_date: Optional[str] = None) -> AnnotationTask:
    row = _insert(db, identity, "annotation_tasks",
                  {"project_id": project_id, "dataset_id": dataset_id, "due_date": due_date})
    return AnnotationTask(**row)

def list_tasks(db: Session, identity: Optional[Identity]) -> List[Dict[str, Any]]:
    _require(identity, "annotation_tasks", "select")
    cur = _execute(db, """
        SELECT t.id, t.project_id, t.dataset_id, t.due_date, t.created_at,
               p.project_name, d.dataset_name,
               (SELECT COUNT(*) FROM annotations a WHERE a.task_id = t.id) AS annotation_count
        FROM annotation_tasks t
        JOIN projects p ON p.id = t.project_id
        JOIN datasets d ON d.id = t.dataset_id
        ORDER BY t.created_at DESC
    """)
    return [dict(r) for r in cur.mappings().all()]

def delete_task(db: Session, identity: Optional[Identity], task_id: str) -> None:
    _require(identity, "annotation_tasks", "delete", {"id": task_id})
    _execute(db, "DELETE FROM annotation_tasks WHERE id=:id", {"id": task_id})
    _commit(db)

# ----------------------------- annotations ----------------------------------

def insert_annotations(db: Session, identity: Optional[Identity],
                       rows: List[Dict[str, Any]]) -> List[Annotation]:
    """Insert ``rows`` (task_id, user_id, content) in one transaction.

    Each row gets a timestamp one microsecond after the previous one so that
    reading a task back by ``created_at`` returns the rows in input order.
    """
    prepared = [{"id": _new_id(), "task_id": r["task_id"], "user_id": r["user_id"],
                 "content": r.get("content"), "created_at": _now(i)} for i, r in enumerate(rows)]
    for row in prepared:
        _require(identity, "annotations", "insert", row)
    if prepared:
        _execute(db, "INSERT INTO annotations (id, task_id, user_id, content, created_at) "
                     "VALUES (:id, :task_id, :user_id, :content, :created_at)", prepared)
        _commit(db)
    return [Annotation(**r) for r in prepared]

def list_annotations(db: Session, identity: Optional[Identity]) -> List[Dict[str, Any]]:
    """The identity's own annotations, newest first."""
    _require_signed_in(identity)
    cur = _execute(db, "SELECT id, task_id, user_id, content, created_at FROM annotations "
                       "WHERE user_id=:user_id ORDER BY created_at DESC",
                   {"user_id": identity.user_id})
    return _visible(identity, "annotations", cur.mappings().all())

def list_task_annotations(db: Session, identity: Optional[Identity], task_id: str) -> List[Dict[str, Any]]:
    """Annotations of one task that the identity may read, in insertion order."""
    _require_signed_in(identity)
    cur = _execute(db, "SELECT id, task_id, user_id, content, created_at FROM annotations "
                       "WHERE task_id=:task_id ORDER BY created_at ASC",
                   {"task_id": task_id})
    return _visible(identity, "annotations", cur.mappings().all())

# ----------------------------- summary --------------------------------------

def count_rows(db: Session, identity: Optional[Identity]) -> Dict[str, int]:
    _require_signed_in(identity)
    counts = {}
    for table in ("projects", "datasets", "annotation_tasks"):
        _require(identity, table, "select")
        counts[table] = _execute(db, f"SELECT COUNT(*) FROM {table}").scalar_one()
    # only the caller's own annotations count
    counts["annotations"] = _execute(db, "SELECT COUNT(*) FROM annotations WHERE user_id = :user_id",
                                     {"user_id": identity.user_id}).scalar_one()
    return counts
