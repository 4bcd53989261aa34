from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str            # Admin|Manager|Annotator|Reviewer
    username: str = ""

    @property
    def can_manage(self) -> bool:
        return self.role in ("Admin", "Manager")

@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str

@dataclass
class Project:
    id: str
    project_name: str
    description: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    status: str          # Pending|Active|Completed|On Hold
    created_at: str

@dataclass
class Dataset:
    id: str
    dataset_name: str
    description: Optional[str]
    format: str
    created_at: str

@dataclass
class DatasetFile:
    id: str
    dataset_id: str
    file_name: str
    file_content: str
    file_size: int
    row_count: int
    created_at: str

@dataclass
class AnnotationTask:
    id: str
    project_id: str
    dataset_id: str
    due_date: Optional[str]
    created_at: str

@dataclass
class Annotation:
    id: str
    task_id: str
    user_id: str
    content: Optional[str]   # JSON text of one result row
    created_at: str
