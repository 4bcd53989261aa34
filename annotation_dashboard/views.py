"""Screen state for the dashboard, independent of the rendering toolkit.

A ``TabView`` holds what the active tab shows; a ``ModalFlow`` tracks one
overlay (create project, upload dataset, create task, auto-annotate). The
Streamlit layer keeps instances of both in session state and renders from
them.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session
from . import repository
from .models import Identity
from .repository import StoreError
from .services.workflows import AnnotationServiceError, InputError

LOGGER = logging.getLogger(__name__)

TABS = ("projects", "datasets", "tasks", "annotations")

LOADING, IDLE, ERROR = "loading", "idle", "error"
SUBMITTING, SUCCESS = "submitting", "success"

# errors a user action may end with; anything else is a bug and propagates
ACTION_ERRORS = (InputError, StoreError, AnnotationServiceError)

LOADERS: Dict[str, Callable[[Session, Identity], List[Any]]] = {
    "projects": repository.list_projects,
    "datasets": repository.list_datasets,
    "tasks": repository.list_tasks,
    "annotations": repository.list_annotations,
}


@dataclass
class TabView:
    tab: str = "projects"
    status: str = LOADING
    rows: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    def select(self, tab: str) -> None:
        """Switch tabs; the new tab always starts from a fresh load."""
        if tab not in TABS:
            raise ValueError(f"Unknown tab '{tab}'")
        self.tab = tab
        self.status = LOADING
        self.rows = []
        self.error = None

    def load(self, db: Session, identity: Identity) -> None:
        self.status = LOADING
        try:
            self.rows = LOADERS[self.tab](db, identity)
        except StoreError as e:
            LOGGER.warning("event=load_tab status=error tab=%s error=%s", self.tab, e)
            self.rows = []
            self.error = str(e)
            self.status = ERROR
            return
        self.error = None
        self.status = IDLE


@dataclass
class ModalFlow:
    name: str
    open: bool = False
    status: str = IDLE
    error: Optional[str] = None
    progress: Optional[str] = None
    needs_reload: bool = False

    def show(self) -> None:
        self.open = True
        self.status = IDLE
        self.error = None
        self.progress = None

    def close(self) -> None:
        self.open = False
        self.status = IDLE
        self.progress = None

    def report(self, message: str) -> None:
        self.progress = message

    def submit(self, action: Callable[[], Any]) -> Any:
        """Run ``action`` as this overlay's single in-flight operation.

        On success the overlay closes and asks its parent to reload. A failed
        action leaves the overlay open with the error message.
        """
        if self.status == SUBMITTING:
            return None
        self.status = SUBMITTING
        self.error = None
        try:
            result = action()
        except ACTION_ERRORS as e:
            LOGGER.info("event=modal_submit status=error modal=%s error=%s", self.name, e)
            self.status = ERROR
            self.error = str(e) or f"Failed to {self.name.replace('_', ' ')}"
            return None
        self.status = SUCCESS
        self.needs_reload = True
        self.open = False
        return result

    def consume_reload(self) -> bool:
        reload, self.needs_reload = self.needs_reload, False
        return reload
