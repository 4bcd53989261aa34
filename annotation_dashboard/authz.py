"""Row-level authorization policies.

``authorize`` is consulted by the repository before each store operation. It
knows nothing about the storage engine; callers pass the candidate row (for
writes) or the stored row (for owner checks) as a plain mapping.
"""

from __future__ import annotations
from typing import Any, Mapping, Optional
from .models import AccessDecision, Identity

ACTIONS = ("select", "insert", "update", "delete")
MANAGERS = ("Admin", "Manager")
REVIEWERS = ("Admin", "Manager", "Reviewer")

# collections readable by every signed-in identity, writable by managers only
SHARED_COLLECTIONS = ("projects", "datasets", "dataset_files", "annotation_tasks")

def allow(reason: str) -> AccessDecision:
    return AccessDecision(True, reason)

def deny(reason: str) -> AccessDecision:
    return AccessDecision(False, reason)

def _owner(row: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
    if row is None:
        return None
    return row.get(key)

def authorize(identity: Optional[Identity], collection: str, action: str,
              row: Optional[Mapping[str, Any]] = None) -> AccessDecision:
    if identity is None:
        return deny("Not authenticated")
    if action not in ACTIONS:
        return deny(f"Unknown action '{action}'")

    if collection == "users":
        if action == "delete":
            return deny("Profiles cannot be deleted")
        if _owner(row, "id") == identity.user_id:
            return allow("Own profile")
        return deny("Users can only access their own profile")

    if collection in SHARED_COLLECTIONS:
        if action == "select":
            return allow("Authenticated users can read " + collection)
        if collection == "projects" and action == "delete":
            return deny("Projects cannot be deleted")
        if identity.role in MANAGERS:
            return allow(f"{identity.role} can manage {collection}")
        return deny(f"Only Admin and Manager can {action} {collection}")

    if collection == "annotations":
        is_owner = _owner(row, "user_id") == identity.user_id
        if action == "select":
            if identity.role in REVIEWERS:
                return allow(f"{identity.role} can read all annotations")
            if is_owner:
                return allow("Own annotation")
            return deny("Users can only read their own annotations")
        if action == "delete":
            return deny("Annotations are removed only with their task or dataset")
        if is_owner:
            return allow("Own annotation")
        return deny("Users can only write their own annotations")

    return deny(f"Unknown collection '{collection}'")
