import json
import logging

import pytest
from sqlalchemy.exc import OperationalError

from annotation_dashboard import repository
from annotation_dashboard.repository import PermissionDenied, StoreError


def test_insert_project_returns_created_row(db, manager):
    project = repository.insert_project(db, manager, "Reviews", "product reviews", "2026-01-01", None, "Active")
    assert project.id
    assert project.project_name == "Reviews"
    assert project.status == "Active"
    assert project.created_at


def test_list_projects_newest_first(db, manager, annotator):
    repository.insert_project(db, manager, "first")
    repository.insert_project(db, manager, "second")
    names = [p.project_name for p in repository.list_projects(db, annotator)]
    assert names == ["second", "first"]


def test_annotator_cannot_insert_project(db, annotator):
    with pytest.raises(PermissionDenied, match="Only Admin and Manager"):
        repository.insert_project(db, annotator, "nope")
    assert repository.list_projects(db, annotator) == []


def test_unauthenticated_read_fails(db):
    with pytest.raises(PermissionDenied):
        repository.list_datasets(db, None)
    with pytest.raises(PermissionDenied):
        repository.list_annotations(db, None)


def test_constraint_violation_surfaces_as_store_error(db, manager):
    with pytest.raises(StoreError) as excinfo:
        repository.insert_task(db, manager, "missing-project", "missing-dataset")
    assert not isinstance(excinfo.value, PermissionDenied)
    assert "FOREIGN KEY" in str(excinfo.value)
    # the session is usable after the failure
    assert repository.list_tasks(db, manager) == []


def test_invalid_status_is_store_error(db, manager):
    with pytest.raises(StoreError, match="CHECK"):
        repository.insert_project(db, manager, "bad", status="Someday")


def test_get_dataset_file_by_dataset(db, manager, dataset):
    dataset_file = repository.get_dataset_file(db, manager, dataset.id)
    assert dataset_file.file_name == "tickets.txt"
    assert repository.get_dataset_file(db, manager, "unknown") is None


def test_list_tasks_joins_names(db, manager, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id, "2026-12-01")
    [row] = repository.list_tasks(db, manager)
    assert row["id"] == task.id
    assert row["project_name"] == "Support tickets"
    assert row["dataset_name"] == "Tickets"
    assert row["due_date"] == "2026-12-01"
    assert row["annotation_count"] == 0


def test_insert_annotations_for_other_user_denied(db, manager, annotator, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    with pytest.raises(PermissionDenied):
        repository.insert_annotations(db, manager, [
            {"task_id": task.id, "user_id": annotator.user_id, "content": "{}"},
        ])


def test_annotation_visibility(db, manager, annotator, reviewer, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    repository.insert_annotations(db, annotator, [
        {"task_id": task.id, "user_id": annotator.user_id, "content": json.dumps({"text": "a"})},
    ])
    repository.insert_annotations(db, manager, [
        {"task_id": task.id, "user_id": manager.user_id, "content": json.dumps({"text": "m"})},
    ])

    own = repository.list_task_annotations(db, annotator, task.id)
    assert [json.loads(r["content"])["text"] for r in own] == ["a"]

    everyone = repository.list_task_annotations(db, reviewer, task.id)
    assert len(everyone) == 2

    assert len(repository.list_annotations(db, annotator)) == 1
    assert repository.list_annotations(db, reviewer) == []


def test_task_annotations_keep_insertion_order(db, manager, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    rows = [{"task_id": task.id, "user_id": manager.user_id, "content": str(i)} for i in range(25)]
    repository.insert_annotations(db, manager, rows)
    stored = repository.list_task_annotations(db, manager, task.id)
    assert [r["content"] for r in stored] == [str(i) for i in range(25)]


def test_delete_task_cascades_to_annotations(db, manager, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    repository.insert_annotations(db, manager, [
        {"task_id": task.id, "user_id": manager.user_id, "content": "{}"},
    ])
    repository.delete_task(db, manager, task.id)
    assert repository.list_tasks(db, manager) == []
    assert repository.list_annotations(db, manager) == []


def test_delete_dataset_cascades_to_file_and_tasks(db, manager, project, dataset):
    repository.insert_task(db, manager, project.id, dataset.id)
    repository.delete_dataset(db, manager, dataset.id)
    assert repository.get_dataset_file(db, manager, dataset.id) is None
    assert repository.list_tasks(db, manager) == []
    assert [p.id for p in repository.list_projects(db, manager)] == [project.id]


def test_annotator_cannot_delete_task(db, manager, annotator, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    with pytest.raises(PermissionDenied):
        repository.delete_task(db, annotator, task.id)


def test_count_rows(db, manager, project, dataset):
    repository.insert_task(db, manager, project.id, dataset.id)
    assert repository.count_rows(db, manager) == {
        "projects": 1, "datasets": 1, "annotation_tasks": 1, "annotations": 0,
    }


def test_count_rows_counts_only_own_annotations(db, manager, annotator, project, dataset):
    task = repository.insert_task(db, manager, project.id, dataset.id)
    repository.insert_annotations(db, manager, [
        {"task_id": task.id, "user_id": manager.user_id, "content": json.dumps({"text": "a"})},
        {"task_id": task.id, "user_id": manager.user_id, "content": json.dumps({"text": "b"})},
    ])
    repository.insert_annotations(db, annotator, [
        {"task_id": task.id, "user_id": annotator.user_id, "content": json.dumps({"text": "c"})},
    ])
    assert repository.count_rows(db, manager)["annotations"] == 2
    assert repository.count_rows(db, annotator)["annotations"] == 1


def test_count_rows_requires_sign_in(db):
    with pytest.raises(PermissionDenied, match="Not authenticated"):
        repository.count_rows(db, None)


def test_commit_failure_is_logged_and_rolled_back(db, manager, monkeypatch, caplog):
    def fail():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", fail)
    with caplog.at_level(logging.WARNING, logger="annotation_dashboard.repository"):
        with pytest.raises(StoreError, match="disk I/O error"):
            repository.insert_project(db, manager, "unsaved")
    assert "event=store_error error=disk I/O error" in caplog.text
