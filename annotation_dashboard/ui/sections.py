from __future__ import annotations
import json
from dataclasses import asdict
from functools import partial
from typing import Any, Dict, List
import pandas as pd
import streamlit as st
from .. import repository
from ..config import (
    ANNOTATION_TYPES, ANNOTATOR_API_KEY, ANNOTATOR_API_URL, DATASET_FORMATS,
    PROJECT_STATUSES, REQUEST_TIMEOUT, ROLES,
)
from ..models import Identity
from ..repository import StoreError
from ..services import workflows
from ..services.annotator_client import annotate_locally, call_annotator
from ..services.workflows import InputError
from .state import get_db, modal, refresh_active_tab

def toast(msg: str) -> None:
    st.toast(msg)

def _rows_frame(rows: List[Any]) -> pd.DataFrame:
    return pd.DataFrame([r if isinstance(r, dict) else asdict(r) for r in rows])

# ----------------------------- account ---------------------------------------

def account_sidebar() -> None:
    identity: Identity = st.session_state.identity
    if identity is not None:
        st.markdown(f"**{identity.username}**")
        st.caption(identity.role)
        if st.button("Sign Out", use_container_width=True):
            st.session_state.identity = None
            st.rerun()
        st.session_state.annotator_mode = st.radio(
            "Annotator", ["Local", "API"], horizontal=True,
            index=["Local", "API"].index(st.session_state.annotator_mode),
        )
        return

    sign_in_tab, sign_up_tab = st.tabs(["Sign In", "Sign Up"])
    with sign_in_tab:
        email = st.text_input("Email", key="signin_email")
        if st.button("Sign In", type="primary"):
            try:
                st.session_state.identity = workflows.sign_in(get_db(), email)
                st.rerun()
            except (InputError, StoreError) as e:
                st.error(str(e))
    with sign_up_tab:
        username = st.text_input("Username", key="signup_username")
        email = st.text_input("Email", key="signup_email")
        role = st.selectbox("Role", ROLES, index=ROLES.index("Annotator"))
        if st.button("Create account", type="primary"):
            try:
                st.session_state.identity = workflows.sign_up(get_db(), username, email, role)
                st.rerun()
            except (InputError, StoreError) as e:
                st.error(str(e))

def summary_counters(identity: Identity) -> None:
    try:
        counts = repository.count_rows(get_db(), identity)
    except StoreError as e:
        st.error(str(e))
        return
    cols = st.columns(4)
    for col, (label, key) in zip(cols, [("Projects", "projects"), ("Datasets", "datasets"),
                                         ("Tasks", "annotation_tasks"), ("Annotations", "annotations")]):
        with col:
            st.metric(label, counts[key])

# ----------------------------- modals ----------------------------------------

def _modal_header(name: str, title: str) -> bool:
    flow = modal(name)
    if not flow.open:
        return False
    st.subheader(title)
    if flow.error:
        st.error(flow.error)
    return True

def create_project_modal(identity: Identity) -> None:
    if not _modal_header("create_project", "New Project"):
        return
    flow = modal("create_project")
    with st.container(border=True):
        name = st.text_input("Project Name *", key="project_name")
        description = st.text_area("Description", key="project_description", height=100)
        c1, c2, c3 = st.columns(3)
        with c1:
            start = st.date_input("Start date", value=None, key="project_start")
        with c2:
            end = st.date_input("End date", value=None, key="project_end")
        with c3:
            status = st.selectbox("Status", PROJECT_STATUSES, key="project_status")
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Create Project", type="primary", disabled=flow.status == "submitting"):
                created = flow.submit(lambda: workflows.create_project(
                    get_db(), identity, name, description,
                    start.isoformat() if start else None,
                    end.isoformat() if end else None, status,
                ))
                if created:
                    toast(f"Project {created.project_name} created")
                st.rerun()
        with b2:
            st.button("Cancel", key="project_cancel", on_click=flow.close)

def upload_dataset_modal(identity: Identity) -> None:
    if not _modal_header("upload_dataset", "Upload Dataset"):
        return
    flow = modal("upload_dataset")
    with st.container(border=True):
        name = st.text_input("Dataset Name *", key="dataset_name")
        description = st.text_area("Description", key="dataset_description", height=100)
        fmt = st.selectbox("Format *", DATASET_FORMATS, key="dataset_format")
        uploaded = st.file_uploader("Upload File *", type=["csv", "json", "txt", "xml"], key="dataset_file")
        if uploaded:
            st.caption(f"Selected: {uploaded.name} ({uploaded.size / 1024:.2f} KB)")
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Upload Dataset", type="primary", disabled=flow.status == "submitting"):
                flow.submit(lambda: workflows.upload_dataset(
                    get_db(), identity, name, description, fmt,
                    uploaded.name if uploaded else None,
                    uploaded.getvalue() if uploaded else None,
                ))
                st.rerun()
        with b2:
            st.button("Cancel", key="dataset_cancel", on_click=flow.close)

def create_task_modal(identity: Identity) -> None:
    if not _modal_header("create_task", "New Task"):
        return
    flow = modal("create_task")
    db = get_db()
    projects = {p.id: p.project_name for p in repository.list_projects(db, identity)}
    datasets = {d.id: d.dataset_name for d in repository.list_datasets(db, identity)}
    with st.container(border=True):
        project_id = st.selectbox("Project *", [None, *projects], key="task_project",
                                  format_func=lambda k: projects.get(k, "Choose a project..."))
        dataset_id = st.selectbox("Dataset *", [None, *datasets], key="task_dataset",
                                  format_func=lambda k: datasets.get(k, "Choose a dataset..."))
        due = st.date_input("Due date", value=None, key="task_due")
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Create Task", type="primary", disabled=flow.status == "submitting"):
                flow.submit(lambda: workflows.create_task(
                    db, identity, project_id, dataset_id, due.isoformat() if due else None))
                st.rerun()
        with b2:
            st.button("Cancel", key="task_cancel", on_click=flow.close)

def _annotator():
    if st.session_state.annotator_mode == "API":
        return partial(call_annotator, ANNOTATOR_API_URL, ANNOTATOR_API_KEY, timeout=REQUEST_TIMEOUT)
    return annotate_locally

def auto_annotate_modal(identity: Identity) -> None:
    if not _modal_header("auto_annotate", "AI Auto-Annotation"):
        return
    flow = modal("auto_annotate")
    dataset = st.session_state.selected_dataset
    db = get_db()
    projects = {p.id: p.project_name for p in repository.list_projects(db, identity)}
    with st.container(border=True):
        st.info(f"Dataset: {dataset.dataset_name}")
        project_id = st.selectbox("Select Project *", [None, *projects], key="annotate_project",
                                  format_func=lambda k: projects.get(k, "Choose a project..."))
        if not projects:
            st.warning("No projects found. Please create a project first.")
        annotation_type = st.selectbox("Annotation Type *", list(ANNOTATION_TYPES),
                                       format_func=ANNOTATION_TYPES.get, key="annotate_type")
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Start AI Annotation", type="primary", disabled=not project_id):
                with st.status("Processing...") as status:
                    def progress(msg: str) -> None:
                        flow.report(msg)
                        status.update(label=msg)
                    task = flow.submit(lambda: workflows.run_auto_annotation(
                        db, identity, dataset.id, project_id, annotation_type, _annotator(), progress))
                if task:
                    toast(f"Annotated dataset {dataset.dataset_name}")
                st.rerun()
        with b2:
            st.button("Cancel", key="annotate_cancel", on_click=flow.close)

# ----------------------------- tabs ------------------------------------------

def delete_confirmation_widget(identity: Identity) -> None:
    kind, target_id = st.session_state.confirm_delete
    with st.container(border=True):
        st.warning(f"Delete this {kind}? Its annotations are removed too. This cannot be undone.")
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Yes, delete", type="primary"):
                try:
                    if kind == "task":
                        repository.delete_task(get_db(), identity, target_id)
                    else:
                        repository.delete_dataset(get_db(), identity, target_id)
                    toast(f"{kind.capitalize()} deleted")
                except StoreError as e:
                    st.error(str(e))
                    return
                st.session_state.confirm_delete = None
                refresh_active_tab()
                st.rerun()
        with c2:
            if st.button("Cancel", key="confirm_no"):
                st.session_state.confirm_delete = None
                st.rerun()

def _open(name: str, **state) -> None:
    st.session_state.update(state)
    modal(name).show()

def _confirm_delete(kind: str, target_id: str) -> None:
    # set before the script reruns so the prompt renders above the tab
    st.session_state.confirm_delete = (kind, target_id)

def projects_tab(identity: Identity, rows: List[Any]) -> None:
    if identity.can_manage:
        st.button("New Project", on_click=_open, args=("create_project",))
    if not rows:
        st.caption("No projects found." + (" Create your first project to get started." if identity.can_manage else ""))
        return
    df = _rows_frame(rows)
    st.dataframe(df[["project_name", "description", "start_date", "end_date", "status"]],
                 hide_index=True, use_container_width=True)

def datasets_tab(identity: Identity, rows: List[Any]) -> None:
    if identity.can_manage:
        st.button("Upload Dataset", on_click=_open, args=("upload_dataset",))
    if not rows:
        st.caption("No datasets found." + (" Upload your first dataset to begin." if identity.can_manage else ""))
        return
    for dataset in rows:
        with st.container(border=True):
            c1, c2, c3, c4 = st.columns([0.5, 0.15, 0.2, 0.15])
            with c1:
                st.markdown(f"**{dataset.dataset_name}**")
                st.caption(dataset.description or "")
            with c2:
                st.markdown(f"`{dataset.format}`")
            with c3:
                st.button("AI Annotate", key=f"annotate_{dataset.id}",
                          on_click=_open, args=("auto_annotate",),
                          kwargs={"selected_dataset": dataset})
            with c4:
                if identity.can_manage:
                    st.button("Delete", key=f"delete_dataset_{dataset.id}",
                              on_click=_confirm_delete, args=("dataset", dataset.id))

def tasks_tab(identity: Identity, rows: List[Dict[str, Any]]) -> None:
    if identity.can_manage:
        st.button("New Task", on_click=_open, args=("create_task",))
    if not rows:
        st.caption("No tasks found.")
        return
    for task in rows:
        with st.container(border=True):
            head_l, head_r = st.columns([0.88, 0.12])
            with head_l:
                st.markdown(f"**{task['project_name']}** / {task['dataset_name']}")
                st.caption(f"Due {task['due_date'] or '-'} · {task['annotation_count']} annotations")
            with head_r:
                if identity.can_manage:
                    st.button("Delete", key=f"delete_task_{task['id']}",
                              on_click=_confirm_delete, args=("task", task["id"]))
            with st.expander("Annotations"):
                task_annotations(identity, task["id"])

def task_annotations(identity: Identity, task_id: str) -> None:
    try:
        rows = repository.list_task_annotations(get_db(), identity, task_id)
    except StoreError as e:
        st.error(str(e))
        return
    if rows:
        st.dataframe(pd.DataFrame([json.loads(r["content"] or "{}") for r in rows]),
                     hide_index=True, use_container_width=True)
    else:
        st.caption("No annotations visible to you yet.")

    st.caption("Add a manual annotation")
    text = st.text_input("Text", key=f"manual_text_{task_id}")
    label = st.text_input("Label", key=f"manual_label_{task_id}")
    if st.button("Save annotation", key=f"manual_save_{task_id}"):
        try:
            workflows.add_manual_annotation(get_db(), identity, task_id, {"text": text, "label": label})
            toast("Annotation saved")
            refresh_active_tab()
            st.rerun()
        except (InputError, StoreError) as e:
            st.error(str(e))

def annotations_tab(identity: Identity, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        st.caption("No annotations yet.")
        return
    df = pd.DataFrame({
        "Task": [r["task_id"] for r in rows],
        "Content": [r["content"] for r in rows],
        "Created": [r["created_at"] for r in rows],
    })
    st.dataframe(df, hide_index=True, use_container_width=True)

TAB_RENDERERS = {
    "projects": projects_tab,
    "datasets": datasets_tab,
    "tasks": tasks_tab,
    "annotations": annotations_tab,
}
