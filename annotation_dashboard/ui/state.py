from __future__ import annotations
import streamlit as st
from ..db import SessionLocal, engine, migrate
from ..views import ModalFlow, TabView

MODALS = ("create_project", "upload_dataset", "create_task", "auto_annotate")

def init_session_state() -> None:
    if "db_initialized" not in st.session_state:
        migrate(engine)
        st.session_state.db_initialized = True

    st.session_state.setdefault("identity", None)
    st.session_state.setdefault("tab_view", TabView())
    st.session_state.setdefault("modals", {name: ModalFlow(name) for name in MODALS})
    st.session_state.setdefault("selected_dataset", None)
    st.session_state.setdefault("confirm_delete", None)   # ("task"|"dataset", id)
    st.session_state.setdefault("annotator_mode", "Local")

def get_db():
    if "db" not in st.session_state:
        st.session_state.db = SessionLocal()
    return st.session_state.db

def modal(name: str) -> ModalFlow:
    return st.session_state.modals[name]

def refresh_active_tab() -> None:
    """Reload the active tab from the store; no rows are kept between loads."""
    identity = st.session_state.identity
    if identity is None:
        return
    st.session_state.tab_view.load(get_db(), identity)

def reload_if_requested() -> None:
    if any([m.consume_reload() for m in st.session_state.modals.values()]):
        refresh_active_tab()
