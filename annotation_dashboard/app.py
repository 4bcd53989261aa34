from __future__ import annotations
import logging
import streamlit as st
from annotation_dashboard.config import APP_TITLE, LOG_LEVEL
from annotation_dashboard.views import LOADING, ERROR, TABS
from annotation_dashboard.ui.state import init_session_state, refresh_active_tab, reload_if_requested
from annotation_dashboard.ui.sections import (
    account_sidebar, summary_counters, create_project_modal, upload_dataset_modal,
    create_task_modal, auto_annotate_modal, delete_confirmation_widget, TAB_RENDERERS,
)

logging.basicConfig(level=LOG_LEVEL)

st.set_page_config(page_title=APP_TITLE, layout="wide")
st.title(APP_TITLE)

init_session_state()

with st.sidebar:
    st.header("Account")
    account_sidebar()

identity = st.session_state.identity
if identity is None:
    st.caption("Sign in to manage your annotation projects and tasks.")
    st.stop()

reload_if_requested()
summary_counters(identity)

view = st.session_state.tab_view
tab = st.radio("Section", TABS, index=TABS.index(view.tab), horizontal=True,
               format_func=str.capitalize, label_visibility="collapsed")
if tab != view.tab:
    view.select(tab)
if view.status == LOADING:
    refresh_active_tab()

create_project_modal(identity)
upload_dataset_modal(identity)
create_task_modal(identity)
auto_annotate_modal(identity)

if st.session_state.confirm_delete:
    delete_confirmation_widget(identity)

if view.status == ERROR:
    st.error(view.error)
else:
    TAB_RENDERERS[view.tab](identity, view.rows)
