"""Annotation project dashboard: data access, workflows and Streamlit UI."""
