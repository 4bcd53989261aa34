"""Rule-based auto-annotation service."""
