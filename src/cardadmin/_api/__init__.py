"""Internal REST endpoint modules (one per resource)."""
