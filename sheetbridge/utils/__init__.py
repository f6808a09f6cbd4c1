"""Internal helpers for logging and filesystem layout."""
