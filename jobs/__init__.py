"""Background jobs (dramatiq actors)."""
