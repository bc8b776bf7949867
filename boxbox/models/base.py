"""Shared column helpers."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time, used as the application-side creation timestamp."""
    return datetime.now(timezone.utc)
