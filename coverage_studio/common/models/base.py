"""Shared helpers for domain models."""

from datetime import datetime, timezone
from uuid import uuid4


def generate_id(prefix: str) -> str:
    """Generate a unique ID with a given prefix."""
    return f"{prefix}_{uuid4().hex[:12]}"


def utc_now() -> datetime:
    """Timezone-aware current time, used as the default for timestamps."""
    return datetime.now(timezone.utc)
