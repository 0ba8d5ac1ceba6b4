"""
ActiveRecord — what is currently sitting in the active slot.

Serialized to ``<root>/active.json`` after every activation.  It is
informational only: deleting it never breaks the active binary.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ActiveRecord(BaseModel):
    """The last version copied into the active slot."""

    schema_version: int = 1

    version: str
    platform: str
    arch: str
    sha256: str = ""               # digest of the activated executable
    source: str = ""               # cache, download
    activated_at: str = Field(default_factory=_now_iso)
