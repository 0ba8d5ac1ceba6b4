"""
Settings model — where terrable keeps its files and which server it talks to.

Loaded from YAML by ``terrable.core.config.loader``; every field has a
default so an empty or absent config file is valid.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from terrable.core.models.target import DEFAULT_BASE_URL, DEFAULT_PRODUCT


def _default_root() -> Path:
    return Path.home() / "terrable"


class Settings(BaseModel):
    """Runtime configuration for one terrable invocation."""

    root: Path = Field(default_factory=_default_root)
    base_url: str = DEFAULT_BASE_URL
    product: str = DEFAULT_PRODUCT
    timeout: float = Field(default=60.0, gt=0)  # seconds, per HTTP request

    @field_validator("root", mode="after")
    @classmethod
    def _expand_root(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://", "file://")):
            raise ValueError(f"base_url must be an http(s) or file:// URL, got '{value}'")
        return value
