"""
Error taxonomy — every way an acquisition can fail.

All errors are terminal for the current invocation.  The orchestrator
turns them into a failed ``AcquireResult``; the CLI turns that into
exit status 1.  The ``kind`` value is stable and shows up in ``--json``
output and log lines.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorKind(StrEnum):
    """Stable failure identifiers."""

    UNSUPPORTED_PLATFORM = "UnsupportedPlatform"
    TRANSPORT = "TransportFailure"
    MANIFEST_UNPARSEABLE = "ManifestUnparseable"
    HASH_NOT_FOUND = "HashNotFound"
    FILENAME_INCONSISTENCY = "FilenameInconsistency"
    EXPLICIT_HASH_MISMATCH = "ExplicitHashMismatch"
    EXTRACTION = "ExtractionFailure"
    FILESYSTEM = "FilesystemFailure"
    CONFIG = "ConfigInvalid"


class TerrableError(Exception):
    """Base error carrying a kind, an optional hint and string context."""

    kind: ErrorKind
    hint: str | None
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "kind": self.kind.value,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class UnsupportedPlatformError(TerrableError):
    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.UNSUPPORTED_PLATFORM, **kwargs)


class TransportError(TerrableError):
    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.TRANSPORT, **kwargs)


class ManifestError(TerrableError):
    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.MANIFEST_UNPARSEABLE, **kwargs)


class VerificationError(TerrableError):
    """One of the three hash checks rejected the archive.

    ``kind`` is one of HASH_NOT_FOUND, FILENAME_INCONSISTENCY or
    EXPLICIT_HASH_MISMATCH.
    """


class ExtractionError(TerrableError):
    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.EXTRACTION, **kwargs)


class CacheError(TerrableError):
    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.FILESYSTEM, **kwargs)


class ConfigError(TerrableError):
    """Raised when terrable configuration is invalid or missing."""

    def __init__(self, message: str, **kwargs) -> None:
        super().__init__(message, kind=ErrorKind.CONFIG, **kwargs)


__all__ = [
    "CacheError",
    "ConfigError",
    "ErrorKind",
    "ExtractionError",
    "ManifestError",
    "TerrableError",
    "TransportError",
    "UnsupportedPlatformError",
    "VerificationError",
]
