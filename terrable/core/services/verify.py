"""
Hash verification — the whole trust model of terrable.

A downloaded archive is accepted only if all three checks pass, in order:

1. its SHA-256 appears in the release's checksum manifest;
2. the manifest names that digest with the archive filename we asked for
   (compared case-insensitively);
3. if the caller pinned a hash, it equals the computed digest.

Each check guards against something different (truncated download,
wrong file served, a manifest the caller does not trust), so none of
them may be dropped.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from terrable.core.errors import ErrorKind, VerificationError
from terrable.core.models.target import Target

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def sha256_file(path: Path) -> str:
    """Lower-case hex SHA-256 of a file, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def _normalize(digest: str) -> str:
    return digest.strip().lower().removeprefix("sha256:")


@dataclass(frozen=True)
class Verification:
    """Outcome of ``verify_archive``."""

    ok: bool
    digest: str
    failure: ErrorKind | None = None
    message: str = ""

    def raise_for_failure(self) -> None:
        """Raise the matching ``VerificationError`` if a check failed."""
        if self.ok or self.failure is None:
            return
        raise VerificationError(
            self.message,
            kind=self.failure,
            context={"sha256": self.digest},
        )


def verify_archive(
    path: Path,
    target: Target,
    manifest: dict[str, str],
) -> Verification:
    """Run the three archive checks against ``path``.

    Args:
        path: The downloaded archive.
        target: What we expected to download.
        manifest: Parsed checksum manifest, ``{digest: filename}``.

    Returns:
        A passing Verification, or a failing one naming the first check
        that rejected the archive.
    """
    digest = sha256_file(path)
    logger.info("File hash is: %s", digest)

    filename = manifest.get(digest)
    if filename is None:
        logger.error("❌ - Cannot find hash '%s' in %s", digest, target.manifest_file)
        return Verification(
            ok=False,
            digest=digest,
            failure=ErrorKind.HASH_NOT_FOUND,
            message=f"Hash {digest} not found in manifest {target.manifest_file}",
        )
    logger.info("Hash found that corresponds with archive file: %s", filename)

    if filename.lower() != target.archive_file.lower():
        logger.error(
            "❌ - Hashes failed consistency check: manifest names %s, expected %s",
            filename, target.archive_file,
        )
        return Verification(
            ok=False,
            digest=digest,
            failure=ErrorKind.FILENAME_INCONSISTENCY,
            message=(
                f"Filename inconsistency: manifest maps {digest} to {filename}, "
                f"expected {target.archive_file}"
            ),
        )
    logger.info("✔ - Hashes pass consistency check")

    if target.expected_hash and _normalize(target.expected_hash) != digest:
        logger.error("❌ - Hash does not match the provided hash")
        return Verification(
            ok=False,
            digest=digest,
            failure=ErrorKind.EXPLICIT_HASH_MISMATCH,
            message=(
                f"Explicit hash mismatch: expected {_normalize(target.expected_hash)}, "
                f"got {digest}"
            ),
        )
    if target.expected_hash:
        logger.info("✔ - Hash matches the provided hash")

    logger.info("✔ - Hash is good to go")
    return Verification(ok=True, digest=digest)
