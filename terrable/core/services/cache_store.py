"""
Cache store — the on-disk layout terrable owns.

    <root>/                      created on every run
    <root>/versions/<product>_<version>   one verified binary per version
    <root>/<executable>          the active slot users invoke
    <root>/temp/                 staging, emptied after use

Entries under ``versions/`` were verified when they were acquired and
are trusted on reuse.  Only ``activate()`` writes the active slot, and
it does so through a temp file plus ``os.replace`` so an interrupted
run never leaves a half-written binary behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import zipfile
from pathlib import Path

from terrable.core.errors import CacheError, ExtractionError
from terrable.core.models.target import Target, versioned_name

logger = logging.getLogger(__name__)

VERSIONS_DIR = "versions"
TEMP_DIR = "temp"
EXTRACT_DIR = "extract"


class CacheStore:
    """Filesystem operations on one terrable root.

    Args:
        root: The terrable home directory (``Settings.root``).
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.versions_dir = self.root / VERSIONS_DIR
        self.temp_dir = self.root / TEMP_DIR

    # ── Layout ──────────────────────────────────────────────────

    def ensure_directories(self) -> None:
        """Create root, versions and temp directories if missing."""
        logger.debug("Creating directories under %s", self.root)
        try:
            for d in (self.root, self.versions_dir, self.temp_dir):
                d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"Cannot create terrable directories under {self.root}: {e}") from e

    def versioned_path(self, target: Target) -> Path:
        return self._entry(target.versioned_executable_name)

    def _entry(self, name: str) -> Path:
        """A file directly inside ``versions/``; versions are never paths."""
        if "/" in name or "\\" in name or name in (".", ".."):
            raise CacheError(
                f"Invalid cache entry name '{name}'",
                hint="Version strings may not contain path separators.",
                context={"name": name},
            )
        return self.versions_dir / name

    def active_path(self, target: Target) -> Path:
        return self.root / target.executable_name

    def staging_file(self, name: str) -> Path:
        """Path for a scratch file inside the temp directory."""
        return self.temp_dir / name

    def exists(self, target: Target) -> bool:
        """Whether a cached binary for ``target.version`` is present."""
        return self.versioned_path(target).is_file()

    # ── Pipeline steps ──────────────────────────────────────────

    def extract(self, archive: Path, member: str) -> Path:
        """Extract the single ``member`` of a zip archive into staging.

        Only the named entry is written, so archive paths can never
        escape the staging directory.

        Raises:
            ExtractionError: If the archive is corrupt or lacks ``member``.
        """
        dest_dir = self.temp_dir / EXTRACT_DIR
        dest = dest_dir / member
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(archive) as zf:
                try:
                    info = zf.getinfo(member)
                except KeyError:
                    raise ExtractionError(
                        f"Executable '{member}' not found in {archive.name}",
                        context={"available": ", ".join(zf.namelist()[:10])},
                    ) from None
                with zf.open(info) as src, open(dest, "wb") as out:
                    shutil.copyfileobj(src, out)
            mode = dest.stat().st_mode
            dest.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except zipfile.BadZipFile as e:
            raise ExtractionError(f"Archive {archive.name} is not a valid zip file: {e}") from e
        except OSError as e:
            raise ExtractionError(f"Cannot extract {member} from {archive.name}: {e}") from e

        logger.info("Extracted %s", member)
        return dest

    def promote(self, extracted: Path, target: Target) -> Path:
        """Move a verified, extracted binary into ``versions/`` (overwrites)."""
        versioned = self.versioned_path(target)
        try:
            self.versions_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(extracted), str(versioned))
        except OSError as e:
            raise CacheError(f"Cannot store {versioned.name} in the version cache: {e}") from e
        logger.info("Cached version %s at %s", target.version, versioned)
        return versioned

    def activate(self, target: Target) -> Path:
        """Copy the cached binary for ``target`` into the active slot."""
        versioned = self.versioned_path(target)
        active = self.active_path(target)
        if not versioned.is_file():
            raise CacheError(
                f"Version {target.version} is not in the cache",
                context={"path": str(versioned)},
            )

        logger.debug("Copying %s to %s", versioned, active)
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=".active_", suffix=".tmp")
            os.close(fd)
            tmp = Path(tmp_path)
            try:
                shutil.copy2(versioned, tmp)
                os.replace(tmp, active)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheError(f"Cannot activate version {target.version}: {e}") from e

        logger.info("Activated version %s at %s", target.version, active)
        return active

    def cleanup_temp(self) -> None:
        """Empty the staging directory, keeping the directory itself."""
        if not self.temp_dir.is_dir():
            return
        for item in self.temp_dir.iterdir():
            try:
                if item.is_dir() and not item.is_symlink():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as e:
                logger.warning("Could not remove %s: %s", item, e)

    # ── Housekeeping ────────────────────────────────────────────

    def list_versions(self, product: str) -> list[str]:
        """Cached version strings for ``product``, sorted."""
        if not self.versions_dir.is_dir():
            return []
        prefix = versioned_name(product, "")
        versions = [
            p.name[len(prefix):]
            for p in self.versions_dir.iterdir()
            if p.is_file() and p.name.startswith(prefix)
        ]
        return sorted(versions, key=_version_sort_key)

    def remove(self, product: str, version: str) -> bool:
        """Delete one cached binary.  False if it was not cached.

        The active slot is a copy, so removing its source leaves it working.
        """
        versioned = self._entry(versioned_name(product, version))
        if not versioned.is_file():
            return False
        try:
            versioned.unlink()
        except OSError as e:
            raise CacheError(f"Cannot remove {versioned}: {e}") from e
        logger.info("Removed cached version %s", version)
        return True


def _version_sort_key(version: str) -> tuple:
    """Order ``1.10.0`` after ``1.9.0``; pre-release tails sort as text."""
    head, _, tail = version.partition("-")
    parts = []
    for piece in head.split("."):
        parts.append((0, int(piece), "") if piece.isdigit() else (1, 0, piece))
    # a release sorts after its own pre-releases
    return (tuple(parts), tail == "", tail)
