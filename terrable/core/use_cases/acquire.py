"""
Acquire use case — make a requested version the active one.

    start → directories_ready → cache_hit ─────────────────────────┐
                              └ cache_miss → download → verify →   │
                                extract → promote ─────────────────┴→ activate → done

Any TerrableError moves the run to ``failed`` and stops it.  Nothing
is retried, and a failed fresh download never falls back to an older
cached entry.  The active slot is only written in ``activate``, so a
failure anywhere earlier leaves the previous version in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from terrable.core.errors import ErrorKind, TerrableError, TransportError
from terrable.core.models.active import ActiveRecord
from terrable.core.models.settings import Settings
from terrable.core.models.target import Target
from terrable.core.persistence.active_state import active_state_path, save_active
from terrable.core.services.cache_store import CacheStore
from terrable.core.services.fetch import HttpFetcher
from terrable.core.services.manifest import parse_manifest
from terrable.core.services.verify import sha256_file, verify_archive

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    START = "start"
    DIRECTORIES_READY = "directories_ready"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    DOWNLOAD = "download"
    VERIFY = "verify"
    EXTRACT = "extract"
    PROMOTE = "promote"
    ACTIVATE = "activate"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AcquireRequest:
    """A resolved request from the CLI (or any other caller)."""

    version: str
    platform: str
    arch: str
    force: bool = False
    expected_hash: str | None = None


@dataclass
class AcquireResult:
    """Outcome of one acquisition."""

    version: str
    stage: Stage = Stage.START
    failed_stage: Stage | None = None
    source: str = ""                 # cache, download
    active_path: Path | None = None
    versioned_path: Path | None = None
    digest: str | None = None        # sha256 of the verified archive
    error_kind: ErrorKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.stage == Stage.DONE

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "ok": self.ok,
            "version": self.version,
            "stage": self.stage.value,
        }
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind.value if self.error_kind else None
            result["failed_stage"] = self.failed_stage.value if self.failed_stage else None
            return result

        result["source"] = self.source
        result["active_path"] = str(self.active_path) if self.active_path else None
        result["versioned_path"] = str(self.versioned_path) if self.versioned_path else None
        if self.digest:
            result["sha256"] = self.digest
        return result


class Acquisition:
    """One run of the acquire pipeline.  Use ``acquire_and_activate()``."""

    def __init__(
        self,
        request: AcquireRequest,
        *,
        settings: Settings,
        fetcher: HttpFetcher | None = None,
        store: CacheStore | None = None,
    ) -> None:
        self.request = request
        self.settings = settings
        self.fetcher = fetcher or HttpFetcher(timeout=settings.timeout)
        self.store = store or CacheStore(settings.root)
        self.result = AcquireResult(version=request.version)

    def run(self) -> AcquireResult:
        try:
            self._run()
        except TerrableError as e:
            self.result.failed_stage = self.result.stage
            self.result.stage = Stage.FAILED
            self.result.error_kind = e.kind
            self.result.error = e.message
            logger.error("❌ %s", e)
        return self.result

    def _advance(self, stage: Stage) -> None:
        logger.debug("Stage: %s → %s", self.result.stage, stage)
        self.result.stage = stage

    def _run(self) -> None:
        req = self.request
        target = Target(
            version=req.version,
            platform=req.platform,
            arch=req.arch,
            expected_hash=req.expected_hash or None,
            product=self.settings.product,
            base_url=self.settings.base_url,
        )
        logger.debug("Target created: %s", target.model_dump())

        self.store.ensure_directories()
        self._advance(Stage.DIRECTORIES_READY)

        if self.store.exists(target) and not req.force:
            self._advance(Stage.CACHE_HIT)
            logger.info("Version %s already exists on disk. Swapping from cache", target.version)
            self.result.source = "cache"
        else:
            if self.store.exists(target):
                logger.info(
                    "Version %s was found in the cache but force was enabled. Overwriting",
                    target.version,
                )
            self._advance(Stage.CACHE_MISS)
            self.result.source = "download"
            try:
                self._acquire(target)
            finally:
                self.store.cleanup_temp()

        self._advance(Stage.ACTIVATE)
        active = self.store.activate(target)
        self.result.active_path = active
        self.result.versioned_path = self.store.versioned_path(target)
        self._record(target, active)

        self._advance(Stage.DONE)
        logger.info("✔ %s %s is active", target.product, target.version)

    def _acquire(self, target: Target) -> None:
        """Download, verify, extract and promote ``target``."""
        self._advance(Stage.DOWNLOAD)
        logger.info("Attempting to download version %s", target.version)

        archive = self.fetcher.download(
            target.archive_url, self.store.staging_file(target.archive_file),
        )
        if archive is None:
            raise TransportError(
                f"Download failed: {target.archive_url}",
                hint="Is the version valid for this platform?",
                context={"url": target.archive_url},
            )

        manifest_text = self.fetcher.fetch_text(target.manifest_url)
        if manifest_text is None:
            raise TransportError(
                f"Checksum manifest unavailable: {target.manifest_url}",
                context={"url": target.manifest_url},
            )
        logger.info("Fetched checksum manifest %s", target.manifest_file)
        manifest = parse_manifest(manifest_text) or {}

        self._advance(Stage.VERIFY)
        verification = verify_archive(archive, target, manifest)
        verification.raise_for_failure()
        self.result.digest = verification.digest

        self._advance(Stage.EXTRACT)
        extracted = self.store.extract(archive, target.executable_name)

        self._advance(Stage.PROMOTE)
        self.store.promote(extracted, target)

    def _record(self, target: Target, active: Path) -> None:
        """Write active.json.  The binary is already in place, so failures only warn."""
        try:
            record = ActiveRecord(
                version=target.version,
                platform=target.platform,
                arch=target.arch,
                sha256=sha256_file(active),
                source=self.result.source,
            )
            save_active(record, active_state_path(self.store.root))
        except OSError as e:
            logger.warning("Could not write active record: %s", e)


def acquire_and_activate(
    request: AcquireRequest,
    *,
    settings: Settings,
    fetcher: HttpFetcher | None = None,
    store: CacheStore | None = None,
) -> AcquireResult:
    """Ensure ``request.version`` is cached and make it the active binary.

    Args:
        request: Version, platform/arch and options.
        settings: Root directory, release server and timeout.
        fetcher: HTTP client (default: ``HttpFetcher(settings.timeout)``).
        store: Cache store (default: ``CacheStore(settings.root)``).

    Returns:
        AcquireResult; ``ok`` is True only when the active slot now holds
        the requested version.
    """
    return Acquisition(request, settings=settings, fetcher=fetcher, store=store).run()
