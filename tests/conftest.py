"""
Shared test fixtures — an in-memory release server and a temp terrable root.
"""

import hashlib
import io
import logging
import zipfile
from pathlib import Path

import pytest

from terrable.core.models.settings import Settings
from terrable.core.services.cache_store import CacheStore

BASE_URL = "https://releases.example.test/terraform"


def make_zip(members: dict[str, bytes]) -> bytes:
    """Build a zip archive in memory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, payload in members.items():
            zf.writestr(name, payload)
    return buf.getvalue()


class FakeFetcher:
    """Serves registered URLs from memory and records every request."""

    def __init__(self) -> None:
        self.documents: dict[str, bytes] = {}
        self.requested: list[str] = []

    def download(self, url: str, dest: Path) -> Path | None:
        self.requested.append(url)
        payload = self.documents.get(url)
        if payload is None:
            return None
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(payload)
        return dest

    def fetch_text(self, url: str) -> str | None:
        self.requested.append(url)
        payload = self.documents.get(url)
        return None if payload is None else payload.decode("utf-8")


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure the root logger; undo that per test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temp directory, pointing at the fake server."""
    return Settings(root=tmp_path / "terrable", base_url=BASE_URL, timeout=5)


@pytest.fixture
def store(settings: Settings) -> CacheStore:
    return CacheStore(settings.root)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def publish(fetcher: FakeFetcher):
    """Publish a release on the fake server.

    Returns a function ``publish(version, ...) -> dict`` with the archive
    bytes, its sha256 and the executable payload.  ``manifest_name``
    overrides the filename written next to the digest; ``manifest`` replaces
    the manifest text entirely; ``None`` for either URL leaves it unpublished.
    """

    def _publish(
        version: str,
        platform: str = "linux",
        arch: str = "amd64",
        *,
        binary: bytes | None = None,
        members: dict[str, bytes] | None = None,
        manifest_name: str | None = None,
        manifest: str | None = None,
        with_archive: bool = True,
        with_manifest: bool = True,
    ) -> dict:
        exe = "terraform.exe" if platform == "windows" else "terraform"
        binary = binary if binary is not None else f"terraform {version}\n".encode()
        archive_name = f"terraform_{version}_{platform}_{arch}.zip"
        archive = make_zip(members if members is not None else {exe: binary})
        digest = hashlib.sha256(archive).hexdigest()

        if manifest is None:
            other = hashlib.sha256(b"other build").hexdigest()
            manifest = (
                f"{other}  terraform_{version}_darwin_arm64.zip\n"
                f"{digest}  {manifest_name or archive_name}\n"
            )

        if with_archive:
            fetcher.documents[f"{BASE_URL}/{version}/{archive_name}"] = archive
        if with_manifest:
            fetcher.documents[f"{BASE_URL}/{version}/terraform_{version}_SHA256SUMS"] = (
                manifest.encode("utf-8")
            )
        return {"archive": archive, "digest": digest, "binary": binary, "name": archive_name}

    return _publish
