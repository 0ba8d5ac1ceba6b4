"""
Tests for the cache store — layout, extraction, promotion, activation.
"""

import os
import sys
from pathlib import Path

import pytest

from conftest import make_zip
from terrable.core.errors import CacheError, ErrorKind, ExtractionError
from terrable.core.models.target import Target
from terrable.core.services.cache_store import CacheStore

TARGET = Target(version="1.5.0", platform="linux", arch="amd64")


def _cache(store: CacheStore, target: Target, payload: bytes) -> Path:
    store.ensure_directories()
    path = store.versioned_path(target)
    path.write_bytes(payload)
    return path


class TestLayout:
    def test_ensure_directories_idempotent(self, store: CacheStore):
        store.ensure_directories()
        store.ensure_directories()
        assert store.root.is_dir()
        assert (store.root / "versions").is_dir()
        assert (store.root / "temp").is_dir()

    def test_paths(self, store: CacheStore):
        assert store.versioned_path(TARGET) == store.root / "versions" / "terraform_1.5.0"
        assert store.active_path(TARGET) == store.root / "terraform"
        win = Target(version="1.5.0", platform="windows", arch="amd64")
        assert store.active_path(win) == store.root / "terraform.exe"

    def test_exists(self, store: CacheStore):
        store.ensure_directories()
        assert not store.exists(TARGET)
        _cache(store, TARGET, b"bin")
        assert store.exists(TARGET)


class TestExtract:
    def test_extracts_named_member(self, store: CacheStore, tmp_path: Path):
        store.ensure_directories()
        archive = tmp_path / "a.zip"
        archive.write_bytes(make_zip({"terraform": b"binary", "LICENSE.txt": b"MPL"}))

        extracted = store.extract(archive, "terraform")

        assert extracted.read_bytes() == b"binary"
        assert extracted.parent == store.temp_dir / "extract"
        assert not (extracted.parent / "LICENSE.txt").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_extracted_is_executable(self, store: CacheStore, tmp_path: Path):
        store.ensure_directories()
        archive = tmp_path / "a.zip"
        archive.write_bytes(make_zip({"terraform": b"binary"}))
        extracted = store.extract(archive, "terraform")
        assert os.access(extracted, os.X_OK)

    def test_missing_member(self, store: CacheStore, tmp_path: Path):
        store.ensure_directories()
        archive = tmp_path / "a.zip"
        archive.write_bytes(make_zip({"README.md": b"hi"}))
        with pytest.raises(ExtractionError, match="not found") as exc:
            store.extract(archive, "terraform")
        assert exc.value.kind == ErrorKind.EXTRACTION
        assert "README.md" in exc.value.context["available"]

    def test_corrupt_archive(self, store: CacheStore, tmp_path: Path):
        store.ensure_directories()
        archive = tmp_path / "a.zip"
        archive.write_bytes(b"definitely not a zip")
        with pytest.raises(ExtractionError, match="not a valid zip"):
            store.extract(archive, "terraform")


class TestPromoteActivate:
    def test_promote_overwrites(self, store: CacheStore):
        _cache(store, TARGET, b"old")
        staged = store.staging_file("terraform")
        staged.write_bytes(b"new")

        result = store.promote(staged, TARGET)

        assert result == store.versioned_path(TARGET)
        assert result.read_bytes() == b"new"
        assert not staged.exists()

    def test_activate_copies(self, store: CacheStore):
        versioned = _cache(store, TARGET, b"v1.5.0")
        active = store.activate(TARGET)
        assert active.read_bytes() == b"v1.5.0"
        assert versioned.is_file()  # still cached

    def test_activate_overwrites_previous(self, store: CacheStore):
        other = Target(version="1.4.0", platform="linux", arch="amd64")
        _cache(store, other, b"v1.4.0")
        _cache(store, TARGET, b"v1.5.0")

        store.activate(other)
        store.activate(TARGET)

        assert store.active_path(TARGET).read_bytes() == b"v1.5.0"
        leftovers = [p.name for p in store.root.iterdir() if p.name.startswith(".active_")]
        assert leftovers == []

    def test_activate_missing_version(self, store: CacheStore):
        store.ensure_directories()
        with pytest.raises(CacheError, match="not in the cache") as exc:
            store.activate(TARGET)
        assert exc.value.kind == ErrorKind.FILESYSTEM
        assert not store.active_path(TARGET).exists()


class TestHousekeeping:
    def test_cleanup_temp(self, store: CacheStore):
        store.ensure_directories()
        (store.temp_dir / "a.zip").write_bytes(b"x")
        (store.temp_dir / "extract").mkdir()
        (store.temp_dir / "extract" / "terraform").write_bytes(b"x")

        store.cleanup_temp()

        assert store.temp_dir.is_dir()
        assert list(store.temp_dir.iterdir()) == []

    def test_cleanup_temp_without_dirs(self, store: CacheStore):
        store.cleanup_temp()  # nothing created yet
        assert not store.root.exists()

    def test_list_versions_sorted(self, store: CacheStore):
        for v in ("1.10.0", "1.9.3", "0.15.5", "1.10.0-rc1"):
            _cache(store, Target(version=v, platform="linux", arch="amd64"), b"x")
        (store.versions_dir / "packer_1.0.0").write_bytes(b"x")

        assert store.list_versions("terraform") == ["0.15.5", "1.9.3", "1.10.0-rc1", "1.10.0"]

    def test_list_versions_empty(self, store: CacheStore):
        assert store.list_versions("terraform") == []

    def test_remove(self, store: CacheStore):
        _cache(store, TARGET, b"x")
        store.activate(TARGET)

        assert store.remove("terraform", "1.5.0") is True
        assert not store.exists(TARGET)
        assert store.active_path(TARGET).is_file()
        assert store.remove("terraform", "1.5.0") is False


class TestEntryNames:
    def test_version_with_separators_rejected(self, store: CacheStore):
        store.ensure_directories()
        escape = Target(version="x/../../evil", platform="linux", arch="amd64")
        with pytest.raises(CacheError, match="Invalid cache entry") as exc:
            store.versioned_path(escape)
        assert exc.value.kind == ErrorKind.FILESYSTEM

    def test_backslash_rejected(self, store: CacheStore):
        with pytest.raises(CacheError):
            store.remove("terraform", "1.5.0\\..\\..\\evil")

    def test_remove_cannot_escape_versions(self, store: CacheStore):
        store.ensure_directories()
        outside = store.root / "keep"
        outside.write_bytes(b"x")
        with pytest.raises(CacheError):
            store.remove("terraform", "/../../keep")
        assert outside.exists()
