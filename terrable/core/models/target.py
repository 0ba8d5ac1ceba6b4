"""
Target model — which release artifact we are after.

A Target is the (version, platform, arch) tuple plus the release
server it lives on.  Every remote URL and local filename is derived
from it by plain string templates, so two computations in the same
run can never disagree.  No I/O happens here.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, field_validator

from terrable.core.errors import UnsupportedPlatformError

Platform = Literal["windows", "linux", "darwin", "openbsd"]
Arch = Literal["amd64", "386", "arm", "arm64"]

SUPPORTED_PLATFORMS: tuple[str, ...] = get_args(Platform)
SUPPORTED_ARCHES: tuple[str, ...] = get_args(Arch)

DEFAULT_PRODUCT = "terraform"
DEFAULT_BASE_URL = "https://releases.hashicorp.com/terraform/"


def versioned_name(product: str, version: str) -> str:
    """File name of a cached binary under ``versions/``."""
    return f"{product}_{version}"


class Target(BaseModel):
    """An immutable description of one release artifact.

    Layout honoured on the release server::

        <base>/<version>/<product>_<version>_<platform>_<arch>.zip
        <base>/<version>/<product>_<version>_SHA256SUMS
    """

    model_config = ConfigDict(frozen=True)

    version: str
    platform: Platform
    arch: Arch
    expected_hash: str | None = None

    product: str = DEFAULT_PRODUCT
    base_url: str = DEFAULT_BASE_URL

    @field_validator("platform", mode="before")
    @classmethod
    def _check_platform(cls, value: object) -> object:
        if value not in SUPPORTED_PLATFORMS:
            raise UnsupportedPlatformError(
                f"Platform '{value}' is not supported",
                hint=f"Supported platforms: {', '.join(SUPPORTED_PLATFORMS)}",
            )
        return value

    @field_validator("arch", mode="before")
    @classmethod
    def _check_arch(cls, value: object) -> object:
        if value not in SUPPORTED_ARCHES:
            raise UnsupportedPlatformError(
                f"CPU architecture '{value}' is not supported",
                hint=f"Supported architectures: {', '.join(SUPPORTED_ARCHES)}",
            )
        return value

    # ── Remote names ────────────────────────────────────────────

    @property
    def archive_file(self) -> str:
        return f"{self.product}_{self.version}_{self.platform}_{self.arch}.zip"

    @property
    def manifest_file(self) -> str:
        return f"{self.product}_{self.version}_SHA256SUMS"

    @property
    def archive_url(self) -> str:
        return self._remote(self.archive_file)

    @property
    def manifest_url(self) -> str:
        return self._remote(self.manifest_file)

    # ── Local names ─────────────────────────────────────────────

    @property
    def executable_name(self) -> str:
        """Name of the binary inside the archive, and of the active slot."""
        if self.platform == "windows":
            return f"{self.product}.exe"
        return self.product

    @property
    def versioned_executable_name(self) -> str:
        return versioned_name(self.product, self.version)

    def _remote(self, filename: str) -> str:
        return f"{self.base_url.rstrip('/')}/{self.version}/{filename}"
