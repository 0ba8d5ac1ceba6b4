"""
Host mapping — translate ``platform`` module strings into Target values.

The mapping functions are pure; only ``detect_host()`` looks at the
running interpreter, and only the CLI calls it.  The core always
receives an explicit platform/arch pair.
"""

from __future__ import annotations

import platform as _platform

from terrable.core.errors import UnsupportedPlatformError

_PLATFORM_MAP = {
    "windows": "windows",
    "linux": "linux",
    "darwin": "darwin",
    "openbsd": "openbsd",
}

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
    "arm": "arm",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def map_platform(system: str) -> str:
    """Map a ``platform.system()`` value to a Target platform."""
    mapped = _PLATFORM_MAP.get(system.strip().lower())
    if mapped is None:
        raise UnsupportedPlatformError(
            f"Your platform is unsupported: '{system}'",
            hint="Pass --platform explicitly to fetch a build for another OS.",
        )
    return mapped


def map_arch(machine: str) -> str:
    """Map a ``platform.machine()`` value to a Target arch."""
    mapped = _ARCH_MAP.get(machine.strip().lower())
    if mapped is None:
        raise UnsupportedPlatformError(
            f"Your CPU architecture is not supported: '{machine}'",
            hint="Pass --arch explicitly to fetch a build for another CPU.",
        )
    return mapped


def detect_host(platform: str | None = None, arch: str | None = None) -> tuple[str, str]:
    """Return ``(platform, arch)``, detecting whichever was not given."""
    if platform is None:
        platform = map_platform(_platform.system())
    if arch is None:
        arch = map_arch(_platform.machine())
    return platform, arch
