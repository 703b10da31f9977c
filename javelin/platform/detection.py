"""Platform detection for updater keys.

Tauri's updater identifies a build target as ``{target}-{arch}``
(``darwin-aarch64``, ``windows-x86_64``, ...). Each manifest file and each
release asset is keyed by that string.
"""

from __future__ import annotations

import platform as _platform
import sys as _sys
from enum import Enum

__all__ = ["Os", "detect_os", "platform_key"]


class Os(Enum):
    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "windows"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


_ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
}

_SUPPORTED_KEYS = frozenset(
    {
        "darwin-aarch64",
        "darwin-x86_64",
        "linux-x86_64",
        "linux-aarch64",
        "windows-x86_64",
    }
)


def detect_os(sys_platform: str | None = None) -> Os:
    value = _sys.platform if sys_platform is None else sys_platform
    if value.startswith("linux"):
        return Os.LINUX
    if value == "darwin":
        return Os.MACOS
    if value in ("win32", "cygwin"):
        return Os.WINDOWS
    return Os.UNKNOWN


def platform_key(sys_platform: str | None = None, machine: str | None = None) -> str | None:
    """Return the updater platform key for this host, or None if unsupported."""
    os_ = detect_os(sys_platform)
    raw_arch = (_platform.machine() if machine is None else machine).lower()
    arch = _ARCH_ALIASES.get(raw_arch)
    if os_ is Os.UNKNOWN or arch is None:
        return None

    key = f"{os_}-{arch}"
    if key not in _SUPPORTED_KEYS:
        return None
    return key
