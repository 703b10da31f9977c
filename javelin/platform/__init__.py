"""Host platform adapters: files, processes, platform detection."""

from .detection import Os, detect_os, platform_key
from .files import atomic_write_json, atomic_write_text
from .process import ProcessError, run

__all__ = [
    "Os",
    "ProcessError",
    "atomic_write_json",
    "atomic_write_text",
    "detect_os",
    "platform_key",
    "run",
]
