"""Updater signing key handling.

The private key is read from disk once per run and reaches the build only as
environment entries of the build subprocess. ``os.environ`` is never touched
and nothing is written to disk. Once the build returns the key buffer is
zeroed and the password dropped.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from javelin.core.result import Err, Ok, Result
from javelin.services.release.errors import KeyNotFound, KeyUnreadable, PasswordRequired, SigningError

# Tauri v1 names first, then the v2 names; the CLI picks whichever it knows.
KEY_ENV_VARS = ("TAURI_PRIVATE_KEY", "TAURI_SIGNING_PRIVATE_KEY")
PASSWORD_ENV_VARS = ("TAURI_KEY_PASSWORD", "TAURI_SIGNING_PRIVATE_KEY_PASSWORD")

_ENCRYPTED_MARKER = b"encrypted secret key"


def _empty_buffer() -> bytearray:
    return bytearray()


@dataclass(eq=False)
class SigningMaterial:
    """Key bytes and password, alive for one build."""

    key_path: Path
    key: bytearray = field(default_factory=_empty_buffer, repr=False)
    password: str | None = field(default=None, repr=False)
    _discarded: bool = field(default=False, repr=False)

    @property
    def discarded(self) -> bool:
        return self._discarded

    def build_env(self) -> dict[str, str]:
        """Environment entries to merge into the build subprocess environment."""
        if self._discarded:
            raise RuntimeError("signing material already discarded")
        key_text = self.key.decode("utf-8")
        env = {name: key_text for name in KEY_ENV_VARS}
        for name in PASSWORD_ENV_VARS:
            env[name] = self.password or ""
        return env

    def discard(self) -> None:
        for i in range(len(self.key)):
            self.key[i] = 0
        self.key.clear()
        self.password = None
        self._discarded = True

    def __enter__(self) -> SigningMaterial:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.discard()


def _declares_encrypted(key_text: str) -> bool:
    if _ENCRYPTED_MARKER in key_text.encode("utf-8"):
        return True
    # Tauri stores the minisign key base64-encoded, comment line included.
    try:
        decoded = base64.b64decode(key_text, validate=True)
    except (binascii.Error, ValueError):
        return False
    return _ENCRYPTED_MARKER in decoded


def load_signing_material(
    path: str | Path, password: str | None
) -> Result[SigningMaterial, SigningError]:
    """Read the private key at path (``~`` expanded).

    Returns:
        Ok(SigningMaterial), or Err(KeyNotFound | KeyUnreadable | PasswordRequired).
    """
    key_path = Path(path).expanduser()
    if not key_path.is_file():
        return Err(KeyNotFound(path=key_path))

    try:
        raw = key_path.read_bytes()
    except OSError as e:
        return Err(KeyUnreadable(path=key_path, reason=str(e)))

    try:
        key_text = raw.decode("utf-8").strip()
    except UnicodeDecodeError:
        return Err(KeyUnreadable(path=key_path, reason="key file is not UTF-8 text"))
    if not key_text:
        return Err(KeyUnreadable(path=key_path, reason="key file is empty"))

    if not password and _declares_encrypted(key_text):
        return Err(PasswordRequired(path=key_path))

    return Ok(
        SigningMaterial(
            key_path=key_path,
            key=bytearray(key_text.encode("utf-8")),
            password=password or None,
        )
    )
