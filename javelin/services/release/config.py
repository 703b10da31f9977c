"""Local release configuration (``javelin.conf.json``).

The file is read once per run. ``gistId`` is the only value the tool writes
back; every write is a read-modify-write of the whole JSON object followed by
an atomic replace, so unknown keys survive and a crash never truncates it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from javelin.core.result import Err, Ok, Result
from javelin.core.structured import StrDict, as_str_dict, get_str
from javelin.platform.files import atomic_write_json
from javelin.services.release.errors import ConfigIncomplete, ConfigInvalid, PersistFailed

__all__ = [
    "CONFIG_FILENAME",
    "REQUIRED_FIELDS",
    "ReleaseConfig",
    "load_release_config",
    "missing_fields",
    "save_gist_id",
    "update_config_fields",
    "write_default_config",
]

CONFIG_FILENAME = "javelin.conf.json"

# Order matters: the first missing one is reported.
REQUIRED_FIELDS: tuple[str, ...] = ("hostToken", "repoName", "hostUsername", "signingKeyPath")

DEFAULT_TAURI_CONFIG = "../src-tauri/tauri.conf.json"
DEFAULT_PROJECT_DIR = ".."


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    path: Path
    host_token: str
    repo_name: str
    host_username: str
    signing_key_path: str
    signing_key_password: str | None
    gist_id: str | None
    tauri_config_path: Path
    project_dir: Path

    @property
    def repo_slug(self) -> str:
        return f"{self.host_username}/{self.repo_name}"

    def with_gist_id(self, gist_id: str) -> ReleaseConfig:
        return ReleaseConfig(
            path=self.path,
            host_token=self.host_token,
            repo_name=self.repo_name,
            host_username=self.host_username,
            signing_key_path=self.signing_key_path,
            signing_key_password=self.signing_key_password,
            gist_id=gist_id,
            tauri_config_path=self.tauri_config_path,
            project_dir=self.project_dir,
        )


def _read_object(path: Path) -> Result[StrDict, ConfigInvalid]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ConfigInvalid(path=path, reason="config file not found (run: javelin init)"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigInvalid(path=path, reason=f"cannot read config: {e}"))

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ConfigInvalid(path=path, reason=f"invalid JSON: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(ConfigInvalid(path=path, reason="config root must be a JSON object"))
    return Ok(data)


def missing_fields(data: Mapping[str, object]) -> list[str]:
    return [name for name in REQUIRED_FIELDS if get_str(data, name) is None]


def _resolve(base: Path, value: str | None, default: str) -> Path:
    p = Path(value or default).expanduser()
    if p.is_absolute():
        return p
    return base / p


def load_release_config(path: Path) -> Result[ReleaseConfig, ConfigIncomplete | ConfigInvalid]:
    """Load and validate the release config.

    Returns:
        Ok(ReleaseConfig), Err(ConfigInvalid) when the file cannot be parsed,
        or Err(ConfigIncomplete) naming the first missing required field.
    """
    raw = _read_object(path)
    if isinstance(raw, Err):
        return raw
    data = raw.value

    missing = missing_fields(data)
    if missing:
        return Err(ConfigIncomplete(field=missing[0], path=path))

    base = path.parent
    return Ok(
        ReleaseConfig(
            path=path,
            host_token=get_str(data, "hostToken") or "",
            repo_name=get_str(data, "repoName") or "",
            host_username=get_str(data, "hostUsername") or "",
            signing_key_path=get_str(data, "signingKeyPath") or "",
            signing_key_password=get_str(data, "signingKeyPassword"),
            gist_id=get_str(data, "gistId"),
            tauri_config_path=_resolve(base, get_str(data, "tauriConfigPath"), DEFAULT_TAURI_CONFIG),
            project_dir=_resolve(base, get_str(data, "projectDir"), DEFAULT_PROJECT_DIR),
        )
    )


def update_config_fields(
    path: Path, values: Mapping[str, str]
) -> Result[None, ConfigInvalid | PersistFailed]:
    """Set the given keys in the config file, keeping every other key as is."""
    raw = _read_object(path)
    if isinstance(raw, Err):
        return raw

    data = dict(raw.value)
    data.update(values)
    try:
        atomic_write_json(path, data)
    except OSError as e:
        return Err(PersistFailed(path=path, reason=str(e)))
    return Ok(None)


def save_gist_id(path: Path, gist_id: str) -> Result[None, ConfigInvalid | PersistFailed]:
    return update_config_fields(path, {"gistId": gist_id})


def write_default_config(path: Path) -> Result[bool, PersistFailed]:
    """Create a config skeleton. Returns Ok(False) if the file already exists."""
    if path.exists():
        return Ok(False)

    skeleton = {
        "gistId": "",
        "hostToken": "",
        "repoName": "",
        "hostUsername": "",
        "signingKeyPath": "",
        "signingKeyPassword": "",
        "tauriConfigPath": DEFAULT_TAURI_CONFIG,
        "projectDir": DEFAULT_PROJECT_DIR,
    }
    try:
        atomic_write_json(path, skeleton)
    except OSError as e:
        return Err(PersistFailed(path=path, reason=str(e)))
    return Ok(True)
