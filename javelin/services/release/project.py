"""Read and update the Tauri project file (``tauri.conf.json``).

Tauri v1 keeps ``productName``/``version`` under ``package`` and the updater
under ``tauri.updater``; Tauri v2 moves them to the root and ``plugins.updater``.
Both layouts are handled.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from javelin.core.result import Err, Ok, Result
from javelin.core.structured import StrDict, as_str_dict, get_str, get_table
from javelin.platform.files import atomic_write_json
from javelin.services.release.errors import PersistFailed, ProjectFileInvalid
from javelin.services.release.semver import SemVer, parse_version


@dataclass(frozen=True, slots=True)
class TauriProject:
    path: Path
    product_name: str
    version: SemVer


def _load(path: Path) -> Result[StrDict, ProjectFileInvalid]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(ProjectFileInvalid(path=path, reason=f"cannot read: {e}"))

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ProjectFileInvalid(path=path, reason=f"invalid JSON: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(ProjectFileInvalid(path=path, reason="JSON root must be an object"))
    return Ok(data)


def _store(path: Path, data: StrDict) -> Result[None, PersistFailed]:
    try:
        atomic_write_json(path, data)
    except OSError as e:
        return Err(PersistFailed(path=path, reason=str(e)))
    return Ok(None)


def _package_table(data: StrDict) -> StrDict:
    package = get_table(data, "package")
    if package is not None and "version" in package:
        return package
    return data


def read_project(path: Path) -> Result[TauriProject, ProjectFileInvalid]:
    loaded = _load(path)
    if isinstance(loaded, Err):
        return loaded

    table = _package_table(loaded.value)
    raw_version = get_str(table, "version")
    if raw_version is None:
        return Err(ProjectFileInvalid(path=path, reason="missing version"))
    version = parse_version(raw_version)
    if version is None:
        return Err(
            ProjectFileInvalid(path=path, reason=f"version is not MAJOR.MINOR.PATCH: {raw_version}")
        )

    product = get_str(table, "productName")
    if product is None:
        return Err(ProjectFileInvalid(path=path, reason="missing productName"))

    return Ok(TauriProject(path=path, product_name=product, version=version))


def write_version(
    path: Path, version: SemVer
) -> Result[bool, ProjectFileInvalid | PersistFailed]:
    """Persist version. Returns Ok(False) when the file already holds it."""
    loaded = _load(path)
    if isinstance(loaded, Err):
        return loaded
    data = loaded.value

    table = _package_table(data)
    if get_str(table, "version") == str(version):
        return Ok(False)
    table["version"] = str(version)

    stored = _store(path, data)
    if isinstance(stored, Err):
        return stored
    return Ok(True)


def _updater_table(data: StrDict) -> StrDict | None:
    tauri = get_table(data, "tauri")
    if tauri is not None:
        updater = get_table(tauri, "updater")
        if updater is not None:
            return updater
    plugins = get_table(data, "plugins")
    if plugins is not None:
        return get_table(plugins, "updater")
    return None


def set_updater_endpoint(
    path: Path, endpoint: str
) -> Result[None, ProjectFileInvalid | PersistFailed]:
    """Point the app's updater at endpoint (replacing any previous endpoints)."""
    loaded = _load(path)
    if isinstance(loaded, Err):
        return loaded
    data = loaded.value

    updater = _updater_table(data)
    if updater is None:
        return Err(ProjectFileInvalid(path=path, reason="no updater configuration found"))

    updater["endpoints"] = [endpoint]
    return _store(path, data)
