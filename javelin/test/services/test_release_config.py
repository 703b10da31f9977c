from __future__ import annotations

import json
from pathlib import Path

from javelin.core.result import Err, Ok
from javelin.services.release.config import (
    load_release_config,
    missing_fields,
    save_gist_id,
    update_config_fields,
    write_default_config,
)
from javelin.services.release.errors import ConfigIncomplete, ConfigInvalid


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _complete() -> dict[str, object]:
    return {
        "gistId": "",
        "hostToken": "ghp_token",
        "repoName": "app",
        "hostUsername": "octo",
        "signingKeyPath": "~/.tauri/app.key",
        "signingKeyPassword": "",
    }


def test_load_complete_config(tmp_path: Path) -> None:
    conf_dir = tmp_path / "javelin"
    conf_dir.mkdir()
    path = _write(conf_dir / "javelin.conf.json", _complete())

    result = load_release_config(path)

    assert isinstance(result, Ok)
    cfg = result.value
    assert cfg.repo_slug == "octo/app"
    assert cfg.gist_id is None
    assert cfg.signing_key_password is None
    assert cfg.tauri_config_path == conf_dir / ".." / "src-tauri" / "tauri.conf.json"
    assert cfg.project_dir == conf_dir / ".."


def test_load_reports_first_missing_field(tmp_path: Path) -> None:
    data = _complete()
    data["repoName"] = "  "
    data["signingKeyPath"] = ""
    path = _write(tmp_path / "javelin.conf.json", data)

    result = load_release_config(path)

    assert result == Err(ConfigIncomplete(field="repoName", path=path))
    assert missing_fields(data) == ["repoName", "signingKeyPath"]


def test_load_missing_file_points_at_init(tmp_path: Path) -> None:
    result = load_release_config(tmp_path / "javelin.conf.json")

    assert isinstance(result, Err)
    assert isinstance(result.error, ConfigInvalid)
    assert "javelin init" in result.error.reason


def test_load_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "javelin.conf.json"
    path.write_text("[1, 2]", encoding="utf-8")

    result = load_release_config(path)

    assert isinstance(result, Err)
    assert isinstance(result.error, ConfigInvalid)


def test_explicit_paths_are_relative_to_config(tmp_path: Path) -> None:
    data = _complete()
    data["tauriConfigPath"] = "app/tauri.conf.json"
    data["projectDir"] = str(tmp_path / "abs")
    path = _write(tmp_path / "javelin.conf.json", data)

    result = load_release_config(path)

    assert isinstance(result, Ok)
    assert result.value.tauri_config_path == tmp_path / "app" / "tauri.conf.json"
    assert result.value.project_dir == tmp_path / "abs"


def test_save_gist_id_preserves_other_keys(tmp_path: Path) -> None:
    data = _complete()
    data["custom"] = {"keep": True}
    path = _write(tmp_path / "javelin.conf.json", data)

    assert save_gist_id(path, "abc123") == Ok(None)

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["gistId"] == "abc123"
    assert saved["custom"] == {"keep": True}
    assert saved["hostToken"] == "ghp_token"


def test_update_fields_then_load(tmp_path: Path) -> None:
    data = _complete()
    data["hostToken"] = ""
    path = _write(tmp_path / "javelin.conf.json", data)

    assert isinstance(load_release_config(path), Err)
    assert update_config_fields(path, {"hostToken": "ghp_new"}) == Ok(None)

    result = load_release_config(path)
    assert isinstance(result, Ok)
    assert result.value.host_token == "ghp_new"


def test_write_default_config_only_once(tmp_path: Path) -> None:
    path = tmp_path / "javelin.conf.json"

    assert write_default_config(path) == Ok(True)
    first = path.read_text(encoding="utf-8")
    assert write_default_config(path) == Ok(False)
    assert path.read_text(encoding="utf-8") == first

    result = load_release_config(path)
    assert result == Err(ConfigIncomplete(field="hostToken", path=path))
