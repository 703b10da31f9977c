"""GitHub implementations of ReleaseHost (Releases API) and ManifestHost (Gists API)."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from time import sleep
from urllib.parse import quote

from javelin.core.result import Err, Ok, Result
from javelin.core.structured import as_obj_list, as_str_dict, get_int, get_str, get_table
from javelin.services.release.errors import (
    AssetConflict,
    AuthFailure,
    HostError,
    HostRejected,
    NetworkError,
    PublishError,
    ReleaseAlreadyExists,
)
from javelin.services.release.hosts import HostedRelease
from javelin.services.release.http import HttpClient, HttpError, HttpResponse, decode_json
from javelin.services.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
)

__all__ = [
    "API_ROOT",
    "GitHubGistHost",
    "GitHubReleaseHost",
    "classify_http_error",
    "manifest_raw_url",
]

API_ROOT = "https://api.github.com"
GIST_RAW_ROOT = "https://gist.githubusercontent.com"


def manifest_raw_url(username: str, gist_id: str, filename: str) -> str:
    """Public URL deployed apps poll for one platform's manifest file."""
    return f"{GIST_RAW_ROOT}/{username}/{gist_id}/raw/{filename}"


def classify_http_error(error: HttpError) -> HostError:
    if error.status in (401, 403):
        return AuthFailure(status=error.status, message=error.message)
    if error.status == 0 or error.status == 429 or error.status >= 500:
        return NetworkError(message=str(error), status=error.status)
    return HostRejected(status=error.status, message=error.message)


def _read_with_retry(
    call: Callable[[], Result[HttpResponse, HttpError]],
    *,
    attempts: int,
) -> Result[HttpResponse, HttpError]:
    """Run an idempotent read, retrying transient failures with linear backoff."""
    attempts = max(1, attempts)
    for attempt in range(attempts):
        result = call()
        if isinstance(result, Ok):
            return result
        transient = isinstance(classify_http_error(result.error), NetworkError)
        if transient and attempt < attempts - 1:
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue
        return result
    raise AssertionError("unreachable")


def _unexpected(url: str, what: str) -> HostRejected:
    return HostRejected(status=200, message=f"unexpected {what} payload from {url}")


class _GitHubApi:
    def __init__(self, http: HttpClient, *, token: str, read_attempts: int) -> None:
        self._http = http
        self._token = token
        self._read_attempts = read_attempts

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if content_type is not None:
            headers["Content-Type"] = content_type
        return headers

    def _get(self, url: str) -> Result[HttpResponse, HttpError]:
        return _read_with_retry(
            lambda: self._http.request("GET", url, headers=self._headers()),
            attempts=self._read_attempts,
        )

    def _send_json(
        self, method: str, url: str, payload: object
    ) -> Result[HttpResponse, HttpError]:
        body = json.dumps(payload).encode("utf-8")
        return self._http.request(
            method, url, headers=self._headers("application/json"), body=body
        )

    def _json_object(self, url: str, response: HttpResponse) -> Result[dict[str, object], HostError]:
        decoded = decode_json(url, response)
        if isinstance(decoded, Err):
            return Err(_unexpected(url, "non-JSON"))
        data = as_str_dict(decoded.value)
        if data is None:
            return Err(_unexpected(url, "non-object"))
        return Ok(data)


class GitHubReleaseHost(_GitHubApi):
    def __init__(
        self,
        http: HttpClient,
        *,
        owner: str,
        repo: str,
        token: str,
        read_attempts: int = GH_READ_RETRY_ATTEMPTS,
    ) -> None:
        super().__init__(http, token=token, read_attempts=read_attempts)
        self.owner = owner
        self.repo = repo

    @property
    def _repo_url(self) -> str:
        return f"{API_ROOT}/repos/{self.owner}/{self.repo}"

    def _parse_release(self, url: str, response: HttpResponse) -> Result[HostedRelease, HostError]:
        obj = self._json_object(url, response)
        if isinstance(obj, Err):
            return obj
        data = obj.value

        release_id = get_int(data, "id")
        tag = get_str(data, "tag_name")
        upload_url = get_str(data, "upload_url")
        if release_id is None or tag is None or upload_url is None:
            return Err(_unexpected(url, "release"))

        names: list[str] = []
        for item in as_obj_list(data.get("assets")) or []:
            asset = as_str_dict(item)
            name = get_str(asset, "name") if asset is not None else None
            if name is not None:
                names.append(name)

        return Ok(
            HostedRelease(
                id=release_id, tag=tag, upload_url=upload_url, asset_names=tuple(names)
            )
        )

    def get_release_by_tag(self, tag: str) -> Result[HostedRelease | None, HostError]:
        url = f"{self._repo_url}/releases/tags/{quote(tag, safe='')}"
        result = self._get(url)
        if isinstance(result, Err):
            if result.error.status == 404:
                return Ok(None)
            return Err(classify_http_error(result.error))
        parsed = self._parse_release(url, result.value)
        if isinstance(parsed, Err):
            return parsed
        return Ok(parsed.value)

    def create_release(
        self, tag: str, body: str
    ) -> Result[HostedRelease, ReleaseAlreadyExists | HostError]:
        url = f"{self._repo_url}/releases"
        payload = {
            "tag_name": tag,
            "name": tag,
            "body": body,
            "draft": False,
            "prerelease": False,
        }
        result = self._send_json("POST", url, payload)
        if isinstance(result, Err):
            error = result.error
            if error.status == 422 and "already_exists" in error.message:
                return Err(ReleaseAlreadyExists(tag=tag))
            return Err(classify_http_error(error))
        return self._parse_release(url, result.value)

    def upload_asset(
        self, release: HostedRelease, filename: str, data: bytes
    ) -> Result[str, PublishError]:
        # upload_url is a URI template: ".../assets{?name,label}"
        base = release.upload_url.split("{", 1)[0]
        url = f"{base}?name={quote(filename, safe='')}"
        result = self._http.request(
            "POST",
            url,
            headers=self._headers("application/octet-stream"),
            body=data,
        )
        if isinstance(result, Err):
            error = result.error
            if error.status == 422:
                return Err(AssetConflict(tag=release.tag, filename=filename, message=error.message))
            return Err(classify_http_error(error))

        obj = self._json_object(url, result.value)
        if isinstance(obj, Err):
            return obj
        download_url = get_str(obj.value, "browser_download_url")
        if download_url is None:
            return Err(_unexpected(url, "asset"))
        return Ok(download_url)


class GitHubGistHost(_GitHubApi):
    def __init__(
        self,
        http: HttpClient,
        *,
        token: str,
        public: bool = False,
        read_attempts: int = GH_READ_RETRY_ATTEMPTS,
    ) -> None:
        super().__init__(http, token=token, read_attempts=read_attempts)
        self.public = public

    @staticmethod
    def _files_payload(files: Mapping[str, str]) -> dict[str, dict[str, str]]:
        return {name: {"content": content} for name, content in files.items()}

    def create_document(
        self, description: str, files: Mapping[str, str]
    ) -> Result[str, HostError]:
        url = f"{API_ROOT}/gists"
        payload = {
            "description": description,
            "public": self.public,
            "files": self._files_payload(files),
        }
        result = self._send_json("POST", url, payload)
        if isinstance(result, Err):
            return Err(classify_http_error(result.error))

        obj = self._json_object(url, result.value)
        if isinstance(obj, Err):
            return obj
        gist_id = get_str(obj.value, "id")
        if gist_id is None:
            return Err(_unexpected(url, "gist (no id)"))
        return Ok(gist_id)

    def get_document(self, document_id: str) -> Result[dict[str, str], HostError]:
        url = f"{API_ROOT}/gists/{quote(document_id, safe='')}"
        result = self._get(url)
        if isinstance(result, Err):
            return Err(classify_http_error(result.error))

        obj = self._json_object(url, result.value)
        if isinstance(obj, Err):
            return obj
        files_tbl = get_table(obj.value, "files")
        if files_tbl is None:
            return Err(_unexpected(url, "gist (no files)"))

        out: dict[str, str] = {}
        for name, item in files_tbl.items():
            entry = as_str_dict(item)
            if entry is None:
                return Err(_unexpected(url, f"gist file {name}"))
            content = entry.get("content")
            if entry.get("truncated") is True:
                # The API inlines at most ~1 MB per file; the rest lives at raw_url.
                raw_url = get_str(entry, "raw_url")
                if raw_url is None:
                    return Err(_unexpected(url, f"gist file {name}"))
                full = self._get(raw_url)
                if isinstance(full, Err):
                    return Err(classify_http_error(full.error))
                content = full.value.body.decode("utf-8", errors="replace")
            if not isinstance(content, str):
                return Err(_unexpected(url, f"gist file {name}"))
            out[name] = content
        return Ok(out)

    def update_document(
        self, document_id: str, files: Mapping[str, str]
    ) -> Result[None, HostError]:
        url = f"{API_ROOT}/gists/{quote(document_id, safe='')}"
        result = self._send_json("PATCH", url, {"files": self._files_payload(files)})
        if isinstance(result, Err):
            return Err(classify_http_error(result.error))
        return Ok(None)
