"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from javelin import __version__
from javelin.core.result import Err, Ok, Result
from javelin.services.release.timeouts import GH_TIMEOUT_SECONDS

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "decode_json",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message (response body when available)
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes = b""


def decode_json(url: str, response: HttpResponse) -> Result[object, HttpError]:
    try:
        return Ok(json.loads(response.body.decode("utf-8")))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Non-2xx answers come back as Err(HttpError) carrying the status code,
    network failures as Err(HttpError) with status 0.
    """

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]: ...


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(
        self, timeout: float = GH_TIMEOUT_SECONDS, user_agent: str = f"javelin/{__version__}"
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        all_headers = {"User-Agent": self.user_agent}
        all_headers.update(headers or {})
        try:
            req = urllib.request.Request(url, data=body, headers=all_headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(HttpResponse(status=response.status, body=response.read()))
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=_error_body(e)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


def _error_body(e: urllib.error.HTTPError) -> str:
    try:
        text = e.read().decode("utf-8", errors="replace").strip()
    except OSError:
        text = ""
    return text or str(e.reason)


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None

    def json(self) -> object:
        return json.loads((self.body or b"null").decode("utf-8"))


def _empty_requests() -> list[RecordedRequest]:
    return []


def _empty_script() -> dict[tuple[str, str], list[HttpResponse | HttpError]]:
    return {}


@dataclass
class MockHttpClient:
    """Scripted HTTP client for testing.

    Responses are queued per (method, url) and consumed in order; an
    unscripted request answers 404.

    Usage:
        http = MockHttpClient()
        http.add("GET", "https://api.github.com/gists/abc", HttpResponse(200, b"{}"))
    """

    requests: list[RecordedRequest] = field(default_factory=_empty_requests)
    _script: dict[tuple[str, str], list[HttpResponse | HttpError]] = field(
        default_factory=_empty_script
    )

    def add(self, method: str, url: str, response: HttpResponse | HttpError) -> None:
        self._script.setdefault((method, url), []).append(response)

    def add_json(self, method: str, url: str, payload: object, status: int = 200) -> None:
        self.add(method, url, HttpResponse(status=status, body=json.dumps(payload).encode()))

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.requests.append(
            RecordedRequest(method=method, url=url, headers=dict(headers or {}), body=body)
        )
        queue = self._script.get((method, url))
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))

        response = queue.pop(0)
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def calls(self, method: str | None = None) -> list[tuple[str, str]]:
        return [(r.method, r.url) for r in self.requests if method is None or r.method == method]
