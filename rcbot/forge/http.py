"""HTTP transport for the GitHub API and the Slack webhook.

This module provides:
- HttpClient: Protocol for sending requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Queued responses and call recording for tests
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from rcbot import __version__
from rcbot.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpRequest",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "next_page_url",
]


@dataclass(frozen=True, slots=True)
class HttpRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: object | None = None  # JSON-encoded when set

    def body_bytes(self) -> bytes | None:
        if self.payload is None:
            return None
        return json.dumps(self.payload).encode("utf-8")


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def json(self) -> object:
        """Decode the body as JSON. Raises ValueError on malformed bodies."""
        return json.loads(self.body)


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


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Non-2xx responses are returned as Err(HttpError); callers never see
    urllib exceptions.
    """

    def send(self, request: HttpRequest) -> Result[HttpResponse, HttpError]: ...


def _error_message(raw: bytes, fallback: str) -> str:
    # GitHub puts a useful sentence in {"message": ...}; Slack answers plain text.
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return fallback
    try:
        obj: object = json.loads(text)
    except ValueError:
        return text
    if isinstance(obj, dict):
        message = obj.get("message")
        if isinstance(message, str) and message:
            return message
    return text


class RealHttpClient:
    """HTTP client using urllib with system certificates and a fixed timeout."""

    def __init__(self, timeout: float = 30.0, user_agent: str = f"rcbot/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def send(self, request: HttpRequest) -> Result[HttpResponse, HttpError]:
        headers = {"User-Agent": self.user_agent, **request.headers}
        data = request.body_bytes()
        if data is not None:
            headers.setdefault("Content-Type", "application/json")

        url = request.url
        try:
            req = urllib.request.Request(url, data=data, headers=headers, method=request.method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                raw = response.read()
                return Ok(
                    HttpResponse(
                        status=response.status,
                        body=raw.decode("utf-8"),
                        headers=dict(response.headers.items()),
                    )
                )
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=_error_message(e.read(), e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"Decode error: {e}"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


def next_page_url(headers: Mapping[str, str]) -> str | None:
    """Return the ``rel="next"`` target of a GitHub ``Link`` header, if any."""
    link = None
    for key, value in headers.items():
        if key.lower() == "link":
            link = value
            break
    if not link:
        return None

    for part in link.split(","):
        section = part.split(";")
        if len(section) < 2:
            continue
        target = section[0].strip()
        rels = [s.strip() for s in section[1:]]
        if 'rel="next"' in rels and target.startswith("<") and target.endswith(">"):
            return target[1:-1]
    return None


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per (method, url) and consumed in order; the last
    queued response for a key is reused once the queue runs dry.

    Usage:
        client = MockHttpClient()
        client.add("GET", "https://api.github.com/repos/o/r/tags", [{"name": "v20240601.1"}])
        result = client.send(HttpRequest("GET", "https://api.github.com/repos/o/r/tags"))
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], list[HttpResponse | HttpError]] = {}
        self.requests: list[HttpRequest] = []

    def add(
        self,
        method: str,
        url: str,
        body: object | None = None,
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
        text: str | None = None,
    ) -> None:
        """Queue a successful response; ``body`` is JSON-encoded unless ``text`` is given."""
        raw = text if text is not None else json.dumps(body)
        self._responses.setdefault((method, url), []).append(
            HttpResponse(status=status, body=raw, headers=dict(headers or {}))
        )

    def add_error(self, method: str, url: str, *, status: int, message: str) -> None:
        self._responses.setdefault((method, url), []).append(
            HttpError(url=url, status=status, message=message)
        )

    def send(self, request: HttpRequest) -> Result[HttpResponse, HttpError]:
        self.requests.append(request)

        queue = self._responses.get((request.method, request.url))
        if not queue:
            return Err(HttpError(url=request.url, status=404, message="Not Found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def urls(self, method: str | None = None) -> list[str]:
        """URLs requested so far, optionally filtered by method."""
        return [r.url for r in self.requests if method is None or r.method == method]
