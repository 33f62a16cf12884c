"""
Payments backend HTTP client.

A small wrapper around a `requests.Session` that knows how to build backend
URLs and how to interpret backend responses:
  - reads return `None` for 404 or an empty body (treated as "nothing there")
  - any other unexpected status, connection error or unparsable JSON raises
    `BackendError` after logging the failing URL
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Iterable, Mapping
from urllib.parse import urlencode

import requests

from .config import BackendSettings

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the backend cannot be reached or rejects a request."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def log_backend_error(url: str, error: object) -> None:
    logger.error("Encountered error while calling the backend with URL: %s (%s)", url, error)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class BackendClient:
    """Thin wrapper around the payments backend API."""

    def __init__(self, settings: BackendSettings, session: requests.Session | None = None):
        self._settings = settings
        self._session = session or requests.Session()

    @staticmethod
    def from_env() -> "BackendClient":
        return BackendClient(BackendSettings.from_env())

    @property
    def settings(self) -> BackendSettings:
        return self._settings

    def build_url(self, route: str) -> str:
        """Join endpoint, path prefix and route with single slashes."""
        base = f"{self._settings.endpoint}{self._settings.path}"
        route = route.lstrip("/")
        return f"{base}/{route}" if route else base

    @staticmethod
    def url_with_params(route: str, params: Mapping[str, Any] | None = None) -> str:
        """Append a query string, skipping `None` and empty values."""
        query = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        if not query:
            return route
        return f"{route}?{urlencode(query)}"

    # ---- low level ----

    def _request(self, method: str, route: str, **kwargs: Any) -> tuple[str, requests.Response]:
        url = self.build_url(route)
        try:
            response = self._session.request(method, url, timeout=self._settings.timeout, **kwargs)
        except requests.RequestException as exc:
            log_backend_error(url, exc)
            raise BackendError(f"Could not reach the backend: {exc}", url) from exc
        return url, response

    def _check(self, url: str, response: requests.Response, expected: Iterable[int]) -> None:
        if response.status_code not in tuple(expected):
            log_backend_error(url, f"unexpected status {response.status_code}")
            raise BackendError(
                f"Backend responded with status {response.status_code}",
                url,
                status_code=response.status_code,
            )

    def _parse(self, url: str, response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            log_backend_error(url, exc)
            raise BackendError("Backend returned an unparsable payload", url, response.status_code) from exc

    # ---- verbs ----

    def get_json(self, route: str) -> Any:
        """GET a route; `None` when the backend has nothing for it."""
        url, response = self._request("GET", route)
        if response.status_code == 404:
            return None
        if not _is_success(response.status_code):
            self._check(url, response, ())
        return self._parse(url, response)

    def send_json(self, method: str, route: str, payload: Any, expected: Iterable[int] = (200,)) -> Any:
        """Send a JSON body (POST/PUT) and return the parsed JSON response."""
        url, response = self._request(method, route, json=payload)
        self._check(url, response, expected)
        return self._parse(url, response)

    def delete(self, route: str, expected: Iterable[int] = (200,)) -> Any:
        url, response = self._request("DELETE", route)
        self._check(url, response, expected)
        return self._parse(url, response)

    def post_stream(
        self,
        route: str,
        stream: BinaryIO,
        content_type: str = "text/csv",
        expected: Iterable[int] = (201,),
    ) -> Any:
        """POST a raw body straight from a file-like object."""
        url, response = self._request("POST", route, data=stream, headers={"Content-Type": content_type})
        self._check(url, response, expected)
        return self._parse(url, response)
