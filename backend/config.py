"""
Backend API configuration.

Environment variables:
  - MPDP_BACKEND_ENDPOINT (required), e.g. https://mpdp-backend.example.com
  - MPDP_BACKEND_PATH (default: empty), path prefix prepended to every route
  - MPDP_BACKEND_TIMEOUT (default: 30), seconds per request
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None:
        return default
    val = val.strip()
    return val or default


@dataclass(frozen=True)
class BackendSettings:
    """Configuration for the payments backend API."""

    endpoint: str
    path: str = ""
    timeout: float = 30.0

    @staticmethod
    def from_env() -> "BackendSettings":
        endpoint = _env("MPDP_BACKEND_ENDPOINT")
        if not endpoint:
            raise RuntimeError(
                "Missing MPDP_BACKEND_ENDPOINT. Set it in the app configuration "
                "or your local environment before starting."
            )

        timeout_raw = _env("MPDP_BACKEND_TIMEOUT", "30") or "30"
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise RuntimeError(f"MPDP_BACKEND_TIMEOUT must be a number of seconds, got {timeout_raw!r}.") from exc

        return BackendSettings(
            endpoint=endpoint.rstrip("/"),
            path=(_env("MPDP_BACKEND_PATH", "") or "").rstrip("/"),
            timeout=timeout,
        )
