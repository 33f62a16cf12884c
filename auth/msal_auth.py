"""
MSAL helpers.

This wraps MSAL (Microsoft Authentication Library) setup for Entra ID
authentication, plus the state tokens used on the sign-in and sign-out
redirects. A state token is generated per redirect, kept in the server-side
session and must come back unchanged; it is consumed on first check.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any
from urllib.parse import urlencode

import msal
import requests
from flask import Flask, current_app, session

from .config import AuthSettings

logger = logging.getLogger(__name__)

SIGN_IN_STATE_KEY = "auth_state"
SIGN_OUT_STATE_KEY = "sign_out_state"


class InvalidStateError(Exception):
    """The state returned by the identity provider does not match the session."""


def _settings(app: Flask | None = None) -> AuthSettings:
    app = app or current_app  # type: ignore[assignment]
    settings = app.config.get("AUTH_SETTINGS")
    if not isinstance(settings, AuthSettings):
        raise RuntimeError("Auth settings not initialized. Call auth.config.init_auth(app) during app startup.")
    return settings


def build_msal_app(app: Flask | None = None) -> msal.ConfidentialClientApplication:
    """Create an MSAL confidential client app."""

    s = _settings(app)
    return msal.ConfidentialClientApplication(
        client_id=s.client_id,
        client_credential=s.client_secret,
        authority=s.authority,
    )


def new_state_token() -> str:
    """Generate a cryptographically secure state token for CSRF protection."""

    return secrets.token_urlsafe(32)


def create_state(key: str) -> str:
    """Generate a state token and remember it in the session under `key`."""

    state = new_state_token()
    session[key] = state
    return state


def validate_state(key: str, received: str | None) -> None:
    """
    Check a round-tripped state against the one stored under `key`.

    The stored value is removed whatever the outcome. Raises
    `InvalidStateError` when either side is missing or they differ.
    """

    expected = session.pop(key, None)
    if not expected or not received or not secrets.compare_digest(str(expected).encode(), str(received).encode()):
        raise InvalidStateError(f"State mismatch for {key}")


def get_oidc_config(settings: AuthSettings | None = None) -> dict[str, Any]:
    """Fetch the provider's OpenID configuration document."""

    s = settings or _settings()
    response = requests.get(s.oidc_config_url, timeout=30)
    response.raise_for_status()
    return response.json()


def get_sign_out_url(settings: AuthSettings, login_hint: str | None, post_logout_redirect_uri: str) -> str:
    """
    Build the provider sign-out URL.

    A fresh state is stored in the session and must be presented again on the
    provider's redirect back to /auth/sign-out-oidc.
    """

    end_session_endpoint = get_oidc_config(settings)["end_session_endpoint"]
    state = create_state(SIGN_OUT_STATE_KEY)

    query = {"post_logout_redirect_uri": post_logout_redirect_uri}
    if login_hint:
        query["logout_hint"] = login_hint
    query["state"] = state
    return f"{end_session_endpoint}?{urlencode(query)}"


def get_email_from_claims(claims: dict[str, Any] | None) -> str | None:
    """
    Extract an email/UPN-like identifier from ID token claims.

    Entra ID commonly uses:
      - preferred_username (often UPN/email)
      - email
      - upn
    """

    if not claims:
        return None
    for key in ("preferred_username", "email", "upn"):
        val = claims.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return None


def get_safe_redirect(target: str | None) -> str:
    """Only allow local absolute paths; anything else goes home."""

    if not target or not target.startswith("/"):
        return "/"
    # protocol-relative ("//evil.com") and backslash variants leave the site
    if target.startswith("//") or target.startswith("/\\"):
        return "/"
    return target
