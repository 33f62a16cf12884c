"""
Authentication configuration.

All secrets are sourced from environment variables. This module validates
presence of required settings and exposes a single `init_auth(app)` entrypoint.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from flask import Flask

DEFAULT_ADMIN_ROLE = "MPDP.Admin"


@dataclass(frozen=True)
class AuthSettings:
    """Configuration needed for Entra ID / MSAL auth."""

    tenant_id: str
    client_id: str
    client_secret: str
    scopes: list[str] = field(default_factory=list)
    admin_role: str = DEFAULT_ADMIN_ROLE
    well_known_url: str = ""
    sign_out_redirect_url: str = ""

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    @property
    def oidc_config_url(self) -> str:
        return self.well_known_url or f"{self.authority}/v2.0/.well-known/openid-configuration"


def load_auth_settings() -> AuthSettings:
    """
    Load auth settings from environment variables.

    Required:
      - AAD_TENANT_ID
      - AAD_CLIENT_ID
      - AAD_CLIENT_SECRET

    Optional:
      - AAD_SCOPES (default: none; MSAL always requests openid/profile)
      - AAD_ADMIN_ROLE (default: MPDP.Admin)
      - AAD_WELL_KNOWN_URL (default: derived from the tenant)
      - AAD_SIGN_OUT_REDIRECT_URL (default: this app's /auth/sign-out-oidc)
    """

    tenant_id = os.environ.get("AAD_TENANT_ID", "").strip()
    client_id = os.environ.get("AAD_CLIENT_ID", "").strip()
    client_secret = os.environ.get("AAD_CLIENT_SECRET", "").strip()

    missing = [k for k, v in [("AAD_TENANT_ID", tenant_id), ("AAD_CLIENT_ID", client_id), ("AAD_CLIENT_SECRET", client_secret)] if not v]
    if missing:
        raise RuntimeError(
            "Missing required auth environment variables: "
            + ", ".join(missing)
            + ". Set them in the app configuration (or your local env) before starting the app."
        )

    scopes_raw = os.environ.get("AAD_SCOPES", "").strip()
    scopes = [s for s in scopes_raw.split() if s]

    return AuthSettings(
        tenant_id=tenant_id,
        client_id=client_id,
        client_secret=client_secret,
        scopes=scopes,
        admin_role=os.environ.get("AAD_ADMIN_ROLE", DEFAULT_ADMIN_ROLE).strip() or DEFAULT_ADMIN_ROLE,
        well_known_url=os.environ.get("AAD_WELL_KNOWN_URL", "").strip(),
        sign_out_redirect_url=os.environ.get("AAD_SIGN_OUT_REDIRECT_URL", "").strip(),
    )


def init_auth(app: Flask) -> AuthSettings:
    """
    Validate and attach auth settings to Flask `app.config`.

    Settings already present in `app.config["AUTH_SETTINGS"]` are kept, which
    lets tests inject them. Returns the parsed `AuthSettings` for convenience.
    """

    settings = app.config.get("AUTH_SETTINGS")
    if not isinstance(settings, AuthSettings):
        settings = load_auth_settings()
        app.config["AUTH_SETTINGS"] = settings
    return settings
