"""
Auth routes (MSAL / Entra ID).

Endpoints:
  - GET  /auth/sign-in
  - GET  /auth/sign-in-oidc
  - GET  /auth/sign-out
  - GET  /auth/sign-out-oidc

Implementation notes:
  - Uses MSAL Authorization Code Flow.
  - Stores a minimal user profile (including roles as `scope`) in the
    server-side session.
  - Both provider redirects carry a state token checked against the session.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, redirect, render_template, request, session, url_for

from .config import AuthSettings
from .msal_auth import (
    SIGN_IN_STATE_KEY,
    SIGN_OUT_STATE_KEY,
    InvalidStateError,
    build_msal_app,
    create_state,
    get_email_from_claims,
    get_safe_redirect,
    get_sign_out_url,
    validate_state,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _settings() -> AuthSettings:
    settings = current_app.config.get("AUTH_SETTINGS")
    if not isinstance(settings, AuthSettings):
        raise RuntimeError("Auth settings not initialized. Call auth.config.init_auth(app) at startup.")
    return settings


def _failed(message: str, status: int = 400):  # type: ignore[no-untyped-def]
    session.clear()
    return render_template("errors/unauthorised.html", message=message), status


@auth_bp.get("/sign-in")
def sign_in():
    """
    Start the sign-in flow by redirecting the user to Microsoft.

    Optional query param:
      - next: local path to return to after sign-in
    """

    s = _settings()
    msal_app = build_msal_app()

    state = create_state(SIGN_IN_STATE_KEY)
    session["post_login_redirect"] = get_safe_redirect(request.args.get("next"))

    auth_url = msal_app.get_authorization_request_url(
        scopes=s.scopes,
        state=state,
        redirect_uri=url_for("auth.sign_in_oidc", _external=True),
        prompt="select_account",
    )
    return redirect(auth_url)


@auth_bp.get("/sign-in-oidc")
def sign_in_oidc():
    """Handle the OAuth2 redirect from Microsoft and create a local session."""

    try:
        validate_state(SIGN_IN_STATE_KEY, request.args.get("state"))
    except InvalidStateError:
        logger.warning("Sign-in rejected: state mismatch")
        return _failed("Sign in failed (invalid state). Please try again.")

    code = request.args.get("code")
    if not code:
        # Entra sends error params when sign-in fails or is cancelled.
        logger.warning("Sign-in failed: %s", request.args.get("error") or "unknown_error")
        return _failed("Sign in failed. Please try again.")

    s = _settings()
    result = build_msal_app().acquire_token_by_authorization_code(
        code=code,
        scopes=s.scopes,
        redirect_uri=url_for("auth.sign_in_oidc", _external=True),
    )

    if not isinstance(result, dict) or "error" in result:
        error = result.get("error") if isinstance(result, dict) else "unknown_error"
        logger.warning("Token exchange failed: %s", error)
        return _failed("Sign in failed. Please try again.")

    claims = result.get("id_token_claims") or {}
    email = get_email_from_claims(claims)
    if not email:
        logger.warning("Sign-in failed: no email claim returned")
        return _failed("Sign in failed: no email claim returned by identity provider.")

    redirect_to = session.pop("post_login_redirect", None) or "/"
    session["user"] = {
        "name": claims.get("name") or email,
        "email": email,
        "scope": list(claims.get("roles") or []),
        # Only present when the login_hint optional claim is configured.
        "login_hint": claims.get("login_hint"),
    }
    logger.info("Signed in %s", email)
    return redirect(get_safe_redirect(redirect_to))


@auth_bp.get("/sign-out")
def sign_out():
    """
    Clear the local user and redirect to the Entra sign-out endpoint.

    The session itself survives until the provider redirects back, because it
    holds the sign-out state.
    """

    user = session.get("user")
    if not user:
        return redirect(url_for("start"))

    s = _settings()
    session.pop("user", None)
    session.pop("post_login_redirect", None)

    post_logout_redirect = s.sign_out_redirect_url or url_for("auth.sign_out_oidc", _external=True)
    return redirect(get_sign_out_url(s, user.get("login_hint"), post_logout_redirect))


@auth_bp.get("/sign-out-oidc")
def sign_out_oidc():
    """Finish sign-out after the provider redirects back."""

    received = request.args.get("state")
    if SIGN_OUT_STATE_KEY not in session and received is None:
        # Nothing in flight (e.g. a bookmarked URL); nothing to verify.
        return redirect(url_for("start"))

    try:
        validate_state(SIGN_OUT_STATE_KEY, received)
    except InvalidStateError:
        logger.warning("Sign-out callback rejected: state mismatch")
        return _failed("Sign out could not be verified. Please try again.")

    session.clear()
    return redirect(url_for("start"))
