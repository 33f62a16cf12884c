"""
Route decorators for authentication/authorization.

- `login_required`: user must be signed in.
- `scope_required`: user must be signed in and hold the given role.
- `admin_required`: `scope_required` with the configured admin role.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, TypeVar

from flask import abort, current_app, redirect, request, session, url_for

from .config import AuthSettings

F = TypeVar("F", bound=Callable[..., object])

logger = logging.getLogger(__name__)


def _auth_settings() -> AuthSettings:
    settings = current_app.config.get("AUTH_SETTINGS")
    if not isinstance(settings, AuthSettings):
        raise RuntimeError("Auth settings not initialized.")
    return settings


def _sign_in_redirect():  # type: ignore[no-untyped-def]
    target = request.full_path if request.query_string else request.path
    return redirect(url_for("auth.sign_in", next=target))


def login_required(fn: F) -> F:
    """Ensure the user is signed in; otherwise redirect to sign-in."""

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[no-untyped-def]
        if session.get("user"):
            return fn(*args, **kwargs)
        return _sign_in_redirect()

    return wrapper  # type: ignore[return-value]


def scope_required(scope: str | None = None) -> Callable[[F], F]:
    """Ensure the signed-in user holds `scope` (defaults to the admin role)."""

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):  # type: ignore[no-untyped-def]
            user = session.get("user")
            if not isinstance(user, dict) or not user:
                return _sign_in_redirect()

            required = scope or _auth_settings().admin_role
            granted = user.get("scope") or []
            if required in granted:
                return fn(*args, **kwargs)

            logger.warning("User %s lacks scope %s for %s", user.get("email"), required, request.path)
            abort(403)

        return wrapper  # type: ignore[return-value]

    return decorator


admin_required = scope_required()
