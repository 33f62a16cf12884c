"""
Double-submit CSRF protection ("crumb").

A random token is issued in a `crumb` cookie and rendered into every form as a
hidden `crumb` field. State-changing requests must send both, and they must
match. The auth redirects and the health check are exempt; they are GETs
anyway and carry their own state token.
"""

from __future__ import annotations

import logging
import secrets

from flask import Flask, abort, current_app, g, request
from werkzeug.wrappers.response import Response

logger = logging.getLogger(__name__)

CRUMB_NAME = "crumb"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
EXEMPT_PREFIXES = ("/auth/", "/health")


def _exempt() -> bool:
    path = request.path or "/"
    return request.method.upper() in SAFE_METHODS or any(path.startswith(p) for p in EXEMPT_PREFIXES)


def before_request() -> None:
    cookie_crumb = request.cookies.get(CRUMB_NAME)
    g.crumb = cookie_crumb or secrets.token_urlsafe(32)
    g.crumb_issued = not cookie_crumb

    if _exempt():
        return None

    supplied = request.form.get(CRUMB_NAME)
    if not cookie_crumb or not supplied or not secrets.compare_digest(cookie_crumb.encode(), supplied.encode()):
        logger.warning("Rejected %s %s: crumb %s", request.method, request.path, "invalid" if supplied else "missing")
        abort(403)
    return None


def after_request(response: Response) -> Response:
    if g.get("crumb_issued"):
        response.set_cookie(
            CRUMB_NAME,
            g.crumb,
            httponly=True,
            samesite="Lax",
            secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
        )
    return response


def init_crumb(app: Flask) -> None:
    """Register crumb issuing/checking hooks and expose `crumb` to templates."""

    app.before_request(before_request)
    app.after_request(after_request)

    @app.context_processor
    def inject_crumb():
        return {"crumb": g.get("crumb", "")}
