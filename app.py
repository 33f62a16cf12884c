"""
Flask web app for the Manage Payment Data Portal.

This version is prepared for Azure App Service deployment and includes:
  - Microsoft Entra ID authentication via MSAL (see `auth/`)
  - Server-side sessions (filesystem) via Flask-Session
  - Admin pages for payments and payment summaries (see `admin/`), backed by
    the payments backend API (see `backend/` and `payments/`)

Run locally with `flask --app app:create_app run` or `python app.py`.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request, session
from flask_session import Session
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from admin.crumb import init_crumb
from admin.routes import admin_bp
from auth.config import init_auth
from auth.routes import auth_bp
from backend.client import BackendClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "Manage Payment Data"

PERMISSIONS_POLICY = "camera=(), geolocation=(), magnetometer=(), microphone=(), payment=(), usb=()"
NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _add_security_headers(response):  # type: ignore[no-untyped-def]
    """Hardening headers; everything but the start page and assets is no-store."""

    path = request.path
    if path != "/":
        response.headers["X-Robots-Tag"] = "noindex, nofollow"
    response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
    response.headers["Cross-Origin-Resource-Policy"] = "same-site"
    response.headers["Referrer-Policy"] = "same-origin"
    response.headers["Permissions-Policy"] = PERMISSIONS_POLICY
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if path != "/" and not path.startswith("/static"):
        # stops the back button showing admin data after sign-out
        response.headers["Cache-Control"] = NO_STORE
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


def _handle_http_error(error: HTTPException):  # type: ignore[no-untyped-def]
    templates = {
        400: "errors/400.html",
        401: "errors/unauthorised.html",
        403: "errors/unauthorised.html",
        404: "errors/404.html",
    }
    template = templates.get(error.code or 500, "errors/500.html")
    return render_template(template, page_title=error.name), error.code or 500


def _handle_unexpected_error(error: Exception):  # type: ignore[no-untyped-def]
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return render_template("errors/500.html", page_title="Something went wrong"), 500


def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    """
    Build the Flask app.

    `overrides` is applied on top of the environment-derived config; tests use
    it to inject `AUTH_SETTINGS` and `BACKEND_CLIENT`.
    """

    load_dotenv()
    _configure_logging()

    app = Flask(__name__)

    # Respect proxy headers (Azure App Service sits behind a reverse proxy).
    # This makes url_for(..., _external=True) generate correct https URLs.
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[assignment]

    # ---- Security / Sessions ----
    app.config.update(
        SECRET_KEY=os.environ.get("FLASK_SECRET_KEY", ""),
        SESSION_TYPE=os.environ.get("FLASK_SESSION_TYPE", "filesystem"),
        SESSION_PERMANENT=False,
        SESSION_USE_SIGNER=True,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=os.environ.get("FLASK_COOKIE_SECURE", "true").lower() == "true",
        SESSION_FILE_DIR=os.environ.get("FLASK_SESSION_DIR") or os.path.join(os.getcwd(), ".flask_session"),
        MAX_CONTENT_LENGTH=int(os.environ.get("MAX_UPLOAD_BYTES", str(100 * 1024 * 1024))),
    )
    app.config.update(overrides or {})

    if not app.config["SECRET_KEY"]:
        raise RuntimeError(
            "Missing FLASK_SECRET_KEY. Set it as an environment variable in Azure App Service "
            "(Configuration) or in your local environment before starting."
        )

    if app.config["SESSION_TYPE"] == "filesystem":
        os.makedirs(app.config["SESSION_FILE_DIR"], exist_ok=True)
    Session(app)

    # ---- Authentication ----
    # Initializes MSAL/Entra settings from environment and registers auth routes.
    init_auth(app)
    app.register_blueprint(auth_bp)

    # ---- Backend API ----
    if not isinstance(app.config.get("BACKEND_CLIENT"), BackendClient):
        app.config["BACKEND_CLIENT"] = BackendClient.from_env()

    init_crumb(app)
    app.register_blueprint(admin_bp)

    app.after_request(_add_security_headers)
    app.register_error_handler(HTTPException, _handle_http_error)
    app.register_error_handler(Exception, _handle_unexpected_error)

    @app.context_processor
    def inject_user():
        """Make the signed-in user available to all templates as `current_user`."""
        user = session.get("user")
        admin_role = app.config["AUTH_SETTINGS"].admin_role
        return {
            "current_user": user,
            "is_admin": bool(user and admin_role in (user.get("scope") or [])),
            "service_name": SERVICE_NAME,
        }

    @app.get("/")
    def start():
        return render_template("start.html", page_title=SERVICE_NAME)

    @app.get("/health")
    def health():
        return jsonify({"message": "success"})

    logger.info("%s started (backend %s)", SERVICE_NAME, app.config["BACKEND_CLIENT"].settings.endpoint)
    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=int(os.environ.get("PORT", "3000")))
