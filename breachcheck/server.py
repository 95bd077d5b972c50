"""HTTP API that reports whether an e-mail address appears in known breaches."""

from __future__ import annotations

import argparse
import hmac
import json
import logging
import os
import platform
import posixpath
import sqlite3
import sys
import threading
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable

from flask import Flask, Response, abort, jsonify, request, send_file

from .cache import DEFAULT_TTL, Cache
from .database import EmailService, init_database, seed_database
from .validation import InvalidEmailError, validate_and_hash_email

try:
    import resource
except ImportError:  # not available on every platform
    resource = None

logger = logging.getLogger(__name__)

SERVICE_NAME = "Email Checker API"
SERVICE_VERSION = "1.0.0"
DEFAULT_PORT = "8082"
DEFAULT_DB_PATH = "/data/email_checker.db"
DEFAULT_FRONTEND_DIR = "../frontend/"

TRUSTED_DOMAIN_SUFFIX = ".example.com"
ALLOWED_ORIGINS = (
    "http://localhost",
    "http://localhost:80",
    "https://*.example.com",
    "https://app.example.com",
    "https://www.example.com",
)

_CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, X-Real-IP, X-Forwarded-For, CF-Connecting-IP, CF-Ray, CF-Visitor"
    ),
    "Access-Control-Allow-Credentials": "true",
}

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

_SUSPICIOUS_FRAGMENTS = ("..", "//", "/etc/", "/proc/", "/home/")
_AUTH_CHALLENGE = 'Basic realm="Admin Area"'

_ENDPOINT_METRICS = {
    "/api/health": ("5ms", "0%"),
    "/api/check-email": ("15ms", "2%"),
    "/admin/status": ("10ms", "0%"),
}


def get_env(key: str, default: str) -> str:
    """Return the environment variable ``key``, or ``default`` if unset or empty."""
    return os.environ.get(key) or default


def response_message(compromised: bool, from_cache: bool) -> str:
    """Return the human-readable verdict for a lookup."""
    source = " (cached)" if from_cache else ""
    if compromised:
        return "This email address has been found in known data breaches" + source
    return "This email address was not found in known data breaches" + source


def allowed_origin(origin: str, host: str) -> str | None:
    """Return the Access-Control-Allow-Origin value, or None to omit it."""
    if origin:
        for allowed in ALLOWED_ORIGINS:
            if origin == allowed:
                return origin
            if "*." in allowed and origin.endswith(allowed.split("*", 1)[1]):
                return origin
        return None
    if host and host.endswith(TRUSTED_DOMAIN_SUFFIX):
        return "https://" + host
    return "*"


def _clean_url_path(url_path: str) -> str:
    cleaned = posixpath.normpath(url_path) if url_path else "."
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def resolve_static_path(frontend_dir: str | os.PathLike[str], url_path: str) -> Path:
    """Map a request path to the file under ``frontend_dir`` that should be served.

    Missing files map to ``index.html``. Raises PermissionError for paths that
    escape ``frontend_dir`` or that name a directory.
    """
    relative = _clean_url_path(url_path)
    if relative.startswith("/"):
        relative = relative[1:]
    if relative in ("", "."):
        relative = "index.html"

    base = Path(os.path.abspath(frontend_dir))
    full = Path(os.path.abspath(os.path.join(frontend_dir, relative)))
    if full != base and not full.is_relative_to(base):
        raise PermissionError(f"path escapes the frontend directory: {url_path}")

    if not full.exists():
        return Path(os.path.abspath(os.path.join(frontend_dir, "index.html")))
    if full.is_dir():
        raise PermissionError(f"directory listing refused: {url_path}")
    return full


def _format_duration(nanoseconds: int) -> str:
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    nanoseconds = abs(nanoseconds)
    if nanoseconds < 1_000_000_000:
        for unit, size, digits in (("ms", 1_000_000, 6), ("µs", 1_000, 3), ("ns", 1, 0)):
            if nanoseconds >= size:
                whole, fraction = divmod(nanoseconds, size)
                fraction_text = f"{fraction:0{digits}d}".rstrip("0") if digits else ""
                return f"{sign}{whole}{'.' + fraction_text if fraction_text else ''}{unit}"
    seconds, fraction = divmod(nanoseconds, 1_000_000_000)
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    fraction_text = f"{fraction:09d}".rstrip("0")
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return text + f"{seconds}{'.' + fraction_text if fraction_text else ''}s"


def _memory_usage_mb() -> str:
    if resource is None:
        return "N/A"
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    peak_bytes = peak if sys.platform == "darwin" else peak * 1024
    return f"{peak_bytes / 1024 / 1024:.2f}"


def _remote_address() -> str:
    address = request.environ.get("REMOTE_ADDR", "")
    port = request.environ.get("REMOTE_PORT")
    return f"{address}:{port}" if port else address


def _plain_error(message: str, status: int, headers: dict[str, str] | None = None) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain", headers=headers)


def _json_error(message: str, status: int) -> tuple[Response, int]:
    return jsonify(error=message), status


def _read_email_field(body: bytes) -> str:
    """Return the ``email`` member of the first JSON value in ``body``.

    Raises ValueError if the body is not a JSON object (or null) with a
    string ``email`` member.
    """
    text = body.decode("utf-8").lstrip()
    payload, _ = json.JSONDecoder().raw_decode(text)
    if payload is None:
        return ""
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    email = payload.get("email")
    if email is None:
        return ""
    if not isinstance(email, str):
        raise ValueError("email must be a string")
    return email


def create_app(
    email_service: EmailService,
    cache: Cache,
    frontend_dir: str | os.PathLike[str] = DEFAULT_FRONTEND_DIR,
) -> Flask:
    """Build the Flask application serving the API, admin pages and frontend."""
    app = Flask(__name__)
    app.json.sort_keys = False
    started = time.monotonic_ns()

    @app.before_request
    def _preflight_and_audit() -> Response | None:
        if request.method == "OPTIONS":
            return Response(status=200)
        if any(fragment in request.path for fragment in _SUSPICIOUS_FRAGMENTS):
            logger.warning(
                "Security: Suspicious request from %s: %s", _remote_address(), request.path
            )
        return None

    @app.after_request
    def _add_headers(response: Response) -> Response:
        origin_value = allowed_origin(
            request.headers.get("Origin", ""), request.headers.get("Host", "")
        )
        if origin_value is not None:
            response.headers["Access-Control-Allow-Origin"] = origin_value
        response.headers.update(_CORS_HEADERS)
        if request.method != "OPTIONS":
            response.headers.update(_SECURITY_HEADERS)
        return response

    def require_admin(view: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            username = get_env("ADMIN_USERNAME", "")
            expected = get_env("ADMIN_PASSWORD", "")
            if not username or not expected:
                logger.critical(
                    "ADMIN_USERNAME and ADMIN_PASSWORD must be set in environment variables"
                )
                raise RuntimeError(
                    "ADMIN_USERNAME and ADMIN_PASSWORD must be set in environment variables"
                )
            auth = request.authorization
            challenge = {"WWW-Authenticate": _AUTH_CHALLENGE}
            if auth is None or (auth.type or "").lower() != "basic":
                return _plain_error("Unauthorized", 401, challenge)
            user_ok = hmac.compare_digest(
                (auth.username or "").encode("utf-8"), username.encode("utf-8")
            )
            pass_ok = hmac.compare_digest(
                (auth.password or "").encode("utf-8"), expected.encode("utf-8")
            )
            if not (user_ok and pass_ok):
                logger.warning(
                    "Security: Failed authentication attempt from %s", _remote_address()
                )
                return _plain_error("Unauthorized", 401, challenge)
            return view(*args, **kwargs)

        return wrapper

    @app.get("/api/health")
    def health() -> Any:
        try:
            count = email_service.compromised_email_count()
        except sqlite3.Error:
            return _plain_error("Database connection failed", 500)
        return jsonify(
            status="healthy",
            message=f"Email checker API is running with {count} compromised emails in database",
        )

    @app.post("/api/check-email")
    def check_email() -> Any:
        try:
            email = _read_email_field(request.get_data())
        except ValueError:
            return _json_error("Invalid JSON format", 400)
        if not email:
            return _json_error("Email is required", 400)
        try:
            email_hash = validate_and_hash_email(email)
        except InvalidEmailError:
            return _json_error("Invalid email format", 400)

        cached = cache.get(email_hash)
        if cached is not None:
            return jsonify(
                email=email, compromised=cached, message=response_message(cached, True)
            )

        try:
            compromised = email_service.is_email_compromised(email_hash)
        except sqlite3.Error:
            return _json_error("Database error occurred", 500)
        cache.set(email_hash, compromised)
        return jsonify(
            email=email, compromised=compromised, message=response_message(compromised, False)
        )

    @app.get("/admin/status")
    @require_admin
    def admin_status() -> Any:
        try:
            count = email_service.compromised_email_count()
        except sqlite3.Error:
            return _plain_error("Failed to get database stats", 500)
        return jsonify(
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            uptime=_format_duration(time.monotonic_ns() - started),
            database_stats={
                "compromised_emails": count,
                "database_path": get_env("DB_PATH", "email_checker.db"),
                "database_size_mb": "N/A",
            },
            cache_stats={
                "current_size": len(cache),
                "ttl": "15m",
                "hit_ratio_estimate": "N/A",
            },
            system_stats={
                "python_version": platform.python_version(),
                "num_threads": threading.active_count(),
                "memory_usage_mb": _memory_usage_mb(),
                "cpu_count": os.cpu_count() or 1,
            },
            recent_security_events=[
                {
                    "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
                    "event": "Admin access",
                    "remote_ip": _remote_address(),
                }
            ],
        )

    @app.get("/admin/metrics")
    @require_admin
    def admin_metrics() -> Any:
        return jsonify(
            requests_total=0,
            requests_by_endpoint={endpoint: 0 for endpoint in _ENDPOINT_METRICS},
            avg_response_times_ms={
                endpoint: timing for endpoint, (timing, _) in _ENDPOINT_METRICS.items()
            },
            error_rates={endpoint: rate for endpoint, (_, rate) in _ENDPOINT_METRICS.items()},
        )

    @app.get("/", defaults={"_path": ""})
    @app.get("/<path:_path>")
    def static_files(_path: str) -> Any:
        try:
            target = resolve_static_path(frontend_dir, request.path)
        except PermissionError as exc:
            logger.warning("Security: %s", exc)
            return _plain_error("Forbidden", 403)
        if not target.is_file():
            abort(404)
        return send_file(target)

    return app


def main(argv: list[str] | None = None) -> None:
    """Start the HTTP server."""
    parser = argparse.ArgumentParser(
        prog="breachcheck", description="Serve the breached e-mail lookup API."
    )
    parser.add_argument("--port", type=int, default=get_env("PORT", DEFAULT_PORT))
    parser.add_argument("--db-path", default=get_env("DB_PATH", DEFAULT_DB_PATH))
    parser.add_argument("--frontend-dir", default=DEFAULT_FRONTEND_DIR)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        connection = init_database(args.db_path)
    except sqlite3.Error as exc:
        logger.critical("Failed to initialize database: %s", exc)
        raise SystemExit(1) from exc

    service = EmailService(connection)
    cache = Cache(DEFAULT_TTL)
    try:
        seed_database(service)
    except sqlite3.Error as exc:
        logger.warning("Warning: Failed to seed database: %s", exc)

    app = create_app(service, cache, args.frontend_dir)
    logger.info("Server starting on port %s", args.port)
    try:
        app.run(host="0.0.0.0", port=args.port, threaded=True)
    finally:
        cache.close()
        connection.close()


if __name__ == "__main__":
    main()