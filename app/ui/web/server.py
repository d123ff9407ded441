"""
HTTP server — Flask app factory.

Creates the Flask application for the task service. The wired
``AppState`` is stored in ``app.extensions["app_state"]`` so that
blueprints reach the repository and config without module globals.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, request

from app.core.config.settings import AppState, CorsConfig

logger = logging.getLogger(__name__)


def _apply_cors(response: Response, cors: CorsConfig) -> Response:
    origin = request.headers.get("Origin")
    if origin is None:
        return response

    if "*" in cors.allowed_origins and not cors.allow_credentials:
        response.headers["Access-Control-Allow-Origin"] = "*"
    elif "*" in cors.allowed_origins or origin in cors.allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers.add("Vary", "Origin")
    else:
        return response

    response.headers["Access-Control-Allow-Methods"] = ", ".join(cors.allowed_methods)
    if "*" in cors.allowed_headers:
        requested = request.headers.get("Access-Control-Request-Headers")
        response.headers["Access-Control-Allow-Headers"] = requested or "*"
    else:
        response.headers["Access-Control-Allow-Headers"] = ", ".join(cors.allowed_headers)
    if cors.allow_credentials:
        response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Max-Age"] = str(cors.max_age)
    return response


def create_app(state: AppState) -> Flask:
    """Create and configure the Flask application.

    Args:
        state: Wired application state (config and repository).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    app.extensions["app_state"] = state

    from app.ui.web.errors import register_error_handlers
    from app.ui.web.routes_health import health_bp
    from app.ui.web.routes_tasks import tasks_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(tasks_bp)
    register_error_handlers(app)

    # Preflight requests never reach the auth-protected views
    @app.before_request
    def _preflight():  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            return Response(status=204)
        return None

    @app.after_request
    def _cors(response: Response) -> Response:
        return _apply_cors(response, state.config.cors_config)

    logger.info("HTTP app created (repository=%r)", state.task_repository)
    return app


def run_server(
    app: Flask,
    host: str = "0.0.0.0",
    port: int = 3000,
    debug: bool = False,
) -> None:
    """Run the Flask server."""
    logger.info("Server listening on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
