"""
Health routes — liveness and readiness probes.

GET /health → "OK"     (process is up)
GET /ready  → "Ready"  (database reachable), else 503
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify

from app.core.errors import ExternalError
from app.core.services import task_ops
from app.ui.web.errors import ErrorCode

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health():  # type: ignore[no-untyped-def]
    return "OK", 200, {"Content-Type": "text/plain; charset=utf-8"}


@health_bp.route("/ready")
def ready():  # type: ignore[no-untyped-def]
    state = current_app.extensions["app_state"]
    try:
        task_ops.check_readiness(state.task_repository)
    except ExternalError as e:
        logger.error("Readiness check failed: %s", e.detail)
        return jsonify({"code": ErrorCode.DATABASE_ERROR.value}), 503
    return "Ready", 200, {"Content-Type": "text/plain; charset=utf-8"}
