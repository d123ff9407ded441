"""
Task routes — CRUD over the task repository.

POST   /tasks              → create a task (201)
GET    /tasks?user_id=...  → list a user's tasks, newest first
GET    /tasks/<id>         → fetch one task
PUT    /tasks/<id>         → update a task
DELETE /tasks/<id>         → delete a task (204)

All routes require a bearer token. When the token carries a subject, it
must own the task (or match the queried user).
"""

from __future__ import annotations

import logging
import uuid

import pydantic
from flask import Blueprint, current_app, g, jsonify, request

from app.core.errors import ValidationError
from app.core.interfaces import TaskRepository
from app.core.services import task_ops
from app.ui.web.auth import JwtClaims, require_auth
from app.ui.web.errors import ApiError, ErrorCode
from app.ui.web.schemas import CreateTaskRequest, TaskResponse, UpdateTaskRequest

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks", __name__)


def _repo() -> TaskRepository:
    return current_app.extensions["app_state"].task_repository


def _claims() -> JwtClaims:
    return g.claims


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        logger.error("Invalid UUID in request: %r", value)
        raise ApiError(ErrorCode.BAD_REQUEST) from None


def _parse_body(model: type[pydantic.BaseModel]) -> pydantic.BaseModel:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError(ErrorCode.BAD_REQUEST)
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.error("Request body rejected: %s", e.errors(include_url=False))
        raise ApiError(ErrorCode.UNPROCESSABLE_ENTITY) from e


def _check_owner(user_id: uuid.UUID) -> None:
    """Tokens with a subject may only act on their own tasks."""
    claims = _claims()
    if claims.sub is not None:
        claims.validate_user_id(user_id)


# ── Collection ──────────────────────────────────────────────────────


@tasks_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task():  # type: ignore[no-untyped-def]
    body: CreateTaskRequest = _parse_body(CreateTaskRequest)  # type: ignore[assignment]
    claims = _claims()

    user_id = claims.user_id()
    if user_id is None:
        if body.user_id is None:
            raise ValidationError("user_id is required for service tokens", field="user_id")
        user_id = body.user_id
    elif body.user_id is not None and body.user_id != user_id:
        logger.warning("Body user_id %s does not match token subject", body.user_id)
        raise ApiError(ErrorCode.UNAUTHORIZED)

    task = task_ops.create_task(
        _repo(),
        user_id=user_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
    )
    return jsonify(TaskResponse.from_task(task).to_dict()), 201


@tasks_bp.route("/tasks", methods=["GET"])
@require_auth
def list_tasks():  # type: ignore[no-untyped-def]
    raw = request.args.get("user_id")
    if raw:
        user_id = _parse_uuid(raw)
        _check_owner(user_id)
    else:
        user_id = _claims().user_id()
        if user_id is None:
            raise ApiError(ErrorCode.BAD_REQUEST)

    tasks = task_ops.list_tasks_by_user(user_id, _repo())
    return jsonify([TaskResponse.from_task(t).to_dict() for t in tasks])


# ── Single task ─────────────────────────────────────────────────────


@tasks_bp.route("/tasks/<task_id>", methods=["GET"])
@require_auth
def get_task(task_id: str):  # type: ignore[no-untyped-def]
    task = task_ops.get_task(_parse_uuid(task_id), _repo())
    _check_owner(task.user_id)
    return jsonify(TaskResponse.from_task(task).to_dict())


@tasks_bp.route("/tasks/<task_id>", methods=["PUT"])
@require_auth
def update_task(task_id: str):  # type: ignore[no-untyped-def]
    tid = _parse_uuid(task_id)
    body: UpdateTaskRequest = _parse_body(UpdateTaskRequest)  # type: ignore[assignment]
    repo = _repo()

    _check_owner(task_ops.get_task(tid, repo).user_id)
    task = task_ops.update_task(
        tid,
        repo,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
    )
    return jsonify(TaskResponse.from_task(task).to_dict())


@tasks_bp.route("/tasks/<task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: str):  # type: ignore[no-untyped-def]
    tid = _parse_uuid(task_id)
    repo = _repo()

    _check_owner(task_ops.get_task(tid, repo).user_id)
    task_ops.delete_task(tid, repo)
    return "", 204
