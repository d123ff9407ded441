"""
Bearer authentication — JWT validation for protected routes.

Tokens are HS256-signed with ``AppConfig.jwt_secret`` and must carry the
configured audience and an ``exp`` claim. ``sub`` is optional so that
service-to-service tokens are accepted; when present it identifies the
calling user and is used for ownership checks.
"""

from __future__ import annotations

import functools
import logging
import uuid
from collections.abc import Callable
from typing import Any

import jwt
from flask import current_app, g, request
from pydantic import BaseModel, ValidationError

from app.ui.web.errors import ApiError, ErrorCode

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JwtClaims(BaseModel):
    sub: str | None = None
    aud: str | list[str] | None = None
    exp: int
    iss: str | None = None
    session_id: str | None = None

    def user_id(self) -> uuid.UUID | None:
        """The subject as a UUID, or None for service tokens.

        Raises:
            ApiError: The subject is present but not a UUID.
        """
        if self.sub is None:
            return None
        try:
            return uuid.UUID(self.sub)
        except ValueError:
            logger.error("Invalid user_id format in JWT subject claim")
            raise ApiError(ErrorCode.UNAUTHORIZED) from None

    def validate_user_id(self, user_id: uuid.UUID) -> None:
        """Require the subject to be present and equal to ``user_id``."""
        claims_user = self.user_id()
        if claims_user is None:
            logger.error("JWT token missing subject claim")
            raise ApiError(ErrorCode.UNAUTHORIZED)
        if claims_user != user_id:
            logger.warning(
                "User ID mismatch: token user_id=%s, path user_id=%s", claims_user, user_id
            )
            raise ApiError(ErrorCode.UNAUTHORIZED)


def extract_jwt_claims(token: str, secret: str, audience: str) -> JwtClaims:
    """Decode and validate a bearer token."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            audience=audience,
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        logger.error("Invalid token: %s", e)
        raise ApiError(ErrorCode.INVALID_TOKEN) from e

    try:
        return JwtClaims.model_validate(payload)
    except ValidationError as e:
        logger.error("Token claims have an unexpected shape: %s", e)
        raise ApiError(ErrorCode.INVALID_TOKEN) from e


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.error("Token not found in request")
        raise ApiError(ErrorCode.TOKEN_NOT_FOUND)
    return token.strip()


def require_auth(view: Callable[..., Any]) -> Callable[..., Any]:
    """Route decorator: validate the bearer token and expose ``g.claims``."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        state = current_app.extensions["app_state"]
        g.claims = extract_jwt_claims(
            _bearer_token(), state.config.jwt_secret, state.config.jwt_audience
        )
        logger.debug("Token decoded successfully")
        return view(*args, **kwargs)

    return wrapper
