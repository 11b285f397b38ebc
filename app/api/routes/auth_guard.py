from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

import structlog
from fastapi import Depends, Request

from app.api.errors import api_error
from app.services.auth_tokens import InvalidAccessTokenError, decode_access_token

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "bearer "


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: UUID
    email: str
    role: str
    name: str


def _extract_bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def _decode(token: str) -> AuthUser:
    claims = decode_access_token(token)
    return AuthUser(id=claims.user_id, email=claims.email, role=claims.role, name=claims.name)


async def authenticate_token(request: Request) -> AuthUser:
    token = _extract_bearer_token(request)
    if token is None:
        raise api_error(401, "E_AUTH_REQUIRED", "Access token required")
    try:
        user = _decode(token)
    except InvalidAccessTokenError as exc:
        logger.warning("auth_token_invalid", reason=str(exc), path=request.url.path)
        raise api_error(403, "E_AUTH_INVALID", "Invalid or expired token") from exc
    request.state.user = user
    return user


async def optional_auth_user(request: Request) -> AuthUser | None:
    """Decode the bearer token when one is sent; anonymous callers get None."""
    token = _extract_bearer_token(request)
    if token is None:
        return None
    try:
        return _decode(token)
    except InvalidAccessTokenError as exc:
        raise api_error(403, "E_AUTH_INVALID", "Invalid authentication token") from exc


def require_role(*roles: str) -> Callable[[AuthUser], Awaitable[AuthUser]]:
    allowed = frozenset(roles)

    async def _guard(user: AuthUser = Depends(authenticate_token)) -> AuthUser:
        if user.role not in allowed:
            logger.warning("auth_role_denied", user_id=str(user.id), role=user.role, required=sorted(allowed))
            raise api_error(403, "E_FORBIDDEN", "Insufficient permissions")
        return user

    return _guard


def parse_resource_id(raw_id: str, *, not_found_message: str) -> UUID:
    """Malformed ids cannot match any row, so they answer like a missing resource."""
    try:
        return UUID(raw_id)
    except ValueError as exc:
        raise api_error(404, "E_NOT_FOUND", not_found_message) from exc
