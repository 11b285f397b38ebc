from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from app.core.config import get_settings

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of a secret.
BCRYPT_MAX_SECRET_BYTES = 72


class InvalidAccessTokenError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    user_id: UUID
    email: str
    role: str
    name: str


def issue_access_token(
    *,
    user_id: UUID,
    email: str,
    role: str,
    name: str,
    now_utc: datetime | None = None,
) -> str:
    settings = get_settings()
    issued_at = now_utc or datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "email": email,
        "role": role,
        "name": name,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.jwt_ttl_hours),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> AccessTokenClaims:
    try:
        payload = jwt.decode(
            token,
            get_settings().session_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "userId"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidAccessTokenError("expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidAccessTokenError("invalid") from exc

    try:
        user_id = UUID(str(payload["userId"]))
    except ValueError as exc:
        raise InvalidAccessTokenError("invalid_subject") from exc

    return AccessTokenClaims(
        user_id=user_id,
        email=str(payload.get("email", "")),
        role=str(payload.get("role", "")),
        name=str(payload.get("name", "")),
    )


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_SECRET_BYTES]


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_secret_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_secret_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False
