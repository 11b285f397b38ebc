from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from redis.asyncio import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.accounts.errors import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidResetCodeError,
)
from app.core.constants import ROLE_ARTIST
from app.db.models.users import User
from app.db.repo.users_repo import UsersRepo
from app.services import password_reset
from app.services.auth_tokens import hash_password, issue_access_token, verify_password

logger = structlog.get_logger(__name__)

# Checked against when the email is unknown so both login failures cost one bcrypt round.
_DUMMY_PASSWORD_HASH = hash_password("riseup-login-timing-guard")


@dataclass(frozen=True, slots=True)
class AuthResult:
    user: User
    token: str


@dataclass(frozen=True, slots=True)
class PasswordResetTicket:
    user_id: UUID
    email: str
    code: str


def _issue_for(user: User, *, now_utc: datetime) -> str:
    return issue_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        name=user.name,
        now_utc=now_utc,
    )


class AccountService:
    @staticmethod
    async def signup(
        session: AsyncSession,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        now_utc: datetime,
    ) -> AuthResult:
        existing = await UsersRepo.get_by_email(session, email)
        if existing is not None:
            raise AccountAlreadyExistsError

        try:
            user = await UsersRepo.create(
                session,
                name=name.strip(),
                email=email,
                role=role,
                password_hash=hash_password(password),
            )
        except IntegrityError as exc:
            # A concurrent signup with the same email won the users_email_key race.
            logger.info("user_signup_email_conflict")
            raise AccountAlreadyExistsError from exc
        if user.role == ROLE_ARTIST:
            await UsersRepo.create_artist_profile(session, user.id)

        logger.info("user_signed_up", user_id=str(user.id), role=user.role)
        return AuthResult(user=user, token=_issue_for(user, now_utc=now_utc))

    @staticmethod
    async def login(
        session: AsyncSession,
        *,
        email: str,
        password: str,
        now_utc: datetime,
    ) -> AuthResult:
        user = await UsersRepo.get_by_email(session, email)
        if user is None:
            verify_password(password, _DUMMY_PASSWORD_HASH)
            raise InvalidCredentialsError
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError

        await UsersRepo.touch_last_login(session, user.id, now_utc)
        user.last_login_at = now_utc
        return AuthResult(user=user, token=_issue_for(user, now_utc=now_utc))

    @staticmethod
    async def request_password_reset(
        session: AsyncSession,
        redis_client: Redis,
        *,
        email: str,
        pepper: str,
    ) -> PasswordResetTicket | None:
        """Store a fresh reset code; None when the email is unknown."""
        user = await UsersRepo.get_by_email(session, email)
        if user is None:
            logger.info("password_reset_unknown_email")
            return None

        code = password_reset.generate_reset_code()
        await password_reset.store_reset_code(
            redis_client,
            email=user.email,
            user_id=user.id,
            code=code,
            pepper=pepper,
        )
        return PasswordResetTicket(user_id=user.id, email=user.email, code=code)

    @staticmethod
    async def reset_password(
        session: AsyncSession,
        redis_client: Redis,
        *,
        email: str,
        code: str,
        new_password: str,
        pepper: str,
    ) -> None:
        user_id = await password_reset.consume_reset_code(
            redis_client,
            email=email,
            code=code,
            pepper=pepper,
        )
        if user_id is None:
            raise InvalidResetCodeError

        updated = await UsersRepo.set_password_hash(session, user_id, hash_password(new_password))
        if updated == 0:
            raise InvalidResetCodeError
        logger.info("password_reset_completed", user_id=str(user_id))

    @staticmethod
    async def change_password(
        session: AsyncSession,
        *,
        user_id: UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise AccountNotFoundError
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPasswordError

        await UsersRepo.set_password_hash(session, user_id, hash_password(new_password))
        logger.info("password_changed", user_id=str(user_id))
