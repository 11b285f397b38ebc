from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from app.accounts.errors import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidResetCodeError,
)
from app.accounts.service import AccountService, AuthResult
from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token
from app.api.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from app.core.config import get_settings
from app.core.redis import get_redis
from app.db.session import SessionLocal
from app.workers.dispatch import enqueue_task
from app.workers.tasks.notifications import send_password_reset_email, send_welcome_email

router = APIRouter(tags=["auth"])
logger = structlog.get_logger(__name__)

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a reset code has been sent"


def _auth_response(result: AuthResult) -> dict[str, Any]:
    user = result.user
    return {
        "user": {
            "id": str(user.id),
            "name": user.name,
            "email": user.email,
            "role": user.role,
        },
        "token": result.token,
    }


@router.post("/api/auth/signup")
async def signup(payload: SignupRequest) -> dict[str, Any]:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await AccountService.signup(
                session,
                name=payload.name,
                email=str(payload.email),
                password=payload.password,
                role=payload.role,
                now_utc=now_utc,
            )
    except AccountAlreadyExistsError as exc:
        raise api_error(400, "E_USER_EXISTS", "User already exists") from exc

    await enqueue_task(
        send_welcome_email,
        email=result.user.email,
        name=result.user.name,
        role=result.user.role,
    )
    return _auth_response(result)


@router.post("/api/auth/login")
async def login(payload: LoginRequest) -> dict[str, Any]:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await AccountService.login(
                session,
                email=payload.email,
                password=payload.password,
                now_utc=now_utc,
            )
    except InvalidCredentialsError as exc:
        raise api_error(401, "E_INVALID_CREDENTIALS", "Invalid credentials") from exc
    return _auth_response(result)


@router.post("/api/auth/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest) -> dict[str, str]:
    settings = get_settings()
    async with SessionLocal.begin() as session:
        ticket = await AccountService.request_password_reset(
            session,
            get_redis(),
            email=payload.email,
            pepper=settings.reset_code_pepper,
        )

    if ticket is not None:
        await enqueue_task(send_password_reset_email, email=ticket.email, code=ticket.code)
    return {"message": RESET_REQUESTED_MESSAGE}


@router.post("/api/auth/reset-password")
async def reset_password(payload: ResetPasswordRequest) -> dict[str, str]:
    settings = get_settings()
    try:
        async with SessionLocal.begin() as session:
            await AccountService.reset_password(
                session,
                get_redis(),
                email=payload.email,
                code=payload.code,
                new_password=payload.new_password,
                pepper=settings.reset_code_pepper,
            )
    except InvalidResetCodeError as exc:
        raise api_error(400, "E_RESET_CODE_INVALID", "Invalid or expired reset code") from exc
    return {"message": "Password reset successfully"}


@router.post("/api/auth/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, str]:
    try:
        async with SessionLocal.begin() as session:
            await AccountService.change_password(
                session,
                user_id=user.id,
                current_password=payload.current_password,
                new_password=payload.new_password,
            )
    except AccountNotFoundError as exc:
        raise api_error(404, "E_NOT_FOUND", "User not found") from exc
    except IncorrectPasswordError as exc:
        raise api_error(400, "E_INCORRECT_PASSWORD", "Current password is incorrect") from exc
    return {"message": "Password updated successfully"}
