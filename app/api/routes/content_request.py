from __future__ import annotations

import json
from typing import Any, TypeVar
from uuid import uuid4

import structlog
from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError
from starlette.datastructures import FormData, UploadFile

from app.api.errors import api_error
from app.content.errors import ContentAccessDeniedError, ContentError, ContentNotFoundError
from app.services.media_uploads import (
    MediaNotConfiguredError,
    MediaUploadError,
    MediaUploadTimeoutError,
    upload_image,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_or_form(request: Request) -> tuple[dict[str, Any], FormData | None]:
    """Artist content arrives either as JSON or as multipart with a `data` JSON field."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        raw_data = form.get("data")
        if isinstance(raw_data, str) and raw_data.strip():
            return _parse_json_object(raw_data), form
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        return fields, form

    body = await request.body()
    if not body.strip():
        return {}, None
    return _parse_json_object(body), None


def _parse_json_object(raw: str | bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise api_error(400, "E_VALIDATION", "Malformed JSON payload") from exc
    if not isinstance(parsed, dict):
        raise api_error(400, "E_VALIDATION", "Payload must be a JSON object")
    return parsed


def validate_payload(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
        raise api_error(400, "E_VALIDATION", message) from exc


def form_files(form: FormData | None, field: str, *, max_count: int) -> list[UploadFile]:
    if form is None:
        return []
    files = [item for item in form.getlist(field) if isinstance(item, UploadFile) and item.filename]
    if len(files) > max_count:
        raise api_error(400, "E_VALIDATION", f"At most {max_count} files allowed for '{field}'")
    return files


def new_public_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


async def upload_images(files: list[UploadFile], *, folder: str, prefix: str) -> list[str]:
    urls: list[str] = []
    for file in files:
        content = await file.read()
        uploaded = await upload_image(content, public_id=new_public_id(prefix), folder=folder)
        urls.append(uploaded.secure_url)
    return urls


def media_http_error(exc: MediaUploadError) -> HTTPException:
    if isinstance(exc, MediaNotConfiguredError):
        return api_error(
            503,
            "E_UPLOAD_UNAVAILABLE",
            "File upload service not configured. Please contact administrator.",
        )
    if isinstance(exc, MediaUploadTimeoutError):
        return api_error(408, "E_UPLOAD_TIMEOUT", "Upload timeout. Please try again.")
    logger.warning("media_upload_failed", error_type=type(exc).__name__)
    return api_error(502, "E_UPLOAD_FAILED", "Failed to upload file. Please try again.")


def content_http_error(exc: ContentError, *, resource: str) -> HTTPException:
    if isinstance(exc, ContentNotFoundError):
        return api_error(404, "E_NOT_FOUND", f"{resource} not found")
    if isinstance(exc, ContentAccessDeniedError):
        return api_error(403, "E_FORBIDDEN", f"Not authorized to modify this {resource.lower()}")
    return api_error(400, "E_VALIDATION", str(exc) or "Invalid request")
