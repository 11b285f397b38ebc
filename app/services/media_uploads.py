from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)

CLOUDINARY_API_BASE_URL = "https://api.cloudinary.com/v1_1"
AUDIO_UPLOAD_TIMEOUT_SECONDS = 60.0
IMAGE_UPLOAD_TIMEOUT_SECONDS = 30.0
MAX_AVATAR_BYTES = 5 * 1024 * 1024

AUDIO_FOLDER = "ruc/audio"
IMAGES_FOLDER = "ruc/images"
MERCH_FOLDER = "ruc/merch"
EVENTS_FOLDER = "ruc/events"
BLOGS_FOLDER = "ruc/blogs"
AVATARS_FOLDER = "ruc/avatars"

IMAGE_TRANSFORMATION = "c_limit,h_1000,w_1000/q_auto"


class MediaUploadError(Exception):
    pass


class MediaNotConfiguredError(MediaUploadError):
    pass


class MediaUploadTimeoutError(MediaUploadError):
    pass


@dataclass(frozen=True, slots=True)
class UploadedMedia:
    secure_url: str
    public_id: str
    duration_sec: float | None = None


def sign_upload_params(params: dict[str, Any], *, api_secret: str) -> str:
    """Cloudinary signature: SHA-1 over the sorted, &-joined params followed by the secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] is not None and params[key] != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _credentials() -> tuple[str, str, str]:
    settings = get_settings()
    cloud_name = settings.cloudinary_cloud_name.strip()
    api_key = settings.cloudinary_api_key.strip()
    api_secret = settings.cloudinary_api_secret.strip()
    if not (cloud_name and api_key and api_secret):
        raise MediaNotConfiguredError("cloudinary credentials are missing")
    return cloud_name, api_key, api_secret


async def _upload(
    content: bytes,
    *,
    resource_type: str,
    params: dict[str, Any],
    timeout_seconds: float,
) -> UploadedMedia:
    cloud_name, api_key, api_secret = _credentials()
    signed_params = {**params, "timestamp": int(time.time())}
    form = {
        **{key: str(value) for key, value in signed_params.items()},
        "api_key": api_key,
        "signature": sign_upload_params(signed_params, api_secret=api_secret),
    }
    url = f"{CLOUDINARY_API_BASE_URL}/{cloud_name}/{resource_type}/upload"

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.post(
                url,
                data=form,
                files={"file": (params.get("public_id", "upload"), content)},
            )
            response.raise_for_status()
    except httpx.TimeoutException as exc:
        logger.warning("media_upload_timeout", resource_type=resource_type, folder=params.get("folder"))
        raise MediaUploadTimeoutError("upload timeout") from exc
    except httpx.HTTPError as exc:
        logger.exception("media_upload_failed", resource_type=resource_type, folder=params.get("folder"))
        raise MediaUploadError("upload failed") from exc

    try:
        body = response.json()
        duration = body.get("duration")
        return UploadedMedia(
            secure_url=str(body["secure_url"]),
            public_id=str(body.get("public_id", "")),
            duration_sec=float(duration) if duration is not None else None,
        )
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.error("media_upload_unexpected_response", resource_type=resource_type, folder=params.get("folder"))
        raise MediaUploadError("upload response is malformed") from exc


async def upload_audio(content: bytes, *, public_id: str, folder: str = AUDIO_FOLDER) -> UploadedMedia:
    # Cloudinary stores audio under the video resource type.
    return await _upload(
        content,
        resource_type="video",
        params={"public_id": public_id, "folder": folder, "format": "mp3"},
        timeout_seconds=AUDIO_UPLOAD_TIMEOUT_SECONDS,
    )


async def upload_image(content: bytes, *, public_id: str, folder: str = IMAGES_FOLDER) -> UploadedMedia:
    return await _upload(
        content,
        resource_type="image",
        params={"public_id": public_id, "folder": folder, "transformation": IMAGE_TRANSFORMATION},
        timeout_seconds=IMAGE_UPLOAD_TIMEOUT_SECONDS,
    )
