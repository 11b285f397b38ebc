from __future__ import annotations

import hashlib

import httpx
import pytest

from app.core.config import get_settings
from app.services import media_uploads
from app.services.media_uploads import (
    MediaNotConfiguredError,
    MediaUploadError,
    MediaUploadTimeoutError,
    sign_upload_params,
    upload_audio,
    upload_image,
)


@pytest.fixture
def cloudinary_settings(monkeypatch) -> None:
    settings = get_settings()
    monkeypatch.setattr(settings, "cloudinary_cloud_name", "riseup")
    monkeypatch.setattr(settings, "cloudinary_api_key", "key123")
    monkeypatch.setattr(settings, "cloudinary_api_secret", "shh")


def _mock_transport(monkeypatch, handler) -> None:
    real_client = httpx.AsyncClient

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(media_uploads.httpx, "AsyncClient", _client)


def test_signature_skips_empty_params_and_sorts_keys() -> None:
    signature = sign_upload_params(
        {"timestamp": 1700000000, "folder": "ruc/audio", "public_id": "song_1", "eager": ""},
        api_secret="shh",
    )

    expected = hashlib.sha1(b"folder=ruc/audio&public_id=song_1&timestamp=1700000000shh").hexdigest()
    assert signature == expected


async def test_upload_without_credentials_fails_fast(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "cloudinary_cloud_name", "")

    with pytest.raises(MediaNotConfiguredError):
        await upload_image(b"png", public_id="avatar_1")


async def test_audio_upload_goes_to_video_endpoint(monkeypatch, cloudinary_settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"secure_url": "https://res.cloudinary.com/riseup/song_1.mp3", "public_id": "song_1", "duration": 187.4},
        )

    _mock_transport(monkeypatch, handler)

    uploaded = await upload_audio(b"ID3", public_id="song_1")

    assert str(seen[0].url) == "https://api.cloudinary.com/v1_1/riseup/video/upload"
    assert b'name="signature"' in seen[0].content
    assert uploaded.secure_url.endswith("song_1.mp3")
    assert uploaded.duration_sec == pytest.approx(187.4)


async def test_upload_http_error_is_wrapped(monkeypatch, cloudinary_settings) -> None:
    _mock_transport(monkeypatch, lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(MediaUploadError):
        await upload_image(b"png", public_id="cover_1")


async def test_upload_timeout_is_reported_separately(monkeypatch, cloudinary_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    _mock_transport(monkeypatch, handler)

    with pytest.raises(MediaUploadTimeoutError):
        await upload_audio(b"ID3", public_id="song_2")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"error": "odd"}),
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_malformed_success_response_is_wrapped(monkeypatch, cloudinary_settings, response) -> None:
    _mock_transport(monkeypatch, lambda request: response)

    with pytest.raises(MediaUploadError):
        await upload_image(b"png", public_id="cover_3")
