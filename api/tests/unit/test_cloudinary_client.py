import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from app.infrastructure.external.cloudinary import CloudinaryClient, resource_type_for
from app.infrastructure.external.cloudinary.cloudinary_client import sign_params
from app.shared.exceptions.domain import MediaOperationException


def _client(handler) -> CloudinaryClient:
    return CloudinaryClient(
        cloud_name="demo",
        api_key="key-123",
        api_secret="s3cret",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_sign_params_sorts_and_skips_empty_values() -> None:
    expected = hashlib.sha1(b"folder=athletes/1/photos&timestamp=1700000000s3cret").hexdigest()

    assert sign_params({"timestamp": 1700000000, "folder": "athletes/1/photos", "tags": None, "context": ""},
                       "s3cret") == expected


def test_resource_type_for_media_type() -> None:
    assert resource_type_for("video") == "video"
    assert resource_type_for("photo") == "image"


@pytest.mark.asyncio
async def test_destroy_posts_signed_form() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return httpx.Response(200, json={"result": "ok"})

    result = await _client(handler).destroy("athletes/1/videos/1_a.mp4", "video")

    form = captured["form"]
    assert result == "ok"
    assert captured["url"] == "https://api.cloudinary.com/v1_1/demo/video/destroy"
    assert form["api_key"] == "key-123"
    payload = f"invalidate=true&public_id=athletes/1/videos/1_a.mp4&timestamp={form['timestamp']}s3cret"
    assert form["signature"] == hashlib.sha1(payload.encode()).hexdigest()


@pytest.mark.asyncio
async def test_upload_sends_file_and_parses_response() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = request.content
        return httpx.Response(200, json={
            "public_id": "athletes/1/photos/1_a.jpg",
            "secure_url": "https://res.cloudinary.com/demo/image/upload/athletes/1/photos/1_a.jpg",
            "bytes": 2048,
            "format": "jpg",
            "width": 640,
            "height": 480,
        })

    result = await _client(handler).upload(
        b"\xff\xd8jpeg-bytes",
        "a.jpg",
        folder="athletes/1/photos",
        public_id="athletes/1/photos/1_a.jpg",
        context={"caption": "Match day"},
    )

    assert captured["url"].endswith("/image/upload")
    assert b"jpeg-bytes" in captured["body"]
    assert b"caption=Match day" in captured["body"]
    assert result.url.startswith("https://res.cloudinary.com/")
    assert result.public_id == "athletes/1/photos/1_a.jpg"
    assert (result.bytes, result.width, result.height) == (2048, 640, 480)


@pytest.mark.asyncio
async def test_provider_error_carries_status_and_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "Resource not found"}})

    with pytest.raises(MediaOperationException) as exc:
        await _client(handler).destroy("athletes/1/photos/gone.jpg")

    assert exc.value.provider_status == 404
    assert "Resource not found" in exc.value.message
    assert exc.value.details["public_id"] == "athletes/1/photos/gone.jpg"


@pytest.mark.asyncio
async def test_network_error_has_no_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(MediaOperationException) as exc:
        await _client(handler).destroy("athletes/1/photos/a.jpg")

    assert exc.value.provider_status is None
    assert exc.value.status_code == 502


@pytest.mark.asyncio
async def test_update_metadata_sends_tags_and_context() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        return httpx.Response(200, json={"public_id": "athletes/1/photos/1_a.jpg"})

    await _client(handler).update_metadata(
        "athletes/1/photos/1_a.jpg", tags=["trial", "u17"], context={"caption": "Match day"}
    )

    form = captured["form"]
    assert captured["url"] == "https://api.cloudinary.com/v1_1/demo/image/explicit"
    assert form["type"] == "upload"
    assert form["tags"] == "trial,u17"
    assert form["context"] == "caption=Match day"
    assert "signature" in form


@pytest.mark.asyncio
async def test_plain_string_error_body_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Invalid signature"})

    with pytest.raises(MediaOperationException) as exc:
        await _client(handler).destroy("athletes/1/photos/a.jpg")

    assert exc.value.provider_status == 400
    assert "Invalid signature" in exc.value.message


@pytest.mark.asyncio
async def test_success_without_json_body_raises_media_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(MediaOperationException) as exc:
        await _client(handler).destroy("athletes/1/photos/a.jpg")

    assert exc.value.message == "Invalid response from media provider"
