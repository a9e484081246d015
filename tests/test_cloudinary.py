from urllib.parse import parse_qs

import httpx
import pytest

from media import service as media_service
from media.cloudinary import CloudinaryClient, MediaError, sign_params


def _client(handler):
    return CloudinaryClient(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        folder="alra-planes",
        transport=httpx.MockTransport(handler),
    )


def test_sign_params_matches_documented_example():
    params = {
        "eager": "w_400,h_300,c_pad|w_260,h_200,c_crop",
        "public_id": "sample_image",
        "timestamp": 1315060510,
    }

    assert sign_params(params, "abcd") == "bfd09f95f331f558cbd1320e67aa8d488770583e"


def test_sign_params_skips_empty_values():
    params = {"folder": "alra-planes", "timestamp": 1700000000, "tags": ""}

    assert sign_params(params, "secret") == "af4e73e977e7855278820b2b0a5ba30334fa369d"


async def test_upload_bytes_sends_signed_multipart():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json={"secure_url": "https://res.example.test/a.jpg", "public_id": "alra-planes/a"})

    uploaded = await _client(handler).upload_bytes(b"png-bytes", filename="a.png", content_type="image/png")

    assert uploaded.url == "https://res.example.test/a.jpg"
    assert uploaded.public_id == "alra-planes/a"
    assert seen["path"] == "/v1_1/demo/image/upload"
    assert b'name="signature"' in seen["body"]
    assert b'name="api_key"' in seen["body"]
    assert b"png-bytes" in seen["body"]


async def test_upload_url_sends_remote_url_as_file():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode("utf-8"))
        return httpx.Response(200, json={"secure_url": "https://res.example.test/b.jpg", "public_id": "alra-planes/b"})

    await _client(handler).upload_url("https://old-site.example/b.jpg")

    form = seen["form"]
    assert form["file"] == ["https://old-site.example/b.jpg"]
    assert form["folder"] == ["alra-planes"]
    assert form["transformation"] == ["q_auto,f_auto"]
    expected = sign_params(
        {"folder": "alra-planes", "transformation": "q_auto,f_auto", "timestamp": form["timestamp"][0]},
        "secret",
    )
    assert form["signature"] == [expected]


async def test_upload_bytes_sends_configured_transformation():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content
        return httpx.Response(200, json={"secure_url": "https://res.example.test/c.jpg", "public_id": "c"})

    client = CloudinaryClient(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        transformation="q_auto:eco",
        transport=httpx.MockTransport(handler),
    )
    await client.upload_bytes(b"png-bytes")

    assert b'name="transformation"' in seen["body"]
    assert b"q_auto:eco" in seen["body"]


async def test_upload_error_status_raises_media_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})

    with pytest.raises(MediaError, match="401"):
        await _client(handler).upload_bytes(b"png-bytes")


async def test_upload_without_secure_url_raises_media_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"public_id": "x"})

    with pytest.raises(MediaError):
        await _client(handler).upload_url("https://old-site.example/b.jpg")


async def test_destroy_returns_result():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1_1/demo/image/destroy"
        assert parse_qs(request.content.decode("utf-8"))["public_id"] == ["alra-planes/a"]
        return httpx.Response(200, json={"result": "ok"})

    assert await _client(handler).destroy("alra-planes/a") == "ok"


async def test_destroy_background_swallows_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    await media_service.destroy_background(_client(handler), "alra-planes/a")


def test_incomplete_credentials_are_rejected():
    with pytest.raises(MediaError):
        CloudinaryClient(cloud_name="demo", api_key="", api_secret="secret")
