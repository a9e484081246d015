import itertools

import pytest
from fastapi.testclient import TestClient

from main import app
from media import service as media_service
from media.cloudinary import MediaError, UploadedImage

ADMIN_USER = "admin"
ADMIN_PASS = "s3cret-pass"
JWT_SECRET = "test-jwt-secret"


class FakeMediaClient:
    """In-memory stand-in for the Cloudinary client."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.uploaded: list[tuple[str, bytes | str]] = []
        self.destroyed: list[str] = []
        self.fail_upload = False
        self.fail_destroy = False
        self.blank_url = False

    def _next(self, source):
        if self.fail_upload:
            raise MediaError("upload rejected")
        public_id = f"alra-planes/img{next(self._ids)}"
        self.uploaded.append((public_id, source))
        url = "" if self.blank_url else f"https://res.example.test/{public_id}.jpg"
        return UploadedImage(url=url, public_id=public_id)

    async def upload_bytes(self, data, *, filename="upload", content_type="application/octet-stream"):
        return self._next(data)

    async def upload_url(self, url):
        return self._next(url)

    async def destroy(self, public_id):
        if self.fail_destroy:
            raise MediaError("destroy rejected")
        self.destroyed.append(public_id)
        return "ok"


@pytest.fixture
def env(monkeypatch, tmp_path):
    db_path = tmp_path / "alra.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("ADMIN_USER", ADMIN_USER)
    monkeypatch.setenv("ADMIN_PASS", ADMIN_PASS)
    monkeypatch.delenv("ADMIN_PASSWORD_HASH", raising=False)
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
    return db_path


@pytest.fixture
def media():
    fake = FakeMediaClient()
    app.dependency_overrides[media_service.get_media_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(media_service.get_media_client, None)


@pytest.fixture
def client(env, media):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def token(client):
    response = client.post("/api/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_plan(client, auth_headers):
    def _create(**fields):
        body = {"modelo": "Polo", "version": "Track", **fields}
        response = client.post("/api/admin/planes", json=body, headers=auth_headers)
        assert response.status_code == 200, response.text
        return response.json()["id"]

    return _create


@pytest.fixture
def upload_image(client, auth_headers):
    def _upload(plan_id, content=b"\x89PNG fake image bytes", content_type="image/png"):
        return client.post(
            f"/api/admin/planes/{plan_id}/imagenes",
            files={"imagen": ("foto.png", content, content_type)},
            headers=auth_headers,
        )

    return _upload
