import json

from fastapi.testclient import TestClient

from core import schema
from main import app

from conftest import ADMIN_PASS, ADMIN_USER


def test_config_seeded_on_first_boot(client):
    config = client.get("/api/config").json()

    assert config == dict(schema.DEFAULT_CONFIG)


def test_set_many_is_idempotent(client, auth_headers):
    first = client.put("/api/admin/config", json={"site_title": "X"}, headers=auth_headers)
    second = client.put("/api/admin/config", json={"site_title": "X"}, headers=auth_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    config = client.get("/api/config").json()
    assert config["site_title"] == "X"
    assert config["hero_title"] == schema.DEFAULT_CONFIG[2][1]


def test_set_many_adds_new_keys_as_text(client, auth_headers):
    response = client.put(
        "/api/admin/config",
        json={"instagram": "@alra", "promo_visible": True, "cupos": 12, "banner": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    config = client.get("/api/config").json()
    assert config["instagram"] == "@alra"
    assert config["promo_visible"] == "true"
    assert config["cupos"] == "12"
    assert config["banner"] == ""


def test_set_many_stores_nested_values_as_json(client, auth_headers):
    client.put(
        "/api/admin/config",
        json={"links": {"ig": "@alra", "fb": "alra.planes"}, "modelos": ["Polo", "Taos"]},
        headers=auth_headers,
    )

    config = client.get("/api/config").json()
    assert json.loads(config["links"]) == {"ig": "@alra", "fb": "alra.planes"}
    assert json.loads(config["modelos"]) == ["Polo", "Taos"]


def test_set_many_rejects_empty_key(client, auth_headers):
    response = client.put("/api/admin/config", json={"": "x", "site_title": "Y"}, headers=auth_headers)

    assert response.status_code == 400
    assert client.get("/api/config").json()["site_title"] == "ALRA Planes"


def test_seed_does_not_overwrite_existing_config(env, media):
    with TestClient(app) as first_boot:
        token = first_boot.post("/api/login", json={"username": ADMIN_USER, "password": ADMIN_PASS}).json()["token"]
        first_boot.put(
            "/api/admin/config",
            json={"site_title": "Renamed"},
            headers={"Authorization": f"Bearer {token}"},
        )

    # Second boot against the same database file.
    with TestClient(app) as second_boot:
        assert second_boot.get("/api/config").json()["site_title"] == "Renamed"


def test_health(client):
    body = client.get("/api/health").json()

    assert body["status"] == "ok"
    assert body["timestamp"]
