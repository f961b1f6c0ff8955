import json

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.handler import LeadHandler


@pytest.fixture()
def client(settings):
    app = create_app(settings, handler=LeadHandler.from_settings(settings))
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_post_lead_without_channels(client, settings):
    response = client.post("/lead", data={"phone": "5551234", "priority": "high"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    data = response.json()
    assert data["success"] is True
    assert data["lead_id"]
    assert data["notifications"] == {"email": False, "telegram": False}

    with open(settings.leads_file, encoding="utf-8") as f:
        leads = json.load(f)
    assert len(leads) == 1
    assert leads[0]["id"] == data["lead_id"]
    assert leads[0]["priority"] == "high"
    assert leads[0]["phone_digits"] == "5551234"
    assert leads[0]["client_ip"] == "testclient"


def test_get_is_not_allowed(client):
    response = client.get("/lead")

    assert response.status_code == 405
    assert response.json() == {"success": False, "error": "Method not allowed"}


def test_missing_phone(client):
    response = client.post("/lead", data={"name": "Иван"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Укажите телефон"}


def test_cors_allows_any_origin(client):
    response = client.post(
        "/lead", data={"phone": "5551234"}, headers={"Origin": "https://landing.example"}
    )
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_preflight(client):
    response = client.options(
        "/lead",
        headers={
            "Origin": "https://landing.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert "POST" in response.headers["access-control-allow-methods"]


@pytest.mark.parametrize("method", ["OPTIONS", "PUT", "DELETE"])
def test_other_methods_get_json_failure(client, method):
    response = client.request(method, "/lead")

    assert response.status_code == 405
    assert response.json() == {"success": False, "error": "Method not allowed"}


def test_head_is_not_allowed(client):
    assert client.head("/lead").status_code == 405


def test_create_app_reads_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("LEADS_FILE", str(tmp_path / "env-leads.json"))
    app = create_app()

    assert app.state.handler.store.path == str(tmp_path / "env-leads.json")
