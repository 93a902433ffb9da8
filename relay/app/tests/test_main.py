"""
Unit Tests for the Application Factory
======================================

Tests for relay/app/main.py: lifespan, system endpoints, error shapes.
"""

import logging

from fastapi import status
from fastapi.testclient import TestClient

from relay.app.config import Settings
from relay.app.main import create_app


def test_health(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "ok"
    assert body["service"] == "telegram-relay"
    assert body["configured"] is True


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["endpoints"]["api"] == "/api"


def test_missing_configuration_logged_as_critical(telegram, caplog):
    settings = Settings(_env_file=None, TELEGRAM_TOKEN="", TELEGRAM_CHAT_ID="")
    app = create_app(settings=settings, transport=telegram.transport)

    with caplog.at_level(logging.WARNING):
        with TestClient(app) as unconfigured:
            response = unconfigured.get("/health")

    critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
    assert any("TELEGRAM_TOKEN" in r.getMessage() for r in critical)
    assert any("TELEGRAM_CHAT_ID" in r.getMessage() for r in critical)
    # The process keeps serving
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["configured"] is False


def test_unconfigured_relay_still_forwards(telegram):
    settings = Settings(_env_file=None, TELEGRAM_TOKEN="", TELEGRAM_CHAT_ID="")
    telegram.on("sendMessage", 404, json={"ok": False, "error_code": 404, "description": "Not Found"})

    with TestClient(create_app(settings=settings, transport=telegram.transport)) as unconfigured:
        response = unconfigured.post("/api/sendMessage", json={"text": "x"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["description"] == "Not Found"


def test_routes_unavailable_before_startup(app):
    """Without the lifespan the components do not exist yet"""
    bare = TestClient(app)

    response = bare.post("/api/sendMessage", json={"text": "x"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"ok": False, "description": "Telegram client not initialized"}


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/nope")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["ok"] is False


def test_cors_allows_any_origin_by_default(client):
    response = client.options(
        "/api/sendMessage",
        headers={"Origin": "http://app.test", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["access-control-allow-origin"] == "*"
