from __future__ import annotations

from fastapi.testclient import TestClient

from kinnected.core.rate_limit import RateLimiter
from kinnected.main import create_app

from conftest import DEFAULT_PASSWORD, SettingsForTests


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "API endpoint not found",
        "code": "NOT_FOUND",
    }


def test_malformed_body_is_a_validation_error(client: TestClient) -> None:
    response = client.post("/auth/login", json={"username": "alice"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"]


def test_rate_limiter_counts_per_key() -> None:
    limiter = RateLimiter(max_requests=2, window_seconds=60, message="slow down")
    assert limiter.hit("1.1.1.1")
    assert limiter.hit("1.1.1.1")
    assert not limiter.hit("1.1.1.1")
    assert limiter.hit("2.2.2.2")


def test_auth_routes_are_rate_limited() -> None:
    class LimitedSettings(SettingsForTests):
        RATE_LIMIT_ENABLED = True
        AUTH_RATE_LIMIT = 3

    app = create_app(LimitedSettings())
    with TestClient(app) as client:
        payload = {"username": "alice", "password": DEFAULT_PASSWORD}
        statuses = [client.post("/auth/login", json=payload).status_code for _ in range(4)]

        assert statuses == [401, 401, 401, 429]
        blocked = client.post("/auth/login", json=payload)
        assert blocked.json()["code"] == "RATE_LIMITED"
        assert blocked.json()["message"] == "Too many attempts, please try again later"

        # Other routes only count against the general limit
        assert client.get("/health").status_code == 200


def _app_with_failing_route(settings: SettingsForTests):
    app = create_app(settings)

    @app.get("/explode")
    def explode():
        raise RuntimeError("database password is hunter2")

    return app


def test_unexpected_error_message_is_hidden_by_default() -> None:
    app = _app_with_failing_route(SettingsForTests())
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Internal server error",
        "code": "SERVER_ERROR",
    }


def test_unexpected_error_message_is_shown_in_debug() -> None:
    class DebugSettings(SettingsForTests):
        DEBUG = True

    app = _app_with_failing_route(DebugSettings())
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json()["message"] == "database password is hunter2"
