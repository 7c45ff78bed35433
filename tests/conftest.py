from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from kinnected.config import Settings
from kinnected.main import create_app
from kinnected.services.chatbot import get_chatbot

DEFAULT_PASSWORD = "Secret#123"


class SettingsForTests(Settings):
    ENV = "test"
    DEBUG = False
    DATABASE_URL = "sqlite://"
    SECRET_KEY = "test-secret"
    RATE_LIMIT_ENABLED = False
    AI_API_KEY = None
    LOG_LEVEL = "WARNING"


class FakeChatbot:
    def __init__(self) -> None:
        self.queries: list[str] = []

    def reply(self, text: str) -> str:
        self.queries.append(text)
        return f"echo: {text}"

    def suggestions(self, relation: str, context: str | None = None) -> str:
        return f"- call your {relation}"


@pytest.fixture()
def settings() -> SettingsForTests:
    return SettingsForTests()


@pytest.fixture()
def client(settings: SettingsForTests) -> TestClient:
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def session(client: TestClient) -> Session:
    db = client.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def fake_chatbot(client: TestClient) -> FakeChatbot:
    chatbot = FakeChatbot()
    client.app.dependency_overrides[get_chatbot] = lambda: chatbot
    yield chatbot
    client.app.dependency_overrides.clear()


@pytest.fixture()
def register(client: TestClient) -> Callable[..., dict]:
    """Register an account and return ``{"token", "user", "headers"}``."""

    def _register(username: str, **overrides) -> dict:
        payload = {
            "username": username,
            "email": f"{username.lower()}@example.com",
            "password": DEFAULT_PASSWORD,
            "fullName": username.capitalize() + " Example",
        }
        payload.update(overrides)
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "token": body["token"],
            "user": body["user"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register
