from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import adorchestrator.models.asset_models  # noqa: F401
import adorchestrator.models.brand_models  # noqa: F401
import adorchestrator.models.campaign_models  # noqa: F401
import adorchestrator.models.conversion_models  # noqa: F401
import adorchestrator.models.data_source_models  # noqa: F401
import adorchestrator.models.trigger_models  # noqa: F401
import adorchestrator.models.usage_models  # noqa: F401
from adorchestrator.ai.base_provider import AIProvider, AIResult
from adorchestrator.core.auth import AuthProviderError, SessionUser
from adorchestrator.database import get_session
from adorchestrator.main import app

VALID_TOKEN = "valid-token"
TEST_USER = SessionUser(id="11111111-1111-1111-1111-111111111111", email="ops@example.com")


class _FakeAuthClient:
    """Stands in for the hosted auth provider."""

    def __init__(self) -> None:
        self.signed_out: list[str] = []
        self.exchanged: list[tuple[str, str | None]] = []

    async def get_user(self, access_token: str) -> SessionUser | None:
        return TEST_USER if access_token == VALID_TOKEN else None

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        if password != "correct-password":
            raise AuthProviderError("Invalid login credentials", 400)
        return {"access_token": VALID_TOKEN, "refresh_token": "refresh-1", "expires_in": 3600}

    async def exchange_code_for_session(self, code: str, code_verifier: str | None = None) -> dict:
        self.exchanged.append((code, code_verifier))
        if code != "good-code":
            raise AuthProviderError("invalid flow state", 400)
        return {"access_token": VALID_TOKEN, "refresh_token": "refresh-1", "expires_in": 3600}

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


class _FakeProvider(AIProvider):
    name = "fake"
    model = "fake-model"

    def __init__(self, text: str = "", fragments: tuple[str, ...] = ()) -> None:
        self.text = text
        self.fragments = fragments
        self.prompts: list[str] = []
        self.chat_calls: list[tuple] = []

    async def generate(self, prompt, system=None, json_output=False) -> AIResult:
        self.prompts.append(prompt)
        return AIResult(text=self.text, model=self.model, input_tokens=120, output_tokens=40)

    async def stream_chat(self, history, message, system):
        self.chat_calls.append((history, message, system))
        for fragment in self.fragments:
            yield fragment

    def is_available(self) -> bool:
        return True


@pytest.fixture
def fake_provider():
    return _FakeProvider


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def auth_provider() -> _FakeAuthClient:
    return _FakeAuthClient()


@pytest.fixture
def anon_client(engine, auth_provider) -> Generator[TestClient, None, None]:
    def _get_session():
        with Session(engine) as session:
            yield session

    original_auth_client = app.state.auth_client
    app.state.auth_client = auth_provider
    app.dependency_overrides[get_session] = _get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.auth_client = original_auth_client


@pytest.fixture
def client(anon_client) -> TestClient:
    anon_client.headers["Authorization"] = f"Bearer {VALID_TOKEN}"
    return anon_client
