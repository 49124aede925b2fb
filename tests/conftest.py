"""Shared fixtures for the question server tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.auth import issue_token
from api.config import Settings, get_settings
from src.llm.question_maker import QuestionMaker

TEST_SECRET = "workshop-password"
TEST_JWT_SECRET = "test-signing-key-for-hs512-tokens-" + "0123456789abcdef" * 4
TEST_EMAIL = "student@example.com"


def make_completion(content=None, refusal=None):
    """Build an object shaped like an OpenAI chat completion."""
    message = SimpleNamespace(role="assistant", content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


@pytest.fixture
def settings():
    return Settings(
        user_secret=TEST_SECRET,
        jwt_secret=TEST_JWT_SECRET,
        openai_api_key="sk-test",
        max_notes_length=2500,
    )


@pytest.fixture
def mock_openai_client():
    """Stands in for openai.OpenAI; set chat.completions.create per test."""
    return MagicMock()


@pytest.fixture
def question_maker(mock_openai_client):
    maker = QuestionMaker(api_key="sk-test", system_message="Write revision questions.")
    maker._client = mock_openai_client
    return maker


@pytest.fixture
def app_overrides(settings, question_maker):
    """Point the app at test settings and the mocked question maker."""
    from api_server import app, get_question_maker

    overrides = {
        get_settings: lambda: settings,
        get_question_maker: lambda: question_maker,
    }
    app.dependency_overrides.update(overrides)
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
def test_client(app_overrides):
    from api_server import app
    return TestClient(app)


@pytest.fixture
def token(settings):
    return issue_token(TEST_SECRET, TEST_EMAIL, settings)


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}
