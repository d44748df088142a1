import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at an isolated SQLite DB, in mock provider mode."""
    test_db = f"sqlite:///{tmp_path / 'test.db'}"
    monkeypatch.setenv("DATABASE_URL", test_db)
    monkeypatch.setenv("CORS_ORIGINS", "*")

    # Avoid accidental usage of real API keys during tests
    monkeypatch.setenv("GEMINI_API_URL", "")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("DEV_MOCK_GEMINI", "true")

    from resume_roast.config import Settings  # type: ignore

    return Settings(database_url=test_db, dev_mock_gemini=True, cors_origins=["*"])


@pytest.fixture
def client(settings):
    """Provide a FastAPI TestClient for a freshly built app."""
    from resume_roast.main import create_app  # type: ignore

    return TestClient(create_app(settings))


class FakeProvider:
    """Provider double returning queued texts per task and recording calls."""

    def __init__(self, responses=None, errors=None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.calls = []

    async def complete(self, prompt, *, task, timeout, retry=None, temperature=0.0, max_tokens=800):
        self.calls.append({"task": task, "prompt": prompt, "retry": retry, "timeout": timeout})
        if task in self.errors:
            raise self.errors[task]
        return self.responses[task]


@pytest.fixture
def fake_provider(client):
    provider = FakeProvider()
    client.app.state.provider = provider
    return provider
