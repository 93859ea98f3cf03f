"""Pytest configuration and shared fixtures."""

import os
import tempfile
from pathlib import Path

# Required settings must exist before app.config is imported anywhere
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="resume-matcher-tests-"))
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-key")
os.environ.setdefault("STORAGE_PATH", str(_TEST_ROOT / "data" / "kv_store.json"))
os.environ.setdefault("LOG_DIR", str(_TEST_ROOT / "logs"))

import pytest  # noqa: E402

from app.config import Settings  # noqa: E402
from app.context import build_context  # noqa: E402
from app.models import InboundEvent, TelegramDocument  # noqa: E402
from tests.fakes import FakeClock, FakeMessenger, FakeReasoning, make_reasoning_replies  # noqa: E402


# --- Core fixtures ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Isolated settings: temp storage and logs, production environment with a password."""
    return Settings(
        _env_file=None,
        telegram_bot_token="123456:test-token",
        anthropic_api_key="sk-ant-test-key",
        environment="production",
        admin_password="s3cret-pass",
        storage_path=str(tmp_path / "data" / "kv_store.json"),
        log_dir=str(tmp_path / "logs"),
        analysis_timeout_seconds=5.0,
    )


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def reasoning() -> FakeReasoning:
    return FakeReasoning(make_reasoning_replies())


@pytest.fixture
def ctx(test_settings, messenger, reasoning, clock):
    """ServiceContext wired with fakes and a controllable clock."""
    return build_context(test_settings, messenger=messenger, reasoning=reasoning, clock=clock)


@pytest.fixture
def make_event():
    """Factory for InboundEvents from user 42 in chat 4200."""
    counter = {"update_id": 0}

    def _make(text=None, document=None, callback_data=None, user_id=42, chat_id=4200) -> InboundEvent:
        counter["update_id"] += 1
        return InboundEvent(
            update_id=counter["update_id"],
            user_id=user_id,
            chat_id=chat_id,
            text=text,
            document=TelegramDocument(**document) if isinstance(document, dict) else document,
            callback_data=callback_data,
        )

    return _make


# --- API client fixture (for integration/e2e) ---


@pytest.fixture
def api_client(ctx):
    """FastAPI TestClient whose requests all share the fake-wired context."""
    from fastapi.testclient import TestClient

    from app.api.dependencies import get_service_context
    from app.main import app

    app.dependency_overrides[get_service_context] = lambda: ctx
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


