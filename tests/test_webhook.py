import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from rentseeker.api.endpoints.telegram import get_message_sink, get_session_store
from rentseeker.config import settings
from rentseeker.core.session_store import InMemorySessionStore
from rentseeker.core.state import Stage
from rentseeker.db.session import get_db
from rentseeker.main import app
from rentseeker.services import presenter
from tests.conftest import RecordingSink

HELP_UPDATE = {
    "update_id": 1,
    "message": {
        "message_id": 5,
        "from": {"id": 7, "first_name": "Sam"},
        "chat": {"id": 7},
        "text": "/help",
        "entities": [{"type": "bot_command", "offset": 0, "length": 5}],
    },
}


@pytest.fixture
def webhook(tmp_path, monkeypatch):
    # Each TestClient request runs on its own event loop, so no pooled connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'webhook.db'}", poolclass=NullPool)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db():
        async with factory() as session:
            yield session

    sink = RecordingSink()
    store = InMemorySessionStore()
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "")

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_message_sink] = lambda: sink
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app), sink, store
    app.dependency_overrides.clear()


def test_health_check():
    response = TestClient(app).get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "active"


def test_command_is_answered(webhook):
    client, sink, _ = webhook

    response = client.post("/api/v1/webhook", json=HELP_UPDATE)

    assert response.status_code == 200
    assert response.json() == {"status": "received"}
    assert sink.sent == [(7, presenter.HELP_TEXT, None)]


def test_start_command_welcomes_user(webhook):
    client, sink, store = webhook
    update = {
        "update_id": 2,
        "message": {
            "message_id": 6,
            "from": {"id": 8, "first_name": "Alex"},
            "chat": {"id": 8},
            "text": "/start",
            "entities": [{"type": "bot_command", "offset": 0, "length": 6}],
        },
    }

    response = client.post("/api/v1/webhook", json=update)

    assert response.json() == {"status": "received"}
    assert "Welcome, Alex" in sink.last_text
    assert len(store) == 1


def test_button_press_advances_dialogue(webhook):
    client, sink, store = webhook
    update = {
        "update_id": 3,
        "callback_query": {
            "id": "cb-1",
            "from": {"id": 9},
            "data": "start_preferences",
            "message": {"message_id": 10, "chat": {"id": 9}, "text": "Welcome"},
        },
    }

    client.post("/api/v1/webhook", json=update)

    assert sink.last_text == presenter.PROPERTY_TYPE_PROMPT
    assert sink.answers == [("cb-1", "")]
    assert store._sessions[9].stage == Stage.AWAITING_PROPERTY_TYPE


def test_unsupported_update_is_ignored(webhook):
    client, sink, _ = webhook

    response = client.post("/api/v1/webhook", json={"update_id": 4, "edited_message": {"text": "hi"}})

    assert response.json() == {"status": "ignored", "reason": "unsupported_update"}
    assert sink.sent == []


def test_wrong_secret_is_rejected(webhook, monkeypatch):
    client, sink, _ = webhook
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret")

    response = client.post(
        "/api/v1/webhook", json=HELP_UPDATE, headers={"X-Telegram-Bot-Api-Secret-Token": "nope"}
    )

    assert response.status_code == 403
    assert sink.sent == []


def test_matching_secret_is_accepted(webhook, monkeypatch):
    client, sink, _ = webhook
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret")

    response = client.post(
        "/api/v1/webhook", json=HELP_UPDATE, headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"}
    )

    assert response.status_code == 200
    assert sink.last_text == presenter.HELP_TEXT
