"""Tests for the presence WebSocket."""
import time
import uuid

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from legaldocs.core.db import get_db, get_session_factory
from legaldocs.db.models import Base, Document
from legaldocs.db.repositories.collaboration_repository import PresenceRepository
from legaldocs.domains.identity.entities import User
from legaldocs.main import app

from tests.conftest import auth_headers, create_user, token_for


class WebSocketScenario:
    """Running app plus seeded users and document."""

    def __init__(self, client: TestClient, session_factory, alice: User, bob: User, document_id: uuid.UUID):
        self.client = client
        self.session_factory = session_factory
        self.alice = alice
        self.bob = bob
        self.document_id = document_id

    def url(self, user: User) -> str:
        return f"/ws/documents/{self.document_id}/presence?token={token_for(user)}"

    def presence_of(self, user: User):
        async def fetch():
            async with self.session_factory() as session:
                return await PresenceRepository(session).get(self.document_id, user.id)

        return self.client.portal.call(fetch)


async def seed_database(engine, session_factory):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        alice = await create_user(session, "alice@example.com", "Alice Owner")
        bob = await create_user(session, "bob@example.com", "Bob Reviewer")
        document = Document(title="Master Services Agreement", content="", owner_id=alice.id)
        session.add(document)
        await session.commit()
        return alice, bob, document.id


@pytest.fixture
def scenario(tmp_path):
    """
    The TestClient runs the app on its own event loop, so the database is
    built and seeded through the client's portal and connections are not pooled.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ws.db'}", poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        alice, bob, document_id = test_client.portal.call(seed_database, engine, session_factory)
        yield WebSocketScenario(test_client, session_factory, alice, bob, document_id)
        test_client.portal.call(engine.dispose)

    app.dependency_overrides.clear()


def receive_until(websocket, message_type: str, predicate=lambda data: True, limit: int = 10) -> dict:
    """Read messages until one of the given type satisfies predicate."""
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type and predicate(message.get("data")):
            return message
    raise AssertionError(f"no matching {message_type} message within {limit} messages")


def user_ids(data: list) -> set:
    return {item["user_id"] for item in data}


# =============================================================================
# Аутентификация
# =============================================================================


def test__presence_websocket__rejects_missing_token(scenario: WebSocketScenario) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with scenario.client.websocket_connect(f"/ws/documents/{scenario.document_id}/presence"):
            pass

    assert exc_info.value.code == 1008


def test__presence_websocket__rejects_invalid_token(scenario: WebSocketScenario) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with scenario.client.websocket_connect(
            f"/ws/documents/{scenario.document_id}/presence?token=not-a-jwt"
        ):
            pass

    assert exc_info.value.code == 1008


# =============================================================================
# Сообщения
# =============================================================================


def test__presence_websocket__sends_snapshot_then_own_presence(scenario: WebSocketScenario) -> None:
    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        snapshot = websocket.receive_json()

        assert snapshot["type"] == "snapshot"
        assert snapshot["data"]["document_id"] == str(scenario.document_id)
        assert snapshot["data"]["state"] == "ready"
        assert snapshot["data"]["comments"] == []

        presence = websocket.receive_json()
        assert presence["type"] == "presence"
        assert user_ids(presence["data"]) == {str(scenario.alice.id)}


def test__presence_websocket__cursor_message_updates_row(scenario: WebSocketScenario) -> None:
    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        websocket.send_json({"type": "cursor", "position": 17})

        message = receive_until(
            websocket,
            "presence",
            lambda data: any(item["cursor_position"] == 17 for item in data),
        )

        assert user_ids(message["data"]) == {str(scenario.alice.id)}
        assert scenario.presence_of(scenario.alice).cursor_position == 17


def test__presence_websocket__ping_answered_with_pong(scenario: WebSocketScenario) -> None:
    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        websocket.send_json({"type": "ping"})

        assert receive_until(websocket, "pong") == {"type": "pong"}


def test__presence_websocket__malformed_messages_are_skipped(scenario: WebSocketScenario) -> None:
    """Frames that are not JSON objects do not close the connection."""
    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        websocket.send_text("not json")
        websocket.send_json([1, 2, 3])
        websocket.send_json({"type": "ping"})

        assert receive_until(websocket, "pong") == {"type": "pong"}


def test__presence_websocket__pushes_changes_from_other_users(scenario: WebSocketScenario) -> None:
    """Comment, collaborator and presence writes made over HTTP reach the open socket."""
    base = f"/documents/{scenario.document_id}"

    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        receive_until(websocket, "presence")

        response = scenario.client.post(
            f"{base}/comments", json={"content": "Limit liability to fees paid"}, headers=auth_headers(scenario.bob)
        )
        assert response.status_code == 201
        comments = receive_until(websocket, "comments", lambda data: len(data) == 1)
        assert comments["data"][0]["content"] == "Limit liability to fees paid"
        assert comments["data"][0]["user"]["email"] == scenario.bob.email

        response = scenario.client.post(
            f"{base}/collaborators", json={"email": scenario.bob.email, "role": "editor"},
            headers=auth_headers(scenario.alice),
        )
        assert response.status_code == 201
        collaborators = receive_until(websocket, "collaborators", lambda data: len(data) == 1)
        assert collaborators["data"][0]["user_id"] == str(scenario.bob.id)

        response = scenario.client.put(f"{base}/presence", json={}, headers=auth_headers(scenario.bob))
        assert response.status_code == 200
        presence = receive_until(websocket, "presence", lambda data: len(data) == 2)
        assert user_ids(presence["data"]) == {str(scenario.alice.id), str(scenario.bob.id)}


def test__presence_websocket__disconnect_removes_own_presence(scenario: WebSocketScenario) -> None:
    with scenario.client.websocket_connect(scenario.url(scenario.alice)) as websocket:
        receive_until(websocket, "presence")
        assert scenario.presence_of(scenario.alice) is not None

    deadline = time.monotonic() + 2
    while scenario.presence_of(scenario.alice) is not None:
        assert time.monotonic() < deadline, "presence row still present after disconnect"
        time.sleep(0.02)
