from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from typing import Optional
import asyncio
import logging
import uuid

from legaldocs.api.http.collaboration import build_snapshot
from legaldocs.core.auth import authenticate_token
from legaldocs.core.db import get_session_factory
from legaldocs.core.notifications import Notifier
from legaldocs.core.security import extract_token_from_header
from legaldocs.db.changes import change_feed, COLLABORATORS_TABLE, COMMENTS_TABLE
from legaldocs.domains.collaboration.schemas import (
    CollaboratorResponse, CommentResponse, PresenceResponse
)
from legaldocs.domains.collaboration.state import DocumentCollaboration

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_collection(collaboration: DocumentCollaboration, name: str) -> dict:
    """Сообщение с полной коллекцией для клиента"""
    if name == "presence":
        data = [PresenceResponse.model_validate(p).model_dump(mode="json") for p in collaboration.active_users]
    elif name == "comments":
        data = [CommentResponse.model_validate(c).model_dump(mode="json") for c in collaboration.comments]
    else:
        data = [CollaboratorResponse.model_validate(c).model_dump(mode="json") for c in collaboration.collaborators]
    return {"type": name, "data": data}


@router.websocket("/ws/documents/{document_id}/presence")
async def presence_endpoint(
    websocket: WebSocket,
    document_id: uuid.UUID,
    token: Optional[str] = None,
    session_factory=Depends(get_session_factory)
):
    """WebSocket эндпоинт присутствия и обновлений совместной работы"""
    token = token or extract_token_from_header(websocket.headers.get("authorization"))
    async with session_factory() as session:
        user = await authenticate_token(token, session)

    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    # Все исходящие сообщения идут через одну очередь и одну задачу отправки
    outbox: asyncio.Queue = asyncio.Queue()
    notifier = Notifier()
    notifier.add_listener(
        lambda notification: outbox.put_nowait({"type": "notification", "data": notification.to_dict()})
    )

    collaboration = DocumentCollaboration(
        document_id,
        user.id,
        session_factory=session_factory,
        notifier=notifier,
        on_change=lambda name: outbox.put_nowait(serialize_collection(collaboration, name))
    )
    await collaboration.load()
    await websocket.send_json({"type": "snapshot", "data": build_snapshot(collaboration).model_dump(mode="json")})

    async def on_comments_change(event):
        await collaboration.refresh_comments()

    async def on_collaborators_change(event):
        await collaboration.refresh_collaborators()

    unsubscribers = [
        change_feed.subscribe(COMMENTS_TABLE, document_id, on_comments_change),
        change_feed.subscribe(COLLABORATORS_TABLE, document_id, on_collaborators_change),
    ]

    async def sender():
        while True:
            message = await outbox.get()
            await websocket.send_json(message)

    heartbeat = await collaboration.activate()
    sender_task = asyncio.create_task(sender())
    logger.info(f"WebSocket opened for user {user.id} on document {document_id}")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError as e:
                logger.warning(f"Ignoring malformed message from user {user.id}: {e}")
                continue

            if not isinstance(message, dict):
                logger.warning(f"Ignoring non-object message from user {user.id}")
                continue

            message_type = message.get("type")

            if message_type == "cursor":
                position = message.get("position")
                if isinstance(position, int) and position >= 0:
                    try:
                        await collaboration.update_cursor_position(position)
                    except Exception as e:
                        # Уведомление уже отправлено через notifier
                        logger.warning(f"Cursor update rejected for user {user.id}: {e}")
            elif message_type == "ping":
                outbox.put_nowait({"type": "pong"})

    except WebSocketDisconnect:
        logger.info(f"User {user.id} disconnected from document {document_id}")

    except Exception as e:
        logger.error(f"WebSocket error for user {user.id} on document {document_id}: {e}")

    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        sender_task.cancel()
        await asyncio.gather(sender_task, return_exceptions=True)
        await heartbeat.close()
