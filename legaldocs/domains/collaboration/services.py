import logging
from typing import Optional, List, Callable
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from legaldocs.core.clock import utcnow
from legaldocs.core.exceptions import NotFoundError
from legaldocs.db.changes import ChangeFeed
from legaldocs.db.repositories.collaboration_repository import (
    CollaboratorRepository, CommentRepository, PresenceRepository
)
from legaldocs.db.repositories.user_repository import UserRepository
from legaldocs.domains.collaboration.entities import (
    Collaborator, CollaboratorRole, Comment, PresenceRecord, PRESENCE_WINDOW
)

logger = logging.getLogger(__name__)


class CollaborationService:
    """Сервис для соавторов, комментариев и присутствия в документе"""

    def __init__(
        self,
        session: AsyncSession,
        feed: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = utcnow,
        presence_window: timedelta = PRESENCE_WINDOW
    ):
        self.session = session
        self.user_repository = UserRepository(session)
        self.collaborator_repository = CollaboratorRepository(session, feed)
        self.comment_repository = CommentRepository(session, feed)
        self.presence_repository = PresenceRepository(session, feed)
        self.clock = clock
        self.presence_window = presence_window

    # Соавторы

    async def list_collaborators(self, document_id: uuid.UUID) -> List[Collaborator]:
        return await self.collaborator_repository.list_by_document(document_id)

    async def add_collaborator(
        self,
        document_id: uuid.UUID,
        email: str,
        role: CollaboratorRole,
        added_by: uuid.UUID
    ) -> Collaborator:
        """Добавление соавтора по email"""
        user = await self.user_repository.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        collaborator = await self.collaborator_repository.create(
            document_id=document_id,
            user_id=user.id,
            role=role,
            added_by=added_by
        )
        logger.info(f"User {user.id} added to document {document_id} as {role.value}")
        return collaborator

    async def remove_collaborator(self, document_id: uuid.UUID, collaborator_id: uuid.UUID) -> None:
        if not await self.collaborator_repository.delete(collaborator_id, document_id):
            raise NotFoundError("Collaborator not found")

    # Комментарии

    async def list_comments(self, document_id: uuid.UUID) -> List[Comment]:
        return await self.comment_repository.list_by_document(document_id)

    async def add_comment(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
        position_start: Optional[int] = None,
        position_end: Optional[int] = None
    ) -> Comment:
        """Создание комментария от имени пользователя"""
        comment = Comment.create_comment(
            document_id=document_id,
            user_id=user_id,
            content=content,
            parent_id=parent_id,
            position_start=position_start,
            position_end=position_end,
            created_at=self.clock()
        )
        return await self.comment_repository.create(comment)

    async def update_comment(self, document_id: uuid.UUID, comment_id: uuid.UUID, content: str) -> Comment:
        comment = await self._get_comment(document_id, comment_id)
        comment.edit(content, at=self.clock())
        return await self._save_comment(comment)

    async def resolve_comment(
        self,
        document_id: uuid.UUID,
        comment_id: uuid.UUID,
        resolved_by: uuid.UUID
    ) -> Comment:
        """Отметка комментария решенным: resolved_at и resolved_by заполняются вместе"""
        comment = await self._get_comment(document_id, comment_id)
        comment.resolve(resolved_by, at=self.clock())
        return await self._save_comment(comment)

    async def delete_comment(self, document_id: uuid.UUID, comment_id: uuid.UUID) -> None:
        if not await self.comment_repository.delete(comment_id, document_id):
            raise NotFoundError("Comment not found")

    # Присутствие

    async def active_presence(self, document_id: uuid.UUID) -> List[PresenceRecord]:
        """Пользователи, активные в окне присутствия"""
        since = self.clock() - self.presence_window
        return await self.presence_repository.list_active(document_id, since)

    async def touch_presence(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        cursor_position: Optional[int] = None
    ) -> PresenceRecord:
        return await self.presence_repository.upsert(
            document_id,
            user_id,
            seen_at=self.clock(),
            cursor_position=cursor_position
        )

    async def leave(self, document_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await self.presence_repository.delete(document_id, user_id)

    async def sweep_stale_presence(self, document_id: uuid.UUID) -> int:
        """Удаление устаревших записей присутствия документа"""
        removed = await self.presence_repository.delete_stale(
            document_id,
            before=self.clock() - self.presence_window
        )
        if removed:
            logger.debug(f"Swept {removed} stale presence records of document {document_id}")
        return removed

    async def _get_comment(self, document_id: uuid.UUID, comment_id: uuid.UUID) -> Comment:
        comment = await self.comment_repository.get_by_id(comment_id)
        if not comment or comment.document_id != document_id:
            raise NotFoundError("Comment not found")
        return comment

    async def _save_comment(self, comment: Comment) -> Comment:
        updated = await self.comment_repository.update(comment)
        if not updated:
            raise NotFoundError("Comment not found")
        return updated
