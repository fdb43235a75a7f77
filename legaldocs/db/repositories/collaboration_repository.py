from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_
from sqlalchemy.exc import IntegrityError
import uuid
from datetime import datetime

from legaldocs.core.exceptions import DuplicateCollaboratorError
from legaldocs.db.changes import (
    ChangeEvent, ChangeFeed, change_feed,
    COLLABORATORS_TABLE, COMMENTS_TABLE, PRESENCE_TABLE
)
from legaldocs.db.models import (
    DocumentCollaborator as CollaboratorModel,
    DocumentComment as CommentModel,
    DocumentPresence as PresenceModel
)
from legaldocs.db.repositories.user_repository import UserRepository
from legaldocs.domains.collaboration.entities import (
    Collaborator, CollaboratorRole, Comment, PresenceRecord
)


class CollaboratorRepository:
    """Репозиторий для работы с соавторами документов"""

    def __init__(self, session: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed or change_feed

    async def list_by_document(self, document_id: uuid.UUID) -> List[Collaborator]:
        """Соавторы документа вместе с данными пользователя"""
        result = await self.session.execute(
            select(CollaboratorModel)
            .where(CollaboratorModel.document_id == document_id)
            .order_by(CollaboratorModel.created_at.asc())
        )
        return [self._to_domain(c) for c in result.scalars().all()]

    async def get_by_id(self, collaborator_id: uuid.UUID) -> Optional[Collaborator]:
        db_collaborator = await self._get_model(collaborator_id)
        return self._to_domain(db_collaborator) if db_collaborator else None

    async def create(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        role: CollaboratorRole,
        added_by: uuid.UUID
    ) -> Collaborator:
        """Добавление соавтора, уникальность пары (документ, пользователь) проверяет БД"""
        db_collaborator = CollaboratorModel(
            document_id=document_id,
            user_id=user_id,
            role=role.value,
            added_by=added_by
        )

        self.session.add(db_collaborator)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateCollaboratorError()

        self.feed.publish(ChangeEvent(COLLABORATORS_TABLE, document_id, "insert", db_collaborator.id))
        return await self.get_by_id(db_collaborator.id)

    async def delete(self, collaborator_id: uuid.UUID, document_id: uuid.UUID) -> bool:
        """Удаление соавтора"""
        stmt = delete(CollaboratorModel).where(
            and_(
                CollaboratorModel.id == collaborator_id,
                CollaboratorModel.document_id == document_id
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount > 0:
            self.feed.publish(ChangeEvent(COLLABORATORS_TABLE, document_id, "delete", collaborator_id))
            return True
        return False

    async def _get_model(self, collaborator_id: uuid.UUID) -> Optional[CollaboratorModel]:
        result = await self.session.execute(
            select(CollaboratorModel)
            .where(CollaboratorModel.id == collaborator_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(db_collaborator: CollaboratorModel) -> Collaborator:
        """Преобразование модели БД в доменную сущность"""
        return Collaborator(
            id=db_collaborator.id,
            document_id=db_collaborator.document_id,
            user_id=db_collaborator.user_id,
            role=CollaboratorRole(db_collaborator.role),
            added_by=db_collaborator.added_by,
            added_at=db_collaborator.created_at,
            user=UserRepository._to_domain(db_collaborator.user) if db_collaborator.user else None
        )


class CommentRepository:
    """Репозиторий для работы с комментариями"""

    def __init__(self, session: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed or change_feed

    async def list_by_document(self, document_id: uuid.UUID) -> List[Comment]:
        """Комментарии документа в порядке создания"""
        result = await self.session.execute(
            select(CommentModel)
            .where(CommentModel.document_id == document_id)
            .order_by(CommentModel.created_at.asc())
        )
        return [self._to_domain(c) for c in result.scalars().all()]

    async def get_by_id(self, comment_id: uuid.UUID) -> Optional[Comment]:
        db_comment = await self._get_model(comment_id)
        return self._to_domain(db_comment) if db_comment else None

    async def create(self, comment: Comment) -> Comment:
        """Создание нового комментария"""
        db_comment = CommentModel(
            id=comment.id,
            document_id=comment.document_id,
            user_id=comment.user_id,
            parent_id=comment.parent_id,
            content=comment.content,
            position_start=comment.position_start,
            position_end=comment.position_end,
            resolved=comment.resolved,
            created_at=comment.created_at,
            updated_at=comment.updated_at
        )

        self.session.add(db_comment)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise

        self.feed.publish(ChangeEvent(COMMENTS_TABLE, comment.document_id, "insert", comment.id))
        return await self.get_by_id(comment.id)

    async def update(self, comment: Comment) -> Optional[Comment]:
        """Обновление комментария на месте"""
        stmt = (
            update(CommentModel)
            .where(
                and_(
                    CommentModel.id == comment.id,
                    CommentModel.document_id == comment.document_id
                )
            )
            .values(
                content=comment.content,
                resolved=comment.resolved,
                resolved_at=comment.resolved_at,
                resolved_by=comment.resolved_by,
                updated_at=comment.updated_at
            )
        )

        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount == 0:
            return None

        self.feed.publish(ChangeEvent(COMMENTS_TABLE, comment.document_id, "update", comment.id))
        return await self.get_by_id(comment.id)

    async def delete(self, comment_id: uuid.UUID, document_id: uuid.UUID) -> bool:
        """Удаление комментария (без мягкого удаления)"""
        stmt = delete(CommentModel).where(
            and_(
                CommentModel.id == comment_id,
                CommentModel.document_id == document_id
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount > 0:
            self.feed.publish(ChangeEvent(COMMENTS_TABLE, document_id, "delete", comment_id))
            return True
        return False

    async def _get_model(self, comment_id: uuid.UUID) -> Optional[CommentModel]:
        result = await self.session.execute(
            select(CommentModel)
            .where(CommentModel.id == comment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(db_comment: CommentModel) -> Comment:
        """Преобразование модели БД в доменную сущность"""
        return Comment(
            id=db_comment.id,
            document_id=db_comment.document_id,
            user_id=db_comment.user_id,
            content=db_comment.content,
            parent_id=db_comment.parent_id,
            position_start=db_comment.position_start,
            position_end=db_comment.position_end,
            resolved=db_comment.resolved,
            resolved_at=db_comment.resolved_at,
            resolved_by=db_comment.resolved_by,
            created_at=db_comment.created_at,
            updated_at=db_comment.updated_at,
            user=UserRepository._to_domain(db_comment.user) if db_comment.user else None,
            resolver=UserRepository._to_domain(db_comment.resolver) if db_comment.resolver else None
        )


class PresenceRepository:
    """Репозиторий для записей присутствия пользователей"""

    def __init__(self, session: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed or change_feed

    async def list_active(self, document_id: uuid.UUID, since: datetime) -> List[PresenceRecord]:
        """Записи присутствия, обновленные позже `since`"""
        result = await self.session.execute(
            select(PresenceModel)
            .where(
                and_(
                    PresenceModel.document_id == document_id,
                    PresenceModel.last_seen_at > since
                )
            )
            .order_by(PresenceModel.last_seen_at.desc())
        )
        return [self._to_domain(p) for p in result.scalars().all()]

    async def get(self, document_id: uuid.UUID, user_id: uuid.UUID) -> Optional[PresenceRecord]:
        result = await self.session.execute(
            select(PresenceModel)
            .where(
                and_(
                    PresenceModel.document_id == document_id,
                    PresenceModel.user_id == user_id
                )
            )
            .execution_options(populate_existing=True)
        )
        db_presence = result.scalar_one_or_none()
        return self._to_domain(db_presence) if db_presence else None

    async def upsert(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        seen_at: datetime,
        cursor_position: Optional[int] = None
    ) -> PresenceRecord:
        """Обновление записи присутствия или создание новой.

        Без `cursor_position` сохраненная позиция курсора не меняется.
        """
        values = {"last_seen_at": seen_at}
        if cursor_position is not None:
            values["cursor_position"] = cursor_position

        event_type = "update"
        updated = await self._update(document_id, user_id, values)

        # Если записи нет, создаем новую
        if not updated:
            self.session.add(PresenceModel(
                document_id=document_id,
                user_id=user_id,
                cursor_position=cursor_position,
                last_seen_at=seen_at
            ))
            try:
                await self.session.commit()
                event_type = "insert"
            except IntegrityError:
                # Параллельный клиент успел создать запись
                await self.session.rollback()
                await self._update(document_id, user_id, values)

        self.feed.publish(ChangeEvent(PRESENCE_TABLE, document_id, event_type))
        return await self.get(document_id, user_id)

    async def delete(self, document_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Удаление записи присутствия пользователя"""
        stmt = delete(PresenceModel).where(
            and_(
                PresenceModel.document_id == document_id,
                PresenceModel.user_id == user_id
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount > 0:
            self.feed.publish(ChangeEvent(PRESENCE_TABLE, document_id, "delete"))
            return True
        return False

    async def delete_stale(self, document_id: uuid.UUID, before: datetime) -> int:
        """Удаление записей документа, не обновлявшихся с `before`"""
        stmt = delete(PresenceModel).where(
            and_(
                PresenceModel.document_id == document_id,
                PresenceModel.last_seen_at < before
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        if result.rowcount > 0:
            self.feed.publish(ChangeEvent(PRESENCE_TABLE, document_id, "delete"))
        return result.rowcount

    async def _update(self, document_id: uuid.UUID, user_id: uuid.UUID, values: dict) -> bool:
        stmt = (
            update(PresenceModel)
            .where(
                and_(
                    PresenceModel.document_id == document_id,
                    PresenceModel.user_id == user_id
                )
            )
            .values(**values)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return False

        await self.session.commit()
        return True

    @staticmethod
    def _to_domain(db_presence: PresenceModel) -> PresenceRecord:
        """Преобразование модели БД в доменную сущность"""
        return PresenceRecord(
            id=db_presence.id,
            document_id=db_presence.document_id,
            user_id=db_presence.user_id,
            last_seen_at=db_presence.last_seen_at,
            cursor_position=db_presence.cursor_position,
            user=UserRepository._to_domain(db_presence.user) if db_presence.user else None
        )
