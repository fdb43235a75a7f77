import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from legaldocs.core.clock import utcnow
from legaldocs.domains.identity.entities import User


# Окно активности: запись присутствия старше считается устаревшей
PRESENCE_WINDOW = timedelta(minutes=5)


class CollaboratorRole(Enum):
    """Роли соавторов документа"""
    VIEWER = "viewer"
    EDITOR = "editor"


class CollaborationState(Enum):
    """Состояние данных совместной работы для одного документа"""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Collaborator:
    """Пользователь, получивший доступ к конкретному документу"""

    def __init__(
        self,
        id: uuid.UUID,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        role: CollaboratorRole,
        added_by: uuid.UUID,
        added_at: Optional[datetime] = None,
        user: Optional[User] = None
    ):
        self.id = id
        self.document_id = document_id
        self.user_id = user_id
        self.role = role
        self.added_by = added_by
        self.added_at = added_at or utcnow()
        self.user = user

    def __eq__(self, other) -> bool:
        if not isinstance(other, Collaborator):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Collaborator(id={self.id}, user_id={self.user_id}, role={self.role.value})"


class Comment:
    """Комментарий к документу, может быть привязан к фрагменту текста"""

    def __init__(
        self,
        id: uuid.UUID,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
        position_start: Optional[int] = None,
        position_end: Optional[int] = None,
        resolved: bool = False,
        resolved_at: Optional[datetime] = None,
        resolved_by: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        user: Optional[User] = None,
        resolver: Optional[User] = None
    ):
        if resolved and (resolved_at is None or resolved_by is None):
            raise ValueError("Resolved comment must have resolved_at and resolved_by")

        self.id = id
        self.document_id = document_id
        self.user_id = user_id
        self.content = content
        self.parent_id = parent_id
        self.position_start = position_start
        self.position_end = position_end
        self.resolved = resolved
        self.resolved_at = resolved_at
        self.resolved_by = resolved_by
        self.created_at = created_at or utcnow()
        self.updated_at = updated_at or self.created_at
        self.user = user
        self.resolver = resolver

    def edit(self, content: str, at: Optional[datetime] = None) -> None:
        """Изменение текста комментария"""
        self.content = content
        self.updated_at = at or utcnow()

    def resolve(self, user_id: uuid.UUID, at: Optional[datetime] = None) -> None:
        """Отметка комментария как решенного"""
        self.resolved = True
        self.resolved_by = user_id
        self.resolved_at = at or utcnow()
        self.updated_at = self.resolved_at

    @classmethod
    def create_comment(
        cls,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        content: str,
        parent_id: Optional[uuid.UUID] = None,
        position_start: Optional[int] = None,
        position_end: Optional[int] = None,
        created_at: Optional[datetime] = None
    ) -> "Comment":
        """Создание нового комментария"""
        return cls(
            id=uuid.uuid4(),
            document_id=document_id,
            user_id=user_id,
            content=content,
            parent_id=parent_id,
            position_start=position_start,
            position_end=position_end,
            created_at=created_at
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Comment):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Comment(id={self.id}, user_id={self.user_id}, resolved={self.resolved})"


class PresenceRecord:
    """Запись присутствия пользователя в документе"""

    def __init__(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        last_seen_at: datetime,
        cursor_position: Optional[int] = None,
        id: Optional[uuid.UUID] = None,
        user: Optional[User] = None
    ):
        self.id = id
        self.document_id = document_id
        self.user_id = user_id
        self.last_seen_at = last_seen_at
        self.cursor_position = cursor_position
        self.user = user

    def is_active(self, now: Optional[datetime] = None, window: timedelta = PRESENCE_WINDOW) -> bool:
        """Активна ли запись в окне присутствия"""
        now = now or utcnow()
        return now - self.last_seen_at < window

    def __eq__(self, other) -> bool:
        if not isinstance(other, PresenceRecord):
            return False
        return self.document_id == other.document_id and self.user_id == other.user_id

    def __repr__(self) -> str:
        return f"PresenceRecord(user_id={self.user_id}, last_seen_at={self.last_seen_at})"
