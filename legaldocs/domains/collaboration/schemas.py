from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from legaldocs.domains.collaboration.entities import CollaboratorRole, CollaborationState
from legaldocs.domains.identity.schemas import UserSnapshot


class CollaboratorCreate(BaseModel):
    """Схема для добавления соавтора"""
    email: EmailStr
    role: CollaboratorRole = CollaboratorRole.VIEWER


class CollaboratorResponse(BaseModel):
    """Схема для ответа с данными соавтора"""
    id: uuid.UUID
    document_id: uuid.UUID
    user_id: uuid.UUID
    role: CollaboratorRole
    added_by: uuid.UUID
    added_at: datetime
    user: Optional[UserSnapshot] = None

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    """Схема для создания комментария"""
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: Optional[uuid.UUID] = None
    position_start: Optional[int] = Field(None, ge=0)
    position_end: Optional[int] = Field(None, ge=0)

    @field_validator('position_end')
    @classmethod
    def validate_position(cls, v, info):
        values = info.data if hasattr(info, 'data') else {}
        position_start = values.get('position_start')
        if v is not None and position_start is None:
            raise ValueError('Position end requires position start')
        if v is not None and v < position_start:
            raise ValueError('Position end must be greater or equal to position start')
        return v


class CommentUpdate(BaseModel):
    """Схема для изменения комментария"""
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    """Схема для ответа с данными комментария"""
    id: uuid.UUID
    document_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    parent_id: Optional[uuid.UUID] = None
    position_start: Optional[int] = None
    position_end: Optional[int] = None
    resolved: bool
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSnapshot] = None
    resolver: Optional[UserSnapshot] = None

    model_config = ConfigDict(from_attributes=True)


class PresenceUpdate(BaseModel):
    """Схема для обновления присутствия (heartbeat или курсор)"""
    cursor_position: Optional[int] = Field(None, ge=0)


class PresenceResponse(BaseModel):
    """Схема для ответа с записью присутствия"""
    document_id: uuid.UUID
    user_id: uuid.UUID
    cursor_position: Optional[int] = None
    last_seen_at: datetime
    user: Optional[UserSnapshot] = None

    model_config = ConfigDict(from_attributes=True)


class CollaborationSnapshotResponse(BaseModel):
    """Схема для полного состояния совместной работы над документом"""
    document_id: uuid.UUID
    state: CollaborationState
    error: Optional[str] = None
    collaborators: List[CollaboratorResponse]
    comments: List[CommentResponse]
    active_users: List[PresenceResponse]
