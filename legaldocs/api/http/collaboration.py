from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from legaldocs.core.auth import get_current_user
from legaldocs.core.db import get_db, get_session_factory
from legaldocs.core.exceptions import NotFoundError, DuplicateCollaboratorError
from legaldocs.db.repositories.document_repository import DocumentRepository
from legaldocs.domains.collaboration.schemas import (
    CollaboratorCreate, CollaboratorResponse, CommentCreate, CommentUpdate,
    CommentResponse, PresenceUpdate, PresenceResponse, CollaborationSnapshotResponse
)
from legaldocs.domains.collaboration.services import CollaborationService
from legaldocs.domains.collaboration.state import DocumentCollaboration
from legaldocs.domains.identity.entities import User

router = APIRouter(prefix="/documents/{document_id}", tags=["collaboration"])


async def get_document_id(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
) -> uuid.UUID:
    """Проверка существования документа"""
    if not await DocumentRepository(db).exists(document_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found"
        )
    return document_id


def build_snapshot(collaboration: DocumentCollaboration) -> CollaborationSnapshotResponse:
    return CollaborationSnapshotResponse(
        document_id=collaboration.document_id,
        state=collaboration.state,
        error=collaboration.error,
        collaborators=[CollaboratorResponse.model_validate(c) for c in collaboration.collaborators],
        comments=[CommentResponse.model_validate(c) for c in collaboration.comments],
        active_users=[PresenceResponse.model_validate(p) for p in collaboration.active_users]
    )


@router.get("/collaboration", response_model=CollaborationSnapshotResponse)
async def get_collaboration(
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    session_factory=Depends(get_session_factory)
):
    """Соавторы, комментарии и активные пользователи документа.

    Ошибка загрузки не превращается в HTTP ошибку: возвращаются пустые
    коллекции и состояние failed.
    """
    collaboration = DocumentCollaboration(document_id, current_user.id, session_factory=session_factory)
    await collaboration.load()
    return build_snapshot(collaboration)


@router.post("/collaborators", response_model=CollaboratorResponse, status_code=status.HTTP_201_CREATED)
async def add_collaborator(
    collaborator_data: CollaboratorCreate,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Добавление соавтора по email"""
    collaboration_service = CollaborationService(db)

    try:
        collaborator = await collaboration_service.add_collaborator(
            document_id,
            collaborator_data.email,
            collaborator_data.role,
            added_by=current_user.id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateCollaboratorError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return CollaboratorResponse.model_validate(collaborator)


@router.delete("/collaborators/{collaborator_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_collaborator(
    collaborator_id: uuid.UUID,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Удаление соавтора"""
    try:
        await CollaborationService(db).remove_collaborator(document_id, collaborator_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    comment_data: CommentCreate,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Создание комментария"""
    comment = await CollaborationService(db).add_comment(
        document_id,
        current_user.id,
        comment_data.content,
        parent_id=comment_data.parent_id,
        position_start=comment_data.position_start,
        position_end=comment_data.position_end
    )
    return CommentResponse.model_validate(comment)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: uuid.UUID,
    update_data: CommentUpdate,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Изменение текста комментария"""
    try:
        comment = await CollaborationService(db).update_comment(document_id, comment_id, update_data.content)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return CommentResponse.model_validate(comment)


@router.post("/comments/{comment_id}/resolve", response_model=CommentResponse)
async def resolve_comment(
    comment_id: uuid.UUID,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Отметка комментария решенным"""
    try:
        comment = await CollaborationService(db).resolve_comment(document_id, comment_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: uuid.UUID,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Удаление комментария"""
    try:
        await CollaborationService(db).delete_comment(document_id, comment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/presence", response_model=PresenceResponse)
async def update_presence(
    presence_data: PresenceUpdate,
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Heartbeat присутствия и позиция курсора"""
    presence = await CollaborationService(db).touch_presence(
        document_id,
        current_user.id,
        cursor_position=presence_data.cursor_position
    )
    return PresenceResponse.model_validate(presence)


@router.delete("/presence", status_code=status.HTTP_204_NO_CONTENT)
async def leave_document(
    document_id: uuid.UUID = Depends(get_document_id),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Выход из документа"""
    await CollaborationService(db).leave(document_id, current_user.id)
