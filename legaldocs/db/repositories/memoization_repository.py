from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
import uuid

from legaldocs.db.models import AIMemoization as MemoizationModel
from legaldocs.domains.ai.entities import ContentKind, MemoizedContent


class MemoizationRepository:
    """Репозиторий кэша ответов LLM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self,
        fingerprint: str,
        document_id: uuid.UUID,
        kind: ContentKind
    ) -> Optional[MemoizedContent]:
        """Запись по отпечатку в рамках документа и типа контента"""
        result = await self.session.execute(
            select(MemoizationModel).where(
                and_(
                    MemoizationModel.fingerprint == fingerprint,
                    MemoizationModel.document_id == document_id,
                    MemoizationModel.kind == kind.value
                )
            )
        )
        db_entry = result.scalar_one_or_none()
        return self._to_domain(db_entry) if db_entry else None

    async def save(self, entry: MemoizedContent) -> None:
        """Вставка или замена записи с тем же отпечатком"""
        await self.session.merge(MemoizationModel(
            fingerprint=entry.fingerprint,
            document_id=entry.document_id,
            kind=entry.kind.value,
            content=entry.content,
            prompt=entry.prompt,
            model=entry.model,
            created_at=entry.created_at,
            expires_at=entry.expires_at
        ))
        await self.session.commit()

    async def delete(self, fingerprint: str) -> bool:
        stmt = delete(MemoizationModel).where(MemoizationModel.fingerprint == fingerprint)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _to_domain(db_entry: MemoizationModel) -> MemoizedContent:
        return MemoizedContent(
            fingerprint=db_entry.fingerprint,
            document_id=db_entry.document_id,
            kind=ContentKind(db_entry.kind),
            content=db_entry.content,
            prompt=db_entry.prompt,
            model=db_entry.model,
            created_at=db_entry.created_at,
            expires_at=db_entry.expires_at
        )
