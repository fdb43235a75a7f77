from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from legaldocs.db.models import Document as DocumentModel


class DocumentRepository:
    """Документы принадлежат внешнему хранилищу, здесь только проверка существования"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, document_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(DocumentModel.id).where(DocumentModel.id == document_id)
        )
        return result.scalar_one_or_none() is not None
