from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
import uuid

from legaldocs.core.clock import utcnow
from legaldocs.db.models import Credit as CreditModel


class CreditRepository:
    """Репозиторий баланса кредитов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_balance(self, user_id: uuid.UUID) -> int:
        """Текущий баланс, 0 если записи нет"""
        result = await self.session.execute(
            select(CreditModel.amount).where(CreditModel.user_id == user_id)
        )
        return result.scalar_one_or_none() or 0

    async def deduct(self, user_id: uuid.UUID, amount: int = 1) -> bool:
        """Списание кредитов одним UPDATE, баланс не уходит в минус"""
        stmt = (
            update(CreditModel)
            .where(
                and_(
                    CreditModel.user_id == user_id,
                    CreditModel.amount >= amount
                )
            )
            .values(amount=CreditModel.amount - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0
