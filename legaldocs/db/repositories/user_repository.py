from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from legaldocs.db.models import Profile as ProfileModel
from legaldocs.domains.identity.entities import User


class UserRepository:
    """Репозиторий для чтения профилей пользователей"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Получение пользователя по id"""
        result = await self.session.execute(
            select(ProfileModel).where(ProfileModel.id == user_id)
        )
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Получение пользователя по email"""
        result = await self.session.execute(
            select(ProfileModel).where(ProfileModel.email == email)
        )
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    @staticmethod
    def _to_domain(db_user: ProfileModel) -> User:
        """Преобразование модели БД в доменную сущность"""
        return User(
            id=db_user.id,
            email=db_user.email,
            full_name=db_user.full_name,
            created_at=db_user.created_at
        )
