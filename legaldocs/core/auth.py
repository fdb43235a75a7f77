from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from legaldocs.core.db import get_db
from legaldocs.core.security import user_id_from_token
from legaldocs.db.repositories.user_repository import UserRepository
from legaldocs.domains.identity.entities import User

security = HTTPBearer(auto_error=False)


async def authenticate_token(token: Optional[str], session: AsyncSession) -> Optional[User]:
    """Пользователь по токену или None"""
    if not token:
        return None

    user_id = user_id_from_token(token)
    if user_id is None:
        return None

    return await UserRepository(session).get_by_id(user_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Зависимость для получения текущего пользователя"""
    token = credentials.credentials if credentials else None
    user = await authenticate_token(token, db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
