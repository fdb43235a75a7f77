from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from legaldocs.core.config import settings

# Асинхронный движок
engine = create_async_engine(settings.database_url, future=True, echo=settings.sql_echo)

# Сессии
SessionLocal = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Функция для dependency injection в FastAPI
async def get_db():
    async with SessionLocal() as session:
        yield session


def get_session_factory():
    """Фабрика сессий для компонентов, которым нужно несколько сессий одновременно"""
    return SessionLocal
