import uuid
from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import declarative_base

from legaldocs.core.clock import utcnow

# Базовый класс для моделей
Base = declarative_base()


class BaseModel(Base):
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=utcnow, nullable=False)
