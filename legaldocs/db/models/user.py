from sqlalchemy import Column, String

from legaldocs.db.base import BaseModel


class Profile(BaseModel):
    """Копия пользователя внешнего провайдера аутентификации"""
    __tablename__ = "profiles"

    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
