import uuid
from datetime import datetime
from typing import Optional


class User:
    """Сущность пользователя (профиль внешнего провайдера аутентификации)"""

    def __init__(
        self,
        id: uuid.UUID,
        email: str,
        full_name: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        self.id = id
        self.email = email
        self.full_name = full_name
        self.created_at = created_at

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"
