from pydantic import BaseModel, ConfigDict
from typing import Optional
import uuid


class UserSnapshot(BaseModel):
    """Данные пользователя только для отображения"""
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
