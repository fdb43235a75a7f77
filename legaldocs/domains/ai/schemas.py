from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
import uuid

from legaldocs.domains.ai.entities import ContentKind


class GenerateRequest(BaseModel):
    """Схема запроса генерации"""
    prompt: str = Field(..., min_length=1)
    kind: ContentKind = ContentKind.DOCUMENT_GENERATION
    document_id: uuid.UUID
    model: Optional[str] = Field(None, max_length=100)


class GenerateResponse(BaseModel):
    """Схема ответа генерации"""
    content: str
    model: str
    cached: bool

    model_config = ConfigDict(from_attributes=True)
