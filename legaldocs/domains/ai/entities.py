import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from legaldocs.core.clock import utcnow


class ContentKind(Enum):
    """Типы генерируемого контента"""
    SUMMARY = "summary"
    RISK_ANALYSIS = "risk_analysis"
    DOCUMENT_GENERATION = "document_generation"


class MemoizedContent:
    """Закэшированный ответ LLM для конкретного документа"""

    def __init__(
        self,
        fingerprint: str,
        document_id: uuid.UUID,
        kind: ContentKind,
        content: str,
        prompt: str,
        model: str,
        created_at: datetime,
        expires_at: datetime
    ):
        self.fingerprint = fingerprint
        self.document_id = document_id
        self.kind = kind
        self.content = content
        self.prompt = prompt
        self.model = model
        self.created_at = created_at
        self.expires_at = expires_at

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Запись действительна только пока now < expires_at"""
        return self.expires_at <= (now or utcnow())

    @classmethod
    def create_entry(
        cls,
        fingerprint: str,
        document_id: uuid.UUID,
        kind: ContentKind,
        content: str,
        prompt: str,
        model: str,
        ttl_hours: float,
        now: Optional[datetime] = None
    ) -> "MemoizedContent":
        now = now or utcnow()
        return cls(
            fingerprint=fingerprint,
            document_id=document_id,
            kind=kind,
            content=content,
            prompt=prompt,
            model=model,
            created_at=now,
            expires_at=now + timedelta(hours=ttl_hours)
        )

    def __repr__(self) -> str:
        return f"MemoizedContent(fingerprint={self.fingerprint[:12]}, kind={self.kind.value}, expires_at={self.expires_at})"


class GenerationResult:
    """Результат генерации: контент и признак попадания в кэш"""

    def __init__(self, content: str, model: str, cached: bool):
        self.content = content
        self.model = model
        self.cached = cached

    def __repr__(self) -> str:
        return f"GenerationResult(model={self.model}, cached={self.cached})"
