from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid

from legaldocs.core.clock import utcnow
from legaldocs.db.base import Base


class AIMemoization(Base):
    """Кэш ответов LLM, ключ - отпечаток запроса"""
    __tablename__ = "ai_memoization"

    fingerprint = Column(String(64), primary_key=True)
    document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    prompt = Column(Text, nullable=False)
    model = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
