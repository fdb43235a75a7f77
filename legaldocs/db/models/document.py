from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship

from legaldocs.core.clock import utcnow
from legaldocs.db.base import BaseModel


class Document(BaseModel):
    __tablename__ = "documents"

    title = Column(String(255), nullable=False)
    content = Column(Text, default="")
    status = Column(String(20), default="draft", nullable=False)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    collaborators = relationship("DocumentCollaborator", back_populates="document", cascade="all, delete-orphan")
    comments = relationship("DocumentComment", back_populates="document", cascade="all, delete-orphan")
    presence = relationship("DocumentPresence", back_populates="document", cascade="all, delete-orphan")
