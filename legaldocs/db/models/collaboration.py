from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from legaldocs.core.clock import utcnow
from legaldocs.db.base import BaseModel


class DocumentCollaborator(BaseModel):
    __tablename__ = "document_collaborators"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_document_collaborators_document_user"),
    )

    document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    role = Column(String(20), nullable=False)
    added_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)

    # Relationships
    document = relationship("Document", back_populates="collaborators")
    user = relationship("Profile", foreign_keys=[user_id], lazy="joined")


class DocumentComment(BaseModel):
    __tablename__ = "document_comments"

    document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("document_comments.id", ondelete="CASCADE"), nullable=True)
    content = Column(Text, nullable=False)
    position_start = Column(Integer, nullable=True)
    position_end = Column(Integer, nullable=True)
    resolved = Column(Boolean, default=False, nullable=False)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    document = relationship("Document", back_populates="comments")
    user = relationship("Profile", foreign_keys=[user_id], lazy="joined")
    resolver = relationship("Profile", foreign_keys=[resolved_by], lazy="joined")


class DocumentPresence(BaseModel):
    __tablename__ = "document_presence"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_document_presence_document_user"),
    )

    document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    cursor_position = Column(Integer, nullable=True)
    last_seen_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    document = relationship("Document", back_populates="presence")
    user = relationship("Profile", foreign_keys=[user_id], lazy="joined")
