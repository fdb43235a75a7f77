from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid

from legaldocs.core.clock import utcnow
from legaldocs.db.base import BaseModel


class Credit(BaseModel):
    __tablename__ = "credits"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), unique=True, nullable=False)
    amount = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
