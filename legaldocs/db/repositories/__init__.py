from legaldocs.db.repositories.user_repository import UserRepository
from legaldocs.db.repositories.document_repository import DocumentRepository
from legaldocs.db.repositories.collaboration_repository import (
    CollaboratorRepository, CommentRepository, PresenceRepository
)
from legaldocs.db.repositories.memoization_repository import MemoizationRepository
from legaldocs.db.repositories.credit_repository import CreditRepository

__all__ = [
    "UserRepository",
    "DocumentRepository",
    "CollaboratorRepository",
    "CommentRepository",
    "PresenceRepository",
    "MemoizationRepository",
    "CreditRepository"
]
