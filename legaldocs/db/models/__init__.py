from legaldocs.db.base import Base
from legaldocs.db.models.user import Profile
from legaldocs.db.models.document import Document
from legaldocs.db.models.collaboration import DocumentCollaborator, DocumentComment, DocumentPresence
from legaldocs.db.models.ai import AIMemoization
from legaldocs.db.models.billing import Credit

__all__ = [
    "Base",
    "Profile",
    "Document",
    "DocumentCollaborator",
    "DocumentComment",
    "DocumentPresence",
    "AIMemoization",
    "Credit"
]
