from legaldocs.domains.collaboration.entities import (
    CollaboratorRole, CollaborationState, Collaborator, Comment, PresenceRecord, PRESENCE_WINDOW
)
from legaldocs.domains.collaboration.schemas import (
    CollaboratorCreate, CollaboratorResponse, CommentCreate, CommentUpdate,
    CommentResponse, PresenceUpdate, PresenceResponse, CollaborationSnapshotResponse
)

__all__ = [
    "CollaboratorRole", "CollaborationState", "Collaborator", "Comment",
    "PresenceRecord", "PRESENCE_WINDOW",
    "CollaboratorCreate", "CollaboratorResponse", "CommentCreate", "CommentUpdate",
    "CommentResponse", "PresenceUpdate", "PresenceResponse", "CollaborationSnapshotResponse"
]
