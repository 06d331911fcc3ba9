"""Domain models and API schemas."""

from brodesk.models.entities import (
    Actor,
    ActorRole,
    AttachmentEntity,
    CategoryEntity,
    CommentEntity,
    HistoryEntry,
    ProfileEntity,
    TeamEntity,
    TicketEntity,
    TicketPriority,
    TicketStatus,
)

__all__ = [
    "Actor",
    "ActorRole",
    "AttachmentEntity",
    "CategoryEntity",
    "CommentEntity",
    "HistoryEntry",
    "ProfileEntity",
    "TeamEntity",
    "TicketEntity",
    "TicketPriority",
    "TicketStatus",
]
