"""Database repositories."""

from brodesk.repositories.actor_repository import ActorRepository
from brodesk.repositories.attachment_repository import AttachmentRepository
from brodesk.repositories.comment_repository import CommentRepository
from brodesk.repositories.health_repository import HealthRepository
from brodesk.repositories.history_repository import HistoryRepository
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository

__all__ = [
    "ActorRepository",
    "AttachmentRepository",
    "CommentRepository",
    "HealthRepository",
    "HistoryRepository",
    "ReferenceRepository",
    "TicketRepository",
]
