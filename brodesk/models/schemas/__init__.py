"""Pydantic schema definitions."""

from brodesk.models.schemas.analysis import AnalysisRequest, AnalysisResponse
from brodesk.models.schemas.analytics import AnalyticsRead, AnalyticsResponse
from brodesk.models.schemas.attachment import (
    AttachmentCreateRequest,
    AttachmentDataResponse,
    AttachmentListResponse,
    AttachmentRead,
)
from brodesk.models.schemas.board import BoardCommand, BoardSnapshot
from brodesk.models.schemas.comment import (
    CommentCreateRequest,
    CommentDataResponse,
    CommentListResponse,
    CommentRead,
)
from brodesk.models.schemas.health import HealthResponse, StoreHealth
from brodesk.models.schemas.history import HistoryListResponse, HistoryRead
from brodesk.models.schemas.reference import CategoryListResponse, TeamListResponse
from brodesk.models.schemas.ticket import (
    AssignmentUpdateRequest,
    PriorityUpdateRequest,
    StatusUpdateRequest,
    TicketDataResponse,
    TicketListMeta,
    TicketListResponse,
    TicketRead,
    TicketSubmitRequest,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalyticsRead",
    "AnalyticsResponse",
    "AssignmentUpdateRequest",
    "AttachmentCreateRequest",
    "AttachmentDataResponse",
    "AttachmentListResponse",
    "AttachmentRead",
    "BoardCommand",
    "BoardSnapshot",
    "CategoryListResponse",
    "CommentCreateRequest",
    "CommentDataResponse",
    "CommentListResponse",
    "CommentRead",
    "HealthResponse",
    "HistoryListResponse",
    "HistoryRead",
    "PriorityUpdateRequest",
    "StatusUpdateRequest",
    "StoreHealth",
    "TeamListResponse",
    "TicketDataResponse",
    "TicketListMeta",
    "TicketListResponse",
    "TicketRead",
    "TicketSubmitRequest",
]
