"""Business services."""

from brodesk.services.analysis_service import AnalysisService
from brodesk.services.analytics_service import AnalyticsService
from brodesk.services.attachment_service import AttachmentService
from brodesk.services.comment_service import CommentService
from brodesk.services.health_service import HealthService
from brodesk.services.notification_service import EmailNotificationSink
from brodesk.services.ticket_service import TicketService

__all__ = [
    "AnalysisService",
    "AnalyticsService",
    "AttachmentService",
    "CommentService",
    "EmailNotificationSink",
    "HealthService",
    "TicketService",
]
