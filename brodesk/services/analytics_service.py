from collections.abc import Sequence

from brodesk.core.errors import ForbiddenError
from brodesk.domain.permissions import can_perform
from brodesk.domain.visibility import TicketScope
from brodesk.models.entities import TICKET_PRIORITIES, Actor, CategoryEntity, TicketEntity
from brodesk.models.schemas.analytics import AnalyticsRead, CountItem
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository


def average_resolution_hours(tickets: Sequence[TicketEntity]) -> float:
    durations = [
        (ticket.resolved_at - ticket.created_at).total_seconds()
        for ticket in tickets
        if ticket.resolved_at is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations) / 3600, 1)


def summarize_tickets(
    tickets: Sequence[TicketEntity],
    categories: Sequence[CategoryEntity],
) -> AnalyticsRead:
    """Counts by status, category and priority; zero counts are omitted
    from the category and priority breakdowns."""

    def count_status(status: str) -> int:
        return sum(1 for ticket in tickets if ticket.status == status)

    by_category = [
        CountItem(
            name=category.name,
            count=sum(1 for ticket in tickets if ticket.category_id == category.id),
        )
        for category in categories
    ]
    by_priority = [
        CountItem(
            name=priority,
            count=sum(1 for ticket in tickets if ticket.priority == priority),
        )
        for priority in TICKET_PRIORITIES
    ]
    return AnalyticsRead(
        total_tickets=len(tickets),
        open_tickets=count_status("open"),
        in_progress_tickets=count_status("in_progress"),
        need_info_tickets=count_status("need_info"),
        resolved_tickets=count_status("resolved"),
        closed_tickets=count_status("closed"),
        avg_resolution_hours=average_resolution_hours(tickets),
        by_category=[item for item in by_category if item.count > 0],
        by_priority=[item for item in by_priority if item.count > 0],
    )


class AnalyticsService:
    def __init__(
        self,
        ticket_repository: TicketRepository,
        reference_repository: ReferenceRepository,
    ) -> None:
        self.ticket_repository = ticket_repository
        self.reference_repository = reference_repository

    async def get_analytics(self, actor: Actor) -> AnalyticsRead:
        if not can_perform(actor, None, "view_analytics"):
            raise ForbiddenError("Analytics are available to administrators only.")
        tickets = await self.ticket_repository.query_tickets(TicketScope(kind="all"))
        categories = await self.reference_repository.list_categories()
        return summarize_tickets(tickets, categories)
