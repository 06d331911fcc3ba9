"""Who hears about a ticket change.

The actor is never notified about their own action.
"""

from dataclasses import dataclass, field
from typing import Any

from brodesk.domain.interfaces import NotificationType
from brodesk.domain.lifecycle import status_label
from brodesk.models.entities import Actor, CommentEntity, TicketEntity


@dataclass(slots=True, frozen=True)
class PlannedNotification:
    event_type: NotificationType
    recipient_id: str
    payload: dict[str, Any] = field(default_factory=dict)


def ticket_payload(ticket: TicketEntity) -> dict[str, Any]:
    return {
        "ticket_id": ticket.id,
        "ticket_number": ticket.ticket_number,
        "title": ticket.title,
        "status": ticket.status,
        "priority": ticket.priority,
    }


def plan_ticket_notifications(
    actor: Actor,
    before: TicketEntity,
    after: TicketEntity,
) -> list[PlannedNotification]:
    planned: list[PlannedNotification] = []
    payload = ticket_payload(after)

    assignee = after.assigned_user_id
    if assignee and assignee != before.assigned_user_id and assignee != actor.id:
        planned.append(PlannedNotification("ticket_assigned", assignee, payload))

    if after.status != before.status and after.reporter_id != actor.id:
        planned.append(
            PlannedNotification(
                "ticket_status_changed",
                after.reporter_id,
                {
                    **payload,
                    "old_status": before.status,
                    "new_status": after.status,
                    "status_label": status_label(after.status),
                },
            )
        )
        if after.status == "resolved":
            planned.append(PlannedNotification("ticket_resolved", after.reporter_id, payload))

    return planned


def plan_comment_notifications(
    actor: Actor,
    ticket: TicketEntity,
    comment: CommentEntity,
) -> list[PlannedNotification]:
    if comment.is_internal or not actor.is_staff or ticket.reporter_id == actor.id:
        return []
    return [
        PlannedNotification(
            "ticket_comment",
            ticket.reporter_id,
            {**ticket_payload(ticket), "comment_id": comment.id, "message": comment.message},
        )
    ]
