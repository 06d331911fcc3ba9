from typing import Literal

from brodesk.domain.visibility import is_visible
from brodesk.models.entities import ADMIN_ROLES, STAFF_ROLES, Actor, AttachmentEntity, TicketEntity

Action = Literal[
    "view",
    "comment",
    "attach",
    "view_internal",
    "comment_internal",
    "quick_action",
    "edit_status",
    "drag",
    "change_priority",
    "reassign",
    "see_reporter",
    "delete_attachment",
    "submit",
    "view_analytics",
]

TICKET_ACTIONS: tuple[Action, ...] = (
    "view",
    "comment",
    "attach",
    "view_internal",
    "comment_internal",
    "quick_action",
    "edit_status",
    "drag",
    "change_priority",
    "reassign",
    "see_reporter",
)
TRIAGE_ACTIONS: frozenset[str] = frozenset({"quick_action", "edit_status", "drag", "change_priority"})


def _can_triage(actor: Actor, ticket: TicketEntity) -> bool:
    if actor.role in ADMIN_ROLES:
        return True
    if ticket.assigned_user_id is not None and ticket.assigned_user_id == actor.id:
        return True
    return (
        actor.role == "team_member"
        and actor.team_id is not None
        and ticket.team_id == actor.team_id
    )


def can_perform(
    actor: Actor,
    ticket: TicketEntity | None,
    action: Action,
    *,
    attachment: AttachmentEntity | None = None,
) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``ticket``.

    Used both to gate what a board or ticket view offers and as the check
    in front of every write. ``submit`` and ``view_analytics`` take no ticket.
    """
    if action == "submit":
        return True
    if action == "view_analytics":
        return actor.role in ADMIN_ROLES
    if ticket is None:
        return False

    if action == "delete_attachment":
        return (
            attachment is not None
            and attachment.ticket_id == ticket.id
            and attachment.uploaded_by == actor.id
        )
    if action == "see_reporter":
        return actor.role in ADMIN_ROLES or ticket.reporter_id == actor.id
    if action == "reassign":
        return actor.role in ADMIN_ROLES
    if action in TRIAGE_ACTIONS:
        return _can_triage(actor, ticket)

    visible = is_visible(actor, ticket)
    if action in ("view", "comment", "attach"):
        return visible or _can_triage(actor, ticket)
    if action in ("view_internal", "comment_internal"):
        return actor.role in STAFF_ROLES and (visible or _can_triage(actor, ticket))
    return False


def allowed_actions(actor: Actor, ticket: TicketEntity) -> list[str]:
    return [action for action in TICKET_ACTIONS if can_perform(actor, ticket, action)]


def reporter_view(
    actor: Actor,
    ticket: TicketEntity,
) -> tuple[str | None, str | None, str | None]:
    """``(reporter_id, reporter_name, reporter_email)`` as ``actor`` may see them."""
    if ticket.is_anonymous and not can_perform(actor, ticket, "see_reporter"):
        return None, "Anonymous", None
    return ticket.reporter_id, ticket.reporter_name, ticket.reporter_email
