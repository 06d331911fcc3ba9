"""Ticket status lifecycle.

Two surfaces act on the same ``status`` field:

* guided quick actions, constrained to a small graph
  (``start``, ``resolve``, ``close``, ``reopen``);
* free transitions, used by explicit status edits and by board drags,
  which accept any state to any other state.

Timestamp side effects are keyed by the transition itself, so both
surfaces stamp ``resolved_at`` / ``closed_at`` the same way.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Literal

from brodesk.core.errors import InputValidationError
from brodesk.models.entities import (
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    TicketEntity,
    TicketPriority,
    TicketStatus,
)

QuickAction = Literal["start", "resolve", "close", "reopen"]

AUDITED_FIELDS: tuple[str, ...] = ("status", "priority", "assigned_user_id", "team_id")
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "status",
        "priority",
        "assigned_user_id",
        "team_id",
        "resolved_at",
        "resolved_by",
        "closed_at",
    }
)


@dataclass(slots=True, frozen=True)
class QuickActionRule:
    name: QuickAction
    sources: frozenset[str]
    target: TicketStatus
    label: str


QUICK_ACTIONS: dict[str, QuickActionRule] = {
    "start": QuickActionRule("start", frozenset({"open"}), "in_progress", "Start Working"),
    "resolve": QuickActionRule(
        "resolve", frozenset({"in_progress", "need_info"}), "resolved", "Mark Resolved"
    ),
    "close": QuickActionRule("close", frozenset({"resolved"}), "closed", "Close Ticket"),
    "reopen": QuickActionRule("reopen", frozenset({"closed"}), "open", "Reopen Ticket"),
}


def status_label(status: str) -> str:
    return status.replace("_", " ")


def available_quick_actions(status: str) -> list[str]:
    return [name for name, rule in QUICK_ACTIONS.items() if status in rule.sources]


def quick_action_target(action: str, current: str) -> TicketStatus:
    rule = QUICK_ACTIONS.get(action)
    if rule is None:
        raise InputValidationError(
            "Unknown quick action.",
            details={"action": action, "allowed": list(QUICK_ACTIONS)},
            code="INVALID_QUICK_ACTION",
        )
    if current not in rule.sources:
        raise InputValidationError(
            f"Cannot {action} a ticket that is {status_label(current)}.",
            details={"action": action, "status": current},
            code="INVALID_TRANSITION",
        )
    return rule.target


def validate_status(value: str) -> TicketStatus:
    if value not in TICKET_STATUSES:
        raise InputValidationError(
            "Unknown ticket status.",
            details={"status": value, "allowed": list(TICKET_STATUSES)},
            code="INVALID_STATUS",
        )
    return value  # type: ignore[return-value]


def validate_priority(value: str) -> TicketPriority:
    if value not in TICKET_PRIORITIES:
        raise InputValidationError(
            "Unknown ticket priority.",
            details={"priority": value, "allowed": list(TICKET_PRIORITIES)},
            code="INVALID_PRIORITY",
        )
    return value  # type: ignore[return-value]


def plan_status_change(
    ticket: TicketEntity,
    target: str,
    *,
    actor_id: str,
    now: datetime,
) -> dict[str, Any]:
    """Return the field changes for moving ``ticket`` to ``target``.

    An empty dict means the move is a no-op.
    """
    target = validate_status(target)
    if target == ticket.status:
        return {}

    fields: dict[str, Any] = {"status": target}
    if target == "resolved":
        if ticket.resolved_at is None:
            fields["resolved_at"] = now
        if ticket.resolved_by is None:
            fields["resolved_by"] = actor_id
    elif target == "closed":
        if ticket.closed_at is None:
            fields["closed_at"] = now

    if ticket.status == "closed" and target == "open":
        fields["resolved_at"] = None
        fields["resolved_by"] = None
        fields["closed_at"] = None
    return fields


def plan_quick_action(
    ticket: TicketEntity,
    action: str,
    *,
    actor_id: str,
    now: datetime,
) -> dict[str, Any]:
    target = quick_action_target(action, ticket.status)
    return plan_status_change(ticket, target, actor_id=actor_id, now=now)


def plan_priority_change(ticket: TicketEntity, priority: str) -> dict[str, Any]:
    priority = validate_priority(priority)
    if priority == ticket.priority:
        return {}
    return {"priority": priority}


def plan_assignment(
    ticket: TicketEntity,
    *,
    assigned_user_id: str | None,
    team_id: str | None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if assigned_user_id != ticket.assigned_user_id:
        fields["assigned_user_id"] = assigned_user_id
    if team_id != ticket.team_id:
        fields["team_id"] = team_id
    return fields


def apply_fields(ticket: TicketEntity, fields: Mapping[str, Any]) -> TicketEntity:
    """Copy of ``ticket`` with ``fields`` applied; display joins that the
    change invalidates are cleared until the next read."""
    extra: dict[str, Any] = {}
    if "assigned_user_id" in fields:
        extra["assignee_name"] = None
    if "team_id" in fields:
        extra["team_name"] = None
    return replace(ticket, **dict(fields), **extra)


def _audit_value(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def audited_changes(
    current: Mapping[str, Any],
    fields: Mapping[str, Any],
) -> list[tuple[str, str | None, str | None]]:
    """History rows ``(field_name, old_value, new_value)`` for the audited
    fields that ``fields`` actually changes."""
    changes: list[tuple[str, str | None, str | None]] = []
    for name in AUDITED_FIELDS:
        if name not in fields:
            continue
        old_value = _audit_value(current.get(name))
        new_value = _audit_value(fields[name])
        if old_value != new_value:
            changes.append((name, old_value, new_value))
    return changes
