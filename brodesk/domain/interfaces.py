from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from brodesk.domain.visibility import TicketScope
from brodesk.models.entities import Actor, TicketEntity

ChangeKind = Literal["insert", "update", "delete"]
NotificationType = Literal[
    "ticket_assigned",
    "ticket_status_changed",
    "ticket_comment",
    "ticket_resolved",
    "user_created",
]


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    """A row-level change on ``tickets`` as published by the change feed.

    The old and new team/reporter values let a subscriber decide whether the
    change can touch its scope without re-reading the row.
    """

    kind: ChangeKind
    ticket_id: str
    team_id: str | None = None
    reporter_id: str | None = None
    old_team_id: str | None = None
    old_reporter_id: str | None = None

    def may_touch(self, scope: TicketScope) -> bool:
        return scope.matches(team_id=self.team_id, reporter_id=self.reporter_id) or scope.matches(
            team_id=self.old_team_id, reporter_id=self.old_reporter_id
        )


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


class IdentityProvider(Protocol):
    async def get_current_actor(self) -> Actor:
        """Resolve the signed-in actor; raises ``UnauthenticatedError``."""


class TicketStore(Protocol):
    async def query_tickets(self, scope: TicketScope) -> list[TicketEntity]:
        """Tickets in ``scope`` with joined display fields, newest first."""

    async def get_ticket(self, ticket_id: str) -> TicketEntity | None:
        """Single ticket with joined display fields."""

    async def update_ticket_fields(
        self,
        ticket_id: str,
        fields: Mapping[str, Any],
        *,
        changed_by: str,
    ) -> TicketEntity:
        """Persist ``fields`` and their audit rows atomically."""

    async def insert_ticket(self, fields: Mapping[str, Any]) -> TicketEntity:
        """Create a ticket; number, status and team routing are assigned by the store."""


class ChangeFeed(Protocol):
    async def subscribe(self, on_event: ChangeHandler) -> Any:
        """Start delivering change events; returns a subscription handle."""

    async def unsubscribe(self, handle: Any) -> None:
        """Stop delivering events for ``handle``."""


class NotificationSink(Protocol):
    async def notify(
        self,
        event_type: NotificationType,
        recipient_id: str,
        payload: Mapping[str, Any],
    ) -> None:
        """Deliver a notification; raises ``SinkError``."""
