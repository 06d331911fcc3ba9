"""Role-scoped ticket visibility.

A single rule decides which tickets an actor may see. The same scope is
pushed into SQL for the initial load and re-applied in memory to every
resync result, so the two can never drift apart.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from brodesk.models.entities import ADMIN_ROLES, Actor, TicketEntity

ScopeKind = Literal["all", "team", "reporter"]


@dataclass(slots=True, frozen=True)
class TicketScope:
    kind: ScopeKind
    value: str | None = None

    def matches(self, *, team_id: str | None, reporter_id: str | None) -> bool:
        if self.kind == "all":
            return True
        if self.kind == "team":
            return team_id is not None and team_id == self.value
        return reporter_id is not None and reporter_id == self.value

    def includes(self, ticket: TicketEntity) -> bool:
        return self.matches(team_id=ticket.team_id, reporter_id=ticket.reporter_id)


def scope_for(actor: Actor) -> TicketScope:
    """Precedence: admins see everything, a team member with a team sees the
    team's tickets, everyone else sees the tickets they reported."""
    if actor.role in ADMIN_ROLES:
        return TicketScope(kind="all")
    if actor.role == "team_member" and actor.team_id:
        return TicketScope(kind="team", value=actor.team_id)
    return TicketScope(kind="reporter", value=actor.id)


def is_visible(actor: Actor, ticket: TicketEntity) -> bool:
    return scope_for(actor).includes(ticket)


def filter_visible(actor: Actor, tickets: Iterable[TicketEntity]) -> list[TicketEntity]:
    scope = scope_for(actor)
    return [ticket for ticket in tickets if scope.includes(ticket)]
