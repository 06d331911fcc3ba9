"""Kanban columns and drag gesture resolution."""

import math
from dataclasses import dataclass, field

from brodesk.models.entities import TicketStatus

DEFAULT_ACTIVATION_DISTANCE = 8.0


@dataclass(slots=True, frozen=True)
class BoardColumn:
    status: TicketStatus
    title: str


STATUS_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn("open", "Open"),
    BoardColumn("in_progress", "In Progress"),
    BoardColumn("need_info", "Need Info"),
    BoardColumn("resolved", "Resolved"),
    BoardColumn("closed", "Closed"),
)


def column_for(target: str | None) -> BoardColumn | None:
    for column in STATUS_COLUMNS:
        if column.status == target:
            return column
    return None


@dataclass(slots=True)
class DragGesture:
    """One pointer gesture on a card.

    The gesture only becomes a drag once the pointer has travelled at least
    ``activation_distance`` from where it went down; short gestures are
    clicks that open the ticket.
    """

    ticket_id: str
    origin_status: TicketStatus
    start_x: float
    start_y: float
    activation_distance: float = DEFAULT_ACTIVATION_DISTANCE
    over: str | None = None
    activated: bool = field(default=False)

    def move(self, x: float, y: float, over: str | None = None) -> bool:
        if not self.activated:
            distance = math.hypot(x - self.start_x, y - self.start_y)
            if distance >= self.activation_distance:
                self.activated = True
        self.over = over
        return self.activated


@dataclass(slots=True, frozen=True)
class DropResult:
    kind: str  # "move", "click" or "noop"
    ticket_id: str
    target: TicketStatus | None = None


def resolve_drop(gesture: DragGesture, over: str | None) -> DropResult:
    """Map the end of a gesture to a move, a click-through or nothing.

    Dropping outside every column or back onto the origin column is a no-op.
    """
    if not gesture.activated:
        return DropResult(kind="click", ticket_id=gesture.ticket_id)
    column = column_for(over)
    if column is None or column.status == gesture.origin_status:
        return DropResult(kind="noop", ticket_id=gesture.ticket_id)
    return DropResult(kind="move", ticket_id=gesture.ticket_id, target=column.status)
