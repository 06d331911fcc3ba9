"""Board state reconciliation.

A ``BoardReconciler`` owns the ticket collection of one mounted board. It
applies user mutations optimistically, writes them to the ticket store, and
keeps the collection converged with the store by replacing it wholesale
after every change-feed event.

Two guards keep overlapping refreshes from regressing the board:

* a sequence number, so a refresh that started earlier than one already
  applied is discarded;
* a local mutation epoch, so a refresh that started before an optimistic
  change or an unmount is discarded (the write's own echo or failure path
  refreshes again).
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from brodesk.board.columns import (
    DEFAULT_ACTIVATION_DISTANCE,
    STATUS_COLUMNS,
    DragGesture,
    DropResult,
    column_for,
    resolve_drop,
)
from brodesk.core.errors import AppError, InputValidationError, SinkError
from brodesk.domain.interfaces import ChangeEvent, ChangeFeed, NotificationSink, TicketStore
from brodesk.domain.lifecycle import (
    QUICK_ACTIONS,
    apply_fields,
    available_quick_actions,
    plan_assignment,
    plan_priority_change,
    plan_quick_action,
    plan_status_change,
)
from brodesk.domain.notifications import PlannedNotification, plan_ticket_notifications
from brodesk.domain.permissions import Action, allowed_actions, can_perform, reporter_view
from brodesk.domain.visibility import filter_visible, scope_for
from brodesk.models.entities import Actor, TicketEntity
from brodesk.models.schemas.board import (
    BoardCard,
    BoardColumnRead,
    BoardNotice,
    BoardSnapshot,
    NoticeLevel,
)

logger = logging.getLogger(__name__)

RenderListener = Callable[[BoardSnapshot], None]
Planner = Callable[[TicketEntity], dict[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BoardReconciler:
    def __init__(
        self,
        *,
        actor: Actor,
        store: TicketStore,
        feed: ChangeFeed,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
        activation_distance: float = DEFAULT_ACTIVATION_DISTANCE,
    ) -> None:
        self.actor = actor
        self.scope = scope_for(actor)
        self.store = store
        self.feed = feed
        self.sink = sink
        self.clock = clock
        self.activation_distance = activation_distance

        self._tickets: dict[str, TicketEntity] = {}
        self._mounted = False
        self._subscription: Any = None
        self._resync_seq = 0
        self._applied_seq = 0
        self._local_epoch = 0
        self._notices: list[BoardNotice] = []
        self._refresh_notice_id: int | None = None
        self._next_notice_id = 1
        self._listeners: list[RenderListener] = []
        self._gesture: DragGesture | None = None
        self._deliveries: set[asyncio.Task[None]] = set()

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def tickets(self) -> list[TicketEntity]:
        return list(self._tickets.values())

    @property
    def notices(self) -> list[BoardNotice]:
        return list(self._notices)

    def get(self, ticket_id: str) -> TicketEntity | None:
        return self._tickets.get(ticket_id)

    # lifecycle

    async def mount(self) -> None:
        """Subscribe to the change feed, then load the scoped board."""
        if self._mounted:
            return
        self._mounted = True
        try:
            self._subscription = await self.feed.subscribe(self.handle_change)
        except AppError as exc:
            logger.warning("Board for %s mounted without live updates: %s", self.actor.id, exc)
            self._push_notice("warning", "Live updates are unavailable; the board may be stale.")
        await self.resync()

    async def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        self._gesture = None
        self._local_epoch += 1
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await self.feed.unsubscribe(subscription)
        await self.drain()

    async def drain(self) -> None:
        """Wait for in-flight notification deliveries."""
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries))

    # rendering

    def add_listener(self, listener: RenderListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def snapshot(self) -> BoardSnapshot:
        columns = []
        for column in STATUS_COLUMNS:
            cards = [
                self._to_card(ticket)
                for ticket in self._tickets.values()
                if ticket.status == column.status
            ]
            columns.append(
                BoardColumnRead(
                    status=column.status,
                    title=column.title,
                    count=len(cards),
                    cards=cards,
                )
            )
        return BoardSnapshot(
            actor_id=self.actor.id,
            actor_role=self.actor.role,
            columns=columns,
            notices=list(self._notices),
            dragging=self._gesture.ticket_id if self._gesture and self._gesture.activated else None,
        )

    def _to_card(self, ticket: TicketEntity) -> BoardCard:
        _, reporter_name, _ = reporter_view(self.actor, ticket)
        actions = allowed_actions(self.actor, ticket)
        quick_actions = available_quick_actions(ticket.status) if "quick_action" in actions else []
        return BoardCard(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            title=ticket.title,
            status=ticket.status,
            priority=ticket.priority,
            category_name=ticket.category_name,
            reporter_name=reporter_name,
            is_anonymous=ticket.is_anonymous,
            assignee_name=ticket.assignee_name,
            team_name=ticket.team_name,
            created_at=ticket.created_at,
            actions=actions,
            quick_actions=quick_actions,
        )

    def _render(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # notices

    def _push_notice(self, level: NoticeLevel, message: str) -> BoardNotice:
        notice = BoardNotice(id=self._next_notice_id, level=level, message=message)
        self._next_notice_id += 1
        self._notices.append(notice)
        return notice

    def _clear_refresh_notice(self) -> None:
        if self._refresh_notice_id is None:
            return
        notice_id, self._refresh_notice_id = self._refresh_notice_id, None
        self._notices = [notice for notice in self._notices if notice.id != notice_id]

    def dismiss_notice(self, notice_id: int) -> bool:
        remaining = [notice for notice in self._notices if notice.id != notice_id]
        dismissed = len(remaining) != len(self._notices)
        self._notices = remaining
        if dismissed:
            self._render()
        return dismissed

    # inbound

    async def handle_change(self, event: ChangeEvent) -> None:
        if not self._mounted:
            return
        if event.ticket_id not in self._tickets and not event.may_touch(self.scope):
            logger.debug("Dropping change for out-of-scope ticket %s", event.ticket_id)
            return
        await self.resync()

    async def resync(self) -> bool:
        """Replace local state with a fresh scoped read.

        Returns False when the read failed or was discarded as stale.
        """
        self._resync_seq += 1
        seq = self._resync_seq
        epoch = self._local_epoch
        try:
            tickets = await self.store.query_tickets(self.scope)
        except AppError as exc:
            logger.warning("Board refresh failed for %s: %s", self.actor.id, exc)
            self._clear_refresh_notice()
            notice = self._push_notice("error", f"Could not refresh the board. {exc.message}")
            self._refresh_notice_id = notice.id
            self._render()
            return False

        if seq < self._applied_seq or epoch != self._local_epoch:
            logger.debug("Discarding stale board refresh %s", seq)
            return False

        self._applied_seq = seq
        self._clear_refresh_notice()
        self._tickets = {ticket.id: ticket for ticket in filter_visible(self.actor, tickets)}
        if self._gesture is not None and self._gesture.ticket_id not in self._tickets:
            self._gesture = None
        self._render()
        return True

    # outbound

    async def move_ticket(self, ticket_id: str, target: str) -> bool:
        column = column_for(target)
        label = f"move ticket to {column.title}" if column else "move ticket"
        return await self._mutate(
            ticket_id,
            action="drag",
            label=label,
            plan=lambda ticket: plan_status_change(
                ticket, target, actor_id=self.actor.id, now=self.clock()
            ),
        )

    async def set_status(self, ticket_id: str, target: str) -> bool:
        return await self._mutate(
            ticket_id,
            action="edit_status",
            label="update status",
            plan=lambda ticket: plan_status_change(
                ticket, target, actor_id=self.actor.id, now=self.clock()
            ),
        )

    async def apply_quick_action(self, ticket_id: str, action: str) -> bool:
        rule = QUICK_ACTIONS.get(action)
        label = rule.label.lower() if rule else action
        return await self._mutate(
            ticket_id,
            action="quick_action",
            label=label,
            plan=lambda ticket: plan_quick_action(
                ticket, action, actor_id=self.actor.id, now=self.clock()
            ),
        )

    async def change_priority(self, ticket_id: str, priority: str) -> bool:
        return await self._mutate(
            ticket_id,
            action="change_priority",
            label="change priority",
            plan=lambda ticket: plan_priority_change(ticket, priority),
        )

    async def reassign(
        self,
        ticket_id: str,
        *,
        assigned_user_id: str | None,
        team_id: str | None,
    ) -> bool:
        return await self._mutate(
            ticket_id,
            action="reassign",
            label="reassign ticket",
            plan=lambda ticket: plan_assignment(
                ticket, assigned_user_id=assigned_user_id, team_id=team_id
            ),
        )

    async def _mutate(
        self,
        ticket_id: str,
        *,
        action: Action,
        label: str,
        plan: Planner,
    ) -> bool:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            self._push_notice("warning", f"Cannot {label}: the ticket is no longer on this board.")
            self._render()
            return False

        try:
            fields = plan(ticket)
        except InputValidationError as exc:
            self._push_notice("error", f"Cannot {label}: {exc.message}")
            self._render()
            return False
        if not fields:
            return False

        if not can_perform(self.actor, ticket, action):
            self._push_notice("error", f"You are not allowed to {label} ({ticket.ticket_number}).")
            self._render()
            return False

        optimistic = apply_fields(ticket, fields)
        self._tickets[ticket_id] = optimistic
        self._local_epoch += 1
        self._render()

        try:
            updated = await self.store.update_ticket_fields(
                ticket_id, fields, changed_by=self.actor.id
            )
        except AppError as exc:
            logger.warning("Failed to %s %s: %s", label, ticket.ticket_number, exc)
            self._push_notice(
                "error", f"Failed to {label} ({ticket.ticket_number}). {exc.message}"
            )
            if not await self.resync() and self._tickets.get(ticket_id) is optimistic:
                self._tickets[ticket_id] = ticket
                self._render()
            return False

        self._deliver(ticket, updated)
        return True

    def _deliver(self, before: TicketEntity, after: TicketEntity) -> None:
        if self.sink is None:
            return
        planned = plan_ticket_notifications(self.actor, before, after)
        if not planned:
            return
        task = asyncio.create_task(self._send(self.sink, planned, after.ticket_number))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _send(
        self,
        sink: NotificationSink,
        planned: list[PlannedNotification],
        ticket_number: str,
    ) -> None:
        for notification in planned:
            try:
                await sink.notify(
                    notification.event_type,
                    notification.recipient_id,
                    notification.payload,
                )
            except SinkError as exc:
                logger.warning("Notification %s failed: %s", notification.event_type, exc)
                self._push_notice(
                    "warning",
                    f"{ticket_number} was updated, but the notification could not be sent.",
                )
                self._render()

    # drag and drop

    def start_drag(self, ticket_id: str, x: float, y: float) -> bool:
        if self._gesture is not None:
            return False
        ticket = self._tickets.get(ticket_id)
        if ticket is None or not can_perform(self.actor, ticket, "drag"):
            return False
        self._gesture = DragGesture(
            ticket_id=ticket_id,
            origin_status=ticket.status,
            start_x=x,
            start_y=y,
            activation_distance=self.activation_distance,
        )
        return True

    def drag_move(self, x: float, y: float, over: str | None = None) -> bool:
        if self._gesture is None:
            return False
        was_active = self._gesture.activated
        active = self._gesture.move(x, y, over)
        if active and not was_active:
            self._render()
        return active

    async def end_drag(self, over: str | None) -> DropResult | None:
        gesture, self._gesture = self._gesture, None
        if gesture is None:
            return None
        result = resolve_drop(gesture, over)
        if result.kind == "move" and result.target is not None:
            await self.move_ticket(result.ticket_id, result.target)
        elif gesture.activated:
            self._render()
        return result
