from typing import Any

from brodesk.board.change_feed import PostgresChangeFeed
from brodesk.board.reconciler import BoardReconciler
from brodesk.core.config import Settings
from brodesk.core.errors import UnauthenticatedError
from brodesk.core.security import subject_from_token
from brodesk.models.entities import Actor
from brodesk.models.schemas.board import BoardCommand
from brodesk.repositories.actor_repository import ActorRepository
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.notification_service import EmailNotificationSink


class TokenIdentityProvider:
    """Resolves the actor behind a session token."""

    def __init__(
        self,
        token: str | None,
        settings: Settings,
        actor_repository: ActorRepository,
    ) -> None:
        self.token = token
        self.settings = settings
        self.actor_repository = actor_repository

    async def get_current_actor(self) -> Actor:
        if not self.token:
            raise UnauthenticatedError()
        subject = subject_from_token(self.token, self.settings)
        return await self.actor_repository.get_actor(subject)


class BoardSessionFactory:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def authenticate(self, token: str | None) -> Actor:
        provider = TokenIdentityProvider(token, self.settings, ActorRepository())
        return await provider.get_current_actor()

    def create(self, actor: Actor) -> BoardReconciler:
        return BoardReconciler(
            actor=actor,
            store=TicketRepository(),
            feed=PostgresChangeFeed(channel=self.settings.change_feed_channel),
            sink=EmailNotificationSink(self.settings, ReferenceRepository()),
            activation_distance=self.settings.drag_activation_distance,
        )


async def dispatch_command(
    reconciler: BoardReconciler,
    command: BoardCommand,
) -> dict[str, Any] | None:
    """Apply one inbound board message; returns a direct reply, if any."""
    if command.type == "ping":
        return {"type": "pong"}
    if command.type == "resync":
        await reconciler.resync()
        return None
    if command.type == "dismiss_notice":
        if command.notice_id is not None:
            reconciler.dismiss_notice(command.notice_id)
        return None
    if command.type == "drag_move":
        reconciler.drag_move(command.x, command.y, command.over)
        return None
    if command.type == "drag_end":
        result = await reconciler.end_drag(command.over)
        if result is None:
            return None
        if result.kind == "click":
            return {"type": "open_ticket", "ticket_id": result.ticket_id}
        return {"type": "drop", "kind": result.kind, "ticket_id": result.ticket_id}

    ticket_id = command.ticket_id
    if not ticket_id:
        return {"type": "error", "command": command.type, "message": "ticket_id is required."}

    if command.type == "drag_start":
        accepted = reconciler.start_drag(ticket_id, command.x, command.y)
        return {"type": "drag", "ticket_id": ticket_id, "accepted": accepted}
    if command.type == "move":
        ok = await reconciler.move_ticket(ticket_id, command.status or "")
    elif command.type == "quick_action":
        ok = await reconciler.apply_quick_action(ticket_id, command.action or "")
    elif command.type == "set_priority":
        ok = await reconciler.change_priority(ticket_id, command.priority or "")
    else:
        ok = await reconciler.reassign(
            ticket_id,
            assigned_user_id=command.assigned_user_id,
            team_id=command.team_id,
        )
    return {"type": "ack", "command": command.type, "ticket_id": ticket_id, "ok": ok}
