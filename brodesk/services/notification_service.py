import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from brodesk.core.config import Settings
from brodesk.core.errors import SinkError, StoreError
from brodesk.domain.interfaces import NotificationSink, NotificationType
from brodesk.domain.lifecycle import status_label
from brodesk.domain.notifications import PlannedNotification
from brodesk.repositories.reference_repository import ReferenceRepository

logger = logging.getLogger(__name__)


def render_email(
    event_type: NotificationType,
    recipient_name: str,
    payload: Mapping[str, Any],
) -> tuple[str, str]:
    number = payload.get("ticket_number", "")
    title = payload.get("title", "")
    if event_type == "ticket_assigned":
        subject = f"New ticket assigned: {number}"
        body = f"A ticket has been assigned to you: {title}."
    elif event_type == "ticket_status_changed":
        label = status_label(str(payload.get("new_status", payload.get("status", ""))))
        subject = f"Ticket {number} is now {label}"
        body = f'The status of "{title}" changed to {label}.'
    elif event_type == "ticket_resolved":
        subject = f"Ticket {number} has been resolved"
        body = f'"{title}" has been resolved. Reply on the ticket if the issue persists.'
    elif event_type == "ticket_comment":
        subject = f"New comment on ticket {number}"
        body = str(payload.get("message", ""))
    else:
        subject = "Welcome to BroDesk"
        body = "Your BroDesk account is ready."
    return subject, f"<p>Hi {recipient_name},</p><p>{body}</p>"


class EmailNotificationSink:
    """Notification sink backed by a hosted email HTTP API.

    Without an API key the request is only logged.
    """

    def __init__(
        self,
        settings: Settings,
        reference_repository: ReferenceRepository,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.reference_repository = reference_repository
        self.transport = transport

    async def notify(
        self,
        event_type: NotificationType,
        recipient_id: str,
        payload: Mapping[str, Any],
    ) -> None:
        try:
            profile = await self.reference_repository.get_profile(recipient_id)
        except StoreError as exc:
            raise SinkError(details={"type": event_type, "reason": exc.message}) from exc
        if profile is None:
            logger.warning("No profile for notification recipient %s", recipient_id)
            return

        subject, html = render_email(event_type, profile.full_name, payload)
        if not self.settings.notification_api_key:
            logger.info(
                "Notification requested type=%s recipient=%s keys=%s",
                event_type,
                profile.email,
                sorted(payload),
            )
            return

        message = {
            "from": self.settings.notification_sender,
            "to": [profile.email],
            "subject": subject,
            "html": html,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.notification_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    self.settings.notification_api_url,
                    headers={"Authorization": f"Bearer {self.settings.notification_api_key}"},
                    json=message,
                )
        except httpx.HTTPError as exc:
            raise SinkError(details={"type": event_type, "reason": str(exc)}) from exc

        if response.is_error:
            raise SinkError(
                details={"type": event_type, "status_code": response.status_code},
            )
        logger.debug("Sent %s notification to %s", event_type, profile.email)


async def dispatch_notifications(
    sink: NotificationSink | None,
    planned: Iterable[PlannedNotification],
) -> int:
    """Send each notification, logging failures; returns how many failed."""
    if sink is None:
        return 0
    failures = 0
    for notification in planned:
        try:
            await sink.notify(
                notification.event_type,
                notification.recipient_id,
                notification.payload,
            )
        except SinkError as exc:
            failures += 1
            logger.warning(
                "Notification %s to %s failed: %s",
                notification.event_type,
                notification.recipient_id,
                exc.details,
            )
    return failures
