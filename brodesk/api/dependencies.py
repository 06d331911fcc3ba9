from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from brodesk.board.session import TokenIdentityProvider
from brodesk.core.config import Settings, get_settings
from brodesk.core.errors import UnauthenticatedError
from brodesk.domain.interfaces import NotificationSink
from brodesk.models.entities import Actor
from brodesk.repositories.actor_repository import ActorRepository
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.services.notification_service import EmailNotificationSink

_http_bearer = HTTPBearer(auto_error=False)


def get_actor_repository() -> ActorRepository:
    return ActorRepository()


async def get_current_actor(
    settings: Annotated[Settings, Depends(get_settings)],
    actor_repository: Annotated[ActorRepository, Depends(get_actor_repository)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> Actor:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthenticatedError()
    provider = TokenIdentityProvider(credentials.credentials, settings, actor_repository)
    return await provider.get_current_actor()


def get_notification_sink(
    settings: Annotated[Settings, Depends(get_settings)],
) -> NotificationSink:
    return EmailNotificationSink(settings, ReferenceRepository())


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
