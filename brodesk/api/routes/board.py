import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from brodesk.board.session import BoardSessionFactory, dispatch_command
from brodesk.core.config import Settings, get_settings
from brodesk.core.errors import AppError
from brodesk.models.schemas.board import BoardCommand, BoardSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/board")


def get_board_session_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> BoardSessionFactory:
    return BoardSessionFactory(settings)


async def _forward(websocket: WebSocket, outbox: "asyncio.Queue[dict[str, Any]]") -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def board_socket(
    websocket: WebSocket,
    factory: Annotated[BoardSessionFactory, Depends(get_board_session_factory)],
    token: Annotated[str | None, Query()] = None,
) -> None:
    try:
        actor = await factory.authenticate(token)
    except AppError as exc:
        logger.info("Board connection rejected: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
        return

    await websocket.accept()
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    reconciler = factory.create(actor)

    def publish(snapshot: BoardSnapshot) -> None:
        outbox.put_nowait(snapshot.model_dump(mode="json"))

    remove_listener = reconciler.add_listener(publish)
    sender = asyncio.create_task(_forward(websocket, outbox))
    logger.info("Board session opened for %s (%s)", actor.id, actor.role)
    try:
        await reconciler.mount()
        while True:
            message = await websocket.receive_json()
            try:
                command = BoardCommand.model_validate(message)
            except ValidationError as exc:
                outbox.put_nowait(
                    {
                        "type": "error",
                        "message": "Invalid board command.",
                        "details": exc.errors(include_context=False),
                    }
                )
                continue
            reply = await dispatch_command(reconciler, command)
            if reply is not None:
                outbox.put_nowait(reply)
    except WebSocketDisconnect:
        logger.info("Board session closed for %s", actor.id)
    finally:
        remove_listener()
        sender.cancel()
        await reconciler.unmount()
