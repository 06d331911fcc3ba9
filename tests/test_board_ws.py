from typing import Any

import pytest
from brodesk.api.routes.board import get_board_session_factory
from brodesk.board.reconciler import BoardReconciler
from brodesk.core.errors import UnauthenticatedError
from brodesk.main import app
from brodesk.models.entities import Actor
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from tests.helpers.fakes import FakeChangeFeed, FakeTicketStore, make_ticket

MEMBER = Actor(id="member-1", role="team_member", team_id="T1")


class _FakeSessionFactory:
    def __init__(self) -> None:
        self.store = FakeTicketStore(
            [make_ticket("1", team_id="T1"), make_ticket("2", team_id="T2")]
        )
        self.feed = FakeChangeFeed()

    async def authenticate(self, token: str | None) -> Actor:
        if token != "good-token":
            raise UnauthenticatedError("Invalid session token.")
        return MEMBER

    def create(self, actor: Actor) -> BoardReconciler:
        return BoardReconciler(actor=actor, store=self.store, feed=self.feed)


def _receive_until(websocket: Any, message_type: str) -> dict[str, Any]:
    for _ in range(10):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} message received")


def test_board_socket_streams_snapshots_and_applies_moves(client: TestClient) -> None:
    factory = _FakeSessionFactory()
    app.dependency_overrides[get_board_session_factory] = lambda: factory

    with client.websocket_connect("/api/board/ws?token=good-token") as websocket:
        snapshot = _receive_until(websocket, "board")
        assert snapshot["actor_id"] == MEMBER.id
        open_column = snapshot["columns"][0]
        assert [card["id"] for card in open_column["cards"]] == ["1"]

        websocket.send_json({"type": "ping"})
        assert _receive_until(websocket, "pong") == {"type": "pong"}

        websocket.send_json({"type": "move", "ticket_id": "1", "status": "in_progress"})
        ack = _receive_until(websocket, "ack")
        assert ack["ok"] is True

        websocket.send_json({"type": "explode"})
        error = _receive_until(websocket, "error")
        assert error["message"] == "Invalid board command."

    assert factory.store.tickets["1"].status == "in_progress"
    assert factory.feed.subscribe_count == 1


def test_board_socket_rejects_bad_token(client: TestClient) -> None:
    app.dependency_overrides[get_board_session_factory] = _FakeSessionFactory

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/api/board/ws?token=bad") as websocket:
            websocket.receive_json()
    assert exc_info.value.code == 1008
