import json

from brodesk.board.change_feed import parse_change_payload
from brodesk.domain.interfaces import ChangeEvent
from brodesk.domain.visibility import TicketScope


def test_parse_trigger_payload() -> None:
    payload = json.dumps(
        {
            "op": "update",
            "id": "8f1c",
            "team_id": "T1",
            "reporter_id": "u1",
            "old_team_id": "T2",
            "old_reporter_id": "u1",
        }
    )
    event = parse_change_payload(payload)
    assert event == ChangeEvent(
        kind="update",
        ticket_id="8f1c",
        team_id="T1",
        reporter_id="u1",
        old_team_id="T2",
        old_reporter_id="u1",
    )


def test_parse_accepts_uppercase_operation() -> None:
    event = parse_change_payload('{"op": "DELETE", "id": "8f1c", "old_team_id": "T1"}')
    assert event is not None
    assert event.kind == "delete"
    assert event.team_id is None


def test_parse_rejects_malformed_payloads() -> None:
    assert parse_change_payload("not json") is None
    assert parse_change_payload('{"op": "truncate", "id": "1"}') is None
    assert parse_change_payload('{"op": "insert"}') is None


def test_event_touches_scope_before_or_after_change() -> None:
    team_scope = TicketScope(kind="team", value="T1")
    moved_out = ChangeEvent(kind="update", ticket_id="1", team_id="T2", old_team_id="T1")
    moved_in = ChangeEvent(kind="update", ticket_id="1", team_id="T1", old_team_id="T2")
    elsewhere = ChangeEvent(kind="update", ticket_id="1", team_id="T2", old_team_id="T3")

    assert moved_out.may_touch(team_scope)
    assert moved_in.may_touch(team_scope)
    assert not elsewhere.may_touch(team_scope)
    assert elsewhere.may_touch(TicketScope(kind="all"))

    reporter_scope = TicketScope(kind="reporter", value="u1")
    assert ChangeEvent(kind="insert", ticket_id="2", reporter_id="u1").may_touch(reporter_scope)
    assert not ChangeEvent(kind="insert", ticket_id="2", reporter_id="u2").may_touch(
        reporter_scope
    )
