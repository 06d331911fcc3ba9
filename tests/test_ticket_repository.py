import asyncio

import pytest
from brodesk.core.errors import AppError
from brodesk.repositories.ticket_repository import TicketRepository

TICKET_ID = "30000000-0000-0000-0000-000000000001"


@pytest.mark.parametrize(
    "fields",
    [
        {"team_id": "nope"},
        {"assigned_user_id": "not-a-user"},
        {"assigned_user_id": "00000000-0000-0000-0000-0000000000a1", "team_id": "T1"},
    ],
)
def test_malformed_reference_ids_are_rejected_before_the_store(fields: dict) -> None:
    repository = TicketRepository(database_url="postgresql://unused.invalid/brodesk")

    with pytest.raises(AppError) as exc_info:
        asyncio.run(repository.update_ticket_fields(TICKET_ID, fields, changed_by="member-1"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "INVALID_REFERENCE"


def test_unknown_fields_are_rejected_before_the_store() -> None:
    repository = TicketRepository(database_url="postgresql://unused.invalid/brodesk")

    with pytest.raises(AppError) as exc_info:
        asyncio.run(
            repository.update_ticket_fields(TICKET_ID, {"title": "x"}, changed_by="member-1")
        )

    assert exc_info.value.status_code == 400
