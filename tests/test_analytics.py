import asyncio
from datetime import timedelta

import pytest
from brodesk.core.errors import AppError
from brodesk.models.entities import Actor, CategoryEntity
from brodesk.services.analytics_service import (
    AnalyticsService,
    average_resolution_hours,
    summarize_tickets,
)
from tests.helpers.fakes import BASE_TIME, FakeReferenceRepository, FakeTicketStore, make_ticket

CATEGORIES = [
    CategoryEntity(id="cat-fac", name="Facilities"),
    CategoryEntity(id="cat-it", name="IT"),
    CategoryEntity(id="cat-gen", name="General"),
]


def _tickets() -> list:
    return [
        make_ticket("1", category_id="cat-it", priority="high", status="open"),
        make_ticket(
            "2",
            category_id="cat-fac",
            priority="low",
            status="resolved",
            resolved_at=BASE_TIME + timedelta(hours=2),
        ),
        make_ticket(
            "3",
            category_id="cat-fac",
            priority="high",
            status="closed",
            resolved_at=BASE_TIME + timedelta(hours=5),
        ),
        make_ticket("4", category_id="cat-it", priority="urgent", status="need_info"),
    ]


def test_average_resolution_hours_rounds_to_one_decimal() -> None:
    tickets = [
        make_ticket("1", resolved_at=BASE_TIME + timedelta(minutes=80)),
        make_ticket("2", resolved_at=BASE_TIME + timedelta(minutes=30)),
        make_ticket("3"),
    ]
    assert average_resolution_hours(tickets) == 0.9
    assert average_resolution_hours([make_ticket("4")]) == 0.0


def test_summary_orders_breakdowns_and_drops_empty_buckets() -> None:
    summary = summarize_tickets(_tickets(), CATEGORIES)

    assert summary.total_tickets == 4
    assert (
        summary.open_tickets,
        summary.in_progress_tickets,
        summary.need_info_tickets,
        summary.resolved_tickets,
        summary.closed_tickets,
    ) == (1, 0, 1, 1, 1)
    assert summary.avg_resolution_hours == 3.5
    assert [(item.name, item.count) for item in summary.by_category] == [
        ("Facilities", 2),
        ("IT", 2),
    ]
    assert [(item.name, item.count) for item in summary.by_priority] == [
        ("low", 1),
        ("high", 2),
        ("urgent", 1),
    ]


def test_analytics_are_admin_only() -> None:
    service = AnalyticsService(
        FakeTicketStore(_tickets()), FakeReferenceRepository(categories=CATEGORIES)
    )

    with pytest.raises(AppError) as exc_info:
        asyncio.run(service.get_analytics(Actor(id="m", role="team_member", team_id="T1")))
    assert exc_info.value.code == "FORBIDDEN"

    summary = asyncio.run(service.get_analytics(Actor(id="a", role="admin")))
    assert summary.total_tickets == 4
