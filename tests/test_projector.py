"""Tests for reading the draft tables as one state."""

from sqlmodel import Session

from src.application.projector import StateProjector
from src.domain.constants import (
    DEFAULT_ADVISORY_TICKER_SECONDS,
    DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    DEFAULT_STATUS_PAGE_SECONDS,
)
from src.infrastructure.database.models import (
    AdvisoryRow,
    AnnouncementRow,
    DisplayConfigRow,
    StatusRow,
)


def test_empty_draft_uses_default_speeds_and_no_config(session: Session):
    state = StateProjector(session).project()

    assert state.config is None
    assert state.status_section.items == []
    assert state.status_section.speed == DEFAULT_STATUS_PAGE_SECONDS
    assert state.announcement_section.speed == DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS
    assert state.advisory_section.speed == DEFAULT_ADVISORY_TICKER_SECONDS


def test_projection_orders_items_and_keeps_marked_ones(session: Session):
    session.add(StatusRow(id=1, name="Pool", display_order=2))
    session.add(StatusRow(id=2, name="Gym", display_order=1))
    session.add(StatusRow(id=3, name="Lift", display_order=1, marked_for_deletion=True))
    session.add(AnnouncementRow(id=1, title="Brunch", display_order=1))
    session.add(AnnouncementRow(id=2, title="Yoga", display_order=0))
    session.add(AdvisoryRow(id=2, message="Second"))
    session.add(AdvisoryRow(id=1, message="First"))
    session.commit()

    state = StateProjector(session).project()

    assert [item.id for item in state.status_section.items] == [2, 3, 1]
    assert state.status_section.items[1].marked_for_deletion
    assert [item.id for item in state.announcement_section.items] == [2, 1]
    assert [item.message for item in state.advisory_section.items] == [
        "First",
        "Second",
    ]


def test_projection_reads_speeds_and_identity_from_config(session: Session):
    session.add(
        DisplayConfigRow(
            building_number="12",
            building_name="Harbor",
            subtitle="Lobby",
            announcement_scroll_seconds=0,
            advisory_ticker_seconds=40,
            status_page_seconds=6,
        )
    )
    session.commit()

    state = StateProjector(session).project()

    assert state.config is not None
    assert state.config.building_name == "Harbor"
    assert state.announcement_section.speed == 0
    assert state.advisory_section.speed == 40
    assert state.status_section.speed == 6
