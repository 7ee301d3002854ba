"""Tests for comparing canonical states."""

from datetime import datetime

from src.domain.diff import diff_states, sections_changed
from src.domain.entities import (
    AdvisoryItem,
    AdvisorySection,
    AnnouncementItem,
    AnnouncementSection,
    BuildingConfig,
    CanonicalState,
    StatusItem,
    StatusSection,
)


def _state(
    status: list[StatusItem] | None = None,
    announcements: list[AnnouncementItem] | None = None,
    advisories: list[AdvisoryItem] | None = None,
    config: BuildingConfig | None = None,
    status_speed: int = 8,
) -> CanonicalState:
    return CanonicalState(
        config=config,
        status_section=StatusSection(items=status or [], speed=status_speed),
        announcement_section=AnnouncementSection(items=announcements or []),
        advisory_section=AdvisorySection(items=advisories or []),
    )


def test_identical_states_have_an_empty_diff():
    state = _state(
        status=[StatusItem(id=1, name="Lift")],
        config=BuildingConfig(building_name="Hudson"),
    )

    diff = diff_states(state, state)

    assert diff.is_empty()
    assert not sections_changed(state, state).any()


def test_added_removed_and_changed_items_are_sorted_by_id():
    before = _state(
        status=[
            StatusItem(id=5, name="Pool"),
            StatusItem(id=2, name="Gym"),
            StatusItem(id=1, name="Lift"),
        ]
    )
    after = _state(
        status=[
            StatusItem(id=7, name="Sauna"),
            StatusItem(id=2, name="Gym", status="Outage"),
            StatusItem(id=6, name="Roof"),
        ]
    )

    diff = diff_states(before, after)

    assert [item.id for item in diff.status.added] == [6, 7]
    assert [item.id for item in diff.status.removed] == [1, 5]
    assert len(diff.status.changed) == 1
    assert diff.status.changed[0].from_item.status == "Operational"
    assert diff.status.changed[0].to_item.status == "Outage"


def test_marked_items_count_as_removed():
    before = _state(advisories=[AdvisoryItem(id=1, message="Water off")])
    after = _state(
        advisories=[AdvisoryItem(id=1, message="Water off", marked_for_deletion=True)]
    )

    diff = diff_states(before, after)

    assert [item.id for item in diff.advisories.removed] == [1]
    assert diff.advisories.added == []


def test_bookkeeping_fields_do_not_produce_changes():
    """Covers:
    - display order and last checked are not compared
    - absent and empty values compare equal
    """
    before = _state(
        status=[StatusItem(id=1, name="Lift", notes=None, display_order=0)],
        announcements=[AnnouncementItem(id=3, title="Yoga", image_ref=None)],
    )
    after = _state(
        status=[
            StatusItem(
                id=1,
                name="Lift",
                notes="",
                display_order=4,
                last_checked=datetime(2025, 1, 1, 9, 30),
            )
        ],
        announcements=[AnnouncementItem(id=3, title="Yoga", image_ref="")],
    )

    assert diff_states(before, after).is_empty()


def test_announcement_details_are_compared_as_lists():
    before = _state(announcements=[AnnouncementItem(id=1, title="A", details=["x"])])
    after = _state(
        announcements=[AnnouncementItem(id=1, title="A", details=["x", "y"])]
    )

    diff = diff_states(before, after)

    assert [change.to_item.details for change in diff.announcements.changed] == [
        ["x", "y"]
    ]


def test_config_diff_is_sorted_by_field_and_shows_absent_as_empty():
    before = _state(config=BuildingConfig(building_name="Hudson"))
    after = _state(
        config=BuildingConfig(building_name="Harbor", building_number="12"),
        status_speed=10,
    )

    diff = diff_states(before, after)

    assert [change.field for change in diff.config.changed] == [
        "buildingName",
        "buildingNumber",
        "statusPageSeconds",
    ]
    number_change = diff.config.changed[1]
    assert number_change.from_value == ""
    assert number_change.to_value == "12"
    assert diff.config.changed[2].to_value == 10


def test_add_and_remove_are_symmetric():
    """Covers:
    - added in one direction is removed in the other
    """
    one = _state(
        status=[StatusItem(id=1, name="A"), StatusItem(id=2, name="B")],
        advisories=[AdvisoryItem(id=4, message="m")],
    )
    two = _state(
        status=[StatusItem(id=2, name="B"), StatusItem(id=3, name="C")],
        announcements=[AnnouncementItem(id=8, title="T")],
    )

    forward = diff_states(one, two)
    backward = diff_states(two, one)

    for name in ("status", "announcements", "advisories"):
        forward_bucket = getattr(forward, name)
        backward_bucket = getattr(backward, name)
        assert forward_bucket.added == backward_bucket.removed
        assert forward_bucket.removed == backward_bucket.added


def test_diff_serializes_with_from_and_to_keys():
    before = _state(status=[StatusItem(id=1, name="Lift")])
    after = _state(status=[StatusItem(id=1, name="Lift", status="Outage")])

    data = diff_states(before, after).model_dump(by_alias=True)

    change = data["status"]["changed"][0]
    assert set(change) == {"from", "to"}
    assert change["to"]["status"] == "Outage"


def test_pending_deletion_marks_section_changed():
    published = _state(status=[StatusItem(id=1, name="Lift")])
    draft = _state(status=[StatusItem(id=1, name="Lift", marked_for_deletion=True)])

    changes = sections_changed(draft, published)

    assert changes.status
    assert not changes.announcements
    assert not changes.config


def test_reorder_and_speed_changes_count_but_last_checked_does_not():
    published = _state(
        announcements=[
            AnnouncementItem(id=1, title="A", display_order=0),
            AnnouncementItem(id=2, title="B", display_order=1),
        ],
        status=[StatusItem(id=1, name="Lift", last_checked=datetime(2025, 1, 1))],
    )
    draft = _state(
        announcements=[
            AnnouncementItem(id=1, title="A", display_order=1),
            AnnouncementItem(id=2, title="B", display_order=0),
        ],
        status=[StatusItem(id=1, name="Lift", last_checked=datetime(2025, 6, 1))],
    )

    changes = sections_changed(draft, published)

    assert changes.announcements
    assert not changes.status

    section = StatusSection(items=draft.status_section.items, speed=3)
    faster = draft.model_copy(update={"status_section": section})
    assert sections_changed(faster, published).status


def test_config_present_on_one_side_only_is_a_change():
    draft = _state(config=BuildingConfig(building_name="Hudson"))

    assert sections_changed(draft, _state()).config
    assert sections_changed(_state(), draft).config
    assert not sections_changed(draft, draft).config
