"""Tests for reading stored snapshot payloads in any layout."""

import json

from src.domain.constants import (
    DEFAULT_ADVISORY_LABEL,
    DEFAULT_ADVISORY_TICKER_SECONDS,
    DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    DEFAULT_STATUS_PAGE_SECONDS,
)
from src.domain.entities import (
    AdvisorySection,
    CanonicalState,
    StatusItem,
    StatusSection,
)
from src.domain.normalizer import (
    SnapshotLayout,
    detect_layout,
    normalize,
    serialize_state,
)

CURRENT_PAYLOAD = {
    "config": {"buildingNumber": "77", "buildingName": "Hudson", "subtitle": "Live"},
    "statusSection": {
        "items": [
            {"id": 1, "name": "Elevator A", "status": "Operational", "displayOrder": 0},
            {"id": 2, "name": "Gym", "status": "Maintenance", "notes": "Until 5pm"},
        ],
        "speed": 12,
    },
    "announcementSection": {
        "items": [{"id": 4, "title": "Yoga", "details": ["Roof", "7am"]}],
        "speed": 40,
    },
    "advisorySection": {
        "items": [{"id": 9, "label": "NOTICE", "message": "Water off", "active": True}],
        "speed": 0,
    },
}


def test_current_layout_is_read_as_is():
    """Covers:
    - per-section payloads keep items, speeds and config identity
    """
    state = normalize(json.dumps(CURRENT_PAYLOAD))

    assert detect_layout(CURRENT_PAYLOAD) is SnapshotLayout.CURRENT
    assert state.config is not None
    assert state.config.building_name == "Hudson"
    assert [item.id for item in state.status_section.items] == [1, 2]
    assert state.status_section.items[1].notes == "Until 5pm"
    assert state.status_section.speed == 12
    assert state.announcement_section.items[0].details == ["Roof", "7am"]
    assert state.announcement_section.speed == 40
    # 0 is a real setting, not a missing value
    assert state.advisory_section.speed == 0


def test_legacy_flat_layout_is_wrapped_with_config_speeds():
    """Covers:
    - bare item arrays become sections
    - speeds come from the legacy config keys
    """
    payload = {
        "config": {
            "buildingNumber": 12,
            "buildingName": "Tower",
            "servicesScrollSpeed": 5,
            "scrollSpeed": 45,
            "tickerSpeed": 20,
        },
        "services": [{"id": 3, "name": "Pool", "status": "Outage", "sortOrder": 2}],
        "events": [{"id": 5, "title": "Brunch", "imageUrl": "/img/brunch.png"}],
        "advisories": [{"id": 6, "message": "Fire drill"}],
    }

    state = normalize(payload)

    assert detect_layout(payload) is SnapshotLayout.LEGACY
    assert state.config is not None
    assert state.config.building_number == "12"
    assert state.status_section.speed == 5
    assert state.status_section.items[0].display_order == 2
    assert state.announcement_section.speed == 45
    assert state.announcement_section.items[0].image_ref == "/img/brunch.png"
    assert state.advisory_section.speed == 20
    assert state.advisory_section.items[0].label == DEFAULT_ADVISORY_LABEL


def test_one_bare_array_makes_the_payload_legacy():
    payload = {
        "statusSection": {"items": [], "speed": 3},
        "advisorySection": [{"id": 1, "message": "Hello"}],
    }

    assert detect_layout(payload) is SnapshotLayout.LEGACY
    state = normalize(payload)
    assert state.status_section.speed == 3
    assert state.advisory_section.items[0].message == "Hello"
    assert state.advisory_section.speed == DEFAULT_ADVISORY_TICKER_SECONDS


def test_missing_sections_and_speeds_fall_back_to_defaults():
    state = normalize({"statusSection": [{"id": 1, "name": "Lobby"}]})

    assert state.config is None
    assert state.status_section.speed == DEFAULT_STATUS_PAGE_SECONDS
    assert state.announcement_section.items == []
    assert state.announcement_section.speed == DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS
    assert state.advisory_section.speed == DEFAULT_ADVISORY_TICKER_SECONDS


def test_garbage_input_degrades_to_empty_state():
    """Covers:
    - normalization never raises
    """
    for raw in ("not json", b"\xff\xfe", "[1, 2]", None, "", "42"):
        assert normalize(raw) == CanonicalState()

    assert detect_layout({}) is SnapshotLayout.UNKNOWN


def test_invalid_numbers_fall_back_to_defaults():
    payload = {
        "statusSection": {"items": [], "speed": "fast"},
        "announcementSection": {"items": [], "speed": -4},
        "advisorySection": {"items": [], "speed": True},
    }

    state = normalize(payload)

    assert state.status_section.speed == DEFAULT_STATUS_PAGE_SECONDS
    assert state.announcement_section.speed == DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS
    assert state.advisory_section.speed == DEFAULT_ADVISORY_TICKER_SECONDS


def test_malformed_items_are_repaired_or_skipped():
    """Covers:
    - bad optional fields are dropped, the item survives
    - items without a usable id are skipped
    - duplicate ids keep the first occurrence
    """
    payload = {
        "statusSection": {
            "items": [
                {"id": 1, "name": "Boiler", "lastChecked": "yesterday-ish"},
                {"name": "No id"},
                {"id": "abc", "name": "Bad id"},
                "not an item",
                {"id": 1, "name": "Duplicate"},
            ]
        },
        "announcementSection": {
            "items": [{"id": 2, "title": "Card", "details": '["a", "b"]'}]
        },
    }

    state = normalize(payload)

    assert [item.name for item in state.status_section.items] == ["Boiler"]
    assert state.status_section.items[0].last_checked is None
    assert state.announcement_section.items[0].details == ["a", "b"]


def test_serialized_snapshots_omit_the_deletion_flag():
    state = CanonicalState(
        status_section=StatusSection(
            items=[StatusItem(id=1, name="Lift", marked_for_deletion=True)], speed=9
        ),
        advisory_section=AdvisorySection(speed=0),
    )

    data = json.loads(serialize_state(state))

    assert set(data) == {
        "config",
        "statusSection",
        "announcementSection",
        "advisorySection",
    }
    assert "markedForDeletion" not in data["statusSection"]["items"][0]
    assert data["statusSection"]["items"][0]["displayOrder"] == 0
    assert data["statusSection"]["speed"] == 9
    assert data["advisorySection"]["speed"] == 0


def test_serialized_state_reads_back_equal():
    state = normalize(CURRENT_PAYLOAD)

    assert normalize(serialize_state(state)) == state
