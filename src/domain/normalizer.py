"""Snapshot payload normalization.

Published snapshots have been written in two layouts over time:

* the current per-section layout, where every collection is an object
  ``{"items": [...], "speed": n}`` next to an identity-only ``config``;
* the legacy flat layout, where collections are bare item arrays and the
  speeds (if any) live inside ``config``.

Both are read back into one ``CanonicalState`` here, so nothing downstream
ever sees the difference. Normalization is pure and never raises: historical
payloads must stay viewable even when they are incomplete.
"""

import json
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from .constants import (
    DEFAULT_ADVISORY_TICKER_SECONDS,
    DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    DEFAULT_STATUS_PAGE_SECONDS,
)
from .entities import (
    AdvisoryItem,
    AdvisorySection,
    AnnouncementItem,
    AnnouncementSection,
    BuildingConfig,
    CanonicalState,
    StatusItem,
    StatusSection,
)

ItemT = TypeVar("ItemT", bound=BaseModel)


class SnapshotLayout(StrEnum):
    """On-disk layout a payload was written in."""

    CURRENT = "current"
    LEGACY = "legacy"
    UNKNOWN = "unknown"


# Canonical section key followed by the names older payloads used for it
_SECTION_KEYS: Final = {
    "statusSection": ("statusSection", "status_section", "services"),
    "announcementSection": ("announcementSection", "announcement_section", "events"),
    "advisorySection": ("advisorySection", "advisory_section", "advisories"),
}

# Where a section's speed may be found, in order of preference
_SECTION_SPEED_KEYS: Final = {
    "statusSection": ("speed", "scrollSpeed"),
    "announcementSection": ("speed", "scrollSpeed"),
    "advisorySection": ("speed", "tickerSpeed"),
}
_CONFIG_SPEED_KEYS: Final = {
    "statusSection": ("statusPageSeconds", "servicesScrollSpeed"),
    "announcementSection": ("announcementScrollSeconds", "scrollSpeed"),
    "advisorySection": ("advisoryTickerSeconds", "tickerSpeed"),
}
_DEFAULT_SPEEDS: Final = {
    "statusSection": DEFAULT_STATUS_PAGE_SECONDS,
    "announcementSection": DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    "advisorySection": DEFAULT_ADVISORY_TICKER_SECONDS,
}

_LEGACY_ITEM_KEYS: Final = {"sortOrder": "displayOrder", "imageUrl": "imageRef"}
_CONFIG_IDENTITY_FIELDS: Final = ("buildingNumber", "buildingName", "subtitle")

# Stored snapshots never carry the draft-only deletion flag
_SNAPSHOT_EXCLUDE: Final = {
    section: {"items": {"__all__": {"marked_for_deletion"}}}
    for section in ("status_section", "announcement_section", "advisory_section")
}


def detect_layout(payload: Mapping[str, Any]) -> SnapshotLayout:
    """Classify a decoded payload.

    A single bare array at any collection position makes the whole payload
    legacy.
    """
    saw_section = False
    for aliases in _SECTION_KEYS.values():
        value = _first_present(payload, aliases)
        if isinstance(value, list):
            return SnapshotLayout.LEGACY
        if isinstance(value, Mapping) and "items" in value:
            saw_section = True
    return SnapshotLayout.CURRENT if saw_section else SnapshotLayout.UNKNOWN


def normalize(raw: str | bytes | Mapping[str, Any] | None) -> CanonicalState:
    """Turn a stored snapshot payload of any layout into a canonical state."""
    payload = _decode(raw)
    config_raw = payload.get("config")
    config_map = config_raw if isinstance(config_raw, Mapping) else {}

    sections: dict[str, tuple[list[Any], int]] = {}
    for key, aliases in _SECTION_KEYS.items():
        value = _first_present(payload, aliases)
        if isinstance(value, Mapping):
            raw_items = value.get("items")
            speed = _first_speed(value, _SECTION_SPEED_KEYS[key])
        else:
            raw_items = value
            speed = None
        if speed is None:
            speed = _first_speed(config_map, _CONFIG_SPEED_KEYS[key])
        sections[key] = (
            raw_items if isinstance(raw_items, list) else [],
            _DEFAULT_SPEEDS[key] if speed is None else speed,
        )

    status_items, status_speed = sections["statusSection"]
    announcement_items, announcement_speed = sections["announcementSection"]
    advisory_items, advisory_speed = sections["advisorySection"]

    return CanonicalState(
        config=_normalize_config(config_raw),
        status_section=StatusSection(
            items=_coerce_items(StatusItem, status_items), speed=status_speed
        ),
        announcement_section=AnnouncementSection(
            items=_coerce_items(AnnouncementItem, announcement_items),
            speed=announcement_speed,
        ),
        advisory_section=AdvisorySection(
            items=_coerce_items(AdvisoryItem, advisory_items), speed=advisory_speed
        ),
    )


def serialize_state(state: CanonicalState) -> str:
    """Serialize a state in the current per-section layout."""
    return state.model_dump_json(by_alias=True, exclude=_SNAPSHOT_EXCLUDE)


def _decode(raw: str | bytes | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, str | bytes | bytearray):
        try:
            decoded = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            return {}
        return decoded if isinstance(decoded, Mapping) else {}
    return {}


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_speed(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        seconds = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        seconds = int(value.strip())
    else:
        return None
    return seconds if seconds >= 0 else None


def _first_speed(data: Mapping[str, Any], keys: tuple[str, ...]) -> int | None:
    for key in keys:
        speed = _as_speed(data.get(key))
        if speed is not None:
            return speed
    return None


def _normalize_config(raw: Any) -> BuildingConfig | None:
    if not isinstance(raw, Mapping):
        return None
    values: dict[str, str | None] = {}
    for field in _CONFIG_IDENTITY_FIELDS:
        value = _first_present(raw, (field, to_snake(field)))
        if isinstance(value, str | int | float) and not isinstance(value, bool):
            values[field] = str(value)
        else:
            values[field] = None
    return BuildingConfig.model_validate(values)


def _prepare_item(raw: Mapping[str, Any]) -> dict[str, Any]:
    data = {_LEGACY_ITEM_KEYS.get(key, key): value for key, value in raw.items()}
    details = data.get("details")
    if isinstance(details, str):
        # The earliest payloads stored card details as an encoded JSON string
        try:
            data["details"] = json.loads(details)
        except ValueError:
            data["details"] = [details]
    return data


def _coerce_item(model: type[ItemT], raw: Mapping[str, Any]) -> ItemT | None:
    """Validate one item, dropping fields that do not fit instead of failing."""
    data = _prepare_item(raw)
    while True:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            bad_fields = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            if "id" in bad_fields:
                return None
            removable = {
                variant
                for field in bad_fields
                for variant in (field, to_camel(field), to_snake(field))
                if variant in data
            }
            if not removable:
                return None
            for key in removable:
                del data[key]


def _coerce_items(model: type[ItemT], raw_items: list[Any]) -> list[ItemT]:
    items: list[ItemT] = []
    seen: set[int] = set()
    for raw in raw_items:
        if not isinstance(raw, Mapping):
            continue
        item = _coerce_item(model, raw)
        if item is None:
            continue
        item_id = item.id  # type: ignore[attr-defined]
        if item_id in seen:
            continue
        seen.add(item_id)
        items.append(item)
    return items
