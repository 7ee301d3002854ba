"""Diff engine comparing two canonical states.

Items are matched by id. Only the fields that carry editorial intent are
compared, so bookkeeping such as display order or the status "last checked"
timestamp never turns an item into a change on its own. Output is sorted
(items by id, config changes by field name) so identical inputs always give
identical results.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Final, Generic, TypeVar

from pydantic import BaseModel, Field

from .constants import (
    ADVISORY_DIFF_FIELDS,
    ANNOUNCEMENT_DIFF_FIELDS,
    STATUS_DIFF_FIELDS,
    STATUS_VOLATILE_FIELDS,
)
from .entities import (
    AdvisoryItem,
    AnnouncementItem,
    BuildingConfig,
    CamelModel,
    CanonicalState,
    StatusItem,
)

ItemT = TypeVar("ItemT", StatusItem, AnnouncementItem, AdvisoryItem)

_NO_VOLATILE_FIELDS: Final[frozenset[str]] = frozenset()


class ItemChange(CamelModel, Generic[ItemT]):
    from_item: ItemT = Field(alias="from")
    to_item: ItemT = Field(alias="to")


class CollectionDiff(CamelModel, Generic[ItemT]):
    added: list[ItemT] = Field(default_factory=list)
    removed: list[ItemT] = Field(default_factory=list)
    changed: list[ItemChange[ItemT]] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


class FieldChange(CamelModel):
    field: str
    from_value: str | int = Field(alias="from")
    to_value: str | int = Field(alias="to")


class ConfigDiff(CamelModel):
    changed: list[FieldChange] = Field(default_factory=list)


class StateDiff(CamelModel):
    status: CollectionDiff[StatusItem] = Field(
        default_factory=CollectionDiff[StatusItem]
    )
    announcements: CollectionDiff[AnnouncementItem] = Field(
        default_factory=CollectionDiff[AnnouncementItem]
    )
    advisories: CollectionDiff[AdvisoryItem] = Field(
        default_factory=CollectionDiff[AdvisoryItem]
    )
    config: ConfigDiff = Field(default_factory=ConfigDiff)

    def is_empty(self) -> bool:
        return (
            self.status.is_empty()
            and self.announcements.is_empty()
            and self.advisories.is_empty()
            and not self.config.changed
        )


class SectionChanges(CamelModel):
    """Whether each editor-facing section has unpublished changes."""

    config: bool = False
    status: bool = False
    announcements: bool = False
    advisories: bool = False

    @classmethod
    def everything(cls) -> "SectionChanges":
        return cls(config=True, status=True, announcements=True, advisories=True)

    def any(self) -> bool:
        return self.config or self.status or self.announcements or self.advisories


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _shown(value: str | int | None) -> str | int:
    return "" if value is None else value


def _fields_differ(before: BaseModel, after: BaseModel, fields: Iterable[str]) -> bool:
    return any(
        _text(getattr(before, name)) != _text(getattr(after, name)) for name in fields
    )


def _status_changed(before: StatusItem, after: StatusItem) -> bool:
    return _fields_differ(before, after, STATUS_DIFF_FIELDS)


def _announcement_changed(before: AnnouncementItem, after: AnnouncementItem) -> bool:
    return (
        _fields_differ(before, after, ANNOUNCEMENT_DIFF_FIELDS)
        or before.details != after.details
    )


def _advisory_changed(before: AdvisoryItem, after: AdvisoryItem) -> bool:
    return _fields_differ(before, after, ADVISORY_DIFF_FIELDS)


def _diff_collection(
    diff_type: type[CollectionDiff[ItemT]],
    from_items: Sequence[ItemT],
    to_items: Sequence[ItemT],
    changed: Any,
) -> CollectionDiff[ItemT]:
    from_map = {item.id: item for item in from_items}
    # A marked item is on its way out, so it does not count as present
    to_map = {item.id: item for item in to_items if not item.marked_for_deletion}

    return diff_type.model_validate(
        {
            "added": [to_map[i] for i in sorted(to_map.keys() - from_map.keys())],
            "removed": [from_map[i] for i in sorted(from_map.keys() - to_map.keys())],
            "changed": [
                {"from": from_map[i], "to": to_map[i]}
                for i in sorted(from_map.keys() & to_map.keys())
                if changed(from_map[i], to_map[i])
            ],
        }
    )


def _config_values(state: CanonicalState) -> dict[str, str | int | None]:
    config = state.config or BuildingConfig()
    return {
        "buildingNumber": config.building_number,
        "buildingName": config.building_name,
        "subtitle": config.subtitle,
        "announcementScrollSeconds": state.announcement_section.speed,
        "advisoryTickerSeconds": state.advisory_section.speed,
        "statusPageSeconds": state.status_section.speed,
    }


def _diff_config(from_state: CanonicalState, to_state: CanonicalState) -> ConfigDiff:
    before = _config_values(from_state)
    after = _config_values(to_state)
    return ConfigDiff(
        changed=[
            FieldChange(
                field=name,
                from_value=_shown(before[name]),
                to_value=_shown(after[name]),
            )
            for name in sorted(before)
            if _text(before[name]) != _text(after[name])
        ]
    )


def diff_states(from_state: CanonicalState, to_state: CanonicalState) -> StateDiff:
    """Compute what changed going from one state to another."""
    return StateDiff(
        status=_diff_collection(
            CollectionDiff[StatusItem],
            from_state.status_section.items,
            to_state.status_section.items,
            _status_changed,
        ),
        announcements=_diff_collection(
            CollectionDiff[AnnouncementItem],
            from_state.announcement_section.items,
            to_state.announcement_section.items,
            _announcement_changed,
        ),
        advisories=_diff_collection(
            CollectionDiff[AdvisoryItem],
            from_state.advisory_section.items,
            to_state.advisory_section.items,
            _advisory_changed,
        ),
        config=_diff_config(from_state, to_state),
    )


def _comparable_items(
    items: Sequence[BaseModel], volatile: frozenset[str]
) -> list[dict[str, Any]]:
    exclude = set(volatile) | {"marked_for_deletion"}
    kept = [item for item in items if not getattr(item, "marked_for_deletion")]
    return [
        {key: "" if value is None else value for key, value in dumped.items()}
        for dumped in (
            item.model_dump(exclude=exclude)
            for item in sorted(kept, key=lambda item: getattr(item, "id"))
        )
    ]


def _section_changed(
    draft_items: Sequence[BaseModel],
    draft_speed: int,
    published_items: Sequence[BaseModel],
    published_speed: int,
    bucket: CollectionDiff[Any],
    volatile: frozenset[str] = _NO_VOLATILE_FIELDS,
) -> bool:
    # A pending deletion is a change even before it shows up in the diff
    if any(getattr(item, "marked_for_deletion") for item in draft_items):
        return True
    if not bucket.is_empty() or draft_speed != published_speed:
        return True
    return _comparable_items(draft_items, volatile) != _comparable_items(
        published_items, volatile
    )


def _config_identity_changed(
    draft: BuildingConfig | None, published: BuildingConfig | None
) -> bool:
    if draft is None and published is None:
        return False
    if draft is None or published is None:
        return True
    return _fields_differ(
        draft, published, ("building_number", "building_name", "subtitle")
    )


def sections_changed(
    draft: CanonicalState, published: CanonicalState, diff: StateDiff | None = None
) -> SectionChanges:
    """Decide per section whether the draft has unpublished changes.

    Besides the item diff this also catches reordering, presentation-only
    edits (such as accent colors) and speed changes. The status "last checked"
    timestamp is ignored here because it moves on every status edit.
    """
    if diff is None:
        diff = diff_states(published, draft)
    return SectionChanges(
        config=_config_identity_changed(draft.config, published.config),
        status=_section_changed(
            draft.status_section.items,
            draft.status_section.speed,
            published.status_section.items,
            published.status_section.speed,
            diff.status,
            STATUS_VOLATILE_FIELDS,
        ),
        announcements=_section_changed(
            draft.announcement_section.items,
            draft.announcement_section.speed,
            published.announcement_section.items,
            published.announcement_section.speed,
            diff.announcements,
        ),
        advisories=_section_changed(
            draft.advisory_section.items,
            draft.advisory_section.speed,
            published.advisory_section.items,
            published.advisory_section.speed,
            diff.advisories,
        ),
    )
