"""Pure domain entities without infrastructure dependencies.

Every state the system reasons about (the editable draft and each published
snapshot) is expressed as a ``CanonicalState``. Field names are snake_case in
Python and camelCase on the wire and inside stored snapshot payloads.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import (
    DEFAULT_ADVISORY_LABEL,
    DEFAULT_ADVISORY_TICKER_SECONDS,
    DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    DEFAULT_STATUS_PAGE_SECONDS,
    MAX_NAME_LENGTH,
    MAX_SPEED_SECONDS,
    StatusLevel,
)
from .exceptions import ValidationError


def validate_entity_name(
    name: str | None, entity_type: str = "entity", max_length: int = MAX_NAME_LENGTH
) -> None:
    """Validate an editor-supplied name, title or message.

    Pure domain validation without logging or external dependencies.

    Args:
        name: The text to validate
        entity_type: Type of entity being validated (for error messages)
        max_length: Maximum number of characters allowed

    Raises:
        ValidationError: If text is empty, too long, or contains control characters
    """
    if not name or not name.strip():
        raise ValidationError(f"{entity_type.capitalize()} cannot be empty")

    if len(name) > max_length:
        raise ValidationError(
            f"{entity_type.capitalize()} cannot be longer than {max_length} "
            + "characters"
        )

    for char in name:
        if ord(char) < 32 or ord(char) == 127:
            raise ValidationError(
                f"{entity_type.capitalize()} cannot contain newlines, tabs, "
                + "or other control characters"
            )


def validate_status(status: str) -> None:
    """Ensure a status value is one of the known levels."""
    allowed = [level.value for level in StatusLevel]
    if status not in allowed:
        raise ValidationError(
            f"Status must be one of {', '.join(allowed)}, got '{status}'"
        )


def validate_speed(seconds: int, field: str) -> None:
    """Speeds are whole seconds; 0 disables auto-advance."""
    if seconds < 0 or seconds > MAX_SPEED_SECONDS:
        raise ValidationError(
            f"{field} must be between 0 and {MAX_SPEED_SECONDS} seconds"
        )


def utc_now() -> datetime:
    """Current time as naive UTC, the form timestamps are stored in."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class StatusItem(CamelModel):
    """A building service row shown on the status page."""

    id: int
    name: str = ""
    status: str = StatusLevel.OPERATIONAL.value
    notes: str | None = None
    last_checked: datetime | None = None
    display_order: int = 0
    marked_for_deletion: bool = False

    @field_validator("last_checked")
    @classmethod
    def _store_as_naive_utc(cls, value: datetime | None) -> datetime | None:
        return as_naive_utc(value)


class AnnouncementItem(CamelModel):
    """An announcement card in the scrolling card area."""

    id: int
    title: str = ""
    subtitle: str = ""
    details: list[str] = Field(default_factory=list)
    image_ref: str | None = None
    accent_color: str | None = None
    display_order: int = 0
    marked_for_deletion: bool = False


class AdvisoryItem(CamelModel):
    """A message shown in the advisory ticker."""

    id: int
    label: str = DEFAULT_ADVISORY_LABEL
    message: str = ""
    active: bool = True
    marked_for_deletion: bool = False


class BuildingConfig(CamelModel):
    """Identity fields of the display configuration."""

    building_number: str | None = None
    building_name: str | None = None
    subtitle: str | None = None


class DisplayConfig(BuildingConfig):
    """The singleton configuration record as editors see it."""

    announcement_scroll_seconds: int = DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS
    advisory_ticker_seconds: int = DEFAULT_ADVISORY_TICKER_SECONDS
    status_page_seconds: int = DEFAULT_STATUS_PAGE_SECONDS

    def identity(self) -> BuildingConfig:
        return BuildingConfig(
            building_number=self.building_number,
            building_name=self.building_name,
            subtitle=self.subtitle,
        )


class StatusSection(CamelModel):
    items: list[StatusItem] = Field(default_factory=list)
    speed: int = DEFAULT_STATUS_PAGE_SECONDS


class AnnouncementSection(CamelModel):
    items: list[AnnouncementItem] = Field(default_factory=list)
    speed: int = DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS


class AdvisorySection(CamelModel):
    items: list[AdvisoryItem] = Field(default_factory=list)
    speed: int = DEFAULT_ADVISORY_TICKER_SECONDS


class CanonicalState(CamelModel):
    """The one shape shared by the draft projection and every snapshot."""

    config: BuildingConfig | None = None
    status_section: StatusSection = Field(default_factory=StatusSection)
    announcement_section: AnnouncementSection = Field(
        default_factory=AnnouncementSection
    )
    advisory_section: AdvisorySection = Field(default_factory=AdvisorySection)

    def has_pending_deletions(self) -> bool:
        return any(
            item.marked_for_deletion
            for section in (
                self.status_section,
                self.announcement_section,
                self.advisory_section,
            )
            for item in section.items
        )

    def without_marked_items(self) -> "CanonicalState":
        """Copy of this state as viewers would see it after a publish."""
        return CanonicalState(
            config=self.config,
            status_section=StatusSection(
                items=[
                    i for i in self.status_section.items if not i.marked_for_deletion
                ],
                speed=self.status_section.speed,
            ),
            announcement_section=AnnouncementSection(
                items=[
                    i
                    for i in self.announcement_section.items
                    if not i.marked_for_deletion
                ],
                speed=self.announcement_section.speed,
            ),
            advisory_section=AdvisorySection(
                items=[
                    i for i in self.advisory_section.items if not i.marked_for_deletion
                ],
                speed=self.advisory_section.speed,
            ),
        )


class ItemSelection(CamelModel):
    """Item ids per collection, used by selective restore."""

    status: list[int] = Field(default_factory=list)
    announcements: list[int] = Field(default_factory=list)
    advisories: list[int] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.status or self.announcements or self.advisories)


class VersionInfo(CamelModel):
    version: int
    published_at: datetime


@dataclass
class Snapshot:
    """Core business entity for one immutable published version."""

    version: int
    data: str
    published_at: datetime

    def info(self) -> VersionInfo:
        return VersionInfo(version=self.version, published_at=self.published_at)
