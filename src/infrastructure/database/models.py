"""Database table models for the draft collections and published snapshots."""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlmodel import JSON, Column, Field, SQLModel

from ...domain.constants import (
    DEFAULT_ADVISORY_LABEL,
    DEFAULT_ADVISORY_TICKER_SECONDS,
    DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS,
    DEFAULT_BUILDING_NAME,
    DEFAULT_BUILDING_NUMBER,
    DEFAULT_BUILDING_SUBTITLE,
    DEFAULT_STATUS_PAGE_SECONDS,
    MAX_NAME_LENGTH,
    StatusLevel,
)
from ...domain.entities import (
    AdvisoryItem,
    AnnouncementItem,
    DisplayConfig,
    Snapshot,
    StatusItem,
    utc_now,
)


class StatusRow(SQLModel, table=True):  # type: ignore[call-arg]
    """A building service and its operational status."""

    __tablename__: str = "status_items"  # type: ignore[assignment]
    # Never hand out the id of a row removed by a publish again
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=MAX_NAME_LENGTH)
    status: str = Field(default=StatusLevel.OPERATIONAL.value)
    notes: str | None = None
    # Stored as naive UTC
    last_checked: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )
    display_order: int = Field(default=0, index=True)
    marked_for_deletion: bool = Field(default=False, index=True)

    @classmethod
    def from_domain(cls, item: StatusItem) -> "StatusRow":
        """Convert domain entity to persistence model."""
        return cls(
            id=item.id,
            name=item.name,
            status=item.status,
            notes=item.notes,
            last_checked=item.last_checked or utc_now(),
            display_order=item.display_order,
            marked_for_deletion=item.marked_for_deletion,
        )

    def to_domain(self) -> StatusItem:
        """Convert persistence model to domain entity."""
        return StatusItem(
            id=self.id,
            name=self.name,
            status=self.status,
            notes=self.notes,
            last_checked=self.last_checked,
            display_order=self.display_order,
            marked_for_deletion=self.marked_for_deletion,
        )


class AnnouncementRow(SQLModel, table=True):  # type: ignore[call-arg]
    """An announcement card. Can be a yoga class or a brunch."""

    __tablename__: str = "announcements"  # type: ignore[assignment]
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=MAX_NAME_LENGTH)
    subtitle: str = ""
    # Card body lines, kept in order
    details: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    image_ref: str | None = None
    accent_color: str | None = None
    display_order: int = Field(default=0, index=True)
    marked_for_deletion: bool = Field(default=False, index=True)

    @classmethod
    def from_domain(cls, item: AnnouncementItem) -> "AnnouncementRow":
        """Convert domain entity to persistence model."""
        return cls(
            id=item.id,
            title=item.title,
            subtitle=item.subtitle,
            details=list(item.details),
            image_ref=item.image_ref,
            accent_color=item.accent_color,
            display_order=item.display_order,
            marked_for_deletion=item.marked_for_deletion,
        )

    def to_domain(self) -> AnnouncementItem:
        """Convert persistence model to domain entity."""
        return AnnouncementItem(
            id=self.id,
            title=self.title,
            subtitle=self.subtitle,
            details=list(self.details or []),
            image_ref=self.image_ref,
            accent_color=self.accent_color,
            display_order=self.display_order,
            marked_for_deletion=self.marked_for_deletion,
        )


class AdvisoryRow(SQLModel, table=True):  # type: ignore[call-arg]
    """A message for the advisory ticker."""

    __tablename__: str = "advisories"  # type: ignore[assignment]
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    label: str = Field(default=DEFAULT_ADVISORY_LABEL, max_length=MAX_NAME_LENGTH)
    message: str
    active: bool = True
    marked_for_deletion: bool = Field(default=False, index=True)

    @classmethod
    def from_domain(cls, item: AdvisoryItem) -> "AdvisoryRow":
        """Convert domain entity to persistence model."""
        return cls(
            id=item.id,
            label=item.label,
            message=item.message,
            active=item.active,
            marked_for_deletion=item.marked_for_deletion,
        )

    def to_domain(self) -> AdvisoryItem:
        """Convert persistence model to domain entity."""
        return AdvisoryItem(
            id=self.id,
            label=self.label,
            message=self.message,
            active=self.active,
            marked_for_deletion=self.marked_for_deletion,
        )


class DisplayConfigRow(SQLModel, table=True):  # type: ignore[call-arg]
    """The singleton display configuration. At most one row exists."""

    __tablename__: str = "display_config"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    building_number: str = DEFAULT_BUILDING_NUMBER
    building_name: str = DEFAULT_BUILDING_NAME
    subtitle: str = DEFAULT_BUILDING_SUBTITLE

    # 0 disables auto-advance for the section
    announcement_scroll_seconds: int = Field(
        default=DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS, ge=0
    )
    advisory_ticker_seconds: int = Field(default=DEFAULT_ADVISORY_TICKER_SECONDS, ge=0)
    status_page_seconds: int = Field(default=DEFAULT_STATUS_PAGE_SECONDS, ge=0)

    def to_domain(self) -> DisplayConfig:
        """Convert persistence model to domain entity."""
        return DisplayConfig(
            building_number=self.building_number,
            building_name=self.building_name,
            subtitle=self.subtitle,
            announcement_scroll_seconds=self.announcement_scroll_seconds,
            advisory_ticker_seconds=self.advisory_ticker_seconds,
            status_page_seconds=self.status_page_seconds,
        )


class SnapshotRow(SQLModel, table=True):  # type: ignore[call-arg]
    """An immutable published version of the whole canonical state."""

    __tablename__: str = "snapshots"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    # Unique so two racing publishes can never both claim a number
    version: int = Field(unique=True, index=True)
    data: str = Field(sa_column=Column(Text, nullable=False))
    published_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, index=True),
    )

    def to_domain(self) -> Snapshot:
        """Convert persistence model to domain entity."""
        return Snapshot(
            version=self.version, data=self.data, published_at=self.published_at
        )
