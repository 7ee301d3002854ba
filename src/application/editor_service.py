"""Application layer - editing the draft collections and the display config."""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from enum import StrEnum
from typing import Any, Final

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..domain.constants import MAX_NAME_LENGTH, MAX_TEXT_LENGTH
from ..domain.entities import (
    AdvisoryItem,
    AnnouncementItem,
    DisplayConfig,
    StatusItem,
    as_naive_utc,
    utc_now,
    validate_entity_name,
    validate_speed,
    validate_status,
)
from ..domain.exceptions import NotFoundError, StorageFailureError, ValidationError
from ..infrastructure.database.models import AdvisoryRow, AnnouncementRow, StatusRow
from ..infrastructure.database.repositories import (
    AdvisoryRepository,
    AnnouncementRepository,
    CollectionRepository,
    DisplayConfigRepository,
    StatusRepository,
)
from ..logging_config import get_logger
from ..logging_utils import log_content_change, log_validation_error

logger: Final = get_logger(__name__)

DraftItem = StatusItem | AnnouncementItem | AdvisoryItem

_SPEED_FIELDS: Final = (
    "announcement_scroll_seconds",
    "advisory_ticker_seconds",
    "status_page_seconds",
)
_IDENTITY_FIELDS: Final = ("building_number", "building_name", "subtitle")


class Collection(StrEnum):
    """The three editable draft collections."""

    STATUS = "status"
    ANNOUNCEMENTS = "announcements"
    ADVISORIES = "advisories"

    @property
    def resource(self) -> str:
        return {
            Collection.STATUS: "Status item",
            Collection.ANNOUNCEMENTS: "Announcement",
            Collection.ADVISORIES: "Advisory",
        }[self]


def _validated(value: str | None, field: str, max_length: int) -> str:
    try:
        validate_entity_name(value, field, max_length)
    except ValidationError as exc:
        log_validation_error(field, value, str(exc))
        raise
    return value.strip()  # type: ignore[union-attr]


def _optional_text(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    if len(value) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"{field.capitalize()} cannot be longer than {MAX_TEXT_LENGTH} characters"
        )
    return value


class EditorService:
    """Application service for draft edits.

    Every write runs as its own unit of work and commits before returning.
    Edits never touch published snapshots.
    """

    def __init__(self, session: Session):
        self.session = session
        self.status_repo = StatusRepository(session)
        self.announcement_repo = AnnouncementRepository(session)
        self.advisory_repo = AdvisoryRepository(session)
        self.config_repo = DisplayConfigRepository(session)

    def _repo(self, collection: Collection) -> CollectionRepository[Any, Any]:
        return {
            Collection.STATUS: self.status_repo,
            Collection.ANNOUNCEMENTS: self.announcement_repo,
            Collection.ADVISORIES: self.advisory_repo,
        }[collection]

    @contextmanager
    def _transaction(self, operation: str, target: str) -> Iterator[None]:
        """Commit on success, roll back on any failure.

        Storage errors raised while flushing or committing become
        ``StorageFailureError``; domain errors pass through unchanged.
        """
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log_content_change(operation, target, success=False, error=str(exc))
            raise StorageFailureError(operation, exc) from exc
        except Exception:
            self.session.rollback()
            raise

    # Reads

    def list_items(self, collection: Collection) -> list[DraftItem]:
        """All items of a collection, including those marked for deletion."""
        return self._repo(collection).find_all()

    def get_item(self, collection: Collection, item_id: int) -> DraftItem:
        item = self._repo(collection).find_by_id(item_id)
        if item is None:
            raise NotFoundError(collection.resource, item_id)
        return item

    # Creates

    def create_status_item(
        self,
        name: str,
        status: str = "Operational",
        notes: str | None = None,
        display_order: int | None = None,
    ) -> StatusItem:
        with self._transaction("create_status_item", Collection.STATUS):
            validate_status(status)
            row = StatusRow(
                name=_validated(name, "name", MAX_NAME_LENGTH),
                status=status,
                notes=_optional_text(notes, "notes"),
                last_checked=utc_now(),
                display_order=(
                    self.status_repo.next_display_order()
                    if display_order is None
                    else display_order
                ),
            )
            item = self.status_repo.add(row)
        log_content_change("create", Collection.STATUS, item_id=item.id)
        logger.info("Status item created", item_id=item.id, name=item.name)
        return item

    def create_announcement(
        self,
        title: str,
        subtitle: str = "",
        details: list[str] | None = None,
        image_ref: str | None = None,
        accent_color: str | None = None,
        display_order: int | None = None,
    ) -> AnnouncementItem:
        with self._transaction("create_announcement", Collection.ANNOUNCEMENTS):
            row = AnnouncementRow(
                title=_validated(title, "title", MAX_NAME_LENGTH),
                subtitle=_optional_text(subtitle, "subtitle") or "",
                details=list(details or []),
                image_ref=image_ref,
                accent_color=accent_color,
                display_order=(
                    self.announcement_repo.next_display_order()
                    if display_order is None
                    else display_order
                ),
            )
            item = self.announcement_repo.add(row)
        log_content_change("create", Collection.ANNOUNCEMENTS, item_id=item.id)
        logger.info("Announcement created", item_id=item.id, title=item.title)
        return item

    def create_advisory(
        self, message: str, label: str | None = None, active: bool = True
    ) -> AdvisoryItem:
        with self._transaction("create_advisory", Collection.ADVISORIES):
            row = AdvisoryRow(
                message=_validated(message, "message", MAX_TEXT_LENGTH),
                active=active,
            )
            if label is not None:
                row.label = _validated(label, "label", MAX_NAME_LENGTH)
            item = self.advisory_repo.add(row)
        log_content_change("create", Collection.ADVISORIES, item_id=item.id)
        logger.info("Advisory created", item_id=item.id)
        return item

    # Updates

    def _check_changes(
        self, collection: Collection, changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        checked = dict(changes)
        checked.pop("id", None)
        checked.pop("marked_for_deletion", None)
        if "name" in checked:
            checked["name"] = _validated(checked["name"], "name", MAX_NAME_LENGTH)
        if "title" in checked:
            checked["title"] = _validated(checked["title"], "title", MAX_NAME_LENGTH)
        if "label" in checked:
            checked["label"] = _validated(checked["label"], "label", MAX_NAME_LENGTH)
        if "message" in checked:
            checked["message"] = _validated(
                checked["message"], "message", MAX_TEXT_LENGTH
            )
        if "status" in checked:
            validate_status(checked["status"])
        for field in ("notes", "subtitle"):
            if field in checked:
                checked[field] = _optional_text(checked[field], field)
        if collection is Collection.ANNOUNCEMENTS:
            for field in ("subtitle", "details"):
                if field in checked and checked[field] is None:
                    del checked[field]
        if collection is Collection.STATUS:
            last_checked: datetime | None = checked.get("last_checked")
            checked["last_checked"] = as_naive_utc(last_checked) or utc_now()
        return checked

    def update_item(
        self, collection: Collection, item_id: int, changes: Mapping[str, Any]
    ) -> DraftItem:
        """Apply a partial update. Editing a status row refreshes its timestamp."""
        checked = self._check_changes(collection, changes)
        with self._transaction(f"update_{collection.value}", collection):
            item = self._repo(collection).update(item_id, checked)
            if item is None:
                raise NotFoundError(collection.resource, item_id)
        log_content_change(
            "update", collection, item_id=item_id, fields=sorted(checked)
        )
        return item

    def _set_marked(
        self, collection: Collection, item_id: int, marked: bool
    ) -> DraftItem:
        operation = "mark" if marked else "unmark"
        with self._transaction(f"{operation}_{collection.value}", collection):
            item = self._repo(collection).set_marked(item_id, marked)
            if item is None:
                raise NotFoundError(collection.resource, item_id)
        log_content_change(operation, collection, item_id=item_id)
        logger.info(
            "Deletion flag changed",
            collection=collection.value,
            item_id=item_id,
            marked=marked,
        )
        return item

    def mark_for_deletion(self, collection: Collection, item_id: int) -> DraftItem:
        """Flag an item; it disappears from the displays on the next publish."""
        return self._set_marked(collection, item_id, True)

    def unmark(self, collection: Collection, item_id: int) -> DraftItem:
        return self._set_marked(collection, item_id, False)

    # Display config

    def get_config(self) -> DisplayConfig:
        """The stored config, or the defaults when none was saved yet."""
        return self.config_repo.find_or_default()

    def update_config(self, changes: Mapping[str, Any]) -> DisplayConfig:
        checked: dict[str, Any] = {}
        for field in _IDENTITY_FIELDS:
            if changes.get(field) is not None:
                checked[field] = _validated(changes[field], field, MAX_NAME_LENGTH)
        for field in _SPEED_FIELDS:
            if changes.get(field) is not None:
                validate_speed(changes[field], field)
                checked[field] = changes[field]
        with self._transaction("update_config", "config"):
            config = self.config_repo.save(checked)
        log_content_change("update", "config", fields=sorted(checked))
        return config
