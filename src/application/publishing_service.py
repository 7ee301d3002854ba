"""Application layer - publishing, history and restore of the display content.

The draft lives in the editable tables; publishing freezes it into a
numbered snapshot. Every operation that writes runs as exactly one
transaction: it either commits completely or leaves nothing behind.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Final

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from ..domain.constants import DRAFT_TOKEN
from ..domain.diff import SectionChanges, StateDiff, diff_states, sections_changed
from ..domain.entities import (
    CamelModel,
    CanonicalState,
    ItemSelection,
    Snapshot,
    VersionInfo,
)
from ..domain.exceptions import NotFoundError, StorageFailureError, ValidationError
from ..domain.normalizer import normalize, serialize_state
from ..infrastructure.database.repositories import (
    AdvisoryRepository,
    AnnouncementRepository,
    DisplayConfigRepository,
    SnapshotRepository,
    StatusRepository,
)
from ..logging_config import get_logger
from ..logging_utils import log_content_change
from ..metrics import (
    record_restore,
    record_snapshot_published,
    record_snapshots_deleted,
)
from .notifier import ChangeNotifier, NullNotifier
from .projector import StateProjector

logger: Final = get_logger(__name__)

PUBLISH_ATTEMPTS: Final = 3


class DraftStatus(CamelModel):
    has_changes: bool
    section_changes: SectionChanges
    latest_version: int | None = None
    latest_published: CanonicalState | None = None
    current_draft: CanonicalState
    diff: StateDiff


class PublishResult(CamelModel):
    version: int
    published_at: datetime
    state: CanonicalState
    deleted_items: int = 0


class PurgeResult(CamelModel):
    deleted_count: int
    kept_version: int | None = None


class SnapshotDetail(CamelModel):
    version: int
    published_at: datetime
    state: CanonicalState


class PublishingService:
    """Application service for the draft/publish lifecycle."""

    def __init__(self, session: Session, notifier: ChangeNotifier | None = None):
        self.session = session
        self.notifier = notifier or NullNotifier()
        self.projector = StateProjector(session)
        self.snapshot_repo = SnapshotRepository(session)
        self.status_repo = StatusRepository(session)
        self.announcement_repo = AnnouncementRepository(session)
        self.advisory_repo = AdvisoryRepository(session)
        self.config_repo = DisplayConfigRepository(session)

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        """Commit on success, roll back on any failure.

        Storage errors become ``StorageFailureError``; domain errors pass
        through unchanged.
        """
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log_content_change(operation, "snapshots", success=False, error=str(exc))
            raise StorageFailureError(operation, exc) from exc
        except Exception:
            self.session.rollback()
            raise

    def _require_snapshot(self, version: int) -> Snapshot:
        snapshot = self.snapshot_repo.find_by_version(version)
        if snapshot is None:
            raise NotFoundError("Version", version)
        return snapshot

    def _replace_draft(self, state: CanonicalState) -> None:
        """Make the draft tables match ``state`` exactly, ids included."""
        self.status_repo.replace_all(state.status_section.items)
        self.announcement_repo.replace_all(state.announcement_section.items)
        self.advisory_repo.replace_all(state.advisory_section.items)
        self.config_repo.restore(
            state.config,
            announcement_scroll_seconds=state.announcement_section.speed,
            advisory_ticker_seconds=state.advisory_section.speed,
            status_page_seconds=state.status_section.speed,
        )

    # Reads

    def list_versions(self) -> list[VersionInfo]:
        """All published versions, newest first."""
        return self.snapshot_repo.list_versions()

    def get_version(self, version: int) -> SnapshotDetail:
        snapshot = self._require_snapshot(version)
        return SnapshotDetail(
            version=snapshot.version,
            published_at=snapshot.published_at,
            state=normalize(snapshot.data),
        )

    def get_published_state(self) -> CanonicalState:
        """What the displays should show right now.

        Before the first publish this is the draft without pending deletions.
        """
        latest = self.snapshot_repo.find_latest()
        if latest is None:
            return self.projector.project().without_marked_items()
        return normalize(latest.data)

    def get_draft_status(self) -> DraftStatus:
        """Compare the draft against the latest published version."""
        draft = self.projector.project()
        latest = self.snapshot_repo.find_latest()

        if latest is None:
            # Nothing published yet, so everything is pending
            return DraftStatus(
                has_changes=True,
                section_changes=SectionChanges.everything(),
                current_draft=draft,
                diff=diff_states(CanonicalState(), draft),
            )

        published = normalize(latest.data)
        diff = diff_states(published, draft)
        changes = sections_changed(draft, published, diff)
        return DraftStatus(
            has_changes=changes.any(),
            section_changes=changes,
            latest_version=latest.version,
            latest_published=published,
            current_draft=draft,
            diff=diff,
        )

    def diff_versions(self, from_version: int, to_version: int | str) -> StateDiff:
        """Diff two versions, or a version against the current draft."""
        from_state = normalize(self._require_snapshot(from_version).data)
        if to_version == DRAFT_TOKEN:
            to_state = self.projector.project()
        elif isinstance(to_version, int):
            to_state = normalize(self._require_snapshot(to_version).data)
        else:
            raise ValidationError(
                f"Diff target must be a version number or '{DRAFT_TOKEN}'"
            )
        return diff_states(from_state, to_state)

    # Writes

    def _publish_once(self) -> PublishResult:
        with self._transaction("publish"):
            deleted = (
                self.status_repo.delete_marked()
                + self.announcement_repo.delete_marked()
                + self.advisory_repo.delete_marked()
            )
            state = self.projector.project()
            version = self.snapshot_repo.next_version()
            snapshot = self.snapshot_repo.create(version, serialize_state(state))
        return PublishResult(
            version=snapshot.version,
            published_at=snapshot.published_at,
            state=state,
            deleted_items=deleted,
        )

    def publish(self) -> PublishResult:
        """Purge pending deletions and freeze the draft as the next version."""
        for attempt in range(1, PUBLISH_ATTEMPTS + 1):
            try:
                result = self._publish_once()
                break
            except StorageFailureError as exc:
                if not isinstance(exc.cause, IntegrityError):
                    raise
                if attempt == PUBLISH_ATTEMPTS:
                    raise
                logger.warning(
                    "Version number taken, retrying publish", attempt=attempt
                )

        record_snapshot_published(result.deleted_items)
        log_content_change(
            "publish", "snapshots", version=result.version, deleted=result.deleted_items
        )
        logger.info(
            "Snapshot published",
            version=result.version,
            deleted_items=result.deleted_items,
        )
        self.notifier.notify_changed()
        return result

    def discard(self) -> bool:
        """Revert the draft to the latest published version.

        Returns:
            False when nothing was published yet (the draft is left alone)
        """
        with self._transaction("discard"):
            latest = self.snapshot_repo.find_latest()
            if latest is not None:
                self._replace_draft(normalize(latest.data))
        if latest is None:
            logger.info("Discard skipped, nothing published yet")
            return False
        record_restore("discard")
        logger.info("Draft discarded", version=latest.version)
        return True

    def restore_version(self, version: int) -> None:
        """Replace the draft with a published version. Nothing is published."""
        with self._transaction("restore_version"):
            snapshot = self._require_snapshot(version)
            self._replace_draft(normalize(snapshot.data))
        record_restore("version")
        logger.info("Draft restored from version", version=version)

    def restore_items(
        self, source_version: int, selection: ItemSelection
    ) -> ItemSelection:
        """Bring selected items back from a published version.

        Ids the version does not contain are skipped. Returns the ids that
        were restored, in request order.
        """
        if selection.is_empty():
            raise ValidationError("No items selected for restore")

        with self._transaction("restore_items"):
            state = normalize(self._require_snapshot(source_version).data)
            restored = ItemSelection(
                status=self.status_repo.restore_selected(
                    state.status_section.items, selection.status
                ),
                announcements=self.announcement_repo.restore_selected(
                    state.announcement_section.items, selection.announcements
                ),
                advisories=self.advisory_repo.restore_selected(
                    state.advisory_section.items, selection.advisories
                ),
            )
        record_restore("items")
        logger.info(
            "Items restored",
            version=source_version,
            status=restored.status,
            announcements=restored.announcements,
            advisories=restored.advisories,
        )
        return restored

    def delete_version(self, version: int) -> None:
        with self._transaction("delete_version"):
            if self.snapshot_repo.count() == 1:
                raise ValidationError("Cannot delete the only remaining version")
            if not self.snapshot_repo.delete(version):
                raise NotFoundError("Version", version)
        record_snapshots_deleted(1, "single")
        logger.info("Version deleted", version=version)

    def purge_history(self) -> PurgeResult:
        """Delete every version except the latest."""
        with self._transaction("purge_history"):
            deleted, kept = self.snapshot_repo.delete_all_except_latest()
        record_snapshots_deleted(deleted, "purge")
        logger.info("History purged", deleted=deleted, kept_version=kept)
        return PurgeResult(deleted_count=deleted, kept_version=kept)
