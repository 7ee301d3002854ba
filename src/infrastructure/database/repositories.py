"""Infrastructure layer - Repository implementations.

Repositories only flush. Committing (and rolling back) is left to the
application service that owns the unit of work, so several repositories can
take part in one transaction.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import text
from sqlmodel import Session, col, func, select

from ...domain.entities import (
    AdvisoryItem,
    AnnouncementItem,
    BuildingConfig,
    DisplayConfig,
    Snapshot,
    StatusItem,
    VersionInfo,
    utc_now,
)
from .models import (
    AdvisoryRow,
    AnnouncementRow,
    DisplayConfigRow,
    SnapshotRow,
    StatusRow,
)

RowT = TypeVar("RowT", StatusRow, AnnouncementRow, AdvisoryRow)
ItemT = TypeVar("ItemT", StatusItem, AnnouncementItem, AdvisoryItem)


class CollectionRepository(Generic[RowT, ItemT]):
    """Persistence operations shared by the three draft collections."""

    row_type: ClassVar[type[Any]]

    def __init__(self, session: Session):
        self.session = session

    def _to_row(self, item: ItemT) -> RowT:
        return self.row_type.from_domain(item)

    def _statement(self):
        return select(self.row_type).order_by(col(self.row_type.id))

    def find_all(self) -> list[ItemT]:
        """All rows, including those marked for deletion."""
        rows = self.session.exec(self._statement()).all()
        return [row.to_domain() for row in rows]

    def find_row(self, item_id: int) -> RowT | None:
        return self.session.get(self.row_type, item_id)

    def find_by_id(self, item_id: int) -> ItemT | None:
        row = self.find_row(item_id)
        return row.to_domain() if row else None

    def add(self, row: RowT) -> ItemT:
        """Insert a new row and return it with its assigned id."""
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row.to_domain()

    def update(self, item_id: int, changes: Mapping[str, Any]) -> ItemT | None:
        row = self.find_row(item_id)
        if row is None:
            return None
        for field, value in changes.items():
            setattr(row, field, value)
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row.to_domain()

    def set_marked(self, item_id: int, marked: bool) -> ItemT | None:
        return self.update(item_id, {"marked_for_deletion": marked})

    def delete_marked(self) -> int:
        """Hard-delete every row marked for deletion."""
        rows = self.session.exec(
            select(self.row_type).where(col(self.row_type.marked_for_deletion))
        ).all()
        for row in rows:
            self.session.delete(row)
        self.session.flush()
        return len(rows)

    def replace_all(self, items: Sequence[ItemT]) -> None:
        """Make the collection hold exactly ``items``, with their original ids."""
        keep = {item.id for item in items}
        for row in self.session.exec(select(self.row_type)).all():
            if row.id not in keep:
                self.session.delete(row)
        self.session.flush()
        for item in items:
            self.session.merge(self._to_row(item))
        self.session.flush()
        self._sync_id_sequence()

    def restore_selected(
        self, source_items: Iterable[ItemT], item_ids: Iterable[int]
    ) -> list[int]:
        """Recreate the given ids from ``source_items``; unknown ids are skipped."""
        by_id = {item.id: item for item in source_items}
        restored: list[int] = []
        for item_id in item_ids:
            item = by_id.get(item_id)
            if item is None or item_id in restored:
                continue
            self.session.merge(self._to_row(item))
            restored.append(item_id)
        self.session.flush()
        if restored:
            self._sync_id_sequence()
        return restored

    def _sync_id_sequence(self) -> None:
        # Rows re-inserted with explicit ids leave PostgreSQL sequences behind
        connection = self.session.connection()
        if connection.dialect.name != "postgresql":
            return
        table = self.row_type.__tablename__
        connection.execute(
            text(
                "SELECT setval(pg_get_serial_sequence(:table, 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
            ),
            {"table": table},
        )


class OrderedCollectionRepository(CollectionRepository[RowT, ItemT]):
    """Collections shown in editor-defined order, ties broken by id."""

    def _statement(self):
        return select(self.row_type).order_by(
            col(self.row_type.display_order), col(self.row_type.id)
        )

    def next_display_order(self) -> int:
        highest = self.session.exec(
            select(func.max(self.row_type.display_order))
        ).one()
        return 0 if highest is None else highest + 1


class StatusRepository(OrderedCollectionRepository[StatusRow, StatusItem]):
    """Repository for status rows."""

    row_type = StatusRow


class AnnouncementRepository(
    OrderedCollectionRepository[AnnouncementRow, AnnouncementItem]
):
    """Repository for announcement cards."""

    row_type = AnnouncementRow


class AdvisoryRepository(CollectionRepository[AdvisoryRow, AdvisoryItem]):
    """Repository for ticker advisories. Advisories are shown in id order."""

    row_type = AdvisoryRow


class DisplayConfigRepository:
    """Repository for the singleton display configuration."""

    def __init__(self, session: Session):
        self.session = session

    def find_row(self) -> DisplayConfigRow | None:
        return self.session.exec(
            select(DisplayConfigRow).order_by(col(DisplayConfigRow.id))
        ).first()

    def find(self) -> DisplayConfig | None:
        row = self.find_row()
        return row.to_domain() if row else None

    def find_or_default(self) -> DisplayConfig:
        """The stored record, or an unsaved one holding the column defaults."""
        return (self.find_row() or DisplayConfigRow()).to_domain()

    def save(self, changes: Mapping[str, Any]) -> DisplayConfig:
        """Apply changes, creating the record with defaults when absent."""
        row = self.find_row() or DisplayConfigRow()
        for field, value in changes.items():
            setattr(row, field, value)
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row.to_domain()

    def restore(
        self,
        identity: BuildingConfig | None,
        *,
        announcement_scroll_seconds: int,
        advisory_ticker_seconds: int,
        status_page_seconds: int,
    ) -> DisplayConfig | None:
        """Bring the record in line with a published state.

        Identity fields the source did not carry are left untouched. A record
        is only created when the source had a config.
        """
        if self.find_row() is None and identity is None:
            return None
        changes: dict[str, Any] = {
            "announcement_scroll_seconds": announcement_scroll_seconds,
            "advisory_ticker_seconds": advisory_ticker_seconds,
            "status_page_seconds": status_page_seconds,
        }
        if identity is not None:
            changes.update(identity.model_dump(exclude_none=True))
        return self.save(changes)


class SnapshotRepository:
    """Append-only store of published versions."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, version: int, data: str) -> Snapshot:
        row = SnapshotRow(version=version, data=data, published_at=utc_now())
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row.to_domain()

    def _find_row(self, version: int) -> SnapshotRow | None:
        return self.session.exec(
            select(SnapshotRow).where(SnapshotRow.version == version)
        ).first()

    def find_by_version(self, version: int) -> Snapshot | None:
        row = self._find_row(version)
        return row.to_domain() if row else None

    def find_latest(self) -> Snapshot | None:
        row = self.session.exec(
            select(SnapshotRow).order_by(col(SnapshotRow.version).desc())
        ).first()
        return row.to_domain() if row else None

    def list_versions(self) -> list[VersionInfo]:
        """Version numbers and publish times, newest first."""
        rows = self.session.exec(
            select(SnapshotRow.version, SnapshotRow.published_at).order_by(
                col(SnapshotRow.version).desc()
            )
        ).all()
        return [
            VersionInfo(version=version, published_at=published_at)
            for version, published_at in rows
        ]

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(SnapshotRow)).one()

    def next_version(self) -> int:
        highest = self.session.exec(select(func.max(SnapshotRow.version))).one()
        return (highest or 0) + 1

    def delete(self, version: int) -> bool:
        row = self._find_row(version)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def delete_all_except_latest(self) -> tuple[int, int | None]:
        """Delete every version but the highest.

        Returns:
            (number of deleted versions, version that was kept)
        """
        latest = self.find_latest()
        if latest is None:
            return 0, None
        rows = self.session.exec(
            select(SnapshotRow).where(SnapshotRow.version != latest.version)
        ).all()
        for row in rows:
            self.session.delete(row)
        self.session.flush()
        return len(rows), latest.version
