"""Projection of the editable draft tables into a canonical state."""

from sqlmodel import Session

from ..domain.entities import (
    AdvisorySection,
    AnnouncementSection,
    CanonicalState,
    DisplayConfig,
    StatusSection,
)
from ..infrastructure.database.repositories import (
    AdvisoryRepository,
    AnnouncementRepository,
    DisplayConfigRepository,
    StatusRepository,
)


class StateProjector:
    """Reads the draft tables as one ``CanonicalState``.

    Items marked for deletion are kept so callers can tell pending removals
    apart from items that are already gone. Without a config record the
    section speeds fall back to their defaults and ``config`` is ``None``.
    """

    def __init__(self, session: Session):
        self.status_repo = StatusRepository(session)
        self.announcement_repo = AnnouncementRepository(session)
        self.advisory_repo = AdvisoryRepository(session)
        self.config_repo = DisplayConfigRepository(session)

    def project(self) -> CanonicalState:
        config = self.config_repo.find()
        speeds = config or DisplayConfig()
        return CanonicalState(
            config=config.identity() if config else None,
            status_section=StatusSection(
                items=self.status_repo.find_all(), speed=speeds.status_page_seconds
            ),
            announcement_section=AnnouncementSection(
                items=self.announcement_repo.find_all(),
                speed=speeds.announcement_scroll_seconds,
            ),
            advisory_section=AdvisorySection(
                items=self.advisory_repo.find_all(),
                speed=speeds.advisory_ticker_seconds,
            ),
        )
