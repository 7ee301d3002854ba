"""Domain business rules and constants."""

from enum import StrEnum
from typing import Final

# Business Rules - Core domain constraints
MAX_NAME_LENGTH: Final = 100
MAX_TEXT_LENGTH: Final = 500
MAX_SPEED_SECONDS: Final = 3600

# Per-section auto-advance defaults in seconds (0 means static)
DEFAULT_ANNOUNCEMENT_SCROLL_SECONDS: Final = 30
DEFAULT_ADVISORY_TICKER_SECONDS: Final = 25
DEFAULT_STATUS_PAGE_SECONDS: Final = 8

# Defaults carried over from the original schema
DEFAULT_ADVISORY_LABEL: Final = "RESIDENT ADVISORY"
DEFAULT_BUILDING_NUMBER: Final = "77"
DEFAULT_BUILDING_NAME: Final = "Hudson Dashboard"
DEFAULT_BUILDING_SUBTITLE: Final = "Real-time System Monitor"

# Token accepted by diff_versions in place of a second version number
DRAFT_TOKEN: Final = "draft"


class StatusLevel(StrEnum):
    """Operational state of a building service."""

    OPERATIONAL = "Operational"
    MAINTENANCE = "Maintenance"
    OUTAGE = "Outage"


# Fields compared when deciding whether an item changed between two states
STATUS_DIFF_FIELDS: Final = ("name", "status", "notes")
ANNOUNCEMENT_DIFF_FIELDS: Final = ("title", "subtitle", "image_ref")
ADVISORY_DIFF_FIELDS: Final = ("label", "message", "active")

# Operational fields ignored by the "has unpublished changes" comparison
STATUS_VOLATILE_FIELDS: Final = frozenset({"last_checked"})
