#!/usr/bin/env python3
"""
Seed the draft with demo content for the Hudson lobby displays.

Clears the draft tables and the published history, creates the demo
configuration, status rows, announcement cards and advisories, and publishes
them as version 1 so the editor starts without pending changes.

Usage:
    python scripts/seed_demo.py            # seed and publish
    python scripts/seed_demo.py --draft    # seed the draft only
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete  # noqa: E402
from sqlmodel import Session  # noqa: E402

from src.application.editor_service import EditorService  # noqa: E402
from src.application.publishing_service import PublishingService  # noqa: E402
from src.config import settings  # noqa: E402
from src.infrastructure.database.database import create_db_engine, init_db  # noqa: E402
from src.infrastructure.database.models import (  # noqa: E402
    AdvisoryRow,
    AnnouncementRow,
    DisplayConfigRow,
    SnapshotRow,
    StatusRow,
)

STATUS_ROWS = [
    ("Elevators", "Operational", None),
    ("HVAC", "Operational", None),
    ("Hot Water", "Maintenance", "Boiler maintenance until 3pm"),
    ("Parking Garage", "Operational", None),
    ("Package Room", "Operational", "Open 7am-10pm"),
    ("Gym", "Operational", "24/7 access"),
    ("Pool", "Maintenance", "Closed for cleaning, reopens tomorrow"),
    ("Rooftop Lounge", "Operational", None),
    ("Laundry Room", "Operational", None),
    ("Bike Storage", "Outage", "Key card reader malfunction - use side entrance"),
    ("Guest Parking", "Operational", None),
    ("Concierge", "Operational", "8am-8pm daily"),
]

ANNOUNCEMENTS = [
    (
        "Morning Yoga",
        "Saturday, 9:00 AM",
        [
            "Start your weekend with a relaxing yoga session on the rooftop.",
            "All levels welcome. Mats provided.",
            "**RSVP at front desk**",
        ],
        "/images/yoga.jpg",
    ),
    (
        "Bagel Brunch",
        "Sunday, 10:00 AM",
        [
            "Join us in the community room for fresh bagels and coffee.",
            "Assorted cream cheeses and toppings available.",
            "Great way to meet your neighbors!",
        ],
        "/images/bagels.jpg",
    ),
    (
        "Tequila Tasting Night",
        "Friday, 7:00 PM",
        [
            "Sample premium tequilas from Mexico.",
            "Light appetizers included.",
            "$20 per person - **21+ only**",
            "Limited to 25 guests.",
        ],
        "/images/tequila.jpg",
    ),
    (
        "Building Maintenance Notice",
        "Scheduled Work",
        [
            "Fire alarm testing on **Monday 10am-2pm**.",
            "Please disregard alarms during this time.",
            "Contact management with questions.",
        ],
        None,
    ),
]

ADVISORIES = [
    ("REMINDER", "Guest parking validation available at front desk"),
    ("NOTICE", "Pool hours extended to 10pm for summer season"),
]


def clear_all(session: Session) -> None:
    tables = (SnapshotRow, StatusRow, AnnouncementRow, AdvisoryRow, DisplayConfigRow)
    for table in tables:
        session.execute(delete(table))
    session.commit()


def seed(session: Session, publish: bool = True) -> None:
    editor = EditorService(session)

    editor.update_config(
        {
            "building_number": "77",
            "building_name": "Hudson",
            "subtitle": "Building Services Dashboard",
            "announcement_scroll_seconds": 50,
            "advisory_ticker_seconds": 30,
        }
    )
    for name, status, notes in STATUS_ROWS:
        editor.create_status_item(name, status=status, notes=notes)
    for title, subtitle, details, image_ref in ANNOUNCEMENTS:
        editor.create_announcement(
            title, subtitle=subtitle, details=details, image_ref=image_ref
        )
    for label, message in ADVISORIES:
        editor.create_advisory(message, label=label)

    print(f"   - {len(STATUS_ROWS)} status rows")
    print(f"   - {len(ANNOUNCEMENTS)} announcements")
    print(f"   - {len(ADVISORIES)} advisories")

    if publish:
        result = PublishingService(session).publish()
        print(f"   - published as v{result.version} (no pending changes)")


def main() -> None:
    publish = "--draft" not in sys.argv[1:]

    print("🌱 Seeding demo content")
    print(f"📊 Database: {settings.effective_database_url}")

    engine = create_db_engine(settings.effective_database_url)
    init_db(engine)

    with Session(engine) as session:
        clear_all(session)
        seed(session, publish=publish)

    print("✅ Database seeded successfully")


if __name__ == "__main__":
    main()
