"""Publishing API: versions, draft status, diff, restore and history cleanup."""

from typing import Final

from fastapi import APIRouter, Depends, Path, status

from ..application.publishing_service import (
    DraftStatus,
    PublishingService,
    PublishResult,
    PurgeResult,
    SnapshotDetail,
)
from ..domain.constants import DRAFT_TOKEN
from ..domain.diff import StateDiff
from ..domain.entities import CamelModel, CanonicalState, ItemSelection, VersionInfo
from ..domain.exceptions import ValidationError
from .dependencies import get_publishing_service

snapshot_router: Final = APIRouter(
    prefix="/api/v1/snapshots",
    tags=["snapshots"],
    responses={
        400: {"description": "Bad Request - Operation not allowed"},
        404: {"description": "Not Found - Version does not exist"},
        503: {"description": "Service Unavailable - Nothing was changed"},
    },
)

VersionPath = Path(ge=1, description="Published version number")


class OperationResult(CamelModel):
    ok: bool = True
    message: str


class RestoreItemsRequest(CamelModel):
    """Ids to bring back per collection from one published version."""

    source_version: int
    status: list[int] = []
    announcements: list[int] = []
    advisories: list[int] = []


class RestoreItemsResult(CamelModel):
    ok: bool = True
    restored: ItemSelection


def _parse_diff_target(target: str) -> int | str:
    if target == DRAFT_TOKEN:
        return DRAFT_TOKEN
    try:
        return int(target)
    except ValueError as exc:
        raise ValidationError(
            f"Diff target must be a version number or '{DRAFT_TOKEN}'"
        ) from exc


# Collection level routes come before the /{version} routes


@snapshot_router.get(
    "", response_model=list[VersionInfo], summary="List versions, newest first"
)
async def api_list_versions(
    publisher: PublishingService = Depends(get_publishing_service),
) -> list[VersionInfo]:
    return publisher.list_versions()


@snapshot_router.post(
    "",
    response_model=PublishResult,
    status_code=status.HTTP_201_CREATED,
    summary="Publish the draft as a new version",
)
async def api_publish(
    publisher: PublishingService = Depends(get_publishing_service),
) -> PublishResult:
    """Remove items marked for deletion and freeze the draft.

    Connected displays receive a refresh event once the version is stored.
    """
    return publisher.publish()


@snapshot_router.delete(
    "", response_model=PurgeResult, summary="Delete all versions but the latest"
)
async def api_purge_history(
    publisher: PublishingService = Depends(get_publishing_service),
) -> PurgeResult:
    return publisher.purge_history()


@snapshot_router.get(
    "/latest",
    response_model=CanonicalState,
    summary="Content the displays currently show",
)
async def api_latest(
    publisher: PublishingService = Depends(get_publishing_service),
) -> CanonicalState:
    return publisher.get_published_state()


@snapshot_router.get("/draft-status", response_model=DraftStatus)
async def api_draft_status(
    publisher: PublishingService = Depends(get_publishing_service),
) -> DraftStatus:
    """Which sections of the draft differ from the latest published version."""
    return publisher.get_draft_status()


@snapshot_router.post("/discard", response_model=OperationResult)
async def api_discard(
    publisher: PublishingService = Depends(get_publishing_service),
) -> OperationResult:
    """Throw away unpublished edits."""
    if not publisher.discard():
        return OperationResult(ok=False, message="No published version to restore")
    return OperationResult(message="Draft reverted to the latest version")


@snapshot_router.post("/restore-items", response_model=RestoreItemsResult)
async def api_restore_items(
    *,
    publisher: PublishingService = Depends(get_publishing_service),
    body: RestoreItemsRequest,
) -> RestoreItemsResult:
    """Restore selected items from a version into the draft."""
    selection = ItemSelection(
        status=body.status,
        announcements=body.announcements,
        advisories=body.advisories,
    )
    restored = publisher.restore_items(body.source_version, selection)
    return RestoreItemsResult(restored=restored)


# Single version routes


@snapshot_router.get("/{version}", response_model=SnapshotDetail)
async def api_get_version(
    *,
    publisher: PublishingService = Depends(get_publishing_service),
    version: int = VersionPath,
) -> SnapshotDetail:
    return publisher.get_version(version)


@snapshot_router.post("/{version}/restore", response_model=OperationResult)
async def api_restore_version(
    *,
    publisher: PublishingService = Depends(get_publishing_service),
    version: int = VersionPath,
) -> OperationResult:
    """Replace the draft with a version. Publish to make it live."""
    publisher.restore_version(version)
    return OperationResult(message=f"Draft restored from v{version}")


@snapshot_router.delete("/{version}", response_model=OperationResult)
async def api_delete_version(
    *,
    publisher: PublishingService = Depends(get_publishing_service),
    version: int = VersionPath,
) -> OperationResult:
    publisher.delete_version(version)
    return OperationResult(message=f"Deleted v{version}")


@snapshot_router.get("/{version}/diff/{target}", response_model=StateDiff)
async def api_diff_versions(
    *,
    publisher: PublishingService = Depends(get_publishing_service),
    version: int = VersionPath,
    target: str = Path(description=f"Version number or '{DRAFT_TOKEN}'"),
) -> StateDiff:
    return publisher.diff_versions(version, _parse_diff_target(target))
