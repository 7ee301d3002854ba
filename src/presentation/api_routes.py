"""Editor API: draft collections, display config and the live update stream."""

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Final

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import StreamingResponse
from pydantic import Field

from ..application.editor_service import Collection, EditorService
from ..application.notifier import ChangeBroadcaster
from ..config import settings
from ..domain.constants import MAX_NAME_LENGTH, MAX_SPEED_SECONDS, MAX_TEXT_LENGTH
from ..domain.entities import (
    AdvisoryItem,
    AnnouncementItem,
    CamelModel,
    DisplayConfig,
    StatusItem,
)
from .dependencies import get_broadcaster, get_editor_service

api_router: Final = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        404: {"description": "Not Found - Item does not exist"},
        503: {"description": "Service Unavailable - Change could not be saved"},
    },
)

ItemId = Path(ge=1, description="Item identifier")


# Request Models
class StatusItemCreate(CamelModel):
    """Request model for adding a row to the status page."""

    name: str = Field(
        ..., max_length=MAX_NAME_LENGTH, examples=["Elevator A", "Laundry Room"]
    )
    status: str = Field("Operational", examples=["Operational", "Maintenance"])
    notes: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    display_order: int | None = Field(None, description="Defaults to end of list")


class StatusItemUpdate(CamelModel):
    name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    status: str | None = None
    notes: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    last_checked: datetime | None = None
    display_order: int | None = None


class AnnouncementCreate(CamelModel):
    """Request model for adding an announcement card."""

    title: str = Field(..., max_length=MAX_NAME_LENGTH, examples=["Rooftop Yoga"])
    subtitle: str = Field("", max_length=MAX_TEXT_LENGTH)
    details: list[str] = Field(default_factory=list)
    image_ref: str | None = None
    accent_color: str | None = Field(None, examples=["#3b82f6"])
    display_order: int | None = Field(None, description="Defaults to end of list")


class AnnouncementUpdate(CamelModel):
    title: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    subtitle: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    details: list[str] | None = None
    image_ref: str | None = None
    accent_color: str | None = None
    display_order: int | None = None


class AdvisoryCreate(CamelModel):
    """Request model for adding a ticker advisory."""

    message: str = Field(..., max_length=MAX_TEXT_LENGTH)
    label: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    active: bool = True


class AdvisoryUpdate(CamelModel):
    message: str | None = Field(None, max_length=MAX_TEXT_LENGTH)
    label: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    active: bool | None = None


class DisplayConfigUpdate(CamelModel):
    building_number: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    building_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    subtitle: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    announcement_scroll_seconds: int | None = Field(None, ge=0, le=MAX_SPEED_SECONDS)
    advisory_ticker_seconds: int | None = Field(None, ge=0, le=MAX_SPEED_SECONDS)
    status_page_seconds: int | None = Field(None, ge=0, le=MAX_SPEED_SECONDS)


# Status items


@api_router.get(
    "/status-items",
    response_model=list[StatusItem],
    tags=["status"],
    summary="List status rows, including those marked for deletion",
)
async def api_list_status_items(
    editor: EditorService = Depends(get_editor_service),
) -> list[StatusItem]:
    return editor.list_items(Collection.STATUS)  # type: ignore[return-value]


@api_router.post(
    "/status-items",
    response_model=StatusItem,
    status_code=status.HTTP_201_CREATED,
    tags=["status"],
    summary="Add a status row",
)
async def api_create_status_item(
    *, editor: EditorService = Depends(get_editor_service), body: StatusItemCreate
) -> StatusItem:
    return editor.create_status_item(
        name=body.name,
        status=body.status,
        notes=body.notes,
        display_order=body.display_order,
    )


@api_router.put("/status-items/{item_id}", response_model=StatusItem, tags=["status"])
async def api_update_status_item(
    *,
    editor: EditorService = Depends(get_editor_service),
    item_id: int = ItemId,
    body: StatusItemUpdate,
) -> StatusItem:
    """Update a status row. Its last checked time is refreshed unless given."""
    return editor.update_item(  # type: ignore[return-value]
        Collection.STATUS, item_id, body.model_dump(exclude_unset=True)
    )


@api_router.delete(
    "/status-items/{item_id}", response_model=StatusItem, tags=["status"]
)
async def api_mark_status_item(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> StatusItem:
    """Mark a status row for deletion. It is removed on the next publish."""
    return editor.mark_for_deletion(  # type: ignore[return-value]
        Collection.STATUS, item_id
    )


@api_router.post(
    "/status-items/{item_id}/unmark", response_model=StatusItem, tags=["status"]
)
async def api_unmark_status_item(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> StatusItem:
    return editor.unmark(Collection.STATUS, item_id)  # type: ignore[return-value]


# Announcements


@api_router.get(
    "/announcements",
    response_model=list[AnnouncementItem],
    tags=["announcements"],
    summary="List announcement cards, including those marked for deletion",
)
async def api_list_announcements(
    editor: EditorService = Depends(get_editor_service),
) -> list[AnnouncementItem]:
    return editor.list_items(Collection.ANNOUNCEMENTS)  # type: ignore[return-value]


@api_router.post(
    "/announcements",
    response_model=AnnouncementItem,
    status_code=status.HTTP_201_CREATED,
    tags=["announcements"],
    summary="Add an announcement card",
)
async def api_create_announcement(
    *, editor: EditorService = Depends(get_editor_service), body: AnnouncementCreate
) -> AnnouncementItem:
    return editor.create_announcement(
        title=body.title,
        subtitle=body.subtitle,
        details=body.details,
        image_ref=body.image_ref,
        accent_color=body.accent_color,
        display_order=body.display_order,
    )


@api_router.put(
    "/announcements/{item_id}", response_model=AnnouncementItem, tags=["announcements"]
)
async def api_update_announcement(
    *,
    editor: EditorService = Depends(get_editor_service),
    item_id: int = ItemId,
    body: AnnouncementUpdate,
) -> AnnouncementItem:
    return editor.update_item(  # type: ignore[return-value]
        Collection.ANNOUNCEMENTS, item_id, body.model_dump(exclude_unset=True)
    )


@api_router.delete(
    "/announcements/{item_id}", response_model=AnnouncementItem, tags=["announcements"]
)
async def api_mark_announcement(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> AnnouncementItem:
    """Mark a card for deletion. It is removed on the next publish."""
    return editor.mark_for_deletion(  # type: ignore[return-value]
        Collection.ANNOUNCEMENTS, item_id
    )


@api_router.post(
    "/announcements/{item_id}/unmark",
    response_model=AnnouncementItem,
    tags=["announcements"],
)
async def api_unmark_announcement(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> AnnouncementItem:
    return editor.unmark(  # type: ignore[return-value]
        Collection.ANNOUNCEMENTS, item_id
    )


# Advisories


@api_router.get(
    "/advisories",
    response_model=list[AdvisoryItem],
    tags=["advisories"],
    summary="List ticker advisories, including those marked for deletion",
)
async def api_list_advisories(
    editor: EditorService = Depends(get_editor_service),
) -> list[AdvisoryItem]:
    return editor.list_items(Collection.ADVISORIES)  # type: ignore[return-value]


@api_router.post(
    "/advisories",
    response_model=AdvisoryItem,
    status_code=status.HTTP_201_CREATED,
    tags=["advisories"],
    summary="Add a ticker advisory",
)
async def api_create_advisory(
    *, editor: EditorService = Depends(get_editor_service), body: AdvisoryCreate
) -> AdvisoryItem:
    return editor.create_advisory(
        message=body.message, label=body.label, active=body.active
    )


@api_router.put(
    "/advisories/{item_id}", response_model=AdvisoryItem, tags=["advisories"]
)
async def api_update_advisory(
    *,
    editor: EditorService = Depends(get_editor_service),
    item_id: int = ItemId,
    body: AdvisoryUpdate,
) -> AdvisoryItem:
    return editor.update_item(  # type: ignore[return-value]
        Collection.ADVISORIES, item_id, body.model_dump(exclude_unset=True)
    )


@api_router.delete(
    "/advisories/{item_id}", response_model=AdvisoryItem, tags=["advisories"]
)
async def api_mark_advisory(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> AdvisoryItem:
    """Mark an advisory for deletion. It is removed on the next publish."""
    return editor.mark_for_deletion(  # type: ignore[return-value]
        Collection.ADVISORIES, item_id
    )


@api_router.post(
    "/advisories/{item_id}/unmark", response_model=AdvisoryItem, tags=["advisories"]
)
async def api_unmark_advisory(
    *, editor: EditorService = Depends(get_editor_service), item_id: int = ItemId
) -> AdvisoryItem:
    return editor.unmark(Collection.ADVISORIES, item_id)  # type: ignore[return-value]


# Display config


@api_router.get("/config", response_model=DisplayConfig, tags=["config"])
async def api_get_config(
    editor: EditorService = Depends(get_editor_service),
) -> DisplayConfig:
    """Current display config; defaults when nothing was saved yet."""
    return editor.get_config()


@api_router.put("/config", response_model=DisplayConfig, tags=["config"])
async def api_update_config(
    *, editor: EditorService = Depends(get_editor_service), body: DisplayConfigUpdate
) -> DisplayConfig:
    return editor.update_config(body.model_dump(exclude_unset=True))


# Live updates


@api_router.get("/events-stream", tags=["live"], summary="Server-sent refresh events")
async def api_events_stream(
    request: Request, broadcaster: ChangeBroadcaster = Depends(get_broadcaster)
) -> StreamingResponse:
    """Stream a ``refresh`` event each time a new version is published.

    Idle streams receive a comment line every few seconds so proxies keep the
    connection open.
    """
    subscription = broadcaster.subscribe()

    async def event_generator() -> AsyncIterator[str]:
        try:
            yield ": connected\n\n"
            while not await request.is_disconnected():
                try:
                    message = await asyncio.wait_for(
                        subscription.queue.get(),
                        timeout=settings.event_stream_keepalive_seconds,
                    )
                except TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {message}\n\n"
        finally:
            broadcaster.unsubscribe(subscription)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
