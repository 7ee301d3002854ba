"""FastAPI dependencies wiring services to the request's session."""

from fastapi import Depends, Request
from sqlmodel import Session

from ..application.editor_service import EditorService
from ..application.notifier import ChangeBroadcaster
from ..application.publishing_service import PublishingService
from ..infrastructure.database.database import get_session


def get_broadcaster(request: Request) -> ChangeBroadcaster:
    return request.app.state.broadcaster


def get_editor_service(session: Session = Depends(get_session)) -> EditorService:
    return EditorService(session)


def get_publishing_service(
    session: Session = Depends(get_session),
    broadcaster: ChangeBroadcaster = Depends(get_broadcaster),
) -> PublishingService:
    return PublishingService(session, broadcaster)
