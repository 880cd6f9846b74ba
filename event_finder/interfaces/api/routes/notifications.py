"""Endpoints and websocket handler for the notification inbox."""

from __future__ import annotations

import logging
from typing import Any

import anyio
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from event_finder.application.use_cases.notifications import (
    clear_notifications as clear_notifications_uc,
    count_unread_notifications,
    delete_notification as delete_notification_uc,
    list_notifications as list_notifications_uc,
    mark_all_notifications_read,
    mark_notification_read,
)
from event_finder.domain.entities import NotificationType, Principal
from event_finder.domain.exceptions import AuthorizationError
from event_finder.infrastructure.notifications import serialize_notification
from event_finder.interfaces.api.dependencies import (
    get_current_principal,
    get_db,
    resolve_principal,
)
from event_finder.interfaces.api.routes_helpers import http_error_for, notification_to_schema
from event_finder.interfaces.api.schemas import (
    NotificationBulkResult,
    NotificationRead,
    UnreadCountRead,
)
from event_finder.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[NotificationRead]:
    """Return the caller's notifications, newest first."""

    try:
        notifications = list_notifications_uc(
            db,
            principal,
            notification_type=notification_type,
            unread_only=unread_only,
            limit=limit,
            offset=offset,
        )
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return [notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> UnreadCountRead:
    return UnreadCountRead(count=count_unread_notifications(db, principal))


@router.post("/read-all", response_model=NotificationBulkResult)
def mark_all_read(
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> NotificationBulkResult:
    count = mark_all_notifications_read(db, principal, notification_type=notification_type)
    return NotificationBulkResult(count=count)


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> NotificationRead:
    try:
        notification = mark_notification_read(db, principal, notification_id)
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return notification_to_schema(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    try:
        delete_notification_uc(db, principal, notification_id)
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", response_model=NotificationBulkResult)
def clear_notifications(
    notification_type: NotificationType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> NotificationBulkResult:
    """Delete every notification of the caller, or only those of ``type``."""

    count = clear_notifications_uc(db, principal, notification_type=notification_type)
    return NotificationBulkResult(count=count)


def _load_unread(services: Services, principal: Principal) -> list[dict[str, Any]]:
    with services.session_factory() as session:
        notifications = list_notifications_uc(
            session, principal, unread_only=True, limit=100
        )
    return [serialize_notification(notification) for notification in notifications]


def _acknowledge(services: Services, principal: Principal, ids: list[int]) -> tuple[list[int], int]:
    acknowledged: list[int] = []
    with services.session_factory() as session:
        for notification_id in ids:
            try:
                mark_notification_read(session, principal, notification_id)
            except (ValueError, AuthorizationError):
                continue
            acknowledged.append(notification_id)
        return acknowledged, count_unread_notifications(session, principal)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    services: Services = websocket.app.state.services
    try:
        principal = resolve_principal(websocket.query_params.get("token"), services)
    except HTTPException:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    subscription = services.hub.subscribe(principal.user_id, websocket.send_json)
    try:
        pending = await anyio.to_thread.run_sync(_load_unread, services, principal)
        await websocket.send_json({"type": "init", "data": pending})
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if not isinstance(ids, list):
                    continue
                valid_ids = [value for value in ids if isinstance(value, int) and not isinstance(value, bool)]
                acknowledged, unread = await anyio.to_thread.run_sync(
                    _acknowledge, services, principal, valid_ids
                )
                await websocket.send_json(
                    {"type": "ack", "data": {"ids": acknowledged, "unread_count": unread}}
                )
    except WebSocketDisconnect:
        logger.debug("Notification websocket closed for user %s", principal.user_id)
    finally:
        subscription.close()
