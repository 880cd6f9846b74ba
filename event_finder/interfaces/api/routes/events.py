"""Event actions that trigger attendee notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from event_finder.application.use_cases.events import (
    EventActionResult,
    create_event as create_event_uc,
    delete_event as delete_event_uc,
    join_event as join_event_uc,
    leave_event as leave_event_uc,
    update_event as update_event_uc,
)
from event_finder.domain.entities import Event, Principal
from event_finder.domain.exceptions import AuthorizationError
from event_finder.interfaces.api.dependencies import get_current_principal, get_services
from event_finder.interfaces.api.routes_helpers import event_to_schema, http_error_for
from event_finder.interfaces.api.schemas import (
    EventActionResponse,
    EventCreate,
    EventUpdate,
)
from event_finder.services import Services

router = APIRouter(prefix="/events", tags=["events"])


def _to_response(result: EventActionResult) -> EventActionResponse:
    return EventActionResponse(
        event=event_to_schema(result.event),
        changed=result.changed,
        notified=result.notified,
        notification_warning=result.notification_warning,
    )


@router.post("/", response_model=EventActionResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    services: Services = Depends(get_services),
    principal: Principal = Depends(get_current_principal),
) -> EventActionResponse:
    event = Event(id=None, organizer_id=principal.user_id, **payload.model_dump())
    result = await create_event_uc(services.session_factory, principal, event)
    return _to_response(result)


@router.patch("/{event_id}", response_model=EventActionResponse)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    services: Services = Depends(get_services),
    principal: Principal = Depends(get_current_principal),
) -> EventActionResponse:
    """Edit an event; attendees hear about date, time and venue changes."""

    try:
        result = await update_event_uc(
            services.session_factory,
            services.dispatcher,
            principal,
            event_id,
            payload.changes(),
        )
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_response(result)


@router.delete("/{event_id}", response_model=EventActionResponse)
async def delete_event(
    event_id: str,
    services: Services = Depends(get_services),
    principal: Principal = Depends(get_current_principal),
) -> EventActionResponse:
    try:
        result = await delete_event_uc(
            services.session_factory, services.dispatcher, principal, event_id
        )
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_response(result)


@router.post("/{event_id}/rsvp", response_model=EventActionResponse)
async def join_event(
    event_id: str,
    services: Services = Depends(get_services),
    principal: Principal = Depends(get_current_principal),
) -> EventActionResponse:
    try:
        result = await join_event_uc(
            services.session_factory, services.dispatcher, principal, event_id
        )
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_response(result)


@router.delete("/{event_id}/rsvp", response_model=EventActionResponse)
async def leave_event(
    event_id: str,
    services: Services = Depends(get_services),
    principal: Principal = Depends(get_current_principal),
) -> EventActionResponse:
    try:
        result = await leave_event_uc(
            services.session_factory, services.dispatcher, principal, event_id
        )
    except (ValueError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_response(result)
