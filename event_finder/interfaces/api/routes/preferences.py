"""Endpoints to read and update the caller's notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_finder.application.use_cases.notifications import (
    resolve_preferences,
    update_preferences,
)
from event_finder.domain.entities import NotificationPreference, Principal
from event_finder.domain.exceptions import AuthorizationError, PreferenceResolutionError
from event_finder.interfaces.api.dependencies import get_current_principal, get_db
from event_finder.interfaces.api.routes_helpers import http_error_for
from event_finder.interfaces.api.schemas import (
    NotificationPreferenceRead,
    NotificationPreferenceUpdate,
)

router = APIRouter(prefix="/notification-preferences", tags=["notification-preferences"])


def _to_read_model(preference: NotificationPreference) -> NotificationPreferenceRead:
    return NotificationPreferenceRead(
        user_id=preference.user_id,
        email_enabled=preference.email_enabled,
        reminders_enabled=preference.reminders_enabled,
        confirmations_enabled=preference.confirmations_enabled,
        updates_enabled=preference.updates_enabled,
        reminder_offsets=sorted(preference.reminder_offsets, reverse=True),
        created_at=preference.created_at,
        updated_at=preference.updated_at,
    )


@router.get("/me", response_model=NotificationPreferenceRead)
def read_my_preferences(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> NotificationPreferenceRead:
    """Return the caller's preferences, creating the defaults on first access."""

    try:
        preference = resolve_preferences(db, principal.user_id, principal=principal)
    except (PreferenceResolutionError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_read_model(preference)


@router.put("/me", response_model=NotificationPreferenceRead)
def update_my_preferences(
    payload: NotificationPreferenceUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> NotificationPreferenceRead:
    try:
        preference = update_preferences(
            db, principal.user_id, payload.changes(), principal=principal
        )
    except (ValueError, PreferenceResolutionError, AuthorizationError) as exc:
        raise http_error_for(exc) from exc
    return _to_read_model(preference)
