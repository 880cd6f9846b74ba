"""FastAPI dependency utilities."""

from __future__ import annotations

import hmac
from collections.abc import Generator

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from event_finder.domain.entities import Principal
from event_finder.infrastructure.database import session_scope
from event_finder.infrastructure.security import get_user_id_from_token
from event_finder.services import Services

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_db(services: Services = Depends(get_services)) -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    yield from session_scope(services.session_factory)


def resolve_principal(token: str | None, services: Services) -> Principal:
    """Return the user principal for a bearer token issued by the auth provider."""

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_id = get_user_id_from_token(services.settings, token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    return Principal.for_user(user_id)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    services: Services = Depends(get_services),
) -> Principal:
    token = credentials.credentials if credentials is not None else None
    return resolve_principal(token, services)


def require_service_key(
    x_service_key: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> None:
    """Guard the internal job endpoints with the shared service key."""

    expected = services.settings.service_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Internal endpoints are disabled",
        )
    if not x_service_key or not hmac.compare_digest(x_service_key, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid service key")


__all__ = [
    "bearer_scheme",
    "get_current_principal",
    "get_db",
    "get_services",
    "require_service_key",
    "resolve_principal",
]
