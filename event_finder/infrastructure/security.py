"""Verification of bearer tokens issued by the external auth provider."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from event_finder.config import Settings


def create_access_token(
    settings: Settings, subject: str, expires_delta: timedelta | None = None
) -> str:
    """Issue a token the way the auth provider does. Used by scripts and tests."""

    expire = datetime.now(tz=timezone.utc) + (expires_delta or timedelta(hours=1))
    claims: dict = {"sub": subject, "exp": expire}
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict:
    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def get_user_id_from_token(settings: Settings, token: str) -> str:
    payload = decode_access_token(settings, token)
    subject = payload.get("sub")
    if not subject:
        raise ValueError("Could not validate credentials")
    return str(subject)


__all__ = ["create_access_token", "decode_access_token", "get_user_id_from_token"]
