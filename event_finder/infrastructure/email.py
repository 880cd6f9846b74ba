"""Email channel for notifications, delivered through SendGrid."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

import anyio
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from sqlalchemy.orm import Session

from event_finder.config import Settings
from event_finder.domain.entities import Notification, Principal
from event_finder.domain.exceptions import (
    EmailDeliveryError,
    PermanentEmailError,
    TransientEmailError,
)
from event_finder.infrastructure.email_templates import render_notification_email
from event_finder.infrastructure.repositories import NotificationRepository
from event_finder.infrastructure.retry import RetryPolicy, is_retryable_status
from event_finder.utils import utc_now

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                field = item.get("field")
                if message and field:
                    messages.append(f"{message} (field: {field})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(prefix: str, status_code: int | None, details: str | None) -> str:
    if status_code and details:
        return f"{prefix} with status {status_code}: {details}"
    if status_code:
        return f"{prefix} with status {status_code}"
    if details:
        return f"{prefix}: {details}"
    return prefix


def classify_provider_error(exc: Exception) -> EmailDeliveryError:
    """Map a SendGrid client exception onto a transient or permanent delivery error."""

    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None
    details = _extract_sendgrid_error_details(getattr(exc, "body", None))
    if status_code is None and details is None:
        details = str(exc) or exc.__class__.__name__
    message = _describe_failure("SendGrid API request failed", status_code, details)
    if is_retryable_status(status_code):
        return TransientEmailError(message, status_code=status_code)
    return PermanentEmailError(message, status_code=status_code)


def _header(headers: Any, name: str) -> str | None:
    if headers is None:
        return None
    getter = getattr(headers, "get", None)
    if getter is None:
        return None
    value = getter(name)
    if value is None:
        value = getter(name.lower())
    return str(value) if value else None


@dataclass(frozen=True)
class EmailDeliveryResult:
    """Final outcome of delivering one notification by email."""

    sent: bool
    provider_message_id: str | None = None
    error: str | None = None
    attempts: int = 0


class EmailChannelAdapter:
    """Render notifications and submit them to the email provider.

    Each provider call is bounded by ``timeout`` seconds and retried according
    to ``retry_policy``. ``send`` never raises: the outcome is reported through
    :class:`EmailDeliveryResult` and the notification's ``email_sent`` flag.
    """

    def __init__(
        self,
        client: Any,
        *,
        sender: str,
        session_factory: Callable[[], Session],
        sender_name: str | None = None,
        site_url: str = "https://event-finder.app",
        retry_policy: RetryPolicy | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._sender = sender
        self._sender_name = sender_name
        self._site_url = site_url
        self._session_factory = session_factory
        self._retry_policy = retry_policy or RetryPolicy()
        self._timeout = timeout

    def build_message(
        self, notification: Notification, recipient_email: str, recipient_name: str | None = None
    ) -> Mail:
        rendered = render_notification_email(
            notification,
            site_url=self._site_url,
            recipient_name=recipient_name,
            year=utc_now().year,
        )
        from_email = (self._sender, self._sender_name) if self._sender_name else self._sender
        return Mail(
            from_email=from_email,
            to_emails=recipient_email,
            subject=rendered.subject,
            plain_text_content=rendered.text,
            html_content=rendered.html,
        )

    async def send(
        self,
        notification: Notification,
        recipient_email: str,
        recipient_name: str | None = None,
    ) -> EmailDeliveryResult:
        log_extra = {"notification_id": notification.id, "user_id": notification.user_id}
        if not recipient_email:
            logger.warning("Notification %s has no recipient email; skipping", notification.id, extra=log_extra)
            return EmailDeliveryResult(sent=False, error="Recipient has no email address")

        try:
            message = self.build_message(notification, recipient_email, recipient_name)
        except Exception as exc:
            logger.exception("Could not render email for notification %s", notification.id, extra=log_extra)
            return EmailDeliveryResult(sent=False, error=str(exc))

        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._submit(message)
            except EmailDeliveryError as exc:
                if exc.retryable and self._retry_policy.should_retry(attempt, exc.status_code):
                    delay = self._retry_policy.delay_for(attempt)
                    logger.warning(
                        "Email for notification %s failed on attempt %s, retrying in %.2fs: %s",
                        notification.id,
                        attempt,
                        delay,
                        exc,
                        extra={**log_extra, "attempt": attempt, "status_code": exc.status_code},
                    )
                    await anyio.sleep(delay)
                    continue
                logger.error(
                    "Email for notification %s not delivered after %s attempt(s): %s",
                    notification.id,
                    attempt,
                    exc,
                    extra={**log_extra, "attempt": attempt, "status_code": exc.status_code},
                )
                return EmailDeliveryResult(sent=False, error=str(exc), attempts=attempt)
            break

        message_id = _header(getattr(response, "headers", None), "X-Message-Id")
        await self._mark_sent(notification)
        logger.info(
            "Email sent for notification %s", notification.id, extra={**log_extra, "attempt": attempt}
        )
        return EmailDeliveryResult(sent=True, provider_message_id=message_id, attempts=attempt)

    async def _submit(self, message: Mail) -> Any:
        try:
            with anyio.fail_after(self._timeout):
                response = await anyio.to_thread.run_sync(
                    self._client.send, message, abandon_on_cancel=True
                )
        except TimeoutError as exc:
            raise TransientEmailError(
                f"SendGrid API request timed out after {self._timeout}s"
            ) from exc
        except Exception as exc:
            raise classify_provider_error(exc) from exc

        status_code = getattr(response, "status_code", None)
        if isinstance(status_code, int) and 200 <= status_code < 300:
            return response
        details = _extract_sendgrid_error_details(getattr(response, "body", None))
        message = _describe_failure("SendGrid API responded", status_code, details)
        if isinstance(status_code, int) and is_retryable_status(status_code):
            raise TransientEmailError(message, status_code=status_code)
        raise PermanentEmailError(
            message, status_code=status_code if isinstance(status_code, int) else None
        )

    async def _mark_sent(self, notification: Notification) -> None:
        if notification.id is None:
            return

        def _update() -> None:
            with self._session_factory() as session:
                NotificationRepository(session, Principal.system()).mark_email_sent(
                    notification.id
                )

        try:
            await anyio.to_thread.run_sync(_update)
        except Exception:
            logger.exception(
                "Email delivered but email_sent could not be recorded for notification %s",
                notification.id,
            )
        else:
            notification.email_sent = True


def build_email_adapter(
    settings: Settings, session_factory: Callable[[], Session]
) -> EmailChannelAdapter | None:
    """Return the SendGrid backed adapter, or ``None`` when email is not configured."""

    if not settings.email_enabled:
        logger.info("SendGrid configuration incomplete; email notifications disabled")
        return None
    return EmailChannelAdapter(
        SendGridAPIClient(settings.sendgrid_api_key),
        sender=settings.sendgrid_sender,
        sender_name=settings.sendgrid_sender_name,
        site_url=settings.site_url,
        session_factory=session_factory,
        retry_policy=RetryPolicy(
            max_attempts=settings.email_max_attempts,
            base_delay=settings.email_backoff_seconds,
            max_delay=settings.email_backoff_max_seconds,
        ),
        timeout=settings.email_timeout_seconds,
    )


__all__ = [
    "EmailChannelAdapter",
    "EmailDeliveryResult",
    "build_email_adapter",
    "classify_provider_error",
]
