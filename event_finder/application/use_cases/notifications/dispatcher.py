"""Deliver notifications to users through the in-app, realtime and email channels."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Callable, Union

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_finder.domain.entities import (
    Notification,
    NotificationChannel,
    NotificationPayload,
    NotificationPreference,
    NotificationType,
    Principal,
    Profile,
)
from event_finder.domain.exceptions import (
    DuplicateReminderAttempt,
    NotificationPersistError,
    PreferenceResolutionError,
)
from event_finder.infrastructure.email import EmailChannelAdapter
from event_finder.infrastructure.notifications import NotificationPublisher
from event_finder.infrastructure.repositories import (
    NotificationRepository,
    ProfileRepository,
)
from event_finder.utils import utc_now

from .preferences import is_channel_enabled, resolve_preferences

logger = logging.getLogger(__name__)

PayloadSource = Union[NotificationPayload, Callable[[str], NotificationPayload]]


@dataclass(frozen=True)
class NotificationFailure:
    user_id: str
    error: str


@dataclass
class NotifyManyResult:
    """Outcome of a bulk notify. Every recipient lands in exactly one list."""

    created: list[Notification] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[NotificationFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class Dispatcher:
    """Apply preferences, persist, publish and email a notification.

    Only a failed write of the in-app record is reported to the caller; the
    realtime push and the email are best effort. Both run in detached tasks so
    the in-app path never waits on a slow socket or on the provider.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        publisher: NotificationPublisher,
        email_adapter: EmailChannelAdapter | None = None,
        concurrency: int = 10,
    ) -> None:
        self._session_factory = session_factory
        self._publisher = publisher
        self._email_adapter = email_adapter
        self._concurrency = max(concurrency, 1)
        self._principal = Principal.system()
        self._pending_emails: set[asyncio.Task] = set()
        self._pending_publishes: set[asyncio.Task] = set()

    @property
    def pending_emails(self) -> int:
        return len(self._pending_emails)

    @property
    def pending_publishes(self) -> int:
        return len(self._pending_publishes)

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        payload: NotificationPayload,
    ) -> Notification | None:
        """Deliver ``payload`` to ``user_id``.

        Returns ``None`` when the category is muted for the user or when the
        reminder was already sent. Raises :class:`NotificationPersistError`
        when the in-app record cannot be written.
        """

        notification_type = NotificationType(notification_type)
        if payload.notification_type is not notification_type:
            raise ValueError(
                f"Payload of type {payload.notification_type.value} "
                f"cannot be sent as {notification_type.value}"
            )
        log_extra = {"user_id": user_id, "notification_type": notification_type.value}

        preference = await self._resolve_preference(user_id)
        if not is_channel_enabled(preference, notification_type, NotificationChannel.IN_APP):
            logger.debug(
                "Skipping %s notification for user %s: category muted",
                notification_type.value,
                user_id,
                extra=log_extra,
            )
            return None

        notification = Notification.from_payload(user_id, payload, created_at=utc_now())
        try:
            saved = await anyio.to_thread.run_sync(self._persist, notification)
        except DuplicateReminderAttempt as exc:
            logger.debug("%s", exc, extra={**log_extra, "offset_hours": exc.offset_hours})
            return None
        except SQLAlchemyError as exc:
            logger.error(
                "Could not store %s notification for user %s",
                notification_type.value,
                user_id,
                exc_info=True,
                extra=log_extra,
            )
            raise NotificationPersistError(
                f"Could not store notification for user {user_id}", user_id=user_id
            ) from exc

        if self._email_adapter is not None and is_channel_enabled(
            preference, notification_type, NotificationChannel.EMAIL
        ):
            self._spawn_email(saved)

        self._spawn_publish(saved)
        return saved

    async def notify_many(
        self,
        user_ids: Iterable[str],
        notification_type: NotificationType,
        payload: PayloadSource,
    ) -> NotifyManyResult:
        """Notify every recipient independently and concurrently.

        ``payload`` is either one payload shared by all recipients or a callable
        building the payload for a given user id. Never raises: per-recipient
        errors are collected in :attr:`NotifyManyResult.failures`.
        """

        result = NotifyManyResult()
        recipients = [user_id for user_id in dict.fromkeys(user_ids) if user_id]
        if not recipients:
            return result
        limiter = anyio.CapacityLimiter(self._concurrency)

        async def _deliver(user_id: str) -> None:
            async with limiter:
                try:
                    user_payload = payload(user_id) if callable(payload) else payload
                    notification = await self.notify(user_id, notification_type, user_payload)
                except Exception as exc:
                    logger.error(
                        "Notification for user %s failed: %s",
                        user_id,
                        exc,
                        extra={"user_id": user_id},
                    )
                    result.failures.append(NotificationFailure(user_id=user_id, error=str(exc)))
                    return
                if notification is None:
                    result.skipped.append(user_id)
                else:
                    result.created.append(notification)

        async with anyio.create_task_group() as task_group:
            for user_id in recipients:
                task_group.start_soon(_deliver, user_id)

        result.created.sort(key=lambda notification: notification.id or 0)
        return result

    async def drain(self) -> None:
        """Wait for every realtime push and email send that is still in flight."""

        while self._pending_emails or self._pending_publishes:
            pending = [*self._pending_publishes, *self._pending_emails]
            await asyncio.gather(*pending, return_exceptions=True)

    async def _resolve_preference(self, user_id: str) -> NotificationPreference:
        try:
            return await anyio.to_thread.run_sync(self._load_preference, user_id)
        except PreferenceResolutionError:
            logger.warning(
                "Falling back to default notification preferences for user %s",
                user_id,
                exc_info=True,
                extra={"user_id": user_id},
            )
            return NotificationPreference.defaults(user_id)

    def _load_preference(self, user_id: str) -> NotificationPreference:
        with self._session_factory() as session:
            return resolve_preferences(session, user_id, principal=self._principal)

    def _persist(self, notification: Notification) -> Notification:
        with self._session_factory() as session:
            return NotificationRepository(session, self._principal).create(notification)

    def _load_profile(self, user_id: str) -> Profile | None:
        with self._session_factory() as session:
            return ProfileRepository(session, self._principal).get(user_id)

    def _spawn_publish(self, notification: Notification) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._publish(notification))
        self._pending_publishes.add(task)
        task.add_done_callback(self._pending_publishes.discard)

    async def _publish(self, notification: Notification) -> None:
        try:
            await self._publisher.publish(notification)
        except Exception:
            logger.warning(
                "Realtime publish failed for notification %s", notification.id, exc_info=True
            )

    def _spawn_email(self, notification: Notification) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._send_email(notification))
        self._pending_emails.add(task)
        task.add_done_callback(self._pending_emails.discard)

    async def _send_email(self, notification: Notification) -> None:
        adapter = self._email_adapter
        if adapter is None:
            return
        try:
            profile = await anyio.to_thread.run_sync(self._load_profile, notification.user_id)
            if profile is None or not profile.email:
                logger.info(
                    "User %s has no email address; email for notification %s skipped",
                    notification.user_id,
                    notification.id,
                )
                return
            await adapter.send(notification, profile.email, profile.full_name)
        except Exception:
            logger.exception("Email delivery for notification %s crashed", notification.id)


__all__ = [
    "Dispatcher",
    "NotificationFailure",
    "NotifyManyResult",
    "PayloadSource",
]
