"""Construction of the long lived services shared by the API and the scripts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import anyio
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from event_finder.application.use_cases.notifications import (
    Dispatcher,
    ReminderScheduler,
    ReminderSweepResult,
    RetentionResult,
    purge_expired_notifications,
)
from event_finder.config import Settings
from event_finder.infrastructure.database import (
    create_database_engine,
    create_session_factory,
    initialize_database,
)
from event_finder.infrastructure.email import EmailChannelAdapter, build_email_adapter
from event_finder.infrastructure.notifications import NotificationHub, NotificationPublisher
from event_finder.utils import resolve_timezone


@dataclass
class Services:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker[Session]
    hub: NotificationHub
    publisher: NotificationPublisher
    email_adapter: EmailChannelAdapter | None
    dispatcher: Dispatcher
    reminder_scheduler: ReminderScheduler

    async def run_reminder_sweep(self) -> ReminderSweepResult:
        return await self.reminder_scheduler.run_once()

    async def run_retention_purge(self) -> RetentionResult:
        def _purge() -> RetentionResult:
            with self.session_factory() as session:
                return purge_expired_notifications(
                    session, retention_days=self.settings.notification_retention_days
                )

        return await anyio.to_thread.run_sync(_purge)

    def close(self) -> None:
        self.engine.dispose()


def build_services(
    settings: Settings,
    *,
    engine: Engine | None = None,
    email_adapter: EmailChannelAdapter | None = None,
) -> Services:
    """Wire the engine, the realtime hub, the dispatcher and the reminder sweep."""

    engine = engine or create_database_engine(settings)
    initialize_database(engine)
    session_factory = create_session_factory(engine)
    hub = NotificationHub()
    publisher = NotificationPublisher(hub)
    if email_adapter is None:
        email_adapter = build_email_adapter(settings, session_factory)
    dispatcher = Dispatcher(
        session_factory,
        publisher=publisher,
        email_adapter=email_adapter,
        concurrency=settings.dispatch_concurrency,
    )
    reminder_scheduler = ReminderScheduler(
        session_factory,
        dispatcher,
        event_timezone=resolve_timezone(settings.event_timezone),
        tolerance=timedelta(minutes=settings.reminder_tolerance),
    )
    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        hub=hub,
        publisher=publisher,
        email_adapter=email_adapter,
        dispatcher=dispatcher,
        reminder_scheduler=reminder_scheduler,
    )


__all__ = ["Services", "build_services"]
