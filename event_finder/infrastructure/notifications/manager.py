"""Subscription registry for realtime notification delivery."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Union

import anyio

logger = logging.getLogger(__name__)

Message = dict[str, Any]
SubscriberCallback = Callable[[Message], Union[Awaitable[None], None]]


class Subscription:
    """Handle returned by :meth:`NotificationHub.subscribe`.

    Closing it removes the callback; closing twice is harmless. It can also be
    used as a context manager.
    """

    def __init__(self, hub: "NotificationHub", user_id: str, callback: SubscriberCallback) -> None:
        self._hub = hub
        self.user_id = user_id
        self.callback = callback
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class NotificationHub:
    """Keep live subscribers grouped by user and push messages to them.

    Each callback gets at most ``send_timeout`` seconds; a subscriber that
    exceeds it is treated like one that failed.
    """

    def __init__(self, send_timeout: float = 5.0) -> None:
        self._send_timeout = send_timeout
        self._subscriptions: DefaultDict[str, list[Subscription]] = defaultdict(list)

    def subscribe(self, user_id: str, callback: SubscriberCallback) -> Subscription:
        """Register ``callback`` for messages addressed to ``user_id``."""

        subscription = Subscription(self, user_id, callback)
        self._subscriptions[user_id].append(subscription)
        return subscription

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscriptions.get(user_id, ()))

    async def send_to_user(self, user_id: str, message: Message) -> int:
        """Send ``message`` to every subscriber of ``user_id``.

        Returns how many subscribers received it. A subscriber whose callback
        fails or times out is dropped.
        """

        delivered = 0
        for subscription in list(self._subscriptions.get(user_id, ())):
            try:
                with anyio.fail_after(self._send_timeout):
                    result = subscription.callback(message)
                    if inspect.isawaitable(result):
                        await result
            except Exception:
                logger.warning(
                    "Dropping realtime subscriber for user %s after a failed send",
                    user_id,
                    exc_info=True,
                )
                subscription.close()
                continue
            delivered += 1
        return delivered

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.user_id)
        if subscriptions is None:
            return
        try:
            subscriptions.remove(subscription)
        except ValueError:
            return
        if not subscriptions:
            self._subscriptions.pop(subscription.user_id, None)


__all__ = ["Message", "NotificationHub", "SubscriberCallback", "Subscription"]
