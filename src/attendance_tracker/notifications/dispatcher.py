from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List, Protocol, Type

from .events import DomainEvent, NotificationEvent, event_payload

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class NotificationDispatcher(Protocol):
    def send(self, event: NotificationEvent) -> None:
        raise NotImplementedError


class LoggingNotificationDispatcher:
    """Default dispatcher: writes notifications to the application log.

    Mail/in-app delivery plugs in by providing another ``send`` implementation.
    """

    def send(self, event: NotificationEvent) -> None:
        logger.info("notification %s", event.kind, extra={"user_id": getattr(event, "user_id", None)})
        logger.debug("notification payload %s", event_payload(event))


class EventBus:
    """In-process publish/subscribe for domain events.

    Subscribers run synchronously after the change is committed; a failing
    subscriber is logged and does not affect the publisher or other subscribers.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Event subscriber failed for %s", event.kind)


def deliver(dispatcher: NotificationDispatcher, event: NotificationEvent) -> None:
    """Fire-and-forget delivery used by the attendance services."""
    try:
        dispatcher.send(event)
    except Exception:
        logger.exception("Notification delivery failed for %s", event.kind)
