"""
Meeting Event Bus - cross-view notifications

A meeting scheduled or updated in one view becomes visible in every other
open view without a server push channel:

    Publishers:                      Subscribers:
    ├─ MeetingService.schedule  ──►  ├─ StudentMeetingsView
    └─ MeetingService.update    ──►  ├─ FacultyMeetingsView
                                     └─ HodMeetingsView

Delivery is best-effort and at most once per action. The bus keeps no history
and does not filter recipients: each subscriber decides whether an event is
relevant to it.
"""

from typing import Any, Callable, Dict, List, Optional, Union
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from collections import defaultdict
import asyncio

from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting


class MeetingEventType(str, Enum):
    MEETING_CREATED = "meeting_created"
    MEETING_UPDATED = "meeting_updated"


@dataclass
class MeetingEvent:
    """A meeting lifecycle event"""
    type: MeetingEventType
    meeting: Meeting
    source: Optional[str] = None  # Component that emitted the event
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "meeting": self.meeting.to_wire(),
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[MeetingEvent], Any]  # sync or coroutine function


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() when the view goes away"""

    def __init__(self, bus: "MeetingEventBus", event_type: MeetingEventType, handler: EventHandler):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._bus._remove(self)
            self.active = False


class MeetingEventBus:
    """
    Pub/sub for meeting events.

    Features:
    - Explicit subscription handles
    - Async and sync handlers
    - A failing handler never affects the others or the publisher
    """

    def __init__(self):
        self._subscriptions: Dict[MeetingEventType, List[Subscription]] = defaultdict(list)
        self._event_count = 0

    def subscribe(
        self,
        event_type: Union[MeetingEventType, str],
        handler: EventHandler,
    ) -> Subscription:
        event_type = MeetingEventType(event_type)
        subscription = Subscription(self, event_type, handler)
        self._subscriptions[event_type].append(subscription)
        logger.debug(f"[EventBus] Registered handler for {event_type.value}")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions[subscription.event_type]
        if subscription in subscriptions:
            subscriptions.remove(subscription)
            logger.debug(f"[EventBus] Removed handler for {subscription.event_type.value}")

    async def publish(self, event: MeetingEvent) -> int:
        """
        Deliver to current subscribers. Async handlers run concurrently.
        Returns how many handlers ran successfully.
        """
        self._event_count += 1
        logger.debug(f"[EventBus] Publishing {event.type.value} for meeting {event.meeting.id}")

        delivered = 0
        pending = []
        for subscription in list(self._subscriptions[event.type]):
            if not subscription.active:
                continue
            try:
                result = subscription.handler(event)
            except Exception as e:
                logger.error(f"[EventBus] Handler error for {event.type.value}: {e}")
                continue
            if asyncio.iscoroutine(result):
                pending.append(result)
            else:
                delivered += 1

        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"[EventBus] Handler error for {event.type.value}: {result}")
            else:
                delivered += 1
        return delivered

    async def emit(
        self,
        event_type: MeetingEventType,
        meeting: Meeting,
        source: Optional[str] = None,
    ) -> int:
        """Convenience wrapper around publish()"""
        return await self.publish(MeetingEvent(type=event_type, meeting=meeting, source=source))

    def handler_count(self, event_type: Optional[MeetingEventType] = None) -> int:
        if event_type is not None:
            return len(self._subscriptions[MeetingEventType(event_type)])
        return sum(len(s) for s in self._subscriptions.values())

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_events": self._event_count,
            "handler_count": self.handler_count(),
        }


# Process-wide instance
event_bus = MeetingEventBus()
