"""
Base class for meeting views.

A view owns a LocalMeetingList and is only live between mount() and
unmount():

    mount()    subscribe to meeting events, load once, start periodic refresh
    unmount()  unsubscribe, cancel the refresh task

Anything that completes after unmount (a slow refresh, a late event) is
discarded instead of touching the view's state.
"""

import asyncio
from typing import List, Optional

from dissertrack.core.config import settings
from dissertrack.core.logging_config import logger, set_role, set_user_id
from dissertrack.schemas.meeting import Meeting
from dissertrack.schemas.user import User
from dissertrack.services.event_bus import (
    MeetingEvent,
    MeetingEventBus,
    MeetingEventType,
    Subscription,
)
from dissertrack.services.local_meetings import LocalMeetingList
from dissertrack.services.meeting_service import MeetingService


class MeetingView:
    """Lifecycle, event subscriptions and periodic refresh shared by all views"""

    name = "meetings"

    def __init__(
        self,
        service: MeetingService,
        user: User,
        poll_interval: Optional[float] = None,
        bus: Optional[MeetingEventBus] = None,
    ):
        self.service = service
        self.user = user
        self.poll_interval = poll_interval if poll_interval is not None else settings.POLL_INTERVAL_SECONDS
        self.bus = bus if bus is not None else service.bus
        self.local = LocalMeetingList()

        self.mounted = False
        self.loading = False
        self._subscriptions: List[Subscription] = []
        self._task: Optional[asyncio.Task] = None
        self._refresh_seq = 0

        self.stats = {
            "refreshes": 0,
            "discarded": 0,
            "events_handled": 0,
        }

    # ========== Lifecycle ==========

    async def mount(self) -> None:
        if self.mounted:
            logger.warning(f"[{self.name}] Already mounted")
            return

        self.mounted = True
        set_user_id(self.user.id)
        set_role(self.user.role.value)

        self._subscriptions = [
            self.bus.subscribe(MeetingEventType.MEETING_CREATED, self._on_event),
            self.bus.subscribe(MeetingEventType.MEETING_UPDATED, self._on_event),
        ]
        await self.refresh()

        if self.poll_interval > 0 and self.mounted:
            self._task = asyncio.create_task(self._refresh_loop())
        logger.debug(f"[{self.name}] Mounted for {self.user.role.value} {self.user.id}")

    async def unmount(self) -> None:
        self.mounted = False
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.debug(f"[{self.name}] Unmounted")

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.unmount()

    # ========== Data ==========

    async def _load(self, force_refresh: bool) -> List[Meeting]:
        raise NotImplementedError

    def is_relevant(self, meeting: Meeting) -> bool:
        raise NotImplementedError

    def meetings(self) -> List[Meeting]:
        return self.local.meetings()

    async def refresh(self, force_refresh: bool = False) -> bool:
        """
        Reload from the resolver. Returns False when the result was discarded
        because the view unmounted or a newer refresh started meanwhile.
        """
        self._refresh_seq += 1
        seq = self._refresh_seq
        self.loading = True
        try:
            meetings = await self._load(force_refresh)
        finally:
            if seq == self._refresh_seq:
                self.loading = False

        if not self.mounted or seq != self._refresh_seq:
            self.stats["discarded"] += 1
            logger.debug(f"[{self.name}] Discarding stale refresh #{seq}")
            return False

        self.local.replace_all(meetings)
        self.stats["refreshes"] += 1
        return True

    async def _on_event(self, event: MeetingEvent) -> None:
        if not self.mounted or not self.is_relevant(event.meeting):
            return
        self.stats["events_handled"] += 1
        self.local.upsert(event.meeting)
        await self.refresh(force_refresh=True)

    async def _refresh_loop(self) -> None:
        """Periodic refresh until unmounted"""
        while self.mounted:
            await asyncio.sleep(self.poll_interval)
            if not self.mounted:
                break
            try:
                await self.refresh(force_refresh=True)
            except Exception as e:
                logger.log_error_with_context(e, context=f"{self.name} refresh loop", view=self.name)
