"""
Local meeting list with two-phase optimistic updates.

Each record is tagged PENDING (a locally issued update is in flight) or
CONFIRMED (matches what the server last said). Flow for a status change:

    token = local.begin_update(meeting_id, update)   # PENDING, visible now
    ... remote call ...
    local.confirm(token, server_meeting)             # CONFIRMED
    # or
    local.rollback(token)                            # previous value restored

Only the most recently issued token of a record may confirm or roll it back,
so a late response for an older request cannot clobber a newer local edit.
A background refresh calls replace_all() which makes the server authoritative
again.
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting, MeetingStatusUpdate
from dissertrack.services.status_transitions import apply_update


class SyncState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class TrackedMeeting:
    meeting: Meeting
    state: SyncState = SyncState.CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.state == SyncState.PENDING


@dataclass
class _PendingUpdate:
    meeting_id: str
    previous: TrackedMeeting


class LocalMeetingList:
    """Ordered in-memory meeting list owned by one view"""

    def __init__(self, meetings: Optional[Iterable[Meeting]] = None):
        self._records: Dict[str, TrackedMeeting] = {}
        self._anonymous: List[Meeting] = []
        self._pending: Dict[int, _PendingUpdate] = {}
        self._latest_token: Dict[str, int] = {}
        self._tokens = itertools.count(1)
        if meetings:
            self.replace_all(meetings)

    def __len__(self) -> int:
        return len(self._records) + len(self._anonymous)

    def __contains__(self, meeting_id: str) -> bool:
        return meeting_id in self._records

    # ========== Reads ==========

    def meetings(self) -> List[Meeting]:
        return [record.meeting for record in self._records.values()] + list(self._anonymous)

    def tracked(self) -> List[TrackedMeeting]:
        return list(self._records.values())

    def get(self, meeting_id: str) -> Optional[Meeting]:
        record = self._records.get(meeting_id)
        return record.meeting if record else None

    def state_of(self, meeting_id: str) -> Optional[SyncState]:
        record = self._records.get(meeting_id)
        return record.state if record else None

    # ========== Authoritative writes ==========

    def replace_all(self, meetings: Iterable[Meeting]) -> None:
        """Server refresh: every record becomes CONFIRMED and pending work is forgotten"""
        self._records = {}
        self._anonymous = []
        for meeting in meetings:
            if meeting.id:
                self._records[meeting.id] = TrackedMeeting(meeting)
            else:
                self._anonymous.append(meeting)
        self._pending.clear()
        self._latest_token.clear()

    def upsert(self, meeting: Meeting) -> None:
        """Insert or replace a confirmed record (e.g. a freshly created meeting)"""
        if not meeting.id:
            self._anonymous.append(meeting)
            return
        self._records[meeting.id] = TrackedMeeting(meeting)
        self._latest_token.pop(meeting.id, None)

    # ========== Optimistic updates ==========

    def begin_update(self, meeting_id: str, update: MeetingStatusUpdate) -> Optional[int]:
        """Apply the update locally as PENDING. Returns a token, or None for an unknown meeting."""
        record = self._records.get(meeting_id)
        if record is None:
            return None

        token = next(self._tokens)
        self._pending[token] = _PendingUpdate(meeting_id=meeting_id, previous=record)
        self._latest_token[meeting_id] = token
        self._records[meeting_id] = TrackedMeeting(apply_update(record.meeting, update), SyncState.PENDING)
        return token

    def confirm(self, token: Optional[int], server_meeting: Optional[Meeting] = None) -> bool:
        """Mark the update confirmed, preferring the server's copy when given"""
        pending = self._pending.pop(token, None) if token is not None else None
        if pending is None:
            return False
        if self._latest_token.get(pending.meeting_id) != token:
            logger.debug(f"[LocalMeetings] Ignoring stale confirmation for {pending.meeting_id}")
            return False

        record = self._records.get(pending.meeting_id)
        if record is None:
            return False
        meeting = server_meeting if server_meeting is not None and server_meeting.id == pending.meeting_id else record.meeting
        self._records[pending.meeting_id] = TrackedMeeting(meeting, SyncState.CONFIRMED)
        self._latest_token.pop(pending.meeting_id, None)
        return True

    def rollback(self, token: Optional[int]) -> bool:
        """Restore the value from before the update. A newer pending edit is left in place."""
        pending = self._pending.pop(token, None) if token is not None else None
        if pending is None:
            return False
        if self._latest_token.get(pending.meeting_id) != token:
            logger.debug(f"[LocalMeetings] Not rolling back {pending.meeting_id}: newer update pending")
            return False

        self._records[pending.meeting_id] = pending.previous
        older = [t for t, p in self._pending.items() if p.meeting_id == pending.meeting_id]
        if older:
            self._latest_token[pending.meeting_id] = max(older)
        else:
            self._latest_token.pop(pending.meeting_id, None)
        return True
