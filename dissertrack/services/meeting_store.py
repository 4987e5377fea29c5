"""
Shared store of recently created meetings.

Every meeting created in this process is recorded here and persisted as a JSON
array so it survives a restart. It is a fallback source for reads, never a
source of truth: writes are append or replace-by-id (last writer wins).
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles

from dissertrack.core.config import settings
from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting
from dissertrack.schemas.user import User, UserRole
from dissertrack.services.meeting_normalizer import normalize_meetings, to_wire_documents


def meeting_involves(meeting: Meeting, user: User) -> bool:
    """True when the user is the meeting's student, its guide, or any HOD/admin"""
    if user.role == UserRole.STUDENT:
        return meeting.student_id == user.id
    if user.role == UserRole.FACULTY:
        return meeting.faculty_id == user.id
    return True


class SharedMeetingStore:
    """In-memory list of recent meetings backed by a JSON file"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.MEETING_STORE_PATH)
        self._meetings: Dict[str, Meeting] = {}
        self._anonymous: List[Meeting] = []
        self._loaded = False

    def __len__(self) -> int:
        return len(self._meetings) + len(self._anonymous)

    async def load(self) -> int:
        """Read the persisted file once. A missing or corrupt file yields an empty store."""
        if self._loaded:
            return len(self)
        self._loaded = True

        if not self.path.exists():
            return 0
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[MeetingStore] Could not read {self.path}: {e}")
            return 0

        for meeting in normalize_meetings(data if isinstance(data, list) else []):
            self._remember(meeting)
        logger.debug(f"[MeetingStore] Loaded {len(self)} meetings from {self.path}")
        return len(self)

    def _remember(self, meeting: Meeting) -> None:
        if meeting.id:
            self._meetings[meeting.id] = meeting
        else:
            self._anonymous.append(meeting)

    async def add(self, meeting: Meeting) -> None:
        """Record a meeting and persist the store"""
        await self.load()
        self._remember(meeting)
        await self._persist()

    async def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(to_wire_documents(self.all()), indent=2))
        except OSError as e:
            # The in-memory copy still serves this session
            logger.warning(f"[MeetingStore] Could not persist to {self.path}: {e}")

    def all(self) -> List[Meeting]:
        return list(self._meetings.values()) + list(self._anonymous)

    async def for_user(self, user: User) -> List[Meeting]:
        await self.load()
        return [m for m in self.all() if meeting_involves(m, user)]

    async def clear(self) -> None:
        self._meetings.clear()
        self._anonymous.clear()
        self._loaded = True
        if self.path.exists():
            self.path.unlink()


# Process-wide instance
meeting_store = SharedMeetingStore()
