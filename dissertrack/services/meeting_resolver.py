"""
Fallback Source Resolver

Resolves "the meetings relevant to this user" while tolerating a missing or
failing backend. Sources are tried in order:

    1. PrimaryApiSource     GET /meetings scoped by role (TTL cached)
    2. SharedStoreSource    recently created meetings, persisted locally
    3. PeerCacheSource      meeting lists the peer role has cached

A source that raises a DissertrackError or yields nothing for the user hands
over to the next one. When every source is exhausted the result is an empty
list: an offline backend means "no meetings shown", never a crashed view.
"""

from typing import Dict, List, Optional, Sequence

from dissertrack.core.exceptions import DissertrackError
from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting
from dissertrack.schemas.user import User, UserRole
from dissertrack.services.api_client import DissertrackAPIClient
from dissertrack.services.cache_service import CacheService
from dissertrack.services.meeting_store import SharedMeetingStore, meeting_involves


def _dedupe(meetings: List[Meeting]) -> List[Meeting]:
    """Later copies of the same id win"""
    by_id: Dict[str, Meeting] = {}
    anonymous: List[Meeting] = []
    for meeting in meetings:
        if meeting.id:
            by_id[meeting.id] = meeting
        else:
            anonymous.append(meeting)
    return list(by_id.values()) + anonymous


class MeetingSource:
    """One origin of meeting data"""

    name = "source"

    async def fetch(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        raise NotImplementedError


class PrimaryApiSource(MeetingSource):
    name = "primary"

    def __init__(self, api: DissertrackAPIClient, cache: CacheService):
        self.api = api
        self.cache = cache

    @staticmethod
    def _not_someone_elses(meeting: Meeting, user: User) -> bool:
        # The server scopes by role already; only drop records that name another participant
        if user.role == UserRole.STUDENT:
            return meeting.student_id in (None, user.id)
        if user.role == UserRole.FACULTY:
            return meeting.faculty_id in (None, user.id)
        return True

    async def fetch(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        key = self.cache.meetings_key(user.role.value, user.id)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        if user.role == UserRole.STUDENT:
            meetings = await self.api.list_meetings(student_id=user.id)
        elif user.role == UserRole.FACULTY:
            meetings = await self.api.list_meetings(faculty_id=user.id)
        else:
            meetings = await self.api.list_department_meetings()

        meetings = [m for m in meetings if self._not_someone_elses(m, user)]
        self.cache.set(key, meetings)
        return meetings


class SharedStoreSource(MeetingSource):
    name = "shared_store"

    def __init__(self, store: SharedMeetingStore):
        self.store = store

    async def fetch(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        return await self.store.for_user(user)


class PeerCacheSource(MeetingSource):
    name = "peer_cache"

    def __init__(self, cache: CacheService):
        self.cache = cache

    async def fetch(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        peer = user.peer_role
        if peer is None:
            return []
        prefix = f"{CacheService.PREFIX_MEETINGS}{peer.value}:"
        collected: List[Meeting] = []
        for _, meetings in self.cache.scan(prefix):
            collected.extend(m for m in meetings if meeting_involves(m, user))
        return _dedupe(collected)


class MeetingResolver:
    """Walks the source chain until one yields meetings for the user"""

    def __init__(self, sources: Sequence[MeetingSource]):
        self.sources = list(sources)
        self.last_source: Optional[str] = None

    @classmethod
    def default(
        cls,
        api: DissertrackAPIClient,
        cache: CacheService,
        store: SharedMeetingStore,
    ) -> "MeetingResolver":
        return cls([
            PrimaryApiSource(api, cache),
            SharedStoreSource(store),
            PeerCacheSource(cache),
        ])

    async def resolve(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        self.last_source = None
        for source in self.sources:
            try:
                meetings = await source.fetch(user, force_refresh=force_refresh)
            except DissertrackError as e:
                logger.log_fallback(source.name, f"{type(e).__name__}: {e.message}", user_id=user.id)
                continue

            if meetings:
                self.last_source = source.name
                logger.debug(f"[Resolver] {len(meetings)} meetings for {user.id} from {source.name}")
                return meetings
            logger.log_fallback(source.name, "no meetings for user", user_id=user.id)

        logger.warning(f"[Resolver] All meeting sources exhausted for {user.role.value} {user.id}")
        return []
