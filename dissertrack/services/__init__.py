# Services module
from dissertrack.services.api_client import DissertrackAPIClient
from dissertrack.services.cache_service import CacheService, cache_service
from dissertrack.services.event_bus import (
    MeetingEvent,
    MeetingEventBus,
    MeetingEventType,
    Subscription,
    event_bus,
)
from dissertrack.services.local_meetings import LocalMeetingList, SyncState, TrackedMeeting
from dissertrack.services.meeting_normalizer import normalize_meeting, normalize_meetings
from dissertrack.services.meeting_resolver import MeetingResolver
from dissertrack.services.meeting_service import MeetingService
from dissertrack.services.meeting_store import SharedMeetingStore, meeting_store
from dissertrack.services.slot_generator import generate_slots, next_free_slot
from dissertrack.services.status_transitions import UNSET, can_transition, request_transition

__all__ = [
    "DissertrackAPIClient",
    "CacheService",
    "cache_service",
    "MeetingEvent",
    "MeetingEventBus",
    "MeetingEventType",
    "Subscription",
    "event_bus",
    "LocalMeetingList",
    "SyncState",
    "TrackedMeeting",
    "normalize_meeting",
    "normalize_meetings",
    "MeetingResolver",
    "MeetingService",
    "SharedMeetingStore",
    "meeting_store",
    "generate_slots",
    "next_free_slot",
    "UNSET",
    "can_transition",
    "request_transition",
]
