"""
Meeting Status Transitions

    SCHEDULED ──► COMPLETED (terminal)
        │  ▲
        │  └──── CANCELLED (reopen keeps or replaces the date)
        ├──► CANCELLED
        └──► RESCHEDULED ──► SCHEDULED | COMPLETED | CANCELLED

    REJECTED is terminal. NOT_CONDUCTED only exists on slot placeholders and
    cannot be transitioned: schedule the meeting first.

Self-transitions are content-only edits (e.g. fixing a completed meeting's
summary) and are always allowed for persisted meetings.
"""

from datetime import datetime
from typing import Dict, Optional, Set, Union

from dissertrack.core.config import settings
from dissertrack.core.exceptions import InvalidTransitionError
from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting, MeetingStatus, MeetingStatusUpdate


MEETING_TRANSITIONS: Dict[MeetingStatus, Set[MeetingStatus]] = {
    MeetingStatus.SCHEDULED: {MeetingStatus.COMPLETED, MeetingStatus.CANCELLED, MeetingStatus.RESCHEDULED},
    MeetingStatus.RESCHEDULED: {MeetingStatus.SCHEDULED, MeetingStatus.COMPLETED, MeetingStatus.CANCELLED},
    MeetingStatus.CANCELLED: {MeetingStatus.SCHEDULED},
    MeetingStatus.COMPLETED: set(),
    MeetingStatus.REJECTED: set(),
    MeetingStatus.NOT_CONDUCTED: set(),
}

# Transitions that only make sense with a new date
REQUIRES_NEW_DATE = {
    (MeetingStatus.SCHEDULED, MeetingStatus.RESCHEDULED),
}

PLACEHOLDER_TEXT = {
    "meeting_summary": "No summary provided",
    "student_points": "No discussion points provided",
    "guide_remarks": "No remarks provided",
}


class _Unset:
    """Marker for a content field the caller did not touch"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

ContentValue = Union[str, None, _Unset]


def is_terminal(status: MeetingStatus) -> bool:
    return not MEETING_TRANSITIONS.get(status)


def can_transition(from_status: MeetingStatus, to_status: MeetingStatus) -> bool:
    if from_status == MeetingStatus.NOT_CONDUCTED or to_status == MeetingStatus.NOT_CONDUCTED:
        return False
    if from_status == to_status:
        return True
    return to_status in MEETING_TRANSITIONS.get(from_status, set())


def _resolve_content(
    field_name: str,
    value: ContentValue,
    current: str,
    fill_placeholders: bool,
) -> Optional[str]:
    """
    Tri-state content field:
      UNSET          -> keep current (omitted from the payload unless filling)
      None / str     -> explicit value; None is treated as explicit empty
    With filling enabled the result is always a non-empty string.
    """
    if isinstance(value, _Unset):
        if not fill_placeholders:
            return None
        text = current
    else:
        text = "" if value is None else str(value)

    if fill_placeholders and not text.strip():
        return PLACEHOLDER_TEXT[field_name]
    return text


def request_transition(
    meeting: Meeting,
    target_status: Union[MeetingStatus, str],
    summary: ContentValue = UNSET,
    student_points: ContentValue = UNSET,
    guide_remarks: ContentValue = UNSET,
    scheduled_date: Optional[datetime] = None,
    fill_placeholders: Optional[bool] = None,
) -> MeetingStatusUpdate:
    """
    Validate a status change and build the PUT /meetings/{id}/status payload.

    Raises InvalidTransitionError when the target is not reachable, when the
    meeting is a placeholder, or when a reschedule lacks a new date. Reopening
    a cancelled meeting may keep its current date.
    """
    target = MeetingStatus(target_status)
    if fill_placeholders is None:
        fill_placeholders = settings.FILL_BLANK_CONTENT_PLACEHOLDERS

    if meeting.is_placeholder:
        raise InvalidTransitionError(
            meeting.status.value, target.value, "meeting has not been scheduled yet"
        )
    if not can_transition(meeting.status, target):
        reason = "status is terminal" if is_terminal(meeting.status) else None
        raise InvalidTransitionError(meeting.status.value, target.value, reason)
    if (meeting.status, target) in REQUIRES_NEW_DATE and scheduled_date is None:
        raise InvalidTransitionError(meeting.status.value, target.value, "a new scheduled date is required")

    payload = MeetingStatusUpdate(
        status=target,
        meeting_summary=_resolve_content("meeting_summary", summary, meeting.meeting_summary, fill_placeholders),
        student_points=_resolve_content("student_points", student_points, meeting.student_points, fill_placeholders),
        guide_remarks=_resolve_content("guide_remarks", guide_remarks, meeting.guide_remarks, fill_placeholders),
        scheduled_date=scheduled_date,
    )

    logger.debug(f"[Transitions] Meeting {meeting.id}: {meeting.status.value} → {target.value}")
    return payload


def apply_update(meeting: Meeting, update: MeetingStatusUpdate) -> Meeting:
    """Return a copy of the meeting with the update's fields patched in"""
    return meeting.model_copy(update=update.content_patch())
