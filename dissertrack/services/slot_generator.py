"""
Meeting Slot Generator

Every project is expected to have four meetings. Given a student's canonical
meeting records this produces exactly MAX_MEETINGS slots, ordered by
meeting number, with placeholders for meetings that have not been scheduled.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import MAX_MEETINGS, Meeting


_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _schedule_key(meeting: Meeting) -> datetime:
    return meeting.scheduled_date or _EARLIEST


def generate_slots(
    meetings: Iterable[Meeting],
    project_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> List[Meeting]:
    """
    Build the ordered slot list (index 0 = meeting 1).

    Cancelled records never occupy a slot. When several non-cancelled records
    claim the same number, the one scheduled latest wins; the upstream store
    does not enforce uniqueness so this is a data condition, not an error.
    """
    by_number: Dict[int, Meeting] = {}

    for meeting in meetings:
        if meeting.is_cancelled or meeting.is_placeholder or meeting.meeting_number is None:
            continue
        if project_id and meeting.project_id != project_id:
            continue

        number = meeting.meeting_number
        current = by_number.get(number)
        if current is None:
            by_number[number] = meeting
            continue

        winner = meeting if _schedule_key(meeting) > _schedule_key(current) else current
        logger.warning(
            f"[Slots] Duplicate meeting #{number} for student {meeting.student_id}: "
            f"{current.id} vs {meeting.id}, keeping {winner.id}"
        )
        by_number[number] = winner

    slots: List[Meeting] = []
    for number in range(1, MAX_MEETINGS + 1):
        meeting = by_number.get(number)
        if meeting is None:
            meeting = Meeting.placeholder(number, student_id=student_id, project_id=project_id)
        slots.append(meeting)
    return slots


def next_free_slot(slots: List[Meeting]) -> Optional[int]:
    """First meeting number still showing a placeholder, or None when all four exist"""
    for slot in slots:
        if slot.is_placeholder:
            return slot.meeting_number
    return None
