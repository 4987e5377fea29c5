"""
Meeting Record Normalizer

Meeting documents reach the client from several places (the REST API, the
shared store of recently created meetings, a peer role's cache) and the same
concept shows up under different field names:

    student | studentId               -> student_id (+ student_name)
    guide | faculty | facultyId       -> faculty_id (+ faculty_name)
    project | projectId               -> project_id (+ project_title)
    meetingSummary | summary | notes  -> meeting_summary
    scheduledDate | date | dateTime   -> scheduled_date
    guideRemarks | feedback           -> guide_remarks

References may be bare ids or embedded objects ({"_id": ..., "fullName": ...}).
This module is the only place that knows about those variants; everything past
it works with `Meeting`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import (
    MAX_MEETINGS,
    Meeting,
    MeetingStatus,
    MeetingTask,
    MeetingType,
    TaskStatus,
)
from dissertrack.schemas.project import Project, ProjectStatus


ID_KEYS = ("_id", "id")
STUDENT_KEYS = ("studentId", "student")
FACULTY_KEYS = ("facultyId", "guideId", "guide", "faculty")
PROJECT_KEYS = ("projectId", "project")
DATE_KEYS = ("scheduledDate", "date", "dateTime")
SUMMARY_KEYS = ("meetingSummary", "summary", "notes")
REMARKS_KEYS = ("guideRemarks", "feedback")
NAME_KEYS = ("fullName", "name")

# Legacy statuses seen in older documents
STATUS_ALIASES = {
    "pending": MeetingStatus.SCHEDULED,
}

_datetime_adapter = TypeAdapter(datetime)


def _first_present(doc: Mapping[str, Any], keys: Iterable[str]) -> Tuple[Optional[str], Any]:
    for key in keys:
        value = doc.get(key)
        if value is not None and value != "":
            return key, value
    return None, None


def extract_id(ref: Any) -> Optional[str]:
    """Reduce a reference (bare id or embedded object) to its identifier"""
    if ref is None:
        return None
    if isinstance(ref, Mapping):
        for key in ID_KEYS:
            value = ref.get(key)
            if value is not None and value != "":
                return str(value)
        return None
    if isinstance(ref, (str, int)):
        value = str(ref).strip()
        return value or None
    return None


def _extract_name(ref: Any, doc: Mapping[str, Any], flat_key: str) -> Optional[str]:
    if isinstance(ref, Mapping):
        _, name = _first_present(ref, NAME_KEYS)
        if name:
            return str(name)
    name = doc.get(flat_key)
    return str(name) if name else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse ISO strings, datetimes and epoch numbers. Naive values are taken as UTC."""
    if value is None or value == "":
        return None
    try:
        parsed = _datetime_adapter.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _parse_meeting_number(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    if 1 <= number <= MAX_MEETINGS:
        return number
    return None


def _parse_status(value: Any) -> Optional[MeetingStatus]:
    """None means the record must be dropped"""
    if value is None or value == "":
        return MeetingStatus.SCHEDULED
    raw = str(value).strip().lower()
    if raw in STATUS_ALIASES:
        return STATUS_ALIASES[raw]
    try:
        status = MeetingStatus(raw)
    except ValueError:
        logger.warning(f"[Normalizer] Unknown meeting status '{value}', treating as scheduled")
        return MeetingStatus.SCHEDULED
    if status == MeetingStatus.NOT_CONDUCTED:
        return None
    return status


def _parse_meeting_type(value: Any) -> Optional[MeetingType]:
    if not value:
        return None
    try:
        return MeetingType(str(value).strip().lower().replace("_", "-").replace(" ", "-"))
    except ValueError:
        return None


def _parse_duration(value: Any, default: int = 30) -> int:
    try:
        duration = int(value)
    except (TypeError, ValueError):
        return default
    return duration if duration > 0 else default


def _parse_tasks(value: Any) -> List[MeetingTask]:
    tasks: List[MeetingTask] = []
    if not isinstance(value, list):
        return tasks
    for item in value:
        if isinstance(item, Mapping) and item.get("description"):
            status = TaskStatus.COMPLETED if item.get("status") == "completed" else TaskStatus.PENDING
            tasks.append(MeetingTask(id=extract_id(item), description=str(item["description"]), status=status))
        elif isinstance(item, str) and item.strip():
            tasks.append(MeetingTask(description=item.strip()))
    return tasks


def normalize_meeting(doc: Any) -> Optional[Meeting]:
    """
    Map one wire-format meeting document to a canonical Meeting.

    Returns None when the document is unusable:
    - not a mapping
    - neither a student-like nor a date-like field is present
    - it echoes the synthetic 'not-conducted' status of a slot placeholder
    """
    if isinstance(doc, Meeting):
        return doc
    if not isinstance(doc, Mapping):
        return None

    # Some endpoints wrap the record: {"message": ..., "meeting": {...}}
    if isinstance(doc.get("meeting"), Mapping):
        doc = doc["meeting"]

    _, student_ref = _first_present(doc, STUDENT_KEYS)
    _, date_value = _first_present(doc, DATE_KEYS)
    if student_ref is None and date_value is None:
        return None

    status = _parse_status(doc.get("status"))
    if status is None:
        return None

    _, faculty_ref = _first_present(doc, FACULTY_KEYS)
    _, project_ref = _first_present(doc, PROJECT_KEYS)
    _, summary = _first_present(doc, SUMMARY_KEYS)
    _, remarks = _first_present(doc, REMARKS_KEYS)

    project_title = doc.get("projectTitle") or None
    if isinstance(project_ref, Mapping) and project_ref.get("title"):
        project_title = str(project_ref["title"])

    return Meeting(
        id=extract_id(doc),
        title=_as_text(doc.get("title")),
        student_id=extract_id(student_ref),
        student_name=_extract_name(student_ref, doc, "studentName"),
        faculty_id=extract_id(faculty_ref),
        faculty_name=_extract_name(faculty_ref, doc, "facultyName"),
        project_id=extract_id(project_ref),
        project_title=project_title,
        meeting_number=_parse_meeting_number(doc.get("meetingNumber")),
        scheduled_date=parse_datetime(date_value),
        duration=_parse_duration(doc.get("duration")),
        meeting_type=_parse_meeting_type(doc.get("meetingType")),
        status=status,
        meeting_summary=_as_text(summary),
        student_points=_as_text(doc.get("studentPoints")),
        guide_remarks=_as_text(remarks),
        tasks=_parse_tasks(doc.get("tasks")),
    )


def normalize_meetings(docs: Any) -> List[Meeting]:
    """Normalize a batch. Invalid records are dropped; the batch never fails."""
    if isinstance(docs, Mapping):
        # {"meetings": [...]} and {"data": [...]} envelopes
        for key in ("meetings", "data", "items"):
            if isinstance(docs.get(key), list):
                docs = docs[key]
                break
        else:
            docs = [docs]
    if not isinstance(docs, list):
        return []

    meetings: List[Meeting] = []
    dropped = 0
    for doc in docs:
        try:
            meeting = normalize_meeting(doc)
        except ValidationError as e:
            logger.warning(f"[Normalizer] Dropping malformed meeting document: {e.error_count()} errors")
            meeting = None
        if meeting is None:
            dropped += 1
            continue
        meetings.append(meeting)

    if dropped:
        logger.debug(f"[Normalizer] Dropped {dropped} of {len(docs)} meeting documents")
    return meetings


def normalize_project(doc: Any) -> Optional[Project]:
    """Map a project document ({_id, status, guide|assignedGuide, student}) to a Project"""
    if isinstance(doc, Project):
        return doc
    if not isinstance(doc, Mapping):
        return None
    if isinstance(doc.get("project"), Mapping):
        doc = doc["project"]

    project_id = extract_id(doc)
    if not project_id:
        return None

    try:
        status = ProjectStatus(str(doc.get("status") or "pending").lower())
    except ValueError:
        status = ProjectStatus.PENDING

    _, guide_ref = _first_present(doc, ("guideId", "guide", "assignedGuide"))
    _, student_ref = _first_present(doc, STUDENT_KEYS)

    return Project(
        id=project_id,
        title=_as_text(doc.get("title")),
        status=status,
        student_id=extract_id(student_ref),
        guide_id=extract_id(guide_ref),
    )


def to_wire_documents(meetings: Iterable[Meeting]) -> List[Dict[str, Any]]:
    """Serialise canonical meetings back to camelCase documents for persistence"""
    return [meeting.to_wire() for meeting in meetings]
