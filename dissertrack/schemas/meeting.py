from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from enum import Enum


MAX_MEETINGS = 4


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC so every scheduled date compares"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MeetingStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    REJECTED = "rejected"
    NOT_CONDUCTED = "not-conducted"  # synthetic, slots only


class MeetingType(str, Enum):
    ONLINE = "online"
    IN_PERSON = "in-person"
    INITIAL = "initial"
    PROGRESS_REVIEW = "progress-review"
    FINAL_DISCUSSION = "final-discussion"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class MeetingTask(CamelModel):
    id: Optional[str] = None
    description: str
    status: TaskStatus = TaskStatus.PENDING


class Meeting(CamelModel):
    """Canonical meeting record. Produced only by the normalizer or as a slot placeholder."""
    id: Optional[str] = None
    title: str = ""
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    faculty_id: Optional[str] = None
    faculty_name: Optional[str] = None
    project_id: Optional[str] = None
    project_title: Optional[str] = None
    meeting_number: Optional[int] = Field(None, ge=1, le=MAX_MEETINGS)
    scheduled_date: Optional[datetime] = None
    duration: int = 30
    meeting_type: Optional[MeetingType] = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    meeting_summary: str = ""
    student_points: str = ""
    guide_remarks: str = ""
    tasks: List[MeetingTask] = Field(default_factory=list)
    is_placeholder: bool = False

    @field_validator("scheduled_date")
    @classmethod
    def scheduled_date_utc(cls, v):
        return as_utc(v)

    @classmethod
    def placeholder(cls, meeting_number: int, student_id: Optional[str] = None,
                    project_id: Optional[str] = None) -> "Meeting":
        return cls(
            meeting_number=meeting_number,
            student_id=student_id,
            project_id=project_id,
            status=MeetingStatus.NOT_CONDUCTED,
            is_placeholder=True,
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == MeetingStatus.CANCELLED


class MeetingCreate(CamelModel):
    """Body of POST /meetings"""
    title: str
    student_id: str
    project_id: str
    meeting_number: int = Field(..., ge=1, le=MAX_MEETINGS)
    scheduled_date: datetime
    meeting_summary: str = ""
    meeting_type: MeetingType = MeetingType.PROGRESS_REVIEW
    duration: int = Field(30, gt=0)

    @field_validator("scheduled_date")
    @classmethod
    def scheduled_date_utc(cls, v):
        return as_utc(v)


class MeetingStatusUpdate(CamelModel):
    """Body of PUT /meetings/{id}/status. Absent content fields are left unchanged server-side."""
    status: MeetingStatus
    meeting_summary: Optional[str] = None
    student_points: Optional[str] = None
    guide_remarks: Optional[str] = None
    scheduled_date: Optional[datetime] = None

    @field_validator("scheduled_date")
    @classmethod
    def scheduled_date_utc(cls, v):
        return as_utc(v)

    def content_patch(self) -> Dict[str, Any]:
        """Fields to apply to a local Meeting when optimistically updating"""
        return self.model_dump(exclude_none=True)
