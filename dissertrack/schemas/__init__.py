# Pydantic schemas
from dissertrack.schemas.meeting import (
    MAX_MEETINGS,
    Meeting,
    MeetingCreate,
    MeetingStatus,
    MeetingStatusUpdate,
    MeetingTask,
    MeetingType,
    TaskStatus,
)
from dissertrack.schemas.project import Project, ProjectStatus
from dissertrack.schemas.evaluation import Evaluation, EvaluationType, grade_for
from dissertrack.schemas.user import User, UserRole

__all__ = [
    "MAX_MEETINGS",
    "Meeting",
    "MeetingCreate",
    "MeetingStatus",
    "MeetingStatusUpdate",
    "MeetingTask",
    "MeetingType",
    "TaskStatus",
    "Project",
    "ProjectStatus",
    "Evaluation",
    "EvaluationType",
    "grade_for",
    "User",
    "UserRole",
]
