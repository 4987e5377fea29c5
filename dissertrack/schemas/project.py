from pydantic import Field
from typing import Optional
from enum import Enum

from dissertrack.schemas.meeting import CamelModel


class ProjectStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Project(CamelModel):
    id: str
    title: str = ""
    status: ProjectStatus = ProjectStatus.PENDING
    student_id: Optional[str] = None
    guide_id: Optional[str] = Field(None, description="Assigned guide, null until the HOD assigns one")

    @property
    def can_schedule_meetings(self) -> bool:
        return self.status == ProjectStatus.APPROVED and bool(self.guide_id)

    def scheduling_blocker(self) -> Optional[str]:
        """Human readable reason meetings cannot be scheduled, or None"""
        if self.status != ProjectStatus.APPROVED:
            return f"project is {self.status.value}, not approved"
        if not self.guide_id:
            return "no guide has been assigned"
        return None
