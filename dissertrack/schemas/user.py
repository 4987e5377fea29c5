from pydantic import Field
from typing import Optional, List
from enum import Enum

from dissertrack.schemas.meeting import CamelModel


class UserRole(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    HOD = "hod"
    ADMIN = "admin"


class User(CamelModel):
    id: str
    name: str = ""
    role: UserRole
    department: Optional[str] = None
    branch: Optional[str] = None
    assigned_guide_id: Optional[str] = None
    assigned_student_ids: List[str] = Field(default_factory=list)

    @property
    def department_name(self) -> Optional[str]:
        return self.department or self.branch

    @property
    def peer_role(self) -> Optional[UserRole]:
        """Role whose cached meeting lists can stand in for this user's own"""
        if self.role == UserRole.STUDENT:
            return UserRole.FACULTY
        if self.role == UserRole.FACULTY:
            return UserRole.STUDENT
        return None
