"""
Faculty view: meetings of one assigned student.

Scheduling and status changes go through MeetingService; status changes are
shown immediately as pending and confirmed or rolled back when the server
answers.
"""

from datetime import datetime
from typing import List, Optional, Union

from dissertrack.core.exceptions import NotFoundFailure, ValidationFailure
from dissertrack.schemas.meeting import Meeting, MeetingStatus, MeetingTask, MeetingType, TaskStatus
from dissertrack.schemas.project import Project
from dissertrack.schemas.user import User
from dissertrack.services.local_meetings import SyncState
from dissertrack.services.meeting_service import MeetingService
from dissertrack.services.slot_generator import generate_slots
from dissertrack.services.status_transitions import UNSET, ContentValue
from dissertrack.views.base import MeetingView


class FacultyMeetingsView(MeetingView):
    name = "faculty_meetings"

    def __init__(
        self,
        service: MeetingService,
        user: User,
        student_id: Optional[str] = None,
        project: Optional[Project] = None,
        **kwargs,
    ):
        super().__init__(service, user, **kwargs)
        self.student_id = student_id
        self.project = project

    async def _load(self, force_refresh: bool) -> List[Meeting]:
        meetings = await self.service.list_meetings(self.user, force_refresh=force_refresh)
        if self.student_id:
            meetings = [m for m in meetings if m.student_id == self.student_id]
        return meetings

    def is_relevant(self, meeting: Meeting) -> bool:
        if self.student_id:
            return meeting.student_id == self.student_id
        return meeting.faculty_id == self.user.id

    async def select_student(self, student_id: str, project: Optional[Project] = None) -> None:
        self.student_id = student_id
        self.project = project
        self.local.replace_all([])
        if self.mounted:
            await self.refresh()

    def slots(self) -> List[Meeting]:
        if not self.student_id:
            return []
        project_id = self.project.id if self.project else None
        return generate_slots(self.meetings(), project_id=project_id, student_id=self.student_id)

    def pending_ids(self) -> List[str]:
        return [t.meeting.id for t in self.local.tracked() if t.state == SyncState.PENDING]

    # ========== Actions ==========

    async def schedule(
        self,
        meeting_number: int,
        scheduled_date: datetime,
        meeting_summary: str = "",
        meeting_type: Union[MeetingType, str] = MeetingType.PROGRESS_REVIEW,
        duration: int = 30,
        title: Optional[str] = None,
    ) -> Meeting:
        if not self.student_id or self.project is None:
            raise ValidationFailure("Select a student and project first", field="studentId")

        created = await self.service.schedule_meeting(
            self.project,
            self.student_id,
            meeting_number,
            scheduled_date,
            meeting_summary=meeting_summary,
            meeting_type=meeting_type,
            duration=duration,
            title=title,
            existing=self.meetings(),
        )
        if self.mounted:
            self.local.upsert(created)
        return created

    async def change_status(
        self,
        meeting_id: str,
        target_status: Union[MeetingStatus, str],
        summary: ContentValue = UNSET,
        student_points: ContentValue = UNSET,
        guide_remarks: ContentValue = UNSET,
        scheduled_date: Optional[datetime] = None,
    ) -> Meeting:
        meeting = self.local.get(meeting_id)
        if meeting is None:
            raise NotFoundFailure("Meeting", meeting_id)

        return await self.service.update_status(
            meeting,
            target_status,
            local=self.local,
            summary=summary,
            student_points=student_points,
            guide_remarks=guide_remarks,
            scheduled_date=scheduled_date,
        )

    async def add_tasks(self, meeting_id: str, tasks: List[Union[MeetingTask, str]]) -> Meeting:
        meeting = await self.service.add_tasks(meeting_id, tasks)
        if self.mounted and meeting.id:
            self.local.upsert(meeting)
        return meeting

    async def complete_task(
        self,
        meeting_id: str,
        task_id: str,
        status: Union[TaskStatus, str] = TaskStatus.COMPLETED,
    ) -> Meeting:
        meeting = await self.service.update_task_status(meeting_id, task_id, status)
        if self.mounted and meeting.id:
            self.local.upsert(meeting)
        return meeting
