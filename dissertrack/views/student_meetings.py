"""Student dashboard: the four meeting slots of the student's project"""

from typing import List, Optional

from dissertrack.core.exceptions import DissertrackError
from dissertrack.core.logging_config import logger
from dissertrack.schemas.evaluation import Evaluation
from dissertrack.schemas.meeting import Meeting, MeetingStatus
from dissertrack.schemas.user import User
from dissertrack.services.meeting_service import MeetingService
from dissertrack.services.slot_generator import generate_slots, next_free_slot
from dissertrack.views.base import MeetingView


class StudentMeetingsView(MeetingView):
    name = "student_meetings"

    def __init__(self, service: MeetingService, user: User, project_id: Optional[str] = None, **kwargs):
        super().__init__(service, user, **kwargs)
        self.project_id = project_id

    async def _load(self, force_refresh: bool) -> List[Meeting]:
        meetings = await self.service.list_meetings(self.user, force_refresh=force_refresh)
        return [m for m in meetings if m.student_id in (None, self.user.id)]

    def is_relevant(self, meeting: Meeting) -> bool:
        if meeting.student_id != self.user.id:
            return False
        return self.project_id is None or meeting.project_id in (None, self.project_id)

    def slots(self) -> List[Meeting]:
        return generate_slots(self.meetings(), project_id=self.project_id, student_id=self.user.id)

    def next_meeting_number(self) -> Optional[int]:
        return next_free_slot(self.slots())

    def completed_count(self) -> int:
        return sum(1 for slot in self.slots() if slot.status == MeetingStatus.COMPLETED)

    async def evaluation(self) -> Optional[Evaluation]:
        """The student's latest evaluation, or None when unavailable"""
        try:
            return await self.service.api.get_evaluation()
        except DissertrackError as e:
            logger.warning(f"[{self.name}] Evaluation unavailable: {e.code}")
            return None
