"""
Meeting Service Layer
Reads go through the fallback resolver; writes go straight to the API and
always raise on failure so the caller can tell the user.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Union

from dissertrack.core.exceptions import (
    DissertrackError,
    DuplicateMeetingNumberError,
    ProjectNotSchedulableError,
    ValidationFailure,
)
from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import (
    MAX_MEETINGS,
    Meeting,
    MeetingCreate,
    MeetingStatus,
    MeetingTask,
    MeetingType,
    TaskStatus,
)
from dissertrack.schemas.project import Project
from dissertrack.schemas.user import User
from dissertrack.services.api_client import DissertrackAPIClient
from dissertrack.services.cache_service import CacheService, cache_service
from dissertrack.services.event_bus import MeetingEventBus, MeetingEventType, event_bus
from dissertrack.services.local_meetings import LocalMeetingList
from dissertrack.services.meeting_resolver import MeetingResolver
from dissertrack.services.meeting_store import SharedMeetingStore, meeting_store
from dissertrack.services.slot_generator import generate_slots
from dissertrack.services.status_transitions import UNSET, ContentValue, request_transition


class MeetingService:
    """Service for meeting scheduling, listing and status changes"""

    def __init__(
        self,
        api: DissertrackAPIClient,
        cache: Optional[CacheService] = None,
        store: Optional[SharedMeetingStore] = None,
        bus: Optional[MeetingEventBus] = None,
        resolver: Optional[MeetingResolver] = None,
    ):
        self.api = api
        self.cache = cache if cache is not None else cache_service
        self.store = store if store is not None else meeting_store
        self.bus = bus if bus is not None else event_bus
        self.resolver = resolver or MeetingResolver.default(self.api, self.cache, self.store)

    # =====================================================
    # READS
    # =====================================================

    async def list_meetings(self, user: User, force_refresh: bool = False) -> List[Meeting]:
        """Meetings relevant to the user, ordered by meeting number then date"""
        meetings = await self.resolver.resolve(user, force_refresh=force_refresh)
        return sorted(meetings, key=lambda m: (m.meeting_number or MAX_MEETINGS + 1,
                                               m.scheduled_date.timestamp() if m.scheduled_date else 0))

    async def get_slots(
        self,
        user: User,
        student_id: str,
        project_id: Optional[str] = None,
        force_refresh: bool = False,
    ) -> List[Meeting]:
        meetings = await self.list_meetings(user, force_refresh=force_refresh)
        own = [m for m in meetings if m.student_id == student_id]
        return generate_slots(own, project_id=project_id, student_id=student_id)

    async def get_meeting(self, meeting_id: str) -> Meeting:
        return await self.api.get_meeting(meeting_id)

    # =====================================================
    # WRITES
    # =====================================================

    @staticmethod
    def validate_new_meeting(
        project: Project,
        student_id: str,
        meeting_number: int,
        existing: Iterable[Meeting] = (),
    ) -> None:
        """Local checks before POST /meetings; raises a ValidationFailure subclass"""
        blocker = project.scheduling_blocker()
        if blocker:
            raise ProjectNotSchedulableError(project.id, blocker)
        if not isinstance(meeting_number, int) or not 1 <= meeting_number <= MAX_MEETINGS:
            raise ValidationFailure(f"Meeting number must be between 1 and {MAX_MEETINGS}", field="meetingNumber")
        for meeting in existing:
            if (
                meeting.student_id == student_id
                and meeting.meeting_number == meeting_number
                and meeting.project_id in (None, project.id)
                and not meeting.is_cancelled
                and not meeting.is_placeholder
            ):
                raise DuplicateMeetingNumberError(meeting_number, student_id)

    async def schedule_meeting(
        self,
        project: Project,
        student_id: str,
        meeting_number: int,
        scheduled_date: datetime,
        meeting_summary: str = "",
        meeting_type: Union[MeetingType, str] = MeetingType.PROGRESS_REVIEW,
        duration: int = 30,
        title: Optional[str] = None,
        existing: Iterable[Meeting] = (),
    ) -> Meeting:
        """Create a meeting, record it in the shared store and notify other views"""
        self.validate_new_meeting(project, student_id, meeting_number, existing)

        data = MeetingCreate(
            title=title or f"Meeting {meeting_number}",
            student_id=student_id,
            project_id=project.id,
            meeting_number=meeting_number,
            scheduled_date=scheduled_date,
            meeting_summary=meeting_summary,
            meeting_type=MeetingType(meeting_type),
            duration=duration,
        )
        created = await self.api.create_meeting(data)

        # Fill what the server did not echo back
        created = created.model_copy(update={
            "student_id": created.student_id or student_id,
            "project_id": created.project_id or project.id,
            "faculty_id": created.faculty_id or project.guide_id,
            "meeting_number": created.meeting_number or meeting_number,
            "scheduled_date": created.scheduled_date or data.scheduled_date,
        })

        await self.store.add(created)
        self.cache.invalidate_prefix()
        logger.info(f"Scheduled meeting #{meeting_number} for student {student_id} ({created.id})")

        await self.bus.emit(MeetingEventType.MEETING_CREATED, created, source="meeting_service")
        return created

    async def update_status(
        self,
        meeting: Meeting,
        target_status: Union[MeetingStatus, str],
        local: Optional[LocalMeetingList] = None,
        summary: ContentValue = UNSET,
        student_points: ContentValue = UNSET,
        guide_remarks: ContentValue = UNSET,
        scheduled_date: Optional[datetime] = None,
    ) -> Meeting:
        """
        Change a meeting's status.

        The update is shown in `local` as pending while the request is in
        flight, confirmed on success and rolled back on any failure, which is
        then re-raised unchanged.
        """
        update = request_transition(
            meeting, target_status,
            summary=summary,
            student_points=student_points,
            guide_remarks=guide_remarks,
            scheduled_date=scheduled_date,
        )

        token = local.begin_update(meeting.id, update) if local is not None else None
        try:
            updated = await self.api.update_meeting_status(meeting.id, update)
        except DissertrackError as e:
            if local is not None:
                local.rollback(token)
            logger.warning(f"Status update for meeting {meeting.id} failed: {e.code}")
            raise

        # Keep fields the server response may have omitted
        merged = Meeting.model_validate({
            **meeting.model_dump(),
            **update.content_patch(),
            **updated.model_dump(exclude_defaults=True),
        })
        if local is not None:
            local.confirm(token, merged)

        self.cache.invalidate_prefix()
        await self.bus.emit(MeetingEventType.MEETING_UPDATED, merged, source="meeting_service")
        return merged

    async def add_tasks(self, meeting_id: str, tasks: List[Union[MeetingTask, str]]) -> Meeting:
        normalized = [t if isinstance(t, MeetingTask) else MeetingTask(description=t) for t in tasks]
        if not normalized:
            raise ValidationFailure("At least one task is required", field="tasks")
        meeting = await self.api.add_meeting_tasks(meeting_id, normalized)
        self.cache.invalidate_prefix()
        return meeting

    async def update_task_status(
        self,
        meeting_id: str,
        task_id: Optional[str],
        status: Union[TaskStatus, str] = TaskStatus.COMPLETED,
    ) -> Meeting:
        """Mark one follow-up task pending or completed"""
        if not task_id:
            raise ValidationFailure("Task has no id; reload the meeting first", field="taskId")
        try:
            status = TaskStatus(status)
        except ValueError:
            raise ValidationFailure(f"Unknown task status '{status}'", field="status")

        meeting = await self.api.update_task_status(meeting_id, task_id, status)
        self.cache.invalidate_prefix()
        logger.info(f"Task {task_id} of meeting {meeting_id} marked {status.value}")
        return meeting
