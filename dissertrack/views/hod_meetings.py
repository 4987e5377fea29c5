"""HOD view: every meeting in the department with filters, search and pages"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from dissertrack.core.config import settings
from dissertrack.schemas.meeting import Meeting, MeetingStatus, as_utc
from dissertrack.schemas.user import User
from dissertrack.services.meeting_service import MeetingService
from dissertrack.utils.pagination import PaginatedResponse, paginate_items
from dissertrack.views.base import MeetingView


UPCOMING_STATUSES = (MeetingStatus.SCHEDULED, MeetingStatus.RESCHEDULED)


class HodMeetingsView(MeetingView):
    name = "hod_meetings"

    def __init__(self, service: MeetingService, user: User, page_size: Optional[int] = None, **kwargs):
        super().__init__(service, user, **kwargs)
        self.page_size = page_size or settings.HOD_PAGE_SIZE
        self.page = 1
        self.status: Optional[MeetingStatus] = None
        self.faculty_id: Optional[str] = None
        self.student_id: Optional[str] = None
        self.search = ""

    async def _load(self, force_refresh: bool) -> List[Meeting]:
        return await self.service.list_meetings(self.user, force_refresh=force_refresh)

    def is_relevant(self, meeting: Meeting) -> bool:
        return True

    # ========== Filters ==========

    def set_filters(
        self,
        status: Optional[str] = None,
        faculty_id: Optional[str] = None,
        student_id: Optional[str] = None,
        search: str = "",
    ) -> None:
        """Replace all filters; "all" or empty clears one. Resets to page 1."""
        self.status = MeetingStatus(status) if status and status != "all" else None
        self.faculty_id = faculty_id if faculty_id and faculty_id != "all" else None
        self.student_id = student_id if student_id and student_id != "all" else None
        self.search = (search or "").strip().lower()
        self.page = 1

    def _matches(self, meeting: Meeting) -> bool:
        if self.status and meeting.status != self.status:
            return False
        if self.faculty_id and meeting.faculty_id != self.faculty_id:
            return False
        if self.student_id and meeting.student_id != self.student_id:
            return False
        if self.search:
            haystack = " ".join(filter(None, (
                meeting.title,
                meeting.student_name,
                meeting.faculty_name,
                meeting.project_title,
            ))).lower()
            return self.search in haystack
        return True

    def filtered(self) -> List[Meeting]:
        return [m for m in self.meetings() if self._matches(m)]

    def current_page(self, page: Optional[int] = None) -> PaginatedResponse:
        if page is not None:
            self.page = page
        result = paginate_items(self.filtered(), self.page, self.page_size)
        self.page = result.page
        return result

    # ========== Dropdowns & stats ==========

    def faculty_options(self) -> List[Tuple[str, str]]:
        options = {m.faculty_id: m.faculty_name or m.faculty_id for m in self.meetings() if m.faculty_id}
        return sorted(options.items(), key=lambda item: item[1].lower())

    def student_options(self) -> List[Tuple[str, str]]:
        options = {m.student_id: m.student_name or m.student_id for m in self.meetings() if m.student_id}
        return sorted(options.items(), key=lambda item: item[1].lower())

    def dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = as_utc(now) or datetime.now(timezone.utc)
        meetings = self.meetings()
        by_status = Counter(m.status.value for m in meetings)
        upcoming = sum(
            1 for m in meetings
            if m.status in UPCOMING_STATUSES and m.scheduled_date and m.scheduled_date >= now
        )
        return {
            "total": len(meetings),
            "upcoming": upcoming,
            "completed": by_status.get(MeetingStatus.COMPLETED.value, 0),
            "by_status": dict(by_status),
        }
