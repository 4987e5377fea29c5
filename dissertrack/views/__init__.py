# Meeting views
from dissertrack.views.base import MeetingView
from dissertrack.views.student_meetings import StudentMeetingsView
from dissertrack.views.faculty_meetings import FacultyMeetingsView
from dissertrack.views.hod_meetings import HodMeetingsView

__all__ = [
    "MeetingView",
    "StudentMeetingsView",
    "FacultyMeetingsView",
    "HodMeetingsView",
]
