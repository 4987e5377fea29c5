"""
Unit Tests for the meeting views (lifecycle, events, optimistic updates)
"""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone

from dissertrack.core.exceptions import NetworkFailure, NotFoundFailure, ValidationFailure
from dissertrack.schemas.meeting import MeetingStatus, TaskStatus
from dissertrack.schemas.project import Project, ProjectStatus
from dissertrack.services.local_meetings import SyncState
from dissertrack.views import FacultyMeetingsView, HodMeetingsView, StudentMeetingsView


class TestViewLifecycle:

    @pytest.mark.asyncio
    async def test_mount_loads_and_unmount_releases(self, service, bus, backend, project, student_user, future_date):
        backend.add_meeting(student_user.id, project.guide_id, project.id, 1, future_date)
        view = StudentMeetingsView(service, student_user, project_id=project.id)

        await view.mount()
        assert bus.handler_count() == 2
        assert view._task is not None
        assert view.slots()[0].meeting_number == 1
        assert not view.slots()[0].is_placeholder

        await view.unmount()
        assert bus.handler_count() == 0
        assert view._task is None
        assert not view.mounted

    @pytest.mark.asyncio
    async def test_response_after_unmount_is_discarded(self, service, backend, project, student_user, future_date):
        view = StudentMeetingsView(service, student_user)
        await view.mount()
        backend.add_meeting(student_user.id, project.guide_id, project.id, 1, future_date)
        backend.gate = asyncio.Event()

        pending = asyncio.create_task(view.refresh(force_refresh=True))
        await asyncio.sleep(0)
        await view.unmount()
        backend.gate.set()

        assert await pending is False
        assert view.meetings() == []
        assert view.stats["discarded"] == 1

    @pytest.mark.asyncio
    async def test_periodic_refresh(self, service, backend, student_user):
        view = StudentMeetingsView(service, student_user, poll_interval=0.01)

        async with view:
            await asyncio.sleep(0.1)
            assert view.stats["refreshes"] >= 2

        requests_after_unmount = len(backend.requests)
        await asyncio.sleep(0.05)
        assert len(backend.requests) == requests_after_unmount

    @pytest.mark.asyncio
    async def test_refresh_loop_survives_errors(self, service, backend, student_user):
        view = StudentMeetingsView(service, student_user, poll_interval=0.01)
        await view.mount()
        backend.fail_with = "network"

        await asyncio.sleep(0.05)

        assert not view._task.done()
        await view.unmount()

    @pytest.mark.asyncio
    async def test_refresh_loop_logs_unexpected_errors(self, service, student_user, monkeypatch, caplog):
        view = StudentMeetingsView(service, student_user, poll_interval=0.01)
        await view.mount()

        async def broken_refresh(force_refresh=False):
            raise RuntimeError("renderer crashed")

        monkeypatch.setattr(view, "refresh", broken_refresh)
        await asyncio.sleep(0.05)

        assert not view._task.done()
        records = [r for r in caplog.records if getattr(r, "error_context", None) == "student_meetings refresh loop"]
        assert records
        assert records[0].error_type == "RuntimeError"
        await view.unmount()

    @pytest.mark.asyncio
    async def test_double_mount_is_ignored(self, service, bus, student_user):
        view = StudentMeetingsView(service, student_user, poll_interval=0)
        await view.mount()
        await view.mount()

        assert bus.handler_count() == 2
        assert view._task is None
        await view.unmount()


class TestCrossViewNotifications:

    @pytest.mark.asyncio
    async def test_schedule_in_faculty_view_reaches_student_view(
        self, service, project, student_user, faculty_user, future_date
    ):
        student_view = StudentMeetingsView(service, student_user, project_id=project.id, poll_interval=0)
        faculty_view = FacultyMeetingsView(service, faculty_user, student_id=student_user.id, project=project,
                                           poll_interval=0)
        await student_view.mount()
        await faculty_view.mount()
        assert all(s.is_placeholder for s in student_view.slots())

        created = await faculty_view.schedule(1, future_date, meeting_summary="Kickoff agenda")

        assert student_view.slots()[0].id == created.id
        assert student_view.stats["events_handled"] == 1
        await student_view.unmount()
        await faculty_view.unmount()

    @pytest.mark.asyncio
    async def test_unmounted_view_ignores_events(self, service, project, student_user, faculty_user, future_date):
        student_view = StudentMeetingsView(service, student_user, poll_interval=0)
        await student_view.mount()
        await student_view.unmount()

        await service.schedule_meeting(project, student_user.id, 1, future_date)

        assert student_view.stats["events_handled"] == 0
        assert student_view.meetings() == []

    @pytest.mark.asyncio
    async def test_irrelevant_events_ignored(self, service, backend, faculty_user, future_date):
        other_student = "someone-else"
        backend.add_user(other_student, "Other")
        backend.add_project("p-other", other_student, faculty_user.id)
        other_project = Project(id="p-other", status=ProjectStatus.APPROVED, guide_id=faculty_user.id)

        view = FacultyMeetingsView(service, faculty_user, student_id="student-x", poll_interval=0)
        await view.mount()
        await service.schedule_meeting(other_project, other_student, 1, future_date)

        assert view.stats["events_handled"] == 0
        await view.unmount()


class TestFacultyView:

    @pytest.mark.asyncio
    async def test_change_status_is_pending_then_confirmed(
        self, service, backend, project, student_user, faculty_user, future_date
    ):
        doc = backend.add_meeting(student_user.id, faculty_user.id, project.id, 1, future_date)
        view = FacultyMeetingsView(service, faculty_user, student_id=student_user.id, project=project,
                                   poll_interval=0)
        await view.mount()
        backend.gate = asyncio.Event()

        change = asyncio.create_task(view.change_status(doc["_id"], "completed", summary="Went well"))
        await asyncio.sleep(0)

        assert view.local.state_of(doc["_id"]) == SyncState.PENDING
        assert view.pending_ids() == [doc["_id"]]
        assert view.local.get(doc["_id"]).status == MeetingStatus.COMPLETED

        backend.gate.set()
        updated = await change

        assert updated.meeting_summary == "Went well"
        assert view.local.state_of(doc["_id"]) == SyncState.CONFIRMED
        assert view.local.get(doc["_id"]).status == MeetingStatus.COMPLETED
        await view.unmount()

    @pytest.mark.asyncio
    async def test_failed_change_is_rolled_back(self, service, backend, project, student_user, faculty_user,
                                                future_date):
        doc = backend.add_meeting(student_user.id, faculty_user.id, project.id, 1, future_date)
        view = FacultyMeetingsView(service, faculty_user, student_id=student_user.id, poll_interval=0)
        await view.mount()
        backend.fail_with = "network"

        with pytest.raises(NetworkFailure):
            await view.change_status(doc["_id"], "cancelled")

        assert view.local.get(doc["_id"]).status == MeetingStatus.SCHEDULED
        assert view.pending_ids() == []
        await view.unmount()

    @pytest.mark.asyncio
    async def test_change_status_of_unknown_meeting(self, service, faculty_user):
        view = FacultyMeetingsView(service, faculty_user, poll_interval=0)
        with pytest.raises(NotFoundFailure):
            await view.change_status("missing", "completed")

    @pytest.mark.asyncio
    async def test_schedule_requires_selection(self, service, faculty_user, future_date):
        view = FacultyMeetingsView(service, faculty_user, poll_interval=0)
        with pytest.raises(ValidationFailure):
            await view.schedule(1, future_date)

    @pytest.mark.asyncio
    async def test_pending_reschedule_with_naive_date(
        self, service, backend, project, student_user, faculty_user, future_date
    ):
        doc = backend.add_meeting(student_user.id, faculty_user.id, project.id, 1, future_date)
        backend.add_meeting(student_user.id, faculty_user.id, project.id, 1, future_date - timedelta(days=1))
        view = FacultyMeetingsView(service, faculty_user, student_id=student_user.id, project=project,
                                   poll_interval=0)
        await view.mount()
        backend.gate = asyncio.Event()
        new_date = (future_date + timedelta(days=7)).replace(tzinfo=None)

        change = asyncio.create_task(view.change_status(doc["_id"], "rescheduled", scheduled_date=new_date))
        await asyncio.sleep(0)

        first = view.slots()[0]
        assert first.id == doc["_id"]
        assert first.scheduled_date == new_date.replace(tzinfo=timezone.utc)

        backend.gate.set()
        await change
        await view.unmount()

    @pytest.mark.asyncio
    async def test_complete_task(self, service, backend, project, student_user, faculty_user, future_date):
        doc = backend.add_meeting(
            student_user.id, faculty_user.id, project.id, 1, future_date,
            tasks=[{"_id": "t1", "description": "Draft chapter 1", "status": "pending"}],
        )
        view = FacultyMeetingsView(service, faculty_user, student_id=student_user.id, poll_interval=0)
        await view.mount()

        await view.complete_task(doc["_id"], view.local.get(doc["_id"]).tasks[0].id)

        assert view.local.get(doc["_id"]).tasks[0].status == TaskStatus.COMPLETED
        await view.unmount()

    @pytest.mark.asyncio
    async def test_select_student_reloads(self, service, backend, project, student_user, faculty_user, future_date):
        backend.add_meeting(student_user.id, faculty_user.id, project.id, 2, future_date)
        view = FacultyMeetingsView(service, faculty_user, poll_interval=0)
        await view.mount()

        await view.select_student(student_user.id, project)

        slots = view.slots()
        assert [s.is_placeholder for s in slots] == [True, False, True, True]
        await view.unmount()


class TestStudentView:

    @pytest.mark.asyncio
    async def test_next_meeting_and_counts(self, service, backend, project, student_user, future_date):
        backend.add_meeting(student_user.id, project.guide_id, project.id, 1, future_date, status="completed")
        backend.add_meeting(student_user.id, project.guide_id, project.id, 2, future_date)

        async with StudentMeetingsView(service, student_user, poll_interval=0) as view:
            assert view.next_meeting_number() == 3
            assert view.completed_count() == 1

    @pytest.mark.asyncio
    async def test_evaluation_unavailable_is_none(self, service, backend, student_user):
        view = StudentMeetingsView(service, student_user, poll_interval=0)
        backend.fail_with = 500

        assert await view.evaluation() is None


class TestHodView:

    @pytest.fixture
    def seeded(self, backend):
        backend.add_user("s1", "Asha Rao")
        backend.add_user("s2", "Vikram Shah")
        backend.add_user("f1", "Dr. Menon")
        backend.add_user("f2", "Dr. Iyer")
        backend.add_project("p1", "s1", "f1", title="Edge caching")
        backend.add_project("p2", "s2", "f2", title="Crop yield models")
        soon = datetime.now(timezone.utc) + timedelta(days=2)
        past = datetime.now(timezone.utc) - timedelta(days=20)
        backend.add_meeting("s1", "f1", "p1", 1, past, status="completed")
        backend.add_meeting("s1", "f1", "p1", 2, soon)
        backend.add_meeting("s2", "f2", "p2", 1, soon, status="cancelled")
        for number in range(1, 5):
            backend.add_meeting("s2", "f2", "p2", number, soon + timedelta(days=number))
        return backend

    @pytest.mark.asyncio
    async def test_filters_and_search(self, service, hod_user, seeded):
        async with HodMeetingsView(service, hod_user, poll_interval=0) as view:
            assert len(view.filtered()) == 7

            view.set_filters(status="completed")
            assert len(view.filtered()) == 1

            view.set_filters(faculty_id="f2", status="all")
            assert len(view.filtered()) == 5

            view.set_filters(search="  EDGE ")
            assert {m.student_id for m in view.filtered()} == {"s1"}

            view.set_filters(search="vikram", student_id="s2", status="cancelled")
            assert len(view.filtered()) == 1

    @pytest.mark.asyncio
    async def test_pagination(self, service, hod_user, seeded):
        async with HodMeetingsView(service, hod_user, page_size=3, poll_interval=0) as view:
            first = view.current_page()
            assert first.total == 7
            assert first.total_pages == 3
            assert len(first.items) == 3
            assert first.has_next and not first.has_previous

            last = view.current_page(99)
            assert last.page == 3
            assert len(last.items) == 1

            view.set_filters(status="completed")
            assert view.page == 1

    @pytest.mark.asyncio
    async def test_dashboard_stats_and_options(self, service, hod_user, seeded):
        async with HodMeetingsView(service, hod_user, poll_interval=0) as view:
            stats = view.dashboard_stats()

            assert stats["total"] == 7
            assert stats["completed"] == 1
            assert stats["upcoming"] == 5
            assert stats["by_status"]["cancelled"] == 1
            assert view.faculty_options() == [("f2", "Dr. Iyer"), ("f1", "Dr. Menon")]
            assert [name for _, name in view.student_options()] == ["Asha Rao", "Vikram Shah"]

    @pytest.mark.asyncio
    async def test_dashboard_stats_with_naive_now(self, service, hod_user, seeded):
        async with HodMeetingsView(service, hod_user, poll_interval=0) as view:
            assert view.dashboard_stats(now=datetime.now(timezone.utc).replace(tzinfo=None))["upcoming"] == 5
