"""
DisserTrack - Test Configuration and Fixtures
"""
import os
import asyncio
import itertools
import json
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['API_BASE_URL'] = 'http://testserver/api'
os.environ['API_TOKEN'] = 'test-token'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['POLL_INTERVAL_SECONDS'] = '120'
os.environ['FILL_BLANK_CONTENT_PLACEHOLDERS'] = 'true'
os.environ['MEETING_STORE_PATH'] = os.path.join(tempfile.gettempdir(), 'dissertrack-test', 'recent_meetings.json')

from dissertrack.schemas.meeting import Meeting, MeetingStatus
from dissertrack.schemas.project import Project, ProjectStatus
from dissertrack.schemas.user import User, UserRole
from dissertrack.services.api_client import DissertrackAPIClient
from dissertrack.services.cache_service import CacheService
from dissertrack.services.event_bus import MeetingEventBus
from dissertrack.services.meeting_service import MeetingService
from dissertrack.services.meeting_store import SharedMeetingStore

fake = Faker()

BASE_URL = 'http://testserver/api'


class FakeBackend:
    """
    In-memory stand-in for the REST backend, served through httpx.MockTransport.

    Documents are stored the way the real backend returns them: Mongo-style
    `_id`, populated `student`/`guide`/`project` objects, camelCase fields.
    """

    def __init__(self):
        self.meetings: Dict[str, Dict[str, Any]] = {}
        self.projects: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, str] = {}
        self.evaluation: Optional[Dict[str, Any]] = None
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[Any] = None  # status code, or "network"
        self.wrap_responses = True
        self.gate: Optional[asyncio.Event] = None
        self._ids = itertools.count(1)

    # ========== Seeding ==========

    def add_user(self, user_id: str, name: str) -> None:
        self.users[user_id] = name

    def add_project(self, project_id: str, student_id: str, guide_id: Optional[str],
                    status: str = 'approved', title: str = 'Thesis') -> Dict[str, Any]:
        doc = {
            '_id': project_id,
            'title': title,
            'status': status,
            'student': {'_id': student_id, 'name': self.users.get(student_id, '')},
            'guide': {'_id': guide_id, 'name': self.users.get(guide_id, '')} if guide_id else None,
        }
        self.projects[project_id] = doc
        return doc

    def add_meeting(self, student_id: str, faculty_id: str, project_id: str, meeting_number: int,
                    scheduled_date: datetime, status: str = 'scheduled', **extra) -> Dict[str, Any]:
        meeting_id = extra.pop('_id', None) or f'm{next(self._ids)}'
        doc = {
            '_id': meeting_id,
            'title': extra.pop('title', f'Meeting {meeting_number}'),
            'student': {'_id': student_id, 'name': self.users.get(student_id, '')},
            'guide': {'_id': faculty_id, 'name': self.users.get(faculty_id, '')},
            'project': {'_id': project_id, 'title': self.projects.get(project_id, {}).get('title', '')},
            'meetingNumber': meeting_number,
            'scheduledDate': scheduled_date.isoformat(),
            'status': status,
            'duration': 30,
            'meetingType': 'progress-review',
            'meetingSummary': '',
            'studentPoints': '',
            'guideRemarks': '',
            'tasks': [],
        }
        doc.update(extra)
        self.meetings[meeting_id] = doc
        return doc

    # ========== Transport ==========

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _wrap(self, doc: Dict[str, Any], message: str) -> Dict[str, Any]:
        return {'message': message, 'meeting': doc} if self.wrap_responses else doc

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        if self.fail_with == 'network':
            raise httpx.ConnectError('connection refused', request=request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={'message': 'Backend unavailable'})

        path = request.url.path[len('/api'):] if request.url.path.startswith('/api') else request.url.path
        parts = [p for p in path.split('/') if p]
        query = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}

        if parts == ['meetings'] and request.method == 'GET':
            return httpx.Response(200, json=self._list(query))
        if parts == ['meetings', 'department'] and request.method == 'GET':
            return httpx.Response(200, json={'meetings': list(self.meetings.values())})
        if parts == ['meetings'] and request.method == 'POST':
            return self._create(json.loads(request.content))
        if len(parts) == 2 and parts[0] == 'meetings' and request.method == 'GET':
            doc = self.meetings.get(parts[1])
            if doc is None:
                return httpx.Response(404, json={'message': 'Meeting not found'})
            return httpx.Response(200, json=doc)
        if len(parts) == 3 and parts[0] == 'meetings' and request.method == 'PUT':
            doc = self.meetings.get(parts[1])
            if doc is None:
                return httpx.Response(404, json={'message': 'Meeting not found'})
            body = json.loads(request.content)
            if parts[2] == 'status':
                doc.update({k: v for k, v in body.items() if v is not None})
                return httpx.Response(200, json=self._wrap(doc, 'Meeting status updated'))
            if parts[2] == 'tasks':
                added = [{'_id': f't{next(self._ids)}', **task} for task in body.get('tasks', [])]
                doc['tasks'] = doc['tasks'] + added
                return httpx.Response(200, json=self._wrap(doc, 'Tasks added'))
        if len(parts) == 4 and parts[0] == 'meetings' and parts[2] == 'tasks' and request.method == 'PUT':
            doc = self.meetings.get(parts[1])
            if doc is None:
                return httpx.Response(404, json={'message': 'Meeting not found'})
            task = next((t for t in doc['tasks'] if t.get('_id') == parts[3]), None)
            if task is None:
                return httpx.Response(404, json={'message': 'Task not found'})
            task['status'] = json.loads(request.content)['status']
            return httpx.Response(200, json=self._wrap(doc, 'Task status updated'))
        if len(parts) == 2 and parts[0] == 'projects' and request.method == 'GET':
            doc = self.projects.get(parts[1])
            if doc is None:
                return httpx.Response(404, json={'message': 'Project not found'})
            return httpx.Response(200, json=doc)
        if parts == ['students', 'evaluation'] and request.method == 'GET':
            return httpx.Response(200, json=self.evaluation)

        return httpx.Response(404, json={'message': f'No route for {request.method} {path}'})

    def _list(self, query: Dict[str, str]) -> List[Dict[str, Any]]:
        docs = list(self.meetings.values())
        if 'studentId' in query:
            docs = [d for d in docs if d['student']['_id'] == query['studentId']]
        if 'facultyId' in query:
            docs = [d for d in docs if d['guide']['_id'] == query['facultyId']]
        if 'projectId' in query:
            docs = [d for d in docs if d['project']['_id'] == query['projectId']]
        return docs

    def _create(self, body: Dict[str, Any]) -> httpx.Response:
        project = self.projects.get(body.get('projectId'))
        if project is None:
            return httpx.Response(404, json={'message': 'Project not found'})
        if project['status'] != 'approved' or not project.get('guide'):
            return httpx.Response(400, json={'message': 'Project must be approved with an assigned guide'})

        doc = self.add_meeting(
            student_id=body['studentId'],
            faculty_id=project['guide']['_id'],
            project_id=project['_id'],
            meeting_number=body['meetingNumber'],
            scheduled_date=datetime.fromisoformat(body['scheduledDate'].replace('Z', '+00:00')),
            title=body.get('title', ''),
            meetingSummary=body.get('meetingSummary', ''),
            meetingType=body.get('meetingType', 'progress-review'),
            duration=body.get('duration', 30),
        )
        return httpx.Response(201, json=self._wrap(doc, 'Meeting scheduled successfully'))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend: FakeBackend) -> DissertrackAPIClient:
    return DissertrackAPIClient(base_url=BASE_URL, token='test-token', transport=backend.transport())


@pytest.fixture
def cache() -> CacheService:
    return CacheService(ttl=1800, max_size=100)


@pytest.fixture
def store(tmp_path) -> SharedMeetingStore:
    return SharedMeetingStore(str(tmp_path / 'recent_meetings.json'))


@pytest.fixture
def bus() -> MeetingEventBus:
    return MeetingEventBus()


@pytest.fixture
def service(api, cache, store, bus) -> MeetingService:
    return MeetingService(api, cache=cache, store=store, bus=bus)


@pytest.fixture
def student_user(backend: FakeBackend) -> User:
    user = User(id=fake.uuid4(), name=fake.name(), role=UserRole.STUDENT, department='CSE')
    backend.add_user(user.id, user.name)
    return user


@pytest.fixture
def faculty_user(backend: FakeBackend) -> User:
    user = User(id=fake.uuid4(), name=fake.name(), role=UserRole.FACULTY, department='CSE')
    backend.add_user(user.id, user.name)
    return user


@pytest.fixture
def hod_user() -> User:
    return User(id=fake.uuid4(), name=fake.name(), role=UserRole.HOD, department='CSE')


@pytest.fixture
def project(backend: FakeBackend, student_user: User, faculty_user: User) -> Project:
    project_id = fake.uuid4()
    backend.add_project(project_id, student_user.id, faculty_user.id, title=fake.catch_phrase())
    return Project(
        id=project_id,
        title=backend.projects[project_id]['title'],
        status=ProjectStatus.APPROVED,
        student_id=student_user.id,
        guide_id=faculty_user.id,
    )


@pytest.fixture
def future_date() -> datetime:
    return (datetime.now(timezone.utc) + timedelta(days=7)).replace(microsecond=0)


@pytest.fixture
def make_meeting():
    """Factory for canonical meetings"""
    counter = itertools.count(1)

    def _make(**overrides) -> Meeting:
        data = {
            'id': f'meeting-{next(counter)}',
            'title': 'Progress review',
            'student_id': 'student-1',
            'faculty_id': 'faculty-1',
            'project_id': 'project-1',
            'meeting_number': 1,
            'scheduled_date': datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc),
            'status': MeetingStatus.SCHEDULED,
        }
        data.update(overrides)
        return Meeting(**data)

    return _make
