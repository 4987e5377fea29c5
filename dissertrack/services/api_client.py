"""
DisserTrack - REST client for the project-tracking backend.

All documents are normalised here; callers only ever see canonical models.
Every failure is raised as one of NetworkFailure, ValidationFailure,
NotFoundFailure or ServerFailure.
"""
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from dissertrack.core.config import settings
from dissertrack.core.exceptions import (
    NetworkFailure,
    ServerFailure,
    classify_response_error,
)
from dissertrack.core.logging_config import logger
from dissertrack.schemas.evaluation import Evaluation
from dissertrack.schemas.meeting import Meeting, MeetingCreate, MeetingStatusUpdate, MeetingTask, TaskStatus
from dissertrack.schemas.project import Project
from dissertrack.services.meeting_normalizer import (
    normalize_meeting,
    normalize_meetings,
    normalize_project,
)


class DissertrackAPIClient:
    """Async API client for the meetings/projects endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.token = token if token is not None else settings.API_TOKEN
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        resource_type: str = "Resource",
        resource_id: str = "",
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body"""
        client = self._get_client()
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}

        started = time.perf_counter()
        try:
            response = await client.request(
                method, endpoint, json=json, params=params or None, headers=self._get_headers()
            )
        except httpx.TimeoutException as e:
            raise NetworkFailure(f"Request timed out: {method} {endpoint}", url=endpoint) from e
        except httpx.TransportError as e:
            raise NetworkFailure(f"Network error: {e}", url=endpoint) from e

        duration_ms = (time.perf_counter() - started) * 1000
        logger.log_request(method, endpoint, response.status_code, duration_ms)

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = response.text

        if response.is_success:
            return body
        raise classify_response_error(response.status_code, body, resource_type, resource_id)

    def _single_meeting(self, body: Any, endpoint: str) -> Meeting:
        meeting = normalize_meeting(body)
        if meeting is None:
            raise ServerFailure(f"Unusable meeting document from {endpoint}")
        return meeting

    # ==================== Meetings ====================

    async def list_meetings(
        self,
        student_id: Optional[str] = None,
        faculty_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> List[Meeting]:
        """GET /meetings scoped to a participant"""
        body = await self._request(
            "GET", "/meetings",
            params={"studentId": student_id, "facultyId": faculty_id, "projectId": project_id},
            resource_type="Meeting",
        )
        if not isinstance(body, (list, dict)):
            raise ServerFailure("Unexpected response shape from /meetings")
        return normalize_meetings(body)

    async def list_department_meetings(self) -> List[Meeting]:
        """GET /meetings/department (HOD)"""
        body = await self._request("GET", "/meetings/department", resource_type="Meeting")
        if not isinstance(body, (list, dict)):
            raise ServerFailure("Unexpected response shape from /meetings/department")
        return normalize_meetings(body)

    async def get_meeting(self, meeting_id: str) -> Meeting:
        endpoint = f"/meetings/{meeting_id}"
        body = await self._request("GET", endpoint, resource_type="Meeting", resource_id=meeting_id)
        return self._single_meeting(body, endpoint)

    async def create_meeting(self, data: MeetingCreate) -> Meeting:
        body = await self._request("POST", "/meetings", json=data.to_wire(), resource_type="Project",
                                   resource_id=data.project_id)
        return self._single_meeting(body, "/meetings")

    async def update_meeting_status(self, meeting_id: str, update: MeetingStatusUpdate) -> Meeting:
        endpoint = f"/meetings/{meeting_id}/status"
        body = await self._request("PUT", endpoint, json=update.to_wire(), resource_type="Meeting",
                                   resource_id=meeting_id)
        return self._single_meeting(body, endpoint)

    async def add_meeting_tasks(self, meeting_id: str, tasks: List[MeetingTask]) -> Meeting:
        endpoint = f"/meetings/{meeting_id}/tasks"
        body = await self._request(
            "PUT", endpoint,
            json={"tasks": [task.to_wire() for task in tasks]},
            resource_type="Meeting", resource_id=meeting_id,
        )
        return self._single_meeting(body, endpoint)

    async def update_task_status(self, meeting_id: str, task_id: str, status: TaskStatus) -> Meeting:
        endpoint = f"/meetings/{meeting_id}/tasks/{task_id}"
        body = await self._request(
            "PUT", endpoint,
            json={"status": TaskStatus(status).value},
            resource_type="Task", resource_id=task_id,
        )
        return self._single_meeting(body, endpoint)

    # ==================== Projects & Evaluations ====================

    async def get_project(self, project_id: str) -> Project:
        endpoint = f"/projects/{project_id}"
        body = await self._request("GET", endpoint, resource_type="Project", resource_id=project_id)
        project = normalize_project(body)
        if project is None:
            raise ServerFailure(f"Unusable project document from {endpoint}")
        return project

    async def get_evaluation(self) -> Optional[Evaluation]:
        """GET /students/evaluation; None when the student has not been evaluated"""
        body = await self._request("GET", "/students/evaluation", resource_type="Evaluation")
        if not body:
            return None
        if isinstance(body, list):
            body = body[-1]
        try:
            return Evaluation.model_validate(body)
        except ValidationError as e:
            raise ServerFailure(f"Unusable evaluation document: {e.error_count()} errors") from e
