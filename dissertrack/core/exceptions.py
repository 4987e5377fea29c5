"""
Custom Exceptions for DisserTrack
=================================

Every remote failure is mapped to one of four kinds so callers can decide
what to do without inspecting HTTP details:

    ValidationFailure  - request rejected (4xx) or rejected locally
    NotFoundFailure    - referenced meeting/project no longer exists (404)
    NetworkFailure     - no response received (offline, timeout)
    ServerFailure      - 5xx, or a 2xx whose body cannot be used

Usage:
    from dissertrack.core.exceptions import NetworkFailure, ServerFailure

    try:
        meetings = await api.list_meetings(student_id=user.id)
    except (NetworkFailure, ServerFailure):
        meetings = []  # read path falls back
"""

from typing import Optional, Any, Dict


class DissertrackError(Exception):
    """Base exception for all DisserTrack errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationFailure(DissertrackError):
    """Request rejected for malformed or missing fields"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, code="VALIDATION_FAILED", details=details)


class AuthorizationFailure(ValidationFailure):
    """Caller is not allowed to perform this action (401/403)"""

    def __init__(self, message: str = "Not authorized", status_code: int = 403):
        super().__init__(message, status_code=status_code)
        self.code = "NOT_AUTHORIZED"


class InvalidTransitionError(ValidationFailure):
    """Requested meeting status is not reachable from the current one"""

    def __init__(self, from_status: str, to_status: str, reason: Optional[str] = None):
        message = f"Cannot move meeting from '{from_status}' to '{to_status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, field="status")
        self.code = "INVALID_TRANSITION"
        self.details.update({"from_status": from_status, "to_status": to_status})


class DuplicateMeetingNumberError(ValidationFailure):
    """A non-cancelled meeting already occupies this slot"""

    def __init__(self, meeting_number: int, student_id: str):
        super().__init__(
            f"Meeting #{meeting_number} already exists for this student",
            field="meetingNumber"
        )
        self.code = "DUPLICATE_MEETING_NUMBER"
        self.details.update({"meeting_number": meeting_number, "student_id": student_id})


class ProjectNotSchedulableError(ValidationFailure):
    """Project is not approved or has no guide yet"""

    def __init__(self, project_id: str, reason: str):
        super().__init__(f"Cannot schedule meetings for project '{project_id}': {reason}", field="projectId")
        self.code = "PROJECT_NOT_SCHEDULABLE"
        self.details["project_id"] = project_id


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundFailure(DissertrackError):
    """Referenced resource no longer exists"""

    def __init__(self, resource_type: str, resource_id: str = ""):
        message = f"{resource_type} with ID '{resource_id}' not found" if resource_id else f"{resource_type} not found"
        super().__init__(
            message,
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


# ============================================
# Transport / Server Errors
# ============================================

class NetworkFailure(DissertrackError):
    """No response received from the backend"""

    def __init__(self, message: str = "Network unavailable", url: Optional[str] = None):
        super().__init__(message, code="NETWORK_FAILURE")
        if url:
            self.details["url"] = url


class ServerFailure(DissertrackError):
    """Backend answered with a 5xx or an unusable body"""

    def __init__(self, message: str = "Server error. Please try again later.", status_code: Optional[int] = None):
        super().__init__(message, code="SERVER_FAILURE")
        if status_code:
            self.details["status_code"] = status_code


# ============================================
# Helpers
# ============================================

def _extract_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return default


def classify_response_error(
    status_code: int,
    body: Any = None,
    resource_type: str = "Resource",
    resource_id: str = ""
) -> DissertrackError:
    """Map a non-2xx HTTP response to the matching failure kind"""
    if status_code == 404:
        return NotFoundFailure(resource_type, resource_id)
    if status_code in (401, 403):
        return AuthorizationFailure(_extract_message(body, "Not authorized"), status_code=status_code)
    if 400 <= status_code < 500:
        return ValidationFailure(_extract_message(body, "Request rejected"), status_code=status_code)
    return ServerFailure(_extract_message(body, "Server error. Please try again later."), status_code=status_code)


def error_response(error: DissertrackError) -> Dict[str, Any]:
    """Convert exception to a displayable error payload"""
    return {
        "success": False,
        "error": error.to_dict()
    }
