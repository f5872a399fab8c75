"""Meetings Domain Exceptions - Lifecycle, validation and storage errors."""

from .constants import (
    ERROR_MEETING_FULL,
    ERROR_MEETING_INACTIVE,
    ERROR_MEETING_NOT_FOUND,
    ERROR_NOT_HOST,
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_ERROR,
    HTTP_NOT_FOUND,
)


class MeetingError(Exception):
    """Base exception for all meeting domain errors."""

    def __init__(
        self,
        message: str,
        code: str = "MEETING_ERROR",
        status_code: int = HTTP_INTERNAL_ERROR,
    ):
        """
        Initialize meeting error.

        Args:
            message: Human-readable error message (sent to clients)
            code: Machine-readable error code
            status_code: HTTP status used when the error reaches a route
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(MeetingError):
    """Raised when a meeting id, user data or message is malformed."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_INPUT", status_code=HTTP_BAD_REQUEST)


class MeetingNotFoundError(MeetingError):
    """Raised when a meeting does not exist (or can no longer take messages)."""

    def __init__(self, meeting_id: str):
        self.meeting_id = meeting_id
        super().__init__(
            ERROR_MEETING_NOT_FOUND, code="MEETING_NOT_FOUND", status_code=HTTP_NOT_FOUND
        )


class MeetingInactiveError(MeetingError):
    """Raised when joining a meeting that has ended."""

    def __init__(self, meeting_id: str):
        self.meeting_id = meeting_id
        super().__init__(
            ERROR_MEETING_INACTIVE, code="MEETING_INACTIVE", status_code=HTTP_CONFLICT
        )


class MeetingFullError(MeetingError):
    """Raised when a new participant would exceed the meeting capacity."""

    def __init__(self, meeting_id: str, max_participants: int):
        self.meeting_id = meeting_id
        super().__init__(
            ERROR_MEETING_FULL.format(max_participants=max_participants),
            code="MEETING_FULL",
            status_code=HTTP_CONFLICT,
        )


class MeetingForbiddenError(MeetingError):
    """Raised when someone other than the creator tries to end a meeting."""

    def __init__(self, meeting_id: str, requester_id: str):
        self.meeting_id = meeting_id
        self.requester_id = requester_id
        super().__init__(ERROR_NOT_HOST, code="FORBIDDEN", status_code=HTTP_FORBIDDEN)


class MeetingStorageError(MeetingError):
    """Raised when the durable meeting store fails."""

    def __init__(self, message: str = "Meeting storage failure"):
        super().__init__(message, code="STORAGE_FAILURE", status_code=HTTP_INTERNAL_ERROR)
