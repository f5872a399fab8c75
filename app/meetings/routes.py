"""
Meetings Routes - HTTP and WebSocket endpoints

Endpoints (blueprint mounted at /api/v1):
1. HTTP POST: /meetings (create a meeting)
2. HTTP POST: /meetings/end (host ends a meeting)
3. HTTP GET: /meetings/<meeting_id> (participants of a meeting)
4. HTTP GET: /meetings/<meeting_id>/summary (summary of an ended meeting)
5. WebSocket: /socket (join-meeting / send-message events)
"""
import logging
import uuid

from flask import Blueprint, jsonify, request
from pydantic import ValidationError
from simple_websocket import ConnectionClosed, Server

from .constants import (
    ERROR_END_FAILED,
    ERROR_GET_FAILED,
    ERROR_INVALID_MEETING_ID,
    ERROR_MEETING_NOT_FOUND,
    ERROR_MISSING_FIELDS,
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_INTERNAL_ERROR,
    HTTP_NOT_FOUND,
    HTTP_OK,
    WEBSOCKET_RECEIVE_TIMEOUT,
)
from .events import get_event_handler
from .exceptions import MeetingError, MeetingStorageError
from .schemas import CreateMeetingRequest, EndMeetingRequest, ErrorResponse
from .services import get_meeting_registry
from .validation import is_valid_meeting_id

logger = logging.getLogger(__name__)

# Create blueprint
meetings_bp = Blueprint("meetings", __name__)


# ==============================================================================
# HTTP: MEETINGS
# ==============================================================================


@meetings_bp.route("/meetings", methods=["POST"])
@meetings_bp.route("/meetings/create", methods=["POST"])
def create_meeting():
    """
    Create a new meeting.

    Request Body:
        {"createdBy": "uid", "creatorName": "Ada"}

    Returns:
        201 {"success": true, "meetingId": "123456", "meeting": {...}}
    """
    try:
        body = CreateMeetingRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError:
        return _send_error_response(ERROR_MISSING_FIELDS, HTTP_BAD_REQUEST)

    meeting = get_meeting_registry().create(body.created_by, body.creator_name)

    return (
        jsonify(
            {
                "success": True,
                "meetingId": meeting.meeting_id,
                "meeting": meeting.to_dict(),
            }
        ),
        HTTP_CREATED,
    )


@meetings_bp.route("/meetings/end", methods=["POST"])
def end_meeting():
    """
    End a meeting. Only its creator may do this.

    Request Body:
        {"meetingId": "123456", "uid": "host-uid"}

    Returns:
        200 {"success": true}, or 400 {"error": "..."} if the meeting cannot
        be ended by this user
    """
    try:
        body = EndMeetingRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError:
        return _send_error_response(ERROR_MISSING_FIELDS, HTTP_BAD_REQUEST)

    try:
        get_meeting_registry().end(body.meeting_id, body.uid)
    except MeetingStorageError as e:
        logger.error(f"Error ending meeting: {e}")
        return _send_error_response(ERROR_END_FAILED, HTTP_INTERNAL_ERROR)
    except MeetingError as e:
        return _send_error_response(e.message, HTTP_BAD_REQUEST, e.code)

    # Notify all participants that meeting ended
    get_event_handler().broadcast_meeting_ended(body.meeting_id)

    return jsonify({"success": True}), HTTP_OK


@meetings_bp.route("/meetings/<meeting_id>", methods=["GET"])
def get_meeting(meeting_id: str):
    """Participants of a meeting (empty for unknown meetings)."""
    if not is_valid_meeting_id(meeting_id):
        return _send_error_response(ERROR_INVALID_MEETING_ID, HTTP_BAD_REQUEST)

    try:
        participants = get_meeting_registry().list_participants(meeting_id)
    except MeetingStorageError as e:
        logger.error(f"Error getting meeting: {e}")
        return _send_error_response(ERROR_GET_FAILED, HTTP_INTERNAL_ERROR)

    return (
        jsonify(
            {
                "success": True,
                "participantCount": len(participants),
                "participants": [p.to_dict() for p in participants],
            }
        ),
        HTTP_OK,
    )


@meetings_bp.route("/meetings/<meeting_id>/summary", methods=["GET"])
def get_meeting_summary(meeting_id: str):
    """Summary of a meeting; null until the background summarizer finishes."""
    if not is_valid_meeting_id(meeting_id):
        return _send_error_response(ERROR_INVALID_MEETING_ID, HTTP_BAD_REQUEST)

    try:
        meeting = get_meeting_registry().get(meeting_id)
    except MeetingStorageError as e:
        logger.error(f"Error getting meeting summary: {e}")
        return _send_error_response(ERROR_GET_FAILED, HTTP_INTERNAL_ERROR)
    if meeting is None:
        return _send_error_response(ERROR_MEETING_NOT_FOUND, HTTP_NOT_FOUND)

    return (
        jsonify(
            {
                "success": True,
                "meetingId": meeting.meeting_id,
                "isActive": meeting.is_active,
                "summary": meeting.summary,
            }
        ),
        HTTP_OK,
    )


# ==============================================================================
# WEBSOCKET: MEETING EVENTS
# ==============================================================================


@meetings_bp.route("/socket", websocket=True)
def meeting_socket():
    """
    WebSocket endpoint carrying meeting events.

    Message Format (both directions):
    {
        "event": "join-meeting",
        "data": {"meetingId": "123456", "uid": "u1", "name": "Ada"}
    }

    Closing the socket counts as leaving the meeting.
    """
    ws = Server.accept(request.environ)
    socket_id = uuid.uuid4().hex
    handler = get_event_handler()  # Lazy-load handler
    handler.connect(socket_id, ws)

    try:
        while True:
            try:
                data = ws.receive(timeout=WEBSOCKET_RECEIVE_TIMEOUT)
            except ConnectionClosed:
                logger.debug(f"WebSocket {socket_id} closed by client")
                break

            if data is None:
                # Normal timeout, keep waiting
                continue
            handler.handle_frame(socket_id, data)
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        handler.disconnect(socket_id)

    return ""


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _send_error_response(message: str, status_code: int, error_code: str = None):
    """Send standardized error response for HTTP endpoints."""
    response = ErrorResponse(error=message, code=error_code)
    return jsonify(response.model_dump(mode="json")), status_code


# ==============================================================================
# ERROR HANDLERS
# ==============================================================================


@meetings_bp.errorhandler(MeetingError)
def handle_meeting_exception(error: MeetingError):
    """Handle meetings domain exceptions."""
    logger.error(f"Meeting error: {error.message}")
    return _send_error_response(error.message, error.status_code, error.code)


@meetings_bp.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    """Handle Pydantic validation errors."""
    logger.error(f"Validation error: {error}")
    return _send_error_response(ERROR_MISSING_FIELDS, HTTP_BAD_REQUEST, "VALIDATION_ERROR")
