"""Meetings Domain Constants - Limits, wire event names and messages."""

from enum import Enum

# Meeting limits
MAX_PARTICIPANTS = 10
MAX_MESSAGE_LENGTH = 1000
MEETING_ID_MIN = 100000
MEETING_ID_MAX = 999999

# Store
MEETING_KEY_PREFIX = "meetings"

# WebSocket
WEBSOCKET_RECEIVE_TIMEOUT = 5  # seconds


class ClientEvent(str, Enum):
    """Events sent by clients over the meeting socket."""

    JOIN_MEETING = "join-meeting"
    SEND_MESSAGE = "send-message"
    PING = "ping"


class ServerEvent(str, Enum):
    """Events emitted by the server. Names are a wire contract."""

    JOINED_MEETING = "joined-meeting"
    JOIN_ERROR = "join-error"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"
    NEW_MESSAGE = "new-message"
    MEETING_ENDED = "meeting-ended"
    ERROR = "error"
    PONG = "pong"


# HTTP Status Codes
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_INTERNAL_ERROR = 500

# Error Messages
ERROR_MISSING_FIELDS = "Missing required fields"
ERROR_INVALID_MEETING_ID = "Invalid meeting ID"
ERROR_INVALID_MEETING_DATA = "Invalid meeting data"
ERROR_INVALID_MESSAGE = "Invalid message"
ERROR_MEETING_NOT_FOUND = "Meeting not found"
ERROR_MEETING_INACTIVE = "Meeting is no longer active"
ERROR_MEETING_FULL = "Meeting is full (max {max_participants} participants)"
ERROR_NOT_HOST = "Only the host can end the meeting"
ERROR_NOT_JOINED = "Join the meeting before sending messages"
ERROR_CREATE_FAILED = "Failed to create meeting"
ERROR_JOIN_FAILED = "Failed to join meeting"
ERROR_SEND_FAILED = "Failed to send message"
ERROR_END_FAILED = "Failed to end meeting"
ERROR_GET_FAILED = "Failed to get meeting"
ERROR_UNKNOWN_EVENT = "Unknown event"
ERROR_INVALID_JSON = "Invalid JSON"

# Summarization
SUMMARY_NO_MESSAGES = "There were no messages in this meeting."
SUMMARY_MISSING_CREDENTIALS = (
    "Summary unavailable: no LLM credentials are configured."
)
SUMMARY_EMPTY_RESPONSE = "The summary could not be generated."
SUMMARY_FAILED = "The summary could not be generated. Error details: {error}"
SUMMARY_MAX_TOKENS = 1024
SUMMARY_TEMPERATURE = 0.7
