"""
Meeting socket events - translates client events into registry calls and
room broadcasts.

Inbound frames are ``{"event": name, "data": {...}}``. Event names are the
wire contract shared with the web client (see constants.ClientEvent and
constants.ServerEvent).
"""
import json
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import ValidationError

from .constants import (
    ERROR_INVALID_JSON,
    ERROR_INVALID_MEETING_DATA,
    ERROR_INVALID_MESSAGE,
    ERROR_JOIN_FAILED,
    ERROR_NOT_JOINED,
    ERROR_SEND_FAILED,
    ERROR_UNKNOWN_EVENT,
    ClientEvent,
    ServerEvent,
)
from .exceptions import MeetingError, MeetingStorageError
from .models import ChatMessage
from .rooms import RoomBroadcaster
from .schemas import JoinMeetingPayload, SendMessagePayload, SocketFrame
from .services import MeetingRegistry, get_meeting_registry
from .validation import is_valid_meeting_id, is_valid_message, is_valid_user_data

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """What a socket has joined, filled in by a successful join-meeting."""

    meeting_id: Optional[str] = None
    uid: Optional[str] = None
    name: Optional[str] = None


class MeetingEventHandler:
    """Handles the lifecycle and events of meeting socket connections."""

    def __init__(
        self,
        registry: Optional[MeetingRegistry] = None,
        rooms: Optional[RoomBroadcaster] = None,
    ):
        self._registry = registry
        self.rooms = rooms if rooms is not None else RoomBroadcaster()
        self._contexts: Dict[str, ConnectionContext] = {}
        self._lock = threading.Lock()

    @property
    def registry(self) -> MeetingRegistry:
        """Lazy load the meeting registry."""
        if self._registry is None:
            self._registry = get_meeting_registry()
        return self._registry

    def context(self, socket_id: str) -> Optional[ConnectionContext]:
        with self._lock:
            return self._contexts.get(socket_id)

    # ==================== CONNECTION LIFECYCLE ====================

    def connect(self, socket_id: str, connection):
        with self._lock:
            self._contexts[socket_id] = ConnectionContext()
        self.rooms.register(socket_id, connection)
        logger.info(f"Client connected: {socket_id}")

    def disconnect(self, socket_id: str):
        """Transport-level disconnect: leave the meeting and tell the room."""
        with self._lock:
            context = self._contexts.pop(socket_id, None)
        self.rooms.unregister(socket_id)

        if context and context.meeting_id:
            try:
                self._leave(socket_id, context)
            except Exception as e:
                logger.error(f"Error handling disconnect: {e}", exc_info=True)

        logger.info(f"Client disconnected: {socket_id}")

    def _leave(self, socket_id: str, context: ConnectionContext):
        meeting = self.registry.leave(context.meeting_id, socket_id)
        if meeting is None:
            return

        self.rooms.emit_to_room(
            context.meeting_id,
            ServerEvent.USER_LEFT.value,
            {"name": context.name, "participantCount": meeting.participant_count},
        )
        logger.info(f"{context.name} left meeting {context.meeting_id}")

    def _detach_previous_sockets(self, socket_id: str, meeting_id: str, uid: str):
        """
        After a rejoin from a new connection, the user's older connections to
        the same meeting stop acting for them: their context is cleared and
        they leave the room. The connections themselves stay open.
        """
        with self._lock:
            stale = [
                (sid, context)
                for sid, context in self._contexts.items()
                if sid != socket_id
                and context.meeting_id == meeting_id
                and context.uid == uid
            ]
            for _, context in stale:
                context.meeting_id = context.uid = context.name = None

        for sid, _ in stale:
            self.rooms.leave_room(sid, meeting_id)
            logger.info(f"Socket {sid} replaced by {socket_id} in meeting {meeting_id}")

    # ==================== INBOUND EVENTS ====================

    def handle_frame(self, socket_id: str, raw):
        """Parse one raw socket frame and dispatch it."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            frame = SocketFrame.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            self._error(socket_id, ERROR_INVALID_JSON)
            return

        self.handle_event(socket_id, frame.event, frame.data or {})

    def handle_event(self, socket_id: str, event: str, data: dict):
        if event == ClientEvent.JOIN_MEETING:
            self.on_join_meeting(socket_id, data)
        elif event == ClientEvent.SEND_MESSAGE:
            self.on_send_message(socket_id, data)
        elif event == ClientEvent.PING:
            self.rooms.emit(socket_id, ServerEvent.PONG.value)
        else:
            logger.debug(f"Unhandled event from {socket_id}: {event}")
            self._error(socket_id, ERROR_UNKNOWN_EVENT)

    def on_join_meeting(self, socket_id: str, data: dict):
        """join-meeting {meetingId, uid, name}"""
        try:
            payload = JoinMeetingPayload.model_validate(data)
        except ValidationError:
            self._error(socket_id, ERROR_INVALID_MEETING_DATA)
            return

        if not is_valid_meeting_id(payload.meeting_id) or not is_valid_user_data(
            payload.uid, payload.name
        ):
            self._error(socket_id, ERROR_INVALID_MEETING_DATA)
            return

        context = self.context(socket_id)
        if context is None:
            logger.warning(f"join-meeting from unknown socket {socket_id}")
            return

        # Switching meetings on the same connection leaves the previous one
        if context.meeting_id and context.meeting_id != payload.meeting_id:
            self.rooms.leave_room(socket_id, context.meeting_id)
            try:
                self._leave(socket_id, context)
            except MeetingError as e:
                logger.error(f"Failed to leave meeting {context.meeting_id}: {e}")
            with self._lock:
                context.meeting_id = context.uid = context.name = None

        try:
            meeting = self.registry.join(
                payload.meeting_id, payload.uid, payload.name, socket_id
            )
        except MeetingStorageError as e:
            logger.error(f"Error joining meeting: {e}")
            self._error(socket_id, ERROR_JOIN_FAILED)
            return
        except MeetingError as e:
            self._join_error(socket_id, e.message)
            return
        except Exception as e:
            logger.error(f"Error joining meeting: {e}", exc_info=True)
            self._error(socket_id, ERROR_JOIN_FAILED)
            return

        self.rooms.join_room(socket_id, payload.meeting_id)
        with self._lock:
            context.meeting_id = payload.meeting_id
            context.uid = payload.uid
            context.name = payload.name
        self._detach_previous_sockets(socket_id, payload.meeting_id, payload.uid)

        self.rooms.emit(
            socket_id,
            ServerEvent.JOINED_MEETING.value,
            {
                "meetingId": meeting.meeting_id,
                "participants": meeting.participants_dict(),
                "messages": meeting.messages_dict(),
                "createdBy": meeting.created_by,
            },
        )
        self.rooms.emit_to_room(
            payload.meeting_id,
            ServerEvent.USER_JOINED.value,
            {
                "uid": payload.uid,
                "name": payload.name,
                "participantCount": meeting.participant_count,
            },
            skip=socket_id,
        )
        logger.info(f"{payload.name} joined meeting {payload.meeting_id}")

    def on_send_message(self, socket_id: str, data: dict):
        """send-message {meetingId, text}"""
        try:
            payload = SendMessagePayload.model_validate(data)
        except ValidationError:
            self._error(socket_id, ERROR_INVALID_MESSAGE)
            return

        if not is_valid_message(payload.text):
            self._error(socket_id, ERROR_INVALID_MESSAGE)
            return

        context = self.context(socket_id)
        if context is None or not context.uid or context.meeting_id != payload.meeting_id:
            self._error(socket_id, ERROR_NOT_JOINED)
            return

        message = ChatMessage.create(context.uid, context.name, payload.text)
        try:
            self.registry.add_message(payload.meeting_id, message)
        except MeetingStorageError as e:
            logger.error(f"Error sending message: {e}")
            self._error(socket_id, ERROR_SEND_FAILED)
            return
        except MeetingError as e:
            self._error(socket_id, e.message)
            return
        except Exception as e:
            logger.error(f"Error sending message: {e}", exc_info=True)
            self._error(socket_id, ERROR_SEND_FAILED)
            return

        self.rooms.emit_to_room(
            payload.meeting_id, ServerEvent.NEW_MESSAGE.value, message.to_dict()
        )
        logger.debug(f"Message in {payload.meeting_id} from {context.name}")

    # ==================== OUTBOUND HELPERS ====================

    def broadcast_meeting_ended(self, meeting_id: str) -> int:
        return self.rooms.emit_to_room(meeting_id, ServerEvent.MEETING_ENDED.value)

    def _error(self, socket_id: str, message: str):
        self.rooms.emit(socket_id, ServerEvent.ERROR.value, {"message": message})

    def _join_error(self, socket_id: str, message: str):
        self.rooms.emit(socket_id, ServerEvent.JOIN_ERROR.value, {"message": message})


# Singleton instance
_event_handler = None
_handler_lock = threading.Lock()


def get_event_handler() -> MeetingEventHandler:
    """Get singleton MeetingEventHandler instance."""
    global _event_handler
    with _handler_lock:
        if _event_handler is None:
            _event_handler = MeetingEventHandler()
        return _event_handler
