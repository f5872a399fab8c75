"""
Meetings Business Logic - Meeting lifecycle, participants and chat history.

The registry is the only writer of meeting state. Every mutation is a
read-modify-write on one meeting and runs under that meeting's lock; the
durable store is written before the cache so a failed write leaves the
cache untouched.
"""
import logging
import threading
import weakref
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import List, Optional

from app.config.environment import get_env

from .cache import MeetingCache
from .constants import (
    ERROR_CREATE_FAILED,
    ERROR_INVALID_MEETING_DATA,
    ERROR_INVALID_MEETING_ID,
    ERROR_INVALID_MESSAGE,
)
from .exceptions import (
    InvalidInputError,
    MeetingForbiddenError,
    MeetingFullError,
    MeetingInactiveError,
    MeetingNotFoundError,
    MeetingStorageError,
)
from .models import ChatMessage, Meeting, Participant
from .summarizer import MeetingSummarizer
from .validation import (
    generate_meeting_id,
    is_valid_meeting_id,
    is_valid_message,
    is_valid_user_data,
)

logger = logging.getLogger(__name__)


class MeetingRegistry:
    """
    Core business logic for the meetings domain.

    Responsibilities:
    - Meeting creation with unique 6-digit ids
    - Join/leave with capacity and reconnect handling
    - Chat history persistence
    - Deactivation (host end or last participant leaving)
    - Background summarization of ended meetings
    """

    def __init__(
        self,
        store=None,
        summarizer: Optional[MeetingSummarizer] = None,
        cache: Optional[MeetingCache] = None,
        summary_executor: Optional[Executor] = None,
    ):
        """Initialize registry; collaborators default to the configured ones."""
        if store is None:
            from .store import RedisMeetingStore

            store = RedisMeetingStore()
        self.store = store
        self.summarizer = summarizer if summarizer is not None else MeetingSummarizer()
        if cache is None:
            cache = MeetingCache(
                max_size=get_env("MEETING_CACHE_MAX_SIZE", 1000),
                ttl_seconds=get_env("MEETING_CACHE_TTL_SECONDS", 6 * 60 * 60),
            )
        # An empty cache is falsy, so check for None explicitly
        self.cache = cache
        if summary_executor is None:
            summary_executor = ThreadPoolExecutor(
                max_workers=get_env("SUMMARY_WORKERS", 2),
                thread_name_prefix="meeting-summary",
            )
        self.summary_executor = summary_executor

        # One lock per meeting id, dropped once nobody holds it
        self._meeting_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

        logger.info("MeetingRegistry initialized")

    def _lock_for(self, meeting_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._meeting_locks.get(meeting_id)
            if lock is None:
                lock = threading.Lock()
                self._meeting_locks[meeting_id] = lock
            return lock

    def _load(self, meeting_id: str) -> Optional[Meeting]:
        """Cache-first lookup that rehydrates the cache from the store."""
        meeting = self.cache.get(meeting_id)
        if meeting is not None:
            return meeting

        document = self.store.get(meeting_id)
        if document is None:
            return None

        meeting = Meeting.from_dict(document)
        # Ended meetings are read-only, keep them out of the cache
        if meeting.is_active:
            self.cache.set(meeting)
        return meeting

    # ==================== LIFECYCLE ====================

    def create(self, creator_id: str, creator_name: str) -> Meeting:
        """
        Create a new meeting.

        Args:
            creator_id: User id of the host
            creator_name: Display name of the host

        Returns:
            Meeting: The new, active meeting

        Raises:
            InvalidInputError: If creator data is blank
            MeetingStorageError: If the store cannot be written
        """
        if not is_valid_user_data(creator_id, creator_name):
            raise InvalidInputError(ERROR_INVALID_MEETING_DATA)

        try:
            while True:
                meeting = Meeting(
                    meeting_id=generate_meeting_id(),
                    created_by=creator_id,
                    creator_name=creator_name,
                )
                if self.store.create(meeting.meeting_id, meeting.to_dict()):
                    break
                logger.info(f"Meeting id {meeting.meeting_id} already taken, retrying")
        except MeetingStorageError as e:
            logger.error(f"Error creating meeting: {e}")
            raise MeetingStorageError(ERROR_CREATE_FAILED) from e

        self.cache.set(meeting)
        logger.info(f"Meeting created: {meeting.meeting_id} by {creator_id}")
        return meeting.copy()

    def get(self, meeting_id: str) -> Optional[Meeting]:
        """
        Get a meeting by id.

        Returns:
            A snapshot of the meeting, or None if the id is malformed or unknown
        """
        if not is_valid_meeting_id(meeting_id):
            return None

        meeting = self._load(meeting_id)
        return meeting.copy() if meeting else None

    def join(self, meeting_id: str, uid: str, name: str, socket_id: str) -> Meeting:
        """
        Add a participant to a meeting, or refresh their connection on rejoin.

        Args:
            meeting_id: Meeting to join
            uid: User id (unique within the meeting)
            name: Display name
            socket_id: Connection the participant is using

        Returns:
            Meeting: Snapshot after the join

        Raises:
            InvalidInputError: If any argument is malformed
            MeetingNotFoundError: If the meeting does not exist
            MeetingInactiveError: If the meeting has ended
            MeetingFullError: If a new participant would exceed capacity
        """
        if not is_valid_meeting_id(meeting_id):
            raise InvalidInputError(ERROR_INVALID_MEETING_ID)
        if not is_valid_user_data(uid, name) or not socket_id:
            raise InvalidInputError(ERROR_INVALID_MEETING_DATA)

        with self._lock_for(meeting_id):
            meeting = self._load(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            if not meeting.is_active:
                raise MeetingInactiveError(meeting_id)

            meeting = meeting.copy()
            existing = meeting.find_participant(uid)
            if existing:
                # Reconnect: keep the entry, move it to the new connection
                existing.socket_id = socket_id
            else:
                if meeting.is_full:
                    raise MeetingFullError(meeting_id, meeting.max_participants)
                meeting.participants.append(
                    Participant(uid=uid, name=name, socket_id=socket_id)
                )

            self.store.update(meeting_id, {"participants": meeting.participants_dict()})
            self.cache.set(meeting)

        logger.info(f"User {name} joined meeting {meeting_id}")
        return meeting.copy()

    def leave(self, meeting_id: str, socket_id: str) -> Optional[Meeting]:
        """
        Remove the participant using this connection.

        Deactivates the meeting (and schedules its summary) when the last
        participant leaves. Unknown meetings or connections are ignored.

        Returns:
            Meeting snapshot after the leave, or None if nothing changed
        """
        if not is_valid_meeting_id(meeting_id):
            return None

        summary_messages: List[ChatMessage] = []
        with self._lock_for(meeting_id):
            meeting = self._load(meeting_id)
            if meeting is None:
                return None

            remaining = [p for p in meeting.participants if p.socket_id != socket_id]
            if len(remaining) == len(meeting.participants):
                return None

            meeting = meeting.copy()
            meeting.participants = remaining
            ending = not remaining and meeting.is_active
            if ending:
                meeting.deactivate()

            self.store.update(
                meeting_id,
                {
                    "participants": meeting.participants_dict(),
                    "isActive": meeting.is_active,
                    "endedAt": meeting.ended_at.isoformat() if meeting.ended_at else None,
                },
            )

            if meeting.is_active:
                self.cache.set(meeting)
            else:
                self.cache.evict(meeting_id)

            if ending:
                logger.info(f"Last participant left, meeting {meeting_id} is now inactive")
                summary_messages = list(meeting.messages)

        if summary_messages:
            self._schedule_summary(meeting_id, summary_messages)
        return meeting.copy()

    def end(self, meeting_id: str, requester_id: str) -> Meeting:
        """
        End a meeting on behalf of its host.

        Raises:
            InvalidInputError: If the meeting id is malformed
            MeetingNotFoundError: If the meeting does not exist
            MeetingForbiddenError: If the requester is not the creator
        """
        if not is_valid_meeting_id(meeting_id):
            raise InvalidInputError(ERROR_INVALID_MEETING_ID)

        summary_messages: List[ChatMessage] = []
        with self._lock_for(meeting_id):
            meeting = self._load(meeting_id)
            if meeting is None:
                raise MeetingNotFoundError(meeting_id)
            if meeting.created_by != requester_id:
                raise MeetingForbiddenError(meeting_id, requester_id)

            meeting = meeting.copy()
            if meeting.is_active:
                meeting.deactivate()
                self.store.update(
                    meeting_id,
                    {"isActive": False, "endedAt": meeting.ended_at.isoformat()},
                )
                summary_messages = list(meeting.messages)
            self.cache.evict(meeting_id)

        logger.info(f"Meeting {meeting_id} ended by host {requester_id}")
        if summary_messages:
            self._schedule_summary(meeting_id, summary_messages)
        return meeting.copy()

    # ==================== CHAT ====================

    def add_message(self, meeting_id: str, message: ChatMessage) -> Meeting:
        """
        Append a message to the meeting's chat history.

        Raises:
            InvalidInputError: If the meeting id or message text is malformed
            MeetingNotFoundError: If the meeting does not exist or has ended
        """
        if not is_valid_meeting_id(meeting_id):
            raise InvalidInputError(ERROR_INVALID_MEETING_ID)
        if not is_valid_message(message.text):
            raise InvalidInputError(ERROR_INVALID_MESSAGE)

        with self._lock_for(meeting_id):
            meeting = self._load(meeting_id)
            if meeting is None or not meeting.is_active:
                raise MeetingNotFoundError(meeting_id)

            meeting = meeting.copy()
            meeting.messages.append(message)

            self.store.update(meeting_id, {"messages": meeting.messages_dict()})
            self.cache.set(meeting)

        return meeting.copy()

    def list_participants(self, meeting_id: str) -> List[Participant]:
        """Participants of a meeting, empty if the meeting is unknown."""
        meeting = self.get(meeting_id)
        return meeting.participants if meeting else []

    # ==================== SUMMARIZATION ====================

    def _schedule_summary(self, meeting_id: str, messages: List[ChatMessage]) -> Future:
        """Run the summarizer in the background; the caller never waits on it."""
        logger.info(f"Generating summary for meeting {meeting_id}...")
        return self.summary_executor.submit(
            self._summarize_and_store, meeting_id, messages
        )

    def _summarize_and_store(self, meeting_id: str, messages: List[ChatMessage]):
        summary = self.summarizer.summarize(messages)
        try:
            self.store.update(meeting_id, {"summary": summary})
        except MeetingStorageError as e:
            logger.error(f"Failed to store summary for meeting {meeting_id}: {e}")
            return
        logger.info(f"Summary generated for meeting {meeting_id}")

    def shutdown(self, wait: bool = True):
        """Stop accepting summary jobs, optionally waiting for running ones."""
        self.summary_executor.shutdown(wait=wait)


# Singleton instance
_meeting_registry = None
_registry_lock = threading.Lock()


def get_meeting_registry() -> MeetingRegistry:
    """Get singleton MeetingRegistry instance."""
    global _meeting_registry
    with _registry_lock:
        if _meeting_registry is None:
            _meeting_registry = MeetingRegistry()
        return _meeting_registry
