"""
Meetings Domain Models - Meeting state and data structures

Field names on the wire and in the store are camelCase, matching the
JSON documents existing clients already read.
"""
import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import MAX_PARTICIPANTS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value) -> Optional[datetime]:
    """Accept ISO strings or datetimes from stored documents."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Participant:
    """A user's live membership in a meeting, tied to one connection."""

    uid: str
    name: str
    socket_id: str
    joined_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "uid": self.uid,
            "name": self.name,
            "socketId": self.socket_id,
            "joinedAt": self.joined_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        return cls(
            uid=data["uid"],
            name=data["name"],
            socket_id=data.get("socketId", ""),
            joined_at=_parse_datetime(data.get("joinedAt")) or utcnow(),
        )


@dataclass(frozen=True)
class ChatMessage:
    """A chat message. Immutable once appended to a meeting."""

    id: str
    user_id: str
    user_name: str
    text: str
    timestamp: datetime

    @classmethod
    def create(cls, user_id: str, user_name: str, text: str) -> "ChatMessage":
        """Build a message stamped with the server receipt time."""
        now = utcnow()
        return cls(
            id=f"{int(now.timestamp() * 1000)}-{user_id}",
            user_id=user_id,
            user_name=user_name,
            text=text.strip(),
            timestamp=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=data["id"],
            user_id=data["userId"],
            user_name=data["userName"],
            text=data["text"],
            timestamp=_parse_datetime(data["timestamp"]),
        )


@dataclass
class Meeting:
    """
    A chat room with a bounded participant count and ordered history.

    Lifecycle:
    1. Created by an explicit request (is_active=True, no participants)
    2. Participants join/leave and send messages
    3. Deactivated when the creator ends it or the last participant leaves
    4. Summary attached in the background after deactivation
    """

    meeting_id: str
    created_by: str
    creator_name: str = ""
    created_at: datetime = field(default_factory=utcnow)
    participants: List[Participant] = field(default_factory=list)
    messages: List[ChatMessage] = field(default_factory=list)
    summary: Optional[str] = None
    is_active: bool = True
    max_participants: int = MAX_PARTICIPANTS
    ended_at: Optional[datetime] = None

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.max_participants

    def find_participant(self, uid: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.uid == uid:
                return participant
        return None

    def deactivate(self):
        """Mark the meeting as ended."""
        self.is_active = False
        self.ended_at = utcnow()

    def copy(self) -> "Meeting":
        """Deep copy, so callers never hold the cached instance."""
        return copy.deepcopy(self)

    def participants_dict(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.participants]

    def messages_dict(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.messages]

    def to_dict(self) -> Dict[str, Any]:
        """Convert meeting to the document/JSON representation."""
        return {
            "meetingId": self.meeting_id,
            "createdBy": self.created_by,
            "creatorName": self.creator_name,
            "createdAt": self.created_at.isoformat(),
            "participants": self.participants_dict(),
            "messages": self.messages_dict(),
            "summary": self.summary,
            "isActive": self.is_active,
            "maxParticipants": self.max_participants,
            "endedAt": self.ended_at.isoformat() if self.ended_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
        """Rehydrate a meeting from its stored document."""
        return cls(
            meeting_id=data["meetingId"],
            created_by=data["createdBy"],
            creator_name=data.get("creatorName") or "",
            created_at=_parse_datetime(data.get("createdAt")) or utcnow(),
            participants=[
                Participant.from_dict(p) for p in data.get("participants") or []
            ],
            messages=[ChatMessage.from_dict(m) for m in data.get("messages") or []],
            summary=data.get("summary"),
            is_active=bool(data.get("isActive", True)),
            max_participants=int(data.get("maxParticipants", MAX_PARTICIPANTS)),
            ended_at=_parse_datetime(data.get("endedAt")),
        )
