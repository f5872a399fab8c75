"""Input validation for meeting operations. Pure functions, no state."""
import random
import re

from .constants import MAX_MESSAGE_LENGTH, MEETING_ID_MAX, MEETING_ID_MIN

_MEETING_ID_PATTERN = re.compile(r"^[0-9]{6}$")


def is_valid_meeting_id(meeting_id) -> bool:
    """Meeting IDs must be exactly 6 ASCII digits."""
    if not isinstance(meeting_id, str):
        return False
    # fullmatch so a trailing newline is rejected
    return _MEETING_ID_PATTERN.fullmatch(meeting_id) is not None


def is_valid_user_data(uid, name) -> bool:
    """Both uid and name must be strings that are non-empty once trimmed."""
    return (
        isinstance(uid, str)
        and len(uid.strip()) > 0
        and isinstance(name, str)
        and len(name.strip()) > 0
    )


def is_valid_message(text) -> bool:
    """Message text must be non-blank and at most 1000 characters."""
    return (
        isinstance(text, str)
        and len(text.strip()) > 0
        and len(text) <= MAX_MESSAGE_LENGTH
    )


def generate_meeting_id() -> str:
    return str(random.randint(MEETING_ID_MIN, MEETING_ID_MAX))
