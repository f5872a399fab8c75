"""
Pytest configuration and shared fixtures.
Main configuration file for the test suite.
"""

import copy
import json
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("APPLICATION_ENV", "test")

from simple_websocket import ConnectionClosed  # noqa: E402

from app.meetings.cache import MeetingCache  # noqa: E402
from app.meetings.events import MeetingEventHandler  # noqa: E402
from app.meetings.exceptions import MeetingStorageError  # noqa: E402
from app.meetings.models import ChatMessage  # noqa: E402
from app.meetings.rooms import RoomBroadcaster  # noqa: E402
from app.meetings.services import MeetingRegistry  # noqa: E402

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires real services)",
    )
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="Run slow tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on options"""
    # Skip integration tests unless --run-integration
    if not config.getoption("--run-integration"):
        skip_integration = pytest.mark.skip(
            reason="need --run-integration option to run"
        )
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)

    # Skip slow tests unless --run-slow
    if not config.getoption("--run-slow"):
        skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


# ==================== Test Doubles ====================


class InMemoryMeetingStore:
    """Dict-backed stand-in for RedisMeetingStore (documents go through JSON)."""

    def __init__(self):
        self.documents = {}
        self.reads = 0
        self.fail_updates = False

    def get(self, meeting_id):
        self.reads += 1
        document = self.documents.get(meeting_id)
        return json.loads(document) if document else None

    def create(self, meeting_id, document):
        if meeting_id in self.documents:
            return False
        self.documents[meeting_id] = json.dumps(document)
        return True

    def update(self, meeting_id, fields):
        if self.fail_updates:
            raise MeetingStorageError("store unavailable")
        if meeting_id not in self.documents:
            raise MeetingStorageError(f"Meeting document {meeting_id} does not exist")
        data = json.loads(self.documents[meeting_id])
        data.update(copy.deepcopy(fields))
        self.documents[meeting_id] = json.dumps(data)

    def document(self, meeting_id):
        return json.loads(self.documents[meeting_id])


class FakeConnection:
    """Records frames sent to a socket."""

    def __init__(self, closed=False):
        self.frames = []
        self.closed = closed

    def send(self, frame):
        if self.closed:
            raise ConnectionClosed()
        self.frames.append(json.loads(frame))

    def events(self):
        return [f["event"] for f in self.frames]

    def last(self, event):
        for frame in reversed(self.frames):
            if frame["event"] == event:
                return frame.get("data")
        raise AssertionError(f"no {event!r} frame in {self.events()}")

    def clear(self):
        self.frames.clear()


# ==================== Meetings Domain ====================


@pytest.fixture
def meeting_store():
    """In-memory meeting document store"""
    return InMemoryMeetingStore()


@pytest.fixture
def mock_summarizer():
    """Summarizer that echoes the message texts it was given"""
    summarizer = Mock()
    summarizer.summarize.side_effect = lambda messages: "Summary: " + " / ".join(
        m.text for m in messages
    )
    return summarizer


@pytest.fixture
def summary_executor():
    """Background executor for summaries, drained after each test"""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="test-summary")
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def registry(meeting_store, mock_summarizer, summary_executor):
    """MeetingRegistry wired to in-memory collaborators"""
    return MeetingRegistry(
        store=meeting_store,
        summarizer=mock_summarizer,
        cache=MeetingCache(max_size=100, ttl_seconds=3600),
        summary_executor=summary_executor,
    )


@pytest.fixture
def rooms():
    return RoomBroadcaster()


@pytest.fixture
def event_handler(registry, rooms):
    return MeetingEventHandler(registry=registry, rooms=rooms)


@pytest.fixture
def make_connection():
    """Factory for fake socket connections"""
    return FakeConnection


@pytest.fixture
def connect(event_handler):
    """Factory: open a fake socket on the event handler"""

    def _connect(socket_id):
        connection = FakeConnection()
        event_handler.connect(socket_id, connection)
        return connection

    return _connect


@pytest.fixture
def mock_redis():
    """Mock Redis for unit tests"""
    mock = Mock()
    mock.get.return_value = None
    mock.set.return_value = True
    return mock


# ==================== Sample Data ====================


@pytest.fixture
def sample_messages():
    """Two chat messages a minute apart"""
    start = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    return [
        ChatMessage(
            id="1740823200000-alice",
            user_id="alice",
            user_name="Alice",
            text="hi",
            timestamp=start,
        ),
        ChatMessage(
            id="1740823260000-bob",
            user_id="bob",
            user_name="Bob",
            text="hello",
            timestamp=start + timedelta(minutes=1),
        ),
    ]


# ==================== Logging ====================


@pytest.fixture(autouse=True)
def setup_test_logging(caplog):
    """Configure logging for tests"""
    caplog.set_level(logging.INFO)
