"""
Tests for RoomBroadcaster.
Coverage: room membership, targeted and room-wide emits, dead sockets
"""

import threading
import time
from unittest.mock import Mock

import pytest


@pytest.fixture
def sockets(rooms, make_connection):
    connections = {sid: make_connection() for sid in ("s1", "s2", "s3")}
    for sid, connection in connections.items():
        rooms.register(sid, connection)
    return connections


@pytest.mark.unit
class TestRoomMembership:
    """Test joining and leaving rooms"""

    def test_join_and_leave(self, rooms, sockets):
        rooms.join_room("s1", "123456")
        rooms.join_room("s2", "123456")
        assert rooms.room_members("123456") == ["s1", "s2"]

        rooms.leave_room("s1", "123456")
        assert rooms.room_members("123456") == ["s2"]

    def test_unregister_leaves_all_rooms(self, rooms, sockets):
        rooms.join_room("s1", "111111")
        rooms.join_room("s1", "222222")

        rooms.unregister("s1")

        assert rooms.room_members("111111") == []
        assert rooms.room_members("222222") == []

    def test_leave_unknown_room(self, rooms):
        rooms.leave_room("s1", "999999")
        assert rooms.room_members("999999") == []


@pytest.mark.unit
class TestEmit:
    """Test event delivery"""

    def test_emit_to_one_socket(self, rooms, sockets):
        assert rooms.emit("s1", "pong") is True

        assert sockets["s1"].frames == [{"event": "pong"}]
        assert sockets["s2"].frames == []

    def test_emit_with_data(self, rooms, sockets):
        rooms.emit("s1", "error", {"message": "Invalid JSON"})
        assert sockets["s1"].frames == [
            {"event": "error", "data": {"message": "Invalid JSON"}}
        ]

    def test_emit_to_unknown_socket(self, rooms):
        assert rooms.emit("missing", "pong") is False

    def test_emit_to_room_skips_sender(self, rooms, sockets):
        for sid in sockets:
            rooms.join_room(sid, "123456")

        delivered = rooms.emit_to_room("123456", "user-joined", {"uid": "a"}, skip="s1")

        assert delivered == 2
        assert sockets["s1"].frames == []
        assert sockets["s2"].events() == ["user-joined"]
        assert sockets["s3"].last("user-joined") == {"uid": "a"}

    def test_emit_to_room_only_reaches_members(self, rooms, sockets):
        rooms.join_room("s1", "111111")
        rooms.join_room("s2", "222222")

        rooms.emit_to_room("111111", "meeting-ended")

        assert sockets["s1"].events() == ["meeting-ended"]
        assert sockets["s2"].frames == []

    def test_closed_socket_is_dropped(self, rooms, sockets):
        rooms.join_room("s1", "123456")
        rooms.join_room("s2", "123456")
        sockets["s2"].closed = True

        assert rooms.emit_to_room("123456", "new-message", {"text": "hi"}) == 1
        assert rooms.room_members("123456") == ["s1"]
        assert rooms.emit("s2", "pong") is False

    def test_send_failure_is_dropped(self, rooms):
        broken = Mock()
        broken.send.side_effect = OSError("broken pipe")
        rooms.register("s1", broken)
        rooms.join_room("s1", "123456")

        assert rooms.emit_to_room("123456", "meeting-ended") == 0
        assert rooms.room_members("123456") == []


class SlowConnection:
    """Connection whose send takes a while and counts overlapping callers."""

    def __init__(self):
        self.active = 0
        self.max_active = 0
        self.sent = 0
        self._counter_lock = threading.Lock()

    def send(self, frame):
        with self._counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.02)
        with self._counter_lock:
            self.active -= 1
            self.sent += 1


@pytest.mark.unit
class TestConcurrentSends:
    """One websocket is never written by two threads at once"""

    def test_room_broadcasts_serialize_per_connection(self, rooms):
        connection = SlowConnection()
        rooms.register("s1", connection)
        rooms.join_room("s1", "123456")
        barrier = threading.Barrier(4)

        def broadcast():
            barrier.wait()
            rooms.emit_to_room("123456", "new-message", {"text": "hi"})

        threads = [threading.Thread(target=broadcast) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert connection.sent == 4
        assert connection.max_active == 1

    def test_slow_socket_does_not_block_registry(self, rooms, make_connection):
        slow = SlowConnection()
        rooms.register("slow", slow)
        rooms.join_room("slow", "123456")

        sender = threading.Thread(
            target=rooms.emit_to_room, args=("123456", "meeting-ended")
        )
        sender.start()
        rooms.register("fast", make_connection())
        rooms.join_room("fast", "123456")
        sender.join()

        assert rooms.room_members("123456") == ["fast", "slow"]
