"""Room broadcaster - fans events out to the sockets subscribed to a meeting."""
import json
import logging
import threading
from typing import Any, Dict, List, Optional, Set, Tuple

from simple_websocket import ConnectionClosed

logger = logging.getLogger(__name__)


class RoomBroadcaster:
    """
    Registry of live socket connections and the rooms they joined.

    Connections only need a ``send(str)`` method (a simple_websocket Server
    in production). Registry changes happen under a lock; sends happen
    outside it so one slow socket cannot block the others. Each connection
    has its own send lock, since a websocket must not be written to by two
    threads at once.
    """

    def __init__(self):
        # {socket_id: (connection, send_lock)}
        self._connections: Dict[str, Tuple[Any, threading.Lock]] = {}
        self._rooms: Dict[str, Set[str]] = {}  # {room: {socket_id, ...}}
        self._lock = threading.Lock()

    def register(self, socket_id: str, connection):
        with self._lock:
            self._connections[socket_id] = (connection, threading.Lock())
        logger.debug(f"Registered socket {socket_id}")

    def unregister(self, socket_id: str):
        """Forget a connection and remove it from every room."""
        with self._lock:
            self._connections.pop(socket_id, None)
            for room in list(self._rooms):
                members = self._rooms[room]
                members.discard(socket_id)
                if not members:
                    del self._rooms[room]
        logger.debug(f"Unregistered socket {socket_id}")

    def join_room(self, socket_id: str, room: str):
        with self._lock:
            self._rooms.setdefault(room, set()).add(socket_id)

    def leave_room(self, socket_id: str, room: str):
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(socket_id)
                if not members:
                    del self._rooms[room]

    def room_members(self, room: str) -> List[str]:
        with self._lock:
            return sorted(self._rooms.get(room, ()))

    def emit(self, socket_id: str, event: str, data: Optional[dict] = None) -> bool:
        """Send one event to one connection. Returns False if it is gone."""
        with self._lock:
            entry = self._connections.get(socket_id)
        if entry is None:
            return False
        return self._send(socket_id, entry, self._encode(event, data))

    def emit_to_room(
        self,
        room: str,
        event: str,
        data: Optional[dict] = None,
        skip: Optional[str] = None,
    ) -> int:
        """
        Send an event to every connection in a room.

        Args:
            room: Room name (the meeting id)
            event: Event name
            data: Event payload
            skip: Socket id to leave out (usually the sender)

        Returns:
            Number of connections the event was delivered to
        """
        with self._lock:
            targets = [
                (socket_id, self._connections[socket_id])
                for socket_id in self._rooms.get(room, ())
                if socket_id != skip and socket_id in self._connections
            ]

        frame = self._encode(event, data)
        delivered = 0
        for socket_id, entry in targets:
            if self._send(socket_id, entry, frame):
                delivered += 1
        logger.debug(f"Emitted {event} to {delivered} socket(s) in room {room}")
        return delivered

    @staticmethod
    def _encode(event: str, data: Optional[dict]) -> str:
        frame = {"event": event}
        if data is not None:
            frame["data"] = data
        return json.dumps(frame)

    def _send(self, socket_id: str, entry: Tuple[Any, threading.Lock], frame: str) -> bool:
        connection, send_lock = entry
        try:
            with send_lock:
                connection.send(frame)
            return True
        except ConnectionClosed:
            logger.debug(f"Socket {socket_id} closed, dropping it")
        except Exception as e:
            logger.error(f"Failed to send to socket {socket_id}: {e}")
        # Broken connection: drop it so later broadcasts skip it
        self.unregister(socket_id)
        return False
