"""Redis-backed document store for meetings (one JSON document per meeting)."""
import json
import logging
from typing import Any, Dict, Optional

import redis

from app.config.environment import get_env

from .constants import MEETING_KEY_PREFIX
from .exceptions import MeetingStorageError

logger = logging.getLogger(__name__)


class RedisMeetingStore:
    """Durable mirror of meeting state. The registry is its only writer."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        collection: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize Redis meeting store.

        Args:
            redis_url: Redis connection URL. If None, uses REDIS_URL.
            collection: Key namespace for meeting documents. If None, uses
                MEETINGS_COLLECTION.
            client: Pre-built Redis client (takes precedence over redis_url)
        """
        self.collection = collection or get_env("MEETINGS_COLLECTION", MEETING_KEY_PREFIX)

        if client is not None:
            self.redis_client = client
            return

        redis_url = redis_url or get_env("REDIS_URL")
        try:
            self.redis_client = redis.from_url(
                redis_url,
                decode_responses=True,  # Auto-decode bytes to strings
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            # Test connection
            self.redis_client.ping()
            logger.info(f"Connected to Redis at {redis_url}")
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise MeetingStorageError(f"Failed to connect to meeting store: {e}") from e

    def _meeting_key(self, meeting_id: str) -> str:
        """Get Redis key for a meeting document."""
        return f"{self.collection}:{meeting_id}"

    def get(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a meeting document.

        Returns:
            The stored document, or None if no meeting has this id
        """
        try:
            document = self.redis_client.get(self._meeting_key(meeting_id))
        except redis.RedisError as e:
            logger.error(f"Failed to get meeting {meeting_id}: {e}")
            raise MeetingStorageError(str(e)) from e

        if not document:
            return None
        return json.loads(document)

    def create(self, meeting_id: str, document: Dict[str, Any]) -> bool:
        """
        Store a new meeting document.

        Returns:
            False if a document with this id already exists
        """
        try:
            created = self.redis_client.set(
                self._meeting_key(meeting_id), json.dumps(document), nx=True
            )
        except redis.RedisError as e:
            logger.error(f"Failed to create meeting {meeting_id}: {e}")
            raise MeetingStorageError(str(e)) from e
        return bool(created)

    def update(self, meeting_id: str, fields: Dict[str, Any]):
        """
        Overwrite the given top-level fields of a stored meeting.

        Raises:
            MeetingStorageError: If the document is missing or Redis fails
        """
        key = self._meeting_key(meeting_id)
        try:
            with self.redis_client.pipeline() as pipe:
                while True:
                    try:
                        pipe.watch(key)
                        document = pipe.get(key)
                        if not document:
                            pipe.unwatch()
                            raise MeetingStorageError(
                                f"Meeting document {meeting_id} does not exist"
                            )
                        data = json.loads(document)
                        data.update(fields)
                        pipe.multi()
                        pipe.set(key, json.dumps(data))
                        pipe.execute()
                        return
                    except redis.WatchError:
                        # Someone else wrote in between, read again
                        continue
        except redis.RedisError as e:
            logger.error(f"Failed to update meeting {meeting_id}: {e}")
            raise MeetingStorageError(str(e)) from e
