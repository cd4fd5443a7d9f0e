"""Real-time board synchronization using Redis pub/sub.

Mutating services publish a ``BoardEvent`` after their transaction commits;
WebSocket connections subscribed to the board's channel relay it to clients.
Services only see the ``ChangeNotifier`` interface. The concrete notifier is
installed once at startup with ``init_notifier`` and fetched with
``get_notifier``.
"""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

import redis
import redis.asyncio as aioredis

from src.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()


class BoardEventType(StrEnum):
    """Event types for board updates."""

    # Board events
    BOARD_UPDATED = "board_updated"
    BOARD_DELETED = "board_deleted"

    # Column events
    COLUMN_CREATED = "column_created"
    COLUMN_UPDATED = "column_updated"
    COLUMN_DELETED = "column_deleted"
    COLUMNS_REORDERED = "columns_reordered"

    # Card events
    CARD_CREATED = "card_created"
    CARD_UPDATED = "card_updated"
    CARD_MOVED = "card_moved"
    CARD_DELETED = "card_deleted"
    CARDS_REORDERED = "cards_reordered"
    CARD_ARCHIVED = "card_archived"
    CARD_RESTORED = "card_restored"

    # Attachment events
    ATTACHMENT_CREATED = "attachment_created"
    ATTACHMENT_DELETED = "attachment_deleted"


def board_channel(board_id: str) -> str:
    """Redis channel name for a board."""
    return f"board:{board_id}"


@dataclass(frozen=True)
class BoardEvent:
    """A committed change on one board."""

    type: BoardEventType
    board_id: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> str:
        return board_channel(self.board_id)

    def to_message(self) -> dict[str, Any]:
        """Wire representation sent to subscribers."""
        return {
            "type": str(self.type),
            "board_id": self.board_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": self.data,
        }


class ChangeNotifier(Protocol):
    """Anything that can fan a board event out to live clients."""

    def publish(self, event: BoardEvent) -> None: ...


class RedisChangeNotifier:
    """Publishes board events on Redis channels."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(settings.redis_url)
        return self._client

    def publish(self, event: BoardEvent) -> None:
        """Publish an event to its board channel.

        The mutation that produced the event has already committed, so a
        transport failure is logged rather than raised.
        """
        try:
            self._get_client().publish(event.channel, json.dumps(event.to_message()))
            logger.debug(f"Published {event.type} to {event.channel}")
        except redis.RedisError as e:
            logger.error(f"Failed to publish board event {event.type}: {e}")


_notifier: ChangeNotifier | None = None


def init_notifier(notifier: ChangeNotifier | None = None) -> ChangeNotifier:
    """Install the process-wide notifier. Called from application startup."""
    global _notifier
    _notifier = notifier or RedisChangeNotifier()
    return _notifier


def get_notifier() -> ChangeNotifier:
    """Get the installed notifier.

    Raises:
        RuntimeError: if startup never called ``init_notifier``.
    """
    if _notifier is None:
        raise RuntimeError("Change notifier not initialized")
    return _notifier


def reset_notifier() -> None:
    """Drop the installed notifier (application shutdown)."""
    global _notifier
    _notifier = None


class RealtimeService:
    """Async Redis pub/sub service for WebSocket connections."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        return self._redis

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Subscribe to a Redis channel and yield messages."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.subscribe(channel)

        try:
            async for message in self._pubsub.listen():
                if message["type"] == "message":
                    try:
                        yield json.loads(message["data"])
                    except json.JSONDecodeError:
                        logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(channel)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
