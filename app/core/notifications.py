"""
Real-time wake-ups with the Pub/Sub pattern.

The store row is the delivery record; events published here only tell an
open live channel to poll now instead of at the end of its interval.

Supports:
- In-memory pub/sub for a single instance
- Redis pub/sub for multi-instance deployments
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    """Types of notifications."""

    NEW_OFFER = "new_offer"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"


@dataclass
class NotificationEvent:
    """Wake-up payload for a recipient's channel."""

    type: NotificationType
    recipient_id: int
    notification_id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "recipient_id": self.recipient_id,
            "notification_id": self.notification_id,
            "created_at": self.created_at.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationEvent":
        return cls(
            type=NotificationType(data["type"]),
            recipient_id=data["recipient_id"],
            notification_id=data.get("notification_id"),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


# Type for event handlers
EventHandler = Callable[[NotificationEvent], Awaitable[None]]


class PubSubBackend(ABC):
    """Abstract base for pub/sub backends."""

    @abstractmethod
    async def publish(self, channel: str, event: NotificationEvent) -> None:
        """Publish event to channel."""
        pass

    @abstractmethod
    async def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Subscribe to channel with handler."""
        pass

    @abstractmethod
    async def unsubscribe(self, channel: str, handler: EventHandler) -> None:
        """Unsubscribe handler from channel."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close backend connections."""
        pass


class InMemoryPubSub(PubSubBackend):
    """In-memory pub/sub for single instance deployments."""

    def __init__(self):
        self._subscribers: dict[str, set[EventHandler]] = {}
        self._lock = asyncio.Lock()

    async def publish(self, channel: str, event: NotificationEvent) -> None:
        """Publish to in-memory subscribers."""
        handlers = self._subscribers.get(channel, set()).copy()

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler error in channel {channel}: {e}")

    async def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Subscribe to channel."""
        async with self._lock:
            if channel not in self._subscribers:
                self._subscribers[channel] = set()
            self._subscribers[channel].add(handler)
            logger.debug(f"Subscribed to {channel}, total: {len(self._subscribers[channel])}")

    async def unsubscribe(self, channel: str, handler: EventHandler) -> None:
        """Unsubscribe from channel."""
        async with self._lock:
            if channel in self._subscribers:
                self._subscribers[channel].discard(handler)
                if not self._subscribers[channel]:
                    del self._subscribers[channel]

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, ()))

    async def close(self) -> None:
        """Clear all subscribers."""
        self._subscribers.clear()


class RedisPubSub(PubSubBackend):
    """Redis-based pub/sub for multi-instance deployments."""

    def __init__(self, redis_url: str):
        self._redis_url = redis_url
        self._redis = None
        self._pubsub = None
        self._subscribers: dict[str, set[EventHandler]] = {}
        self._listener_task: asyncio.Task | None = None
        self._running = False

    async def _ensure_connected(self) -> None:
        """Ensure Redis connection is established."""
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url)
            self._pubsub = self._redis.pubsub()
            self._running = True
            self._listener_task = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        """Listen for Redis pub/sub messages."""
        while self._running and self._pubsub:
            try:
                if not self._subscribers:
                    await asyncio.sleep(0.5)
                    continue
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=1.0
                )
                if message and message["type"] == "message":
                    channel = (
                        message["channel"].decode()
                        if isinstance(message["channel"], bytes)
                        else message["channel"]
                    )
                    event = NotificationEvent.from_dict(json.loads(message["data"]))

                    handlers = self._subscribers.get(channel, set()).copy()
                    for handler in handlers:
                        try:
                            await handler(event)
                        except Exception as e:
                            logger.error(f"Handler error: {e}")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Redis listener error: {e}")
                await asyncio.sleep(1)

    async def publish(self, channel: str, event: NotificationEvent) -> None:
        """Publish to Redis channel."""
        await self._ensure_connected()
        await self._redis.publish(channel, event.to_json())

    async def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Subscribe to Redis channel."""
        await self._ensure_connected()

        if channel not in self._subscribers:
            self._subscribers[channel] = set()
            await self._pubsub.subscribe(channel)

        self._subscribers[channel].add(handler)

    async def unsubscribe(self, channel: str, handler: EventHandler) -> None:
        """Unsubscribe from Redis channel."""
        if channel in self._subscribers:
            self._subscribers[channel].discard(handler)
            if not self._subscribers[channel]:
                del self._subscribers[channel]
                if self._pubsub:
                    await self._pubsub.unsubscribe(channel)

    async def close(self) -> None:
        """Close Redis connections."""
        self._running = False
        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
        if self._pubsub:
            await self._pubsub.aclose()
        if self._redis:
            await self._redis.aclose()


class NotificationBus:
    """Per-user wake-up channels on top of a pub/sub backend."""

    def __init__(self, backend: PubSubBackend | None = None):
        self._backend = backend or InMemoryPubSub()

    @property
    def backend(self) -> PubSubBackend:
        return self._backend

    @staticmethod
    def user_channel(user_id: int) -> str:
        """Get channel name for user notifications."""
        return f"user:{user_id}"

    async def subscribe_user(self, user_id: int, handler: EventHandler) -> None:
        await self._backend.subscribe(self.user_channel(user_id), handler)

    async def unsubscribe_user(self, user_id: int, handler: EventHandler) -> None:
        await self._backend.unsubscribe(self.user_channel(user_id), handler)

    async def notify_user(self, event: NotificationEvent) -> None:
        """Publish a wake-up to the recipient's channel."""
        await self._backend.publish(self.user_channel(event.recipient_id), event)

    async def close(self) -> None:
        await self._backend.close()


def create_notification_bus(redis_url: str | None = None) -> NotificationBus:
    """Redis-backed bus when a URL is configured, in-memory otherwise."""
    if redis_url:
        logger.info("📡 Notification bus: Redis pub/sub")
        return NotificationBus(RedisPubSub(redis_url))
    logger.info("📡 Notification bus: in-memory pub/sub")
    return NotificationBus(InMemoryPubSub())


_bus: Optional[NotificationBus] = None


def get_notification_bus() -> NotificationBus:
    """Get global NotificationBus instance."""
    global _bus
    if _bus is None:
        _bus = NotificationBus()
    return _bus


def set_notification_bus(bus: NotificationBus | None) -> None:
    """Set global NotificationBus instance."""
    global _bus
    _bus = bus
