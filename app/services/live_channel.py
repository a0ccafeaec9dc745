"""
Live channel: per-connection push of new notifications.

Each open channel polls the store every ``interval`` seconds for the user's
unread notifications created after its checkpoint. A wake-up on the user's
pub/sub channel cuts the current wait short; the payload always comes from
the store query. Without an explicit ``since`` the first checkpoint is read
from the store clock that stamps ``created_at``, so app and database clock
skew cannot hide rows. The channel never marks anything read and ends on
the first failed query.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from app.core.notifications import NotificationBus, NotificationEvent
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class LiveChannel:
    """One live stream for one user."""

    def __init__(
        self,
        user_id: int,
        dispatcher: NotificationDispatcher,
        bus: NotificationBus | None = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        since: datetime | None = None,
    ):
        self.user_id = user_id
        self.dispatcher = dispatcher
        self.bus = bus
        self.interval = interval
        self.checkpoint: datetime | None = since
        self._wake = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _on_event(self, event: NotificationEvent) -> None:
        self._wake.set()

    def close(self) -> None:
        """Stop the stream after the current step."""
        self._closed = True
        self._wake.set()

    async def _wait(self) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass
        self._wake.clear()

    async def events(self) -> AsyncIterator[dict[str, Any]]:
        """Yield ``connected`` once, then ``notifications`` batches until closed."""
        if self.bus is not None:
            await self.bus.subscribe_user(self.user_id, self._on_event)
        logger.info(f"📡 Live channel opened for user {self.user_id}")

        try:
            if self.checkpoint is None:
                try:
                    self.checkpoint = await self.dispatcher.store_time()
                except Exception as e:
                    logger.error(f"❌ Live channel could not read store clock for user {self.user_id}: {e}")
                    return

            yield {"type": "connected"}

            while not self._closed:
                await self._wait()
                if self._closed:
                    break

                try:
                    batch = await self.dispatcher.unread_since(self.user_id, self.checkpoint)
                except Exception as e:
                    logger.error(f"❌ Live channel query failed for user {self.user_id}: {e}")
                    break

                if not batch:
                    continue

                self.checkpoint = max(
                    (n.created_at for n in batch if n.created_at is not None),
                    default=self.checkpoint,
                )
                yield {"type": "notifications", "data": [n.to_dict() for n in batch]}
        finally:
            self._closed = True
            if self.bus is not None:
                try:
                    await self.bus.unsubscribe_user(self.user_id, self._on_event)
                except Exception as e:
                    logger.error(f"Failed to unsubscribe live channel for user {self.user_id}: {e}")
            logger.info(f"📡 Live channel closed for user {self.user_id}")
