"""Notification delivery seam.

The services decide what goes out and when; a dispatcher hands it to the
push worker.  Scheduled notifications carry a future ``deliver_at``, so the
worker also accepts cancellations for (user, kind, discriminator, day).
"""

from __future__ import annotations

import json
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

from irrisense.schemas.notifications import Notification, NotificationCancel

logger = structlog.get_logger("irrisense.dispatch")


class NotificationDispatcher(Protocol):
	async def dispatch(self, notification: Notification) -> None: ...

	async def cancel(self, cancellation: NotificationCancel) -> None: ...


class RedisNotificationDispatcher:
	"""Publishes on ``user:{user_id}:notifications`` for the push worker."""

	def __init__(self, redis_client: Redis | None = None):
		self.redis_client = redis_client

	async def dispatch(self, notification: Notification) -> None:
		await self._publish(notification.user_id, "schedule", notification.model_dump(mode="json"))

	async def cancel(self, cancellation: NotificationCancel) -> None:
		await self._publish(cancellation.user_id, "cancel", cancellation.model_dump(mode="json"))

	async def _publish(self, user_id: str, event_type: str, body: dict[str, Any]) -> None:
		if self.redis_client is None:
			logger.warning("notification_not_published", event_type=event_type, kind=body.get("kind"))
			return
		payload = {"event_type": event_type, **body}
		await self.redis_client.publish(f"user:{user_id}:notifications", json.dumps(payload))
