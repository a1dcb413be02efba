"""Notification queue.

This service only records notifications in state PENDING and announces them
on Redis pub/sub. Actual delivery (email, push, SMS, webhook) belongs to the
delivery workers, which report back through `update_status`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import Notification, NotificationChannel, NotificationStatus
from reputation.errors import NotFoundError

logger = logging.getLogger(__name__)

PUBSUB_CHANNEL = "pubsub:notifications"


class NotificationService:
    def __init__(self, db: AsyncSession, redis: object | None = None) -> None:
        self.db = db
        self.redis = redis

    async def create(
        self,
        user_id: str,
        channel: NotificationChannel,
        title: str,
        message: str,
    ) -> Notification:
        """Persist a PENDING notification and announce it to delivery workers."""
        notification = Notification(
            user_id=user_id,
            channel=channel,
            title=title,
            message=message,
            status=NotificationStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(notification)
        await self.db.commit()

        await self._publish(notification)
        return notification

    async def _publish(self, notification: Notification) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.publish(  # type: ignore[attr-defined]
                PUBSUB_CHANNEL,
                json.dumps({
                    "id": notification.id,
                    "user_id": notification.user_id,
                    "channel": notification.channel.value,
                    "title": notification.title,
                }),
            )
        except Exception:
            logger.warning("Failed to publish notification %s", notification.id, exc_info=True)

    async def list_for_user(self, user_id: str) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_status(self, notification_id: str, status: NotificationStatus) -> Notification:
        """Record the delivery outcome. sent_at is stamped on SENT."""
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")

        notification.status = status
        if status == NotificationStatus.SENT:
            notification.sent_at = datetime.now(timezone.utc)
        await self.db.commit()
        return notification
