"""Audit trail and notification queue tests."""

from __future__ import annotations

import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.audit.service import AuditFilters, AuditService
from reputation.db.models import NotificationChannel, NotificationStatus
from reputation.errors import NotFoundError
from reputation.notifications.service import PUBSUB_CHANNEL, NotificationService


class _RecordingRedis:
    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1


class _BrokenRedis:
    async def publish(self, channel: str, message: str) -> int:
        raise ConnectionError("redis unavailable")


class TestAuditService:
    """Test audit writes and queries."""

    @pytest.mark.asyncio
    async def test_log_and_find(self, db_session: AsyncSession):
        audit = AuditService(db_session)
        await audit.log("BADGE_CREATED", "Badge", "b1", metadata={"name": "Early Bird"})
        await audit.log("BADGE_AWARDED", "BadgeAward", "a1", actor_user_id="u1")

        logs, total = await audit.find_all()
        assert total == 2
        assert {log.action for log in logs} == {"BADGE_CREATED", "BADGE_AWARDED"}

    @pytest.mark.asyncio
    async def test_filters(self, db_session: AsyncSession):
        audit = AuditService(db_session)
        await audit.log("BADGE_AWARDED", "BadgeAward", "a1", actor_user_id="u1")
        await audit.log("BADGE_AWARDED", "BadgeAward", "a2", actor_user_id="u2")
        await audit.log("USER_CREATED", "User", "u1", actor_user_id="u1")

        logs, total = await audit.find_all(AuditFilters(actor_user_id="u1"))
        assert total == 2

        logs, total = await audit.find_all(AuditFilters(action="awarded"))
        assert total == 2
        assert {log.resource_id for log in logs} == {"a1", "a2"}

        logs, total = await audit.find_all(AuditFilters(resource_type="User"))
        assert [log.resource_id for log in logs] == ["u1"]

    @pytest.mark.asyncio
    async def test_pagination_reports_full_total(self, db_session: AsyncSession):
        audit = AuditService(db_session)
        for i in range(5):
            await audit.log("USER_CREATED", "User", f"u{i}")

        logs, total = await audit.find_all(limit=2, offset=1)
        assert len(logs) == 2
        assert total == 5

    @pytest.mark.asyncio
    async def test_statistics(self, db_session: AsyncSession):
        audit = AuditService(db_session)
        for i in range(3):
            await audit.log("BADGE_AWARDED", "BadgeAward", f"a{i}")
        await audit.log("USER_CREATED", "User", "u1")

        stats = await audit.get_statistics()
        assert stats["total_logs"] == 4
        assert stats["top_actions"][0] == {"action": "BADGE_AWARDED", "count": 3}
        assert {"resource_type": "User", "count": 1} in stats["by_resource_type"]

    @pytest.mark.asyncio
    async def test_log_failure_returns_none(self, db_session: AsyncSession, monkeypatch):
        async def failing_commit():
            raise RuntimeError("audit table unavailable")

        monkeypatch.setattr(db_session, "commit", failing_commit)
        assert await AuditService(db_session).log("USER_CREATED", "User", "u1") is None


class TestNotificationService:
    """Test notification queueing and status updates."""

    @pytest.mark.asyncio
    async def test_create_is_pending(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        notification = await NotificationService(db_session).create(
            user.id, NotificationChannel.EMAIL, "Hello", "Welcome aboard"
        )
        assert notification.status == NotificationStatus.PENDING
        assert notification.sent_at is None

    @pytest.mark.asyncio
    async def test_create_publishes_to_redis(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        redis = _RecordingRedis()
        notification = await NotificationService(db_session, redis).create(
            user.id, NotificationChannel.PUSH, "New badge awarded", "Congrats"
        )

        [(channel, message)] = redis.published
        assert channel == PUBSUB_CHANNEL
        payload = json.loads(message)
        assert payload == {
            "id": notification.id,
            "user_id": user.id,
            "channel": "PUSH",
            "title": "New badge awarded",
        }

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_notification(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        service = NotificationService(db_session, _BrokenRedis())
        await service.create(user.id, NotificationChannel.PUSH, "Title", "Body")
        assert len(await service.list_for_user(user.id)) == 1

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        service = NotificationService(db_session)
        for title in ("first", "second"):
            await service.create(user.id, NotificationChannel.PUSH, title, "...")

        assert [n.title for n in await service.list_for_user(user.id)] == ["second", "first"]

    @pytest.mark.asyncio
    async def test_mark_sent_stamps_sent_at(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        service = NotificationService(db_session)
        notification = await service.create(user.id, NotificationChannel.SMS, "Code", "1234")

        updated = await service.update_status(notification.id, NotificationStatus.SENT)
        assert updated.status == NotificationStatus.SENT
        assert updated.sent_at is not None

    @pytest.mark.asyncio
    async def test_mark_failed_leaves_sent_at_empty(self, db_session: AsyncSession, make_user):
        user = await make_user("ana")
        service = NotificationService(db_session)
        notification = await service.create(user.id, NotificationChannel.WEBHOOK, "Hook", "{}")

        updated = await service.update_status(notification.id, NotificationStatus.FAILED)
        assert updated.status == NotificationStatus.FAILED
        assert updated.sent_at is None

    @pytest.mark.asyncio
    async def test_update_unknown_notification(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await NotificationService(db_session).update_status("missing", NotificationStatus.SENT)
