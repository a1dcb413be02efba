"""Audit trail writer and query helpers.

Writes are fire-and-forget: `AuditService.log` never raises, so a failing
audit table cannot break the operation being audited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.db.models import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


@dataclass
class AuditFilters:
    actor_user_id: str | None = None
    action: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class AuditService:
    """Append-only audit log bound to one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def log(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        actor_user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog | None:
        """Persist an audit record. Returns None (and logs) on failure."""
        entry = AuditLog(
            action=action,
            actor_user_id=actor_user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            audit_metadata=metadata or {},
            ip_address=ip_address,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except Exception:
            logger.warning(
                "Failed to write audit record %s %s/%s", action, resource_type, resource_id, exc_info=True
            )
            await self.db.rollback()
            return None
        return entry

    def _where(self, filters: AuditFilters) -> list[Any]:
        clauses: list[Any] = []
        if filters.actor_user_id:
            clauses.append(AuditLog.actor_user_id == filters.actor_user_id)
        if filters.action:
            clauses.append(AuditLog.action.ilike(f"%{filters.action}%"))
        if filters.resource_type:
            clauses.append(AuditLog.resource_type == filters.resource_type)
        if filters.resource_id:
            clauses.append(AuditLog.resource_id == filters.resource_id)
        if filters.start_date:
            clauses.append(AuditLog.created_at >= filters.start_date)
        if filters.end_date:
            clauses.append(AuditLog.created_at <= filters.end_date)
        return clauses

    async def find_all(
        self,
        filters: AuditFilters | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """Return (page of logs newest first, total matching count)."""
        clauses = self._where(filters or AuditFilters())

        result = await self.db.execute(
            select(AuditLog)
            .where(*clauses)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        logs = list(result.scalars().all())

        total = (
            await self.db.execute(select(func.count()).select_from(AuditLog).where(*clauses))
        ).scalar_one()
        return logs, total

    async def get_statistics(self) -> dict[str, Any]:
        """Totals, top 10 actions and counts per resource type."""
        total = (await self.db.execute(select(func.count()).select_from(AuditLog))).scalar_one()

        action_count = func.count(AuditLog.id).label("count")
        by_action = await self.db.execute(
            select(AuditLog.action, action_count)
            .group_by(AuditLog.action)
            .order_by(action_count.desc(), AuditLog.action)
            .limit(10)
        )

        type_count = func.count(AuditLog.id).label("count")
        by_type = await self.db.execute(
            select(AuditLog.resource_type, type_count)
            .group_by(AuditLog.resource_type)
            .order_by(type_count.desc(), AuditLog.resource_type)
        )

        return {
            "total_logs": total,
            "top_actions": [{"action": row.action, "count": row.count} for row in by_action],
            "by_resource_type": [
                {"resource_type": row.resource_type, "count": row.count} for row in by_type
            ],
        }
