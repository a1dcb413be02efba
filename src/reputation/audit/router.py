"""Audit log query endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.audit.service import AuditFilters, AuditService
from reputation.dependencies import get_db

router = APIRouter(prefix="/api/v1/audit", tags=["Audit"])


class AuditLogResponse(BaseModel):
    id: str
    action: str
    actor_user_id: str | None = None
    resource_type: str
    resource_id: str
    metadata: dict[str, Any] = {}
    ip_address: str | None = None
    created_at: datetime


class AuditPageResponse(BaseModel):
    data: list[AuditLogResponse]
    total: int
    limit: int
    offset: int


@router.get("", response_model=AuditPageResponse)
async def list_audit_logs(
    actor_user_id: str | None = None,
    action: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> AuditPageResponse:
    """Filtered audit trail, newest first."""
    filters = AuditFilters(
        actor_user_id=actor_user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
    )
    logs, total = await AuditService(db).find_all(filters, limit=limit, offset=offset)
    return AuditPageResponse(
        data=[
            AuditLogResponse(
                id=log.id,
                action=log.action,
                actor_user_id=log.actor_user_id,
                resource_type=log.resource_type,
                resource_id=log.resource_id,
                metadata=log.audit_metadata or {},
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log in logs
        ],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/statistics")
async def audit_statistics(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await AuditService(db).get_statistics()
