"""Notification status callback used by delivery workers."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reputation.dependencies import get_db
from reputation.notifications.service import NotificationService
from reputation.users.schemas import NotificationResponse, NotificationStatusRequest

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.patch("/{notification_id}/status", response_model=NotificationResponse)
async def update_status(
    notification_id: str,
    body: NotificationStatusRequest,
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await NotificationService(db).update_status(notification_id, body.status)
    return NotificationResponse.model_validate(notification)
