"""
Notification API Endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from logitrack.app.db.session import get_db
from logitrack.app.models.enums import UserRole
from logitrack.app.core.guards import require_role, get_caller
from logitrack.app.core.roles import Caller
from logitrack.app.services.notification_service import NotificationService
from logitrack.app.schemas.notification import NotificationCreate, NotificationResponse, UnreadCountResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """List current user's notifications, newest first."""
    return await NotificationService.list_for_user(db, caller.user_id, unread_only, limit, offset)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return UnreadCountResponse(unread_count=await NotificationService.unread_count(db, caller.user_id))


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    caller: Caller = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """Send a notification to one user."""
    return await NotificationService.create_notification(
        db, data.user_id, data.title, data.message, data.type, data.package_id
    )


@router.patch("/read-all")
async def mark_all_notifications_read(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Mark all notifications as read."""
    count = await NotificationService.mark_all_read(db, caller.user_id)
    return {"status": "success", "count": count}


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int = Path(...),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Mark a specific notification as read."""
    success = await NotificationService.mark_read(db, notification_id, caller.user_id)
    if not success:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "success"}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int = Path(...),
    best_effort: bool = Query(False, description="Never fail; report whether the row was removed"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    if best_effort:
        deleted = await NotificationService.best_effort_delete(db, notification_id, caller.user_id)
        return {"status": "success", "deleted": deleted}

    await NotificationService.delete(db, notification_id, caller.user_id)
    return {"status": "success", "deleted": True}
