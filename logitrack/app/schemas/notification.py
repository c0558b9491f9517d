"""
Notification Schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from logitrack.app.models.notification import NotificationType


class NotificationCreate(BaseModel):
    user_id: int
    type: NotificationType = NotificationType.INFO
    title: str
    message: str
    package_id: Optional[str] = None


class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    package_id: Optional[str]
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread_count: int
