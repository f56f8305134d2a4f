# matchup/schemas/notification.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from matchup.schemas.base import CamelModel, Pagination


class Notification(CamelModel):
    id: str
    user_id: str
    title: str
    body: str
    type: str
    data: Optional[Dict[str, Any]] = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPage(CamelModel):
    data: List[Notification]
    unread_count: int
    pagination: Pagination


class UnreadCount(BaseModel):
    count: int


class NotificationAck(BaseModel):
    success: bool = True
    message: str
