# matchup/api/v1/endpoints/notifications.py
import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchup import crud
from matchup.api import deps
from matchup.schemas.base import Pagination
from matchup.schemas.notification import (
    Notification,
    NotificationAck,
    NotificationPage,
    UnreadCount,
)
from matchup.schemas.token import TokenPayload

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationPage)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The user's notifications, newest first."""
    items, total = crud.notification.get_multi_by_user(
        db,
        user_id=current_user.user_id,
        skip=(page - 1) * limit,
        limit=limit,
        unread_only=unread_only,
    )
    unread = crud.notification.count_unread(db, user_id=current_user.user_id)
    return NotificationPage(
        data=[Notification.model_validate(item) for item in items],
        unread_count=unread,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return UnreadCount(count=crud.notification.count_unread(db, user_id=current_user.user_id))


@router.post("/read-all", response_model=NotificationAck)
def mark_all_read(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    crud.notification.mark_all_read(db, user_id=current_user.user_id)
    return NotificationAck(message="All notifications marked as read")


@router.post("/{notification_id}/read", response_model=NotificationAck)
def mark_read(
    notification_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    # Unknown ids and other users' notifications are a silent no-op
    crud.notification.mark_read(
        db, notification_id=notification_id, user_id=current_user.user_id
    )
    return NotificationAck(message="Notification marked as read")
