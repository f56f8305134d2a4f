# matchup/crud/crud_notification.py
"""
CRUD operations for in-app notifications.
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from matchup.models.notification import Notification


class CRUDNotification:

    def create(
        self,
        db: Session,
        *,
        user_id: str,
        title: str,
        body: str,
        type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Create an in-app notification."""
        notif = Notification(
            user_id=user_id,
            title=title,
            body=body,
            type=type,
            data=data,
            read=False,
        )
        db.add(notif)
        db.commit()
        db.refresh(notif)
        return notif

    def get_multi_by_user(
        self,
        db: Session,
        *,
        user_id: str,
        skip: int = 0,
        limit: int = 20,
        unread_only: bool = False,
    ) -> Tuple[List[Notification], int]:
        """A page of a user's notifications, newest first, with the total count."""
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))

        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def count_unread(self, db: Session, *, user_id: str) -> int:
        return db.query(func.count(Notification.id)).filter(
            and_(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
        ).scalar() or 0

    def mark_read(self, db: Session, *, notification_id: str, user_id: str) -> int:
        """Mark one notification read; scoped to its owner. Returns rows updated."""
        updated = (
            db.query(Notification)
            .filter(
                and_(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.commit()
        return updated

    def mark_all_read(self, db: Session, *, user_id: str) -> int:
        updated = (
            db.query(Notification)
            .filter(
                and_(
                    Notification.user_id == user_id,
                    Notification.read.is_(False),
                )
            )
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.commit()
        return updated


# Singleton instance
notification = CRUDNotification()
