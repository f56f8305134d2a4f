# matchup/models/notification.py
"""
In-app notifications shown in a user's notification center.
"""
import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON, Index
from sqlalchemy.sql import func, expression

from matchup.db.base_class import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: f"ntf_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(String(30), nullable=False)  # game_update, rsvp_update
    data = Column(JSON, nullable=True)
    read = Column(Boolean, nullable=False, server_default=expression.false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "read"),
    )
