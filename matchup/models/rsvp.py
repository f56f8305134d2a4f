# matchup/models/rsvp.py
"""
Game RSVP model.

One row per (game, user). Rows are never deleted on leave: the status moves
to cancelled and the row is reused if the player joins again.
"""

import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from matchup.db.base_class import Base


class Rsvp(Base):
    __tablename__ = "rsvps"

    id = Column(String, primary_key=True, default=lambda: f"rsvp_{uuid.uuid4().hex[:12]}")
    game_id = Column(String, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    status = Column(String(20), nullable=False)  # confirmed, waitlisted, cancelled

    # FIFO key for waitlist promotion; reset when a cancelled row is reused
    created_at = Column(DateTime(timezone=True), nullable=False)
    # Per-game insertion counter, breaks created_at ties
    queue_seq = Column(Integer, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    game = relationship("Game", back_populates="rsvps")

    __table_args__ = (
        UniqueConstraint("game_id", "user_id", name="unique_game_rsvp_user"),
        CheckConstraint(
            "status IN ('confirmed', 'waitlisted', 'cancelled')",
            name="check_rsvp_status",
        ),
        Index("idx_rsvps_game_status_queue", "game_id", "status", "created_at", "queue_seq"),
    )
