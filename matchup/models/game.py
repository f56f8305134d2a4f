# matchup/models/game.py
import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from matchup.db.base_class import Base


class Game(Base):
    __tablename__ = "games"

    id = Column(String, primary_key=True, default=lambda: f"gam_{uuid.uuid4().hex[:12]}")
    title = Column(String(100), nullable=False)
    sport = Column(String(20), nullable=False)
    host_id = Column(String, nullable=False, index=True)  # No FK - users are owned by the auth service

    # Location: a venue reference or a free-text place, always with coordinates
    venue_id = Column(String, ForeignKey("venues.id"), nullable=True, index=True)
    custom_location = Column(String(200), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    date_time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    max_players = Column(Integer, nullable=False)
    min_players = Column(Integer, nullable=False, server_default="2")
    skill_level = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, server_default="upcoming")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    venue = relationship("Venue", back_populates="games")
    rsvps = relationship(
        "Rsvp",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("min_players >= 2", name="check_game_min_players"),
        CheckConstraint("max_players >= min_players", name="check_game_max_gte_min"),
        CheckConstraint(
            "status IN ('upcoming', 'in_progress', 'completed', 'cancelled')",
            name="check_game_status",
        ),
        Index("idx_games_status_date", "status", "date_time"),
    )
