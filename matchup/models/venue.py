# matchup/models/venue.py
import uuid
from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from matchup.db.base_class import Base


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String, primary_key=True, default=lambda: f"ven_{uuid.uuid4().hex[:12]}")
    name = Column(String(200), nullable=False)
    address = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    games = relationship("Game", back_populates="venue")
