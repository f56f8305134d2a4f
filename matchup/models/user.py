# matchup/models/user.py
"""
Public user identity.

Accounts and credentials live in the auth service; this table only keeps
the profile fields shown on rosters and realtime events.
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from matchup.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False)
    avatar = Column(String, nullable=True)
    role = Column(String(20), nullable=False, server_default="user")  # user, admin
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
