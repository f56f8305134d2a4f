# matchup/crud/crud_user.py
from typing import Optional

from sqlalchemy.orm import Session

from matchup.models.user import User


class CRUDUser:
    """Read access to public user profiles."""

    def get(self, db: Session, *, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def get_public_profile(self, db: Session, *, user_id: str) -> dict:
        """Identity broadcast to other players; falls back to the bare id."""
        db_user = self.get(db, user_id=user_id)
        if not db_user:
            return {"id": user_id, "name": None, "avatar": None}
        return {"id": db_user.id, "name": db_user.name, "avatar": db_user.avatar}


# Singleton instance
user = CRUDUser()
