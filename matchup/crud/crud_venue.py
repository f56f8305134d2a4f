# matchup/crud/crud_venue.py
from typing import Optional

from sqlalchemy.orm import Session

from matchup.models.venue import Venue


class CRUDVenue:
    def get(self, db: Session, *, venue_id: str) -> Optional[Venue]:
        return db.query(Venue).filter(Venue.id == venue_id).first()


# Singleton instance
venue = CRUDVenue()
