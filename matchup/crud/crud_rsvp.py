# matchup/crud/crud_rsvp.py
"""
CRUD operations for game RSVPs.

Handles RSVP creation, reuse, cancellation, waitlist ordering and roster
queries. Nothing here commits: call these inside a game transaction that
already holds the game row lock.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from matchup.constants.rsvp import RsvpStatus
from matchup.models.game import Game
from matchup.models.rsvp import Rsvp
from matchup.models.user import User


class CRUDRsvp:
    """CRUD operations for Rsvp."""

    def get_user_rsvp(self, db: Session, *, game_id: str, user_id: str) -> Optional[Rsvp]:
        """Get a user's RSVP for a game (any status)."""
        return db.query(Rsvp).filter(
            and_(
                Rsvp.game_id == game_id,
                Rsvp.user_id == user_id,
            )
        ).first()

    def count_confirmed(self, db: Session, *, game_id: str) -> int:
        """Count confirmed RSVPs for a game."""
        return db.query(func.count(Rsvp.id)).filter(
            and_(
                Rsvp.game_id == game_id,
                Rsvp.status == RsvpStatus.CONFIRMED,
            )
        ).scalar() or 0

    def next_queue_seq(self, db: Session, *, game_id: str) -> int:
        current = db.query(func.max(Rsvp.queue_seq)).filter(Rsvp.game_id == game_id).scalar()
        return (current or 0) + 1

    def create_host_rsvp(self, db: Session, *, game: Game) -> Rsvp:
        """Confirm the host in their own game; exempt from the capacity check."""
        rsvp = Rsvp(
            game_id=game.id,
            user_id=game.host_id,
            status=RsvpStatus.CONFIRMED,
            created_at=datetime.now(timezone.utc),
            queue_seq=1,
        )
        db.add(rsvp)
        db.flush()
        return rsvp

    def upsert(
        self,
        db: Session,
        *,
        game_id: str,
        user_id: str,
        status: str,
        existing: Optional[Rsvp] = None,
    ) -> Rsvp:
        """
        Create an RSVP, or reuse the user's cancelled row.

        Reuse moves the player to the back of the queue: created_at and
        queue_seq are renewed exactly as for a fresh row.
        """
        now = datetime.now(timezone.utc)
        queue_seq = self.next_queue_seq(db, game_id=game_id)
        if existing is not None:
            existing.status = status
            existing.created_at = now
            existing.queue_seq = queue_seq
            existing.cancelled_at = None
            rsvp = existing
        else:
            rsvp = Rsvp(
                game_id=game_id,
                user_id=user_id,
                status=status,
                created_at=now,
                queue_seq=queue_seq,
            )
        db.add(rsvp)
        db.flush()
        return rsvp

    def cancel(self, db: Session, *, rsvp: Rsvp) -> Rsvp:
        rsvp.status = RsvpStatus.CANCELLED
        rsvp.cancelled_at = datetime.now(timezone.utc)
        db.add(rsvp)
        db.flush()
        return rsvp

    def get_waitlist(self, db: Session, *, game_id: str, limit: Optional[int] = None) -> List[Rsvp]:
        """Waitlisted RSVPs in promotion order (oldest first, then insertion order)."""
        query = (
            db.query(Rsvp)
            .filter(
                and_(
                    Rsvp.game_id == game_id,
                    Rsvp.status == RsvpStatus.WAITLISTED,
                )
            )
            .order_by(Rsvp.created_at.asc(), Rsvp.queue_seq.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def oldest_waitlisted(self, db: Session, *, game_id: str) -> Optional[Rsvp]:
        waitlist = self.get_waitlist(db, game_id=game_id, limit=1)
        return waitlist[0] if waitlist else None

    def promote(self, db: Session, *, rsvp: Rsvp) -> Rsvp:
        """Confirm a waitlisted RSVP. The caller checks capacity."""
        rsvp.status = RsvpStatus.CONFIRMED
        db.add(rsvp)
        db.flush()
        return rsvp

    def promote_waitlisted(self, db: Session, *, game_id: str, limit: int = 1) -> List[Rsvp]:
        """Move up to `limit` waitlisted RSVPs to confirmed, FIFO."""
        if limit <= 0:
            return []
        promoted = self.get_waitlist(db, game_id=game_id, limit=limit)
        for rsvp in promoted:
            self.promote(db, rsvp=rsvp)
        return promoted

    def get_participants(
        self,
        db: Session,
        *,
        game_id: str,
        statuses: Sequence[str],
    ) -> List[Rsvp]:
        return (
            db.query(Rsvp)
            .filter(and_(Rsvp.game_id == game_id, Rsvp.status.in_(list(statuses))))
            .order_by(Rsvp.created_at.asc(), Rsvp.queue_seq.asc())
            .all()
        )

    def get_roster(self, db: Session, *, game_id: str) -> List[Tuple[Rsvp, Optional[User]]]:
        """Active RSVPs with the players' public profiles, in queue order."""
        return (
            db.query(Rsvp, User)
            .outerjoin(User, User.id == Rsvp.user_id)
            .filter(
                and_(
                    Rsvp.game_id == game_id,
                    Rsvp.status.in_(RsvpStatus.active_values()),
                )
            )
            .order_by(Rsvp.created_at.asc(), Rsvp.queue_seq.asc())
            .all()
        )


# Singleton instance
rsvp = CRUDRsvp()
