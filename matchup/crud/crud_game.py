# matchup/crud/crud_game.py
"""
CRUD operations for games.

Mutating helpers only flush; the RSVP engine and the lifecycle manager own
the surrounding transaction (see `matchup.db.transaction`).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, text
from sqlalchemy.orm import Session

from matchup.constants.game import GameStatus
from matchup.constants.rsvp import RsvpStatus
from matchup.core.config import settings
from matchup.models.game import Game
from matchup.models.rsvp import Rsvp
from matchup.schemas.game import GameCreate


class CRUDGame:
    """CRUD operations for Game."""

    def get(self, db: Session, *, game_id: str) -> Optional[Game]:
        return db.query(Game).filter(Game.id == game_id).first()

    def get_for_update(self, db: Session, *, game_id: str) -> Optional[Game]:
        """
        Load a game while holding its row lock until the transaction ends.

        This is the per-game serialization point: every join, leave, promotion
        and update for the game waits here for the previous one to commit.
        """
        if db.get_bind().dialect.name == "postgresql":
            # SET does not accept bind parameters
            timeout_ms = int(settings.RSVP_LOCK_TIMEOUT_MS)
            db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        return self.locking_query(db, game_id=game_id).first()

    def locking_query(self, db: Session, *, game_id: str):
        return (
            db.query(Game)
            .filter(Game.id == game_id)
            .populate_existing()
            .with_for_update()
        )

    def create_with_host(self, db: Session, *, obj_in: GameCreate, host_id: str) -> Game:
        game = Game(**obj_in.model_dump(), host_id=host_id, status=GameStatus.UPCOMING)
        db.add(game)
        db.flush()
        return game

    def update(self, db: Session, *, db_obj: Game, changes: Dict[str, Any]) -> Game:
        for field, value in changes.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        db.flush()
        return db_obj

    def remove(self, db: Session, *, db_obj: Game) -> None:
        db.delete(db_obj)
        db.flush()

    def _confirmed_counts(self, db: Session):
        return (
            db.query(Rsvp.game_id, func.count(Rsvp.id).label("confirmed"))
            .filter(Rsvp.status == RsvpStatus.CONFIRMED)
            .group_by(Rsvp.game_id)
            .subquery()
        )

    def get_multi(
        self,
        db: Session,
        *,
        sport: Optional[str] = None,
        skill_level: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Tuple[Game, int]], int]:
        """
        A page of upcoming games that have not started yet, soonest first,
        with confirmed player counts and the total number of matches.
        """
        query = db.query(Game).filter(
            and_(
                Game.status == GameStatus.UPCOMING,
                Game.date_time >= datetime.now(timezone.utc),
            )
        )
        if sport:
            query = query.filter(Game.sport == sport)
        if skill_level:
            query = query.filter(Game.skill_level == skill_level)
        total = query.count()

        confirmed = self._confirmed_counts(db)
        rows = (
            query.add_columns(func.coalesce(confirmed.c.confirmed, 0))
            .outerjoin(confirmed, confirmed.c.game_id == Game.id)
            .order_by(Game.date_time.asc(), Game.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return [(game, count) for game, count in rows], total

    def get_multi_by_host(self, db: Session, *, host_id: str) -> List[Tuple[Game, int]]:
        """Games hosted by a user, newest first, with confirmed player counts."""
        confirmed = self._confirmed_counts(db)
        rows = (
            db.query(Game, func.coalesce(confirmed.c.confirmed, 0))
            .outerjoin(confirmed, confirmed.c.game_id == Game.id)
            .filter(Game.host_id == host_id)
            .order_by(Game.date_time.desc())
            .all()
        )
        return [(game, count) for game, count in rows]

    def get_joined_by_user(self, db: Session, *, user_id: str) -> List[Tuple[Game, str, int]]:
        """Games a user holds an active RSVP for, soonest first."""
        confirmed = self._confirmed_counts(db)
        rows = (
            db.query(Game, Rsvp.status, func.coalesce(confirmed.c.confirmed, 0))
            .join(Rsvp, and_(Rsvp.game_id == Game.id, Rsvp.user_id == user_id))
            .outerjoin(confirmed, confirmed.c.game_id == Game.id)
            .filter(Rsvp.status.in_(RsvpStatus.active_values()))
            .order_by(Game.date_time.asc())
            .all()
        )
        return [(game, status, count) for game, status, count in rows]


# Singleton instance
game = CRUDGame()
