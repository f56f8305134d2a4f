# matchup/services/rsvp_engine.py
"""
RSVP engine: join, leave and waitlist promotion for a single game.

Every operation is one transaction that starts by locking the game row, so
capacity is always evaluated against the committed roster and concurrent
joins on the last open slot are resolved by serialization. Realtime events
and notifications go out through the dispatcher only after commit.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from matchup import crud
from matchup.constants.game import GameStatus
from matchup.constants.notification import RealtimeEvent
from matchup.constants.rsvp import RsvpStatus
from matchup.core.config import settings
from matchup.core.errors import (
    AlreadyJoined,
    GameNotFound,
    GameNotJoinable,
    HostCannotLeave,
    NotJoined,
)
from matchup.db.transaction import game_transaction
from matchup.models.game import Game
from matchup.services import notification_policy
from matchup.services.dispatch import EffectDispatcher

logger = logging.getLogger(__name__)

JOINED_MESSAGE = "You have joined the game"
WAITLISTED_MESSAGE = "You have been added to the waitlist"
LEFT_MESSAGE = "You have left the game"


@dataclass
class JoinResult:
    status: str
    message: str


@dataclass
class LeaveResult:
    message: str
    promoted_user_id: Optional[str] = None


def fill_open_slots(db: Session, *, game: Game, limit: Optional[int] = None) -> List[str]:
    """
    Promote waitlisted players into free confirmed slots, oldest first.

    Must run under the game lock. Returns the promoted user ids in
    promotion order.
    """
    if game.status != GameStatus.UPCOMING:
        return []
    free = game.max_players - crud.rsvp.count_confirmed(db, game_id=game.id)
    if limit is not None:
        free = min(free, limit)
    promoted = crud.rsvp.promote_waitlisted(db, game_id=game.id, limit=free)
    return [row.user_id for row in promoted]


class RsvpEngine:

    def __init__(
        self,
        db: Session,
        dispatcher: EffectDispatcher,
        emit_promotion_events: Optional[bool] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        if emit_promotion_events is None:
            emit_promotion_events = settings.EMIT_PROMOTION_EVENTS
        self.emit_promotion_events = emit_promotion_events

    def join(self, game_id: str, user_id: str) -> JoinResult:
        with game_transaction(self.db, game_id=game_id, action="join"):
            game = crud.game.get_for_update(self.db, game_id=game_id)
            if not game:
                raise GameNotFound(game_id)
            if game.status != GameStatus.UPCOMING:
                raise GameNotJoinable(game_id, game.status)

            existing = crud.rsvp.get_user_rsvp(self.db, game_id=game_id, user_id=user_id)
            if existing and existing.status in RsvpStatus.active_values():
                raise AlreadyJoined(game_id, existing.status)

            confirmed_count = crud.rsvp.count_confirmed(self.db, game_id=game_id)
            if confirmed_count < game.max_players:
                status = RsvpStatus.CONFIRMED
            else:
                status = RsvpStatus.WAITLISTED

            crud.rsvp.upsert(
                self.db,
                game_id=game_id,
                user_id=user_id,
                status=status,
                existing=existing,
            )
            profile = crud.user.get_public_profile(self.db, user_id=user_id)
            host_id, title = game.host_id, game.title

        logger.info(
            f"User {user_id} joined game {game_id} as {status}",
            extra={"game_id": game_id, "user_id": user_id, "status": status},
        )

        self.dispatcher.publish(
            game_id, RealtimeEvent.PLAYER_JOINED, {"user": profile, "status": status}
        )
        self.dispatcher.notify(
            notification_policy.player_joined(
                game_id=game_id,
                game_title=title,
                host_id=host_id,
                player_id=user_id,
                player_name=profile["name"],
                status=status,
            )
        )

        message = JOINED_MESSAGE if status == RsvpStatus.CONFIRMED else WAITLISTED_MESSAGE
        return JoinResult(status=status, message=message)

    def _has_open_slot(self, game: Game) -> bool:
        if game.status != GameStatus.UPCOMING:
            return False
        return crud.rsvp.count_confirmed(self.db, game_id=game.id) < game.max_players

    def leave(self, game_id: str, user_id: str) -> LeaveResult:
        with game_transaction(self.db, game_id=game_id, action="leave"):
            game = crud.game.get_for_update(self.db, game_id=game_id)
            if not game:
                raise GameNotFound(game_id)
            if game.host_id == user_id:
                raise HostCannotLeave(game_id)

            rsvp = crud.rsvp.get_user_rsvp(self.db, game_id=game_id, user_id=user_id)
            if not rsvp or rsvp.status == RsvpStatus.CANCELLED:
                raise NotJoined(game_id)

            was_confirmed = rsvp.status == RsvpStatus.CONFIRMED
            crud.rsvp.cancel(self.db, rsvp=rsvp)

            promoted_user_id = None
            if was_confirmed and self._has_open_slot(game):
                next_in_line = crud.rsvp.oldest_waitlisted(self.db, game_id=game_id)
                if next_in_line is not None:
                    crud.rsvp.promote(self.db, rsvp=next_in_line)
                    promoted_user_id = next_in_line.user_id
            title = game.title

        logger.info(
            f"User {user_id} left game {game_id}",
            extra={"game_id": game_id, "user_id": user_id, "promoted": promoted_user_id},
        )

        self.dispatcher.publish(game_id, RealtimeEvent.PLAYER_LEFT, {"userId": user_id})
        if promoted_user_id:
            logger.info(f"Promoted user {promoted_user_id} from waitlist in game {game_id}")
            if self.emit_promotion_events:
                self.dispatcher.publish(
                    game_id, RealtimeEvent.PLAYER_PROMOTED, {"userId": promoted_user_id}
                )
            self.dispatcher.notify(
                notification_policy.player_promoted(
                    game_id=game_id, game_title=title, player_id=promoted_user_id
                )
            )

        return LeaveResult(message=LEFT_MESSAGE, promoted_user_id=promoted_user_id)
