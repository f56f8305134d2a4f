# matchup/services/game_lifecycle.py
"""
Game lifecycle: creation, host/admin updates, cancellation and deletion.

Updates run under the same per-game lock as the RSVP engine. After commit a
`game-updated` event is broadcast and, for cancellations and reschedules,
the affected players are notified.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from matchup import crud
from matchup.constants.game import GameStatus
from matchup.constants.notification import RealtimeEvent
from matchup.constants.rsvp import RsvpStatus
from matchup.core.errors import (
    CapacityBelowConfirmed,
    Forbidden,
    GameNotFound,
    InvalidPlayerLimits,
    InvalidStatusTransition,
    VenueNotFound,
)
from matchup.db.transaction import game_transaction
from matchup.models.game import Game
from matchup.schemas.game import Game as GameSchema, GameCreate, GameUpdate
from matchup.schemas.token import TokenPayload
from matchup.services import notification_policy
from matchup.services.dispatch import EffectDispatcher
from matchup.services.rsvp_engine import fill_open_slots

logger = logging.getLogger(__name__)

# Columns a PATCH may explicitly clear
NULLABLE_FIELDS = {"venue_id", "custom_location", "description", "price"}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_reschedule(game: Game, changes: Dict[str, Any]) -> bool:
    new_time = changes.get("date_time")
    if new_time is None:
        return False
    return _as_utc(new_time) != _as_utc(game.date_time)


class GameLifecycleManager:

    def __init__(self, db: Session, dispatcher: EffectDispatcher):
        self.db = db
        self.dispatcher = dispatcher

    @staticmethod
    def _authorize(actor: TokenPayload, game: Game) -> None:
        if actor.user_id != game.host_id and not actor.is_admin:
            raise Forbidden()

    def create_game(self, host_id: str, data: GameCreate) -> GameSchema:
        """Insert a game and confirm its host in the same transaction."""
        with game_transaction(self.db, game_id="new", action="create"):
            if data.venue_id and not crud.venue.get(self.db, venue_id=data.venue_id):
                raise VenueNotFound(data.venue_id)
            game = crud.game.create_with_host(self.db, obj_in=data, host_id=host_id)
            crud.rsvp.create_host_rsvp(self.db, game=game)
            created = GameSchema.model_validate(game)

        logger.info(
            f"Game {created.id} created by host {host_id}",
            extra={"game_id": created.id, "host_id": host_id},
        )
        return created

    def update_game(self, actor: TokenPayload, game_id: str, update: GameUpdate) -> GameSchema:
        changes = {
            field: value
            for field, value in update.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }

        with game_transaction(self.db, game_id=game_id, action="update"):
            game = crud.game.get_for_update(self.db, game_id=game_id)
            if not game:
                raise GameNotFound(game_id)
            self._authorize(actor, game)

            previous_status = game.status
            previous_max = game.max_players
            new_status = changes.get("status", previous_status)
            if not GameStatus.can_transition(previous_status, new_status):
                raise InvalidStatusTransition(game_id, previous_status, new_status)

            venue_id = changes.get("venue_id")
            if venue_id and not crud.venue.get(self.db, venue_id=venue_id):
                raise VenueNotFound(venue_id)

            min_players = changes.get("min_players", game.min_players)
            max_players = changes.get("max_players", game.max_players)
            if min_players > max_players:
                raise InvalidPlayerLimits(min_players, max_players)
            if "max_players" in changes:
                confirmed = crud.rsvp.count_confirmed(self.db, game_id=game_id)
                if max_players < confirmed:
                    raise CapacityBelowConfirmed(game_id, max_players, confirmed)

            rescheduled = _is_reschedule(game, changes)
            crud.game.update(self.db, db_obj=game, changes=changes)

            promoted: List[str] = []
            if game.max_players > previous_max:
                promoted = fill_open_slots(self.db, game=game)

            intents = []
            if new_status == GameStatus.CANCELLED and previous_status != GameStatus.CANCELLED:
                participants = crud.rsvp.get_participants(
                    self.db, game_id=game_id, statuses=RsvpStatus.active_values()
                )
                intents = notification_policy.game_cancelled(
                    game_id=game_id,
                    game_title=game.title,
                    participant_ids=[row.user_id for row in participants],
                    actor_id=actor.user_id,
                )
            elif rescheduled and game.status == GameStatus.UPCOMING:
                participants = crud.rsvp.get_participants(
                    self.db, game_id=game_id, statuses=[RsvpStatus.CONFIRMED]
                )
                intents = notification_policy.game_rescheduled(
                    game_id=game_id,
                    game_title=game.title,
                    participant_ids=[row.user_id for row in participants],
                    actor_id=actor.user_id,
                )

            for user_id in promoted:
                intents += notification_policy.player_promoted(
                    game_id=game_id, game_title=game.title, player_id=user_id
                )
            updated = GameSchema.model_validate(game)

        logger.info(
            f"Game {game_id} updated by {actor.user_id}: {sorted(changes)}",
            extra={"game_id": game_id, "status": updated.status},
        )

        self.dispatcher.publish(
            game_id, RealtimeEvent.GAME_UPDATED, updated.model_dump(mode="json", by_alias=True)
        )
        for user_id in promoted:
            self.dispatcher.publish(game_id, RealtimeEvent.PLAYER_PROMOTED, {"userId": user_id})
        self.dispatcher.notify(intents)
        return updated

    def cancel_game(self, actor: TokenPayload, game_id: str) -> GameSchema:
        return self.update_game(actor, game_id, GameUpdate(status=GameStatus.CANCELLED))

    def delete_game(self, actor: TokenPayload, game_id: str) -> None:
        with game_transaction(self.db, game_id=game_id, action="delete"):
            game = crud.game.get_for_update(self.db, game_id=game_id)
            if not game:
                raise GameNotFound(game_id)
            self._authorize(actor, game)
            crud.game.remove(self.db, db_obj=game)

        logger.info(f"Game {game_id} deleted by {actor.user_id}", extra={"game_id": game_id})
