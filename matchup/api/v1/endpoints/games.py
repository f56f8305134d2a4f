# matchup/api/v1/endpoints/games.py
import logging
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from matchup import crud
from matchup.api import deps
from matchup.constants.rsvp import RsvpStatus
from matchup.core.config import settings
from matchup.core.errors import GameNotFound
from matchup.core.limiter import limiter
from matchup.models.game import Game as GameModel
from matchup.schemas.base import Pagination
from matchup.schemas.game import (
    Game,
    GameCreate,
    GameDetail,
    GamePage,
    GameSummary,
    GameUpdate,
    JoinedGame,
    PlayerProfile,
    SkillLevelName,
    SportName,
)
from matchup.schemas.rsvp import JoinGameResponse, LeaveGameResponse
from matchup.schemas.token import TokenPayload
from matchup.services.game_lifecycle import GameLifecycleManager
from matchup.services.rsvp_engine import RsvpEngine

router = APIRouter(prefix="/games", tags=["Games"])
logger = logging.getLogger(__name__)


def _profile(rsvp, user) -> PlayerProfile:
    if user is None:
        return PlayerProfile(id=rsvp.user_id)
    return PlayerProfile(id=user.id, name=user.name, avatar=user.avatar)


def _build_detail(db: Session, game: GameModel, viewer_id: Optional[str]) -> GameDetail:
    confirmed, waitlisted = [], []
    viewer_status = None
    for rsvp, user in crud.rsvp.get_roster(db, game_id=game.id):
        if rsvp.status == RsvpStatus.CONFIRMED:
            confirmed.append(_profile(rsvp, user))
        else:
            waitlisted.append(_profile(rsvp, user))
        if rsvp.user_id == viewer_id:
            viewer_status = rsvp.status

    return GameDetail(
        **Game.model_validate(game).model_dump(),
        current_players=len(confirmed),
        waitlist_count=len(waitlisted),
        confirmed_players=confirmed,
        waitlisted_players=waitlisted,
        user_rsvp_status=viewer_status,
        is_host=viewer_id is not None and viewer_id == game.host_id,
    )


@router.post("", response_model=Game, status_code=status.HTTP_201_CREATED)
def create_game(
    *,
    game_in: GameCreate,
    lifecycle: GameLifecycleManager = Depends(deps.get_game_lifecycle),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Create a game; the host is confirmed as its first player."""
    return lifecycle.create_game(current_user.user_id, game_in)


@router.get("", response_model=GamePage)
def list_games(
    sport: Optional[SportName] = None,
    skill_level: Optional[SkillLevelName] = Query(None, alias="skillLevel"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(deps.get_db),
):
    """Upcoming games that have not started, soonest first."""
    rows, total = crud.game.get_multi(
        db,
        sport=sport,
        skill_level=skill_level,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return GamePage(
        data=[
            GameSummary(**Game.model_validate(game).model_dump(), current_players=count)
            for game, count in rows
        ],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/my/hosted", response_model=List[GameSummary])
def list_hosted_games(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    rows = crud.game.get_multi_by_host(db, host_id=current_user.user_id)
    return [
        GameSummary(**Game.model_validate(game).model_dump(), current_players=count)
        for game, count in rows
    ]


@router.get("/my/joined", response_model=List[JoinedGame])
def list_joined_games(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Games the user is confirmed or waitlisted for, soonest first."""
    rows = crud.game.get_joined_by_user(db, user_id=current_user.user_id)
    return [
        JoinedGame(
            **Game.model_validate(game).model_dump(),
            current_players=count,
            my_status=my_status,
        )
        for game, my_status, count in rows
    ]


@router.get("/{game_id}", response_model=GameDetail)
def get_game(
    game_id: str,
    db: Session = Depends(deps.get_db),
    current_user: Optional[TokenPayload] = Depends(deps.get_current_user_optional),
):
    game = crud.game.get(db, game_id=game_id)
    if not game:
        raise GameNotFound(game_id)
    viewer_id = current_user.user_id if current_user else None
    return _build_detail(db, game, viewer_id)


@router.patch("/{game_id}", response_model=Game)
def update_game(
    game_id: str,
    game_in: GameUpdate,
    lifecycle: GameLifecycleManager = Depends(deps.get_game_lifecycle),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Update a game. Host or admin only.

    Cancelling notifies every confirmed and waitlisted player; moving the
    start time notifies confirmed players. Both broadcast `game-updated`.
    """
    return lifecycle.update_game(current_user, game_id, game_in)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(
    game_id: str,
    lifecycle: GameLifecycleManager = Depends(deps.get_game_lifecycle),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    lifecycle.delete_game(current_user, game_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{game_id}/join", response_model=JoinGameResponse)
@limiter.limit(settings.RSVP_RATE_LIMIT)
def join_game(
    game_id: str,
    request: Request,  # Required for rate limiting
    engine: RsvpEngine = Depends(deps.get_rsvp_engine),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Join a game, or its waitlist when every slot is taken.

    **Errors**:
    - 400: Game not upcoming, or already joined/waitlisted
    - 404: Game not found
    - 409/503: Concurrent modification or lock timeout; retry
    """
    result = engine.join(game_id, current_user.user_id)
    return JoinGameResponse(status=result.status, message=result.message)


@router.post("/{game_id}/leave", response_model=LeaveGameResponse)
@limiter.limit(settings.RSVP_RATE_LIMIT)
def leave_game(
    game_id: str,
    request: Request,  # Required for rate limiting
    engine: RsvpEngine = Depends(deps.get_rsvp_engine),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Leave a game. Frees a confirmed slot for the oldest waitlisted player."""
    result = engine.leave(game_id, current_user.user_id)
    return LeaveGameResponse(message=result.message)
