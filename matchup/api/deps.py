# matchup/api/deps.py
from typing import Optional

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from matchup.core.config import settings
from matchup.db.session import get_db
from matchup.realtime.hub import channel_hub
from matchup.schemas.token import TokenPayload
from matchup.services.dispatch import EffectDispatcher, RealtimePublisher
from matchup.services.game_lifecycle import GameLifecycleManager
from matchup.services.notification_service import NotificationService
from matchup.services.rsvp_engine import RsvpEngine

# This tells FastAPI where to look for the token.
# The `tokenUrl` doesn't have to be a real endpoint in this service,
# it's just for the OpenAPI documentation.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")
# Optional version that doesn't raise an error when token is missing
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def decode_token(token: str) -> TokenPayload:
    """Raises JWTError or ValueError for anything that is not a valid token."""
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    return TokenPayload(**payload)


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        return decode_token(token)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise credentials_exception


def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme_optional),
) -> Optional[TokenPayload]:
    if token is None:
        return None
    try:
        return decode_token(token)
    except (JWTError, ValueError):
        # Anonymous read access: an invalid token is treated as no token
        return None


def get_realtime_publisher() -> RealtimePublisher:
    if settings.REALTIME_BACKEND == "redis":
        from matchup.db.redis import redis_client
        from matchup.realtime.redis_bridge import RedisChannelPublisher

        return RedisChannelPublisher(redis_client)
    return channel_hub


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_dispatcher(
    background_tasks: BackgroundTasks,
    publisher: RealtimePublisher = Depends(get_realtime_publisher),
    notifier: NotificationService = Depends(get_notification_service),
) -> EffectDispatcher:
    """Effects run after the response is sent, in the order they were queued."""
    return EffectDispatcher(publisher, notifier, schedule=background_tasks.add_task)


def get_rsvp_engine(
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
) -> RsvpEngine:
    return RsvpEngine(db, dispatcher)


def get_game_lifecycle(
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
) -> GameLifecycleManager:
    return GameLifecycleManager(db, dispatcher)
