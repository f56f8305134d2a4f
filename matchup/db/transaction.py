# matchup/db/transaction.py
"""
Transaction boundary for mutations scoped to one game.

The block's first statement should take the game row lock (see
`crud_game.game.get_for_update`); everything inside commits or rolls back
as one unit. Driver errors are translated into the retryable storage
errors callers know how to report.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from matchup.core.errors import AppError, StorageConflict, StorageTimeout

logger = logging.getLogger(__name__)


@contextmanager
def game_transaction(db: Session, *, game_id: str, action: str) -> Iterator[Session]:
    # Rows cached by earlier transactions are reloaded under the lock
    db.expire_all()
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(
            f"Constraint conflict during {action} on game {game_id}: {e.orig}",
            extra={"game_id": game_id, "action": action},
        )
        raise StorageConflict(game_id, {"action": action}) from e
    except OperationalError as e:
        db.rollback()
        logger.error(
            f"Lock wait or storage failure during {action} on game {game_id}: {e.orig}",
            extra={"game_id": game_id, "action": action},
        )
        raise StorageTimeout(game_id, {"action": action}) from e
    except Exception:
        db.rollback()
        logger.error(
            f"Unexpected failure during {action} on game {game_id}",
            exc_info=True,
            extra={"game_id": game_id, "action": action},
        )
        raise
