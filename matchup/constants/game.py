# matchup/constants/game.py
"""
Constants for games: the status state machine and user roles.
"""


class GameStatus:
    """Game status values and the transitions allowed between them."""
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    # Forward-only progression; cancellation is terminal and reachable
    # from every non-terminal state.
    TRANSITIONS = {
        UPCOMING: {IN_PROGRESS, COMPLETED, CANCELLED},
        IN_PROGRESS: {COMPLETED, CANCELLED},
        COMPLETED: set(),
        CANCELLED: set(),
    }

    @classmethod
    def can_transition(cls, current: str, new: str) -> bool:
        """Setting the current status again is always allowed (no-op)."""
        if current == new:
            return True
        return new in cls.TRANSITIONS.get(current, set())


class UserRole:
    USER = "user"
    ADMIN = "admin"
