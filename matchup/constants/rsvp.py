# matchup/constants/rsvp.py
"""
Constants for game RSVP status values.

Provides type-safe constants to replace hardcoded strings throughout the codebase.
"""


class RsvpStatus:
    """Game RSVP status values."""
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"

    @classmethod
    def active_values(cls) -> list[str]:
        """Statuses that hold a place in the game (roster or waitlist)."""
        return [cls.CONFIRMED, cls.WAITLISTED]
