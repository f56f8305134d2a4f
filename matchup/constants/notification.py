# matchup/constants/notification.py


class NotificationType:
    """In-app notification categories shown in the notification center."""
    GAME_UPDATE = "game_update"
    RSVP_UPDATE = "rsvp_update"


class RealtimeEvent:
    """Event names published on a game's realtime channel."""
    PLAYER_JOINED = "player-joined"
    PLAYER_LEFT = "player-left"
    PLAYER_PROMOTED = "player-promoted"
    GAME_UPDATED = "game-updated"
