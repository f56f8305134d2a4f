# matchup/crud/__init__.py

from .crud_game import game
from .crud_rsvp import rsvp
from .crud_user import user
from .crud_venue import venue
from .crud_notification import notification
