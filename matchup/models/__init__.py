# matchup/models/__init__.py
# Import all models to ensure SQLAlchemy can resolve relationships

from matchup.db.base_class import Base
from matchup.models.user import User
from matchup.models.venue import Venue
from matchup.models.game import Game
from matchup.models.rsvp import Rsvp
from matchup.models.notification import Notification
