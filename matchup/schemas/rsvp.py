# matchup/schemas/rsvp.py
from pydantic import BaseModel

from matchup.schemas.game import RsvpStatusName


class JoinGameResponse(BaseModel):
    status: RsvpStatusName
    message: str


class LeaveGameResponse(BaseModel):
    success: bool = True
    message: str
