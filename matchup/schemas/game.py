# matchup/schemas/game.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from matchup.schemas.base import CamelModel, Pagination

SportName = Literal["football", "cricket", "basketball", "volleyball", "badminton"]
SkillLevelName = Literal["beginner", "intermediate", "advanced", "any"]
GameStatusName = Literal["upcoming", "in_progress", "completed", "cancelled"]
RsvpStatusName = Literal["confirmed", "waitlisted", "cancelled"]


class GameCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=100, json_schema_extra={"example": "Sunday 5-a-side"})
    sport: SportName
    venue_id: Optional[str] = None
    custom_location: Optional[str] = Field(default=None, max_length=200)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    date_time: datetime
    duration: int = Field(..., ge=30, le=480)  # minutes
    max_players: int = Field(..., ge=2, le=50)
    min_players: int = Field(default=2, ge=2, le=50)
    skill_level: SkillLevelName
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[int] = Field(default=None, ge=0, le=10000)

    @model_validator(mode="after")
    def check_player_limits(self):
        if self.min_players > self.max_players:
            raise ValueError("Min players cannot exceed max players")
        return self


class GameUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=100)
    venue_id: Optional[str] = None
    custom_location: Optional[str] = Field(default=None, max_length=200)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    date_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=30, le=480)
    max_players: Optional[int] = Field(default=None, ge=2, le=50)
    min_players: Optional[int] = Field(default=None, ge=2, le=50)
    skill_level: Optional[SkillLevelName] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[int] = Field(default=None, ge=0, le=10000)
    status: Optional[GameStatusName] = None

    @model_validator(mode="after")
    def check_player_limits(self):
        if (
            self.min_players is not None
            and self.max_players is not None
            and self.min_players > self.max_players
        ):
            raise ValueError("Min players cannot exceed max players")
        return self


class Game(CamelModel):
    id: str
    title: str
    sport: str
    host_id: str
    venue_id: Optional[str] = None
    custom_location: Optional[str] = None
    latitude: float
    longitude: float
    date_time: datetime
    duration: int
    max_players: int
    min_players: int
    skill_level: str
    description: Optional[str] = None
    price: Optional[int] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PlayerProfile(CamelModel):
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class GameSummary(Game):
    current_players: int = 0


class JoinedGame(GameSummary):
    my_status: RsvpStatusName


class GameDetail(GameSummary):
    waitlist_count: int = 0
    confirmed_players: List[PlayerProfile] = []
    waitlisted_players: List[PlayerProfile] = []
    user_rsvp_status: Optional[RsvpStatusName] = None
    is_host: bool = False


class GamePage(CamelModel):
    data: List[GameSummary]
    pagination: Pagination
