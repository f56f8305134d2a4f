# matchup/schemas/token.py
from pydantic import BaseModel
from typing import Optional

from matchup.constants.game import UserRole


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    role: Optional[str] = UserRole.USER
    exp: int  # Standard claim for expiration time

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @property
    def user_id(self) -> str:
        return self.sub

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
