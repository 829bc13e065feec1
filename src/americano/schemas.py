from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from americano.models import PairingMode, Position


class PlayerIn(BaseModel):
    name: str
    position: Position = Position.EITHER
    pair_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class CreateTournamentIn(BaseModel):
    number_of_rounds: int = Field(ge=1)
    mode: PairingMode = PairingMode.FREE
    players: List[PlayerIn]


class ScoreIn(BaseModel):
    match_number: int
    score1: int = Field(ge=0)
    score2: int = Field(ge=0)


class ClearScoreIn(BaseModel):
    match_number: int
