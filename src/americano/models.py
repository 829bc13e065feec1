from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from americano.exceptions import ConfigurationError

MIN_PLAYERS = 8


class Position(str, Enum):
    """Court side a player prefers."""

    RIGHT = "right"
    LEFT = "left"
    EITHER = "either"


class PairingMode(str, Enum):
    FREE = "free"
    FIXED_PAIRS = "fixed-pairs"


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    position: Position = Position.EITHER
    pair_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.value,
            "pair_id": self.pair_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=data["id"],
            name=data["name"],
            position=Position(data.get("position", Position.EITHER.value)),
            pair_id=data.get("pair_id"),
        )


@dataclass(frozen=True)
class Pair:
    id: int
    player1: Player
    player2: Player

    @property
    def members(self) -> Tuple[Player, Player]:
        return (self.player1, self.player2)


Side = Tuple[Player, Player]


@dataclass
class Match:
    """A generated fixture.

    Sides are fixed at creation, only the scores change afterwards and
    always together (both set or both unset).
    """

    number: int
    round: int
    side1: Side
    side2: Side
    score1: Optional[int] = None
    score2: Optional[int] = None

    @property
    def has_score(self) -> bool:
        return self.score1 is not None and self.score2 is not None

    @property
    def players(self) -> List[Player]:
        return [*self.side1, *self.side2]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "round": self.round,
            "side1": [p.to_dict() for p in self.side1],
            "side2": [p.to_dict() for p in self.side2],
            "score1": self.score1,
            "score2": self.score2,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        side1 = tuple(Player.from_dict(p) for p in data["side1"])
        side2 = tuple(Player.from_dict(p) for p in data["side2"])
        return cls(
            number=data["number"],
            round=data["round"],
            side1=side1,
            side2=side2,
            score1=data.get("score1"),
            score2=data.get("score2"),
        )


@dataclass
class TournamentConfig:
    number_of_players: int
    number_of_rounds: int
    mode: PairingMode = PairingMode.FREE
    players: List[Player] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ConfigurationError listing every problem with this config."""
        errors = []
        count = len(self.players)

        if count != self.number_of_players:
            errors.append(
                f"Roster has {count} players but {self.number_of_players} were declared"
            )
        if count < MIN_PLAYERS:
            errors.append(f"There must be at least {MIN_PLAYERS} players")
        if count % 4 != 0:
            errors.append("The number of players must be a multiple of 4")
        if self.number_of_rounds < 1:
            errors.append("There must be at least 1 round")
        if len({p.id for p in self.players}) != count:
            errors.append("Player ids must be unique")

        names = [p.name.strip() for p in self.players]
        if any(not n for n in names):
            errors.append("Every player must have a name")
        if len({n.lower() for n in names}) != len(names):
            errors.append("Player names must be unique")

        if self.mode == PairingMode.FIXED_PAIRS:
            members: Dict[int, int] = {}
            for p in self.players:
                if p.pair_id is not None:
                    members[p.pair_id] = members.get(p.pair_id, 0) + 1
            for pair_id, size in members.items():
                if size != 2:
                    errors.append(f"Pair {pair_id} must have exactly two players")

        if errors:
            raise ConfigurationError(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number_of_players": self.number_of_players,
            "number_of_rounds": self.number_of_rounds,
            "mode": self.mode.value,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentConfig":
        return cls(
            number_of_players=data["number_of_players"],
            number_of_rounds=data["number_of_rounds"],
            mode=PairingMode(data["mode"]),
            players=[Player.from_dict(p) for p in data["players"]],
        )


@dataclass
class PlayerStats:
    player: Player
    matches_played: int = 0
    matches_won: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def difference(self) -> int:
        return self.points_for - self.points_against

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "matches_played": self.matches_played,
            "matches_won": self.matches_won,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "difference": self.difference,
        }
