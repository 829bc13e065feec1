"""Free-mode Americano: players rotate partners and opponents every round.

Each round is built greedily, one match at a time. A group of four is picked
from the players still free this round, then the group is split into two
sides. Both steps minimise a penalty score; the penalty weights encode the
priority order: repeated partners, then repeated opponents, then court
position and play-count balance.
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Sequence, Set, Tuple

from americano.exceptions import ConfigurationError
from americano.models import MIN_PLAYERS, Match, Player, Position
from log_utils import setup_logger

logger = setup_logger(__name__)

CANDIDATE_POOL_SIZE = 8

MATCH_COUNT_WEIGHT = 5
GROUP_OPPONENT_PENALTY = 100

PARTNER_REPEAT_PENALTY = 10000
OPPONENT_REPEAT_PENALTY = 1000

Split = Tuple[Player, Player, Player, Player]


@dataclass
class SchedulingState:
    """Bookkeeping for a single generation call, keyed by player id."""

    partners: Dict[int, Set[int]] = field(default_factory=dict)
    opponents: Dict[int, Set[int]] = field(default_factory=dict)
    match_count: Dict[int, int] = field(default_factory=dict)
    next_match_number: int = 1

    @classmethod
    def for_players(cls, players: Sequence[Player]) -> "SchedulingState":
        return cls(
            partners={p.id: set() for p in players},
            opponents={p.id: set() for p in players},
            match_count={p.id: 0 for p in players},
        )

    def have_partnered(self, a: Player, b: Player) -> bool:
        return b.id in self.partners.get(a.id, ())

    def have_faced(self, a: Player, b: Player) -> bool:
        return b.id in self.opponents.get(a.id, ())

    def record(self, side1: Tuple[Player, Player], side2: Tuple[Player, Player]) -> None:
        for a, b in (side1, side2):
            self.partners.setdefault(a.id, set()).add(b.id)
            self.partners.setdefault(b.id, set()).add(a.id)
        for a in side1:
            for b in side2:
                self.opponents.setdefault(a.id, set()).add(b.id)
                self.opponents.setdefault(b.id, set()).add(a.id)
        for p in (*side1, *side2):
            self.match_count[p.id] = self.match_count.get(p.id, 0) + 1


def position_balance_penalty(group: Sequence[Player]) -> int:
    positions = [p.position for p in group]
    right = positions.count(Position.RIGHT)
    left = positions.count(Position.LEFT)
    either = positions.count(Position.EITHER)

    if right == 4 or left == 4:
        return 100
    if right == 3 or left == 3:
        return 50
    if right == 2 and left == 2:
        return 0
    if either >= 2:
        return 5
    return 20


def group_score(group: Sequence[Player], state: SchedulingState) -> int:
    score = position_balance_penalty(group)

    counts = [state.match_count.get(p.id, 0) for p in group]
    score += (max(counts) - min(counts)) * MATCH_COUNT_WEIGHT

    repeats = sum(1 for a, b in combinations(group, 2) if state.have_faced(a, b))
    score += repeats * GROUP_OPPONENT_PENALTY
    return score


def select_group(available: Sequence[Player], state: SchedulingState) -> List[Player]:
    """Pick the four players for the next match of the round.

    Only the players with the fewest matches so far are considered; every
    4-subset of that pool is scored and the first lowest one wins.
    """
    by_count = sorted(available, key=lambda p: state.match_count.get(p.id, 0))
    if len(by_count) <= 4:
        return by_count

    candidates = by_count[:CANDIDATE_POOL_SIZE]
    best_group = list(candidates[:4])
    best_score = group_score(best_group, state)
    for group in combinations(candidates, 4):
        score = group_score(group, state)
        if score < best_score:
            best_score = score
            best_group = list(group)
    logger.debug(
        "Selected group %s with score %d",
        [p.name for p in best_group], best_score,
    )
    return best_group


def pair_position_cost(a: Player, b: Player) -> int:
    if {a.position, b.position} == {Position.RIGHT, Position.LEFT}:
        return 0
    if a.position == Position.EITHER and b.position == Position.EITHER:
        return 3
    if Position.EITHER in (a.position, b.position):
        return 5
    return 100


def split_score(split: Split, state: SchedulingState) -> int:
    p1, p2, p3, p4 = split
    score = 0
    if state.have_partnered(p1, p2):
        score += PARTNER_REPEAT_PENALTY
    if state.have_partnered(p3, p4):
        score += PARTNER_REPEAT_PENALTY

    repeats = sum(1 for a in (p1, p2) for b in (p3, p4) if state.have_faced(a, b))
    score += repeats * OPPONENT_REPEAT_PENALTY

    score += pair_position_cost(p1, p2) + pair_position_cost(p3, p4)
    return score


def candidate_splits(group: Sequence[Player]) -> List[Split]:
    p1, p2, p3, p4 = group
    return [
        (p1, p2, p3, p4),
        (p1, p3, p2, p4),
        (p1, p4, p2, p3),
    ]


def best_split(group: Sequence[Player], state: SchedulingState) -> Split:
    """Split four players into two sides, first lowest score wins."""
    splits = candidate_splits(group)
    best = splits[0]
    lowest = split_score(best, state)
    for split in splits[1:]:
        score = split_score(split, state)
        if score < lowest:
            lowest = score
            best = split
    return best


def generate_round(
    players: Sequence[Player], round_number: int, state: SchedulingState
) -> List[Match]:
    available = list(players)
    matches = []
    for _ in range(len(players) // 4):
        group = select_group(available, state)
        chosen = {p.id for p in group}
        available = [p for p in available if p.id not in chosen]

        p1, p2, p3, p4 = best_split(group, state)
        side1, side2 = (p1, p2), (p3, p4)
        state.record(side1, side2)

        matches.append(Match(
            number=state.next_match_number,
            round=round_number,
            side1=side1,
            side2=side2,
        ))
        state.next_match_number += 1
    return matches


def generate_free_rounds(players: Sequence[Player], num_rounds: int) -> List[Match]:
    """Generate every round of a free-mode tournament."""
    if len(players) < MIN_PLAYERS:
        raise ConfigurationError(f"There must be at least {MIN_PLAYERS} players")
    if len(players) % 4 != 0:
        raise ConfigurationError("The number of players must be a multiple of 4")
    if num_rounds < 1:
        raise ConfigurationError("There must be at least 1 round")

    state = SchedulingState.for_players(players)
    matches: List[Match] = []
    for round_num in range(num_rounds):
        matches.extend(generate_round(players, round_num + 1, state))
    return matches
