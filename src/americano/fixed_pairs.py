from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from americano.exceptions import ConfigurationError
from americano.models import Match, Pair, Player
from log_utils import setup_logger

logger = setup_logger(__name__)


def build_pairs(players: Sequence[Player]) -> List[Pair]:
    """Group players into pairs.

    Declared pairs come first, in the order their id is first seen. Players
    without a pair id are then paired two at a time in input order.
    """
    declared: Dict[int, List[Player]] = {}
    free_players = []
    for p in players:
        if p.pair_id is not None:
            declared.setdefault(p.pair_id, []).append(p)
        else:
            free_players.append(p)

    pairs = []
    for pair_id, members in declared.items():
        if len(members) != 2:
            raise ConfigurationError(f"Pair {pair_id} must have exactly two players")
        pairs.append(Pair(id=pair_id, player1=members[0], player2=members[1]))

    next_id = max(declared, default=0) + 1
    for i in range(0, len(free_players) - 1, 2):
        pairs.append(Pair(id=next_id, player1=free_players[i], player2=free_players[i + 1]))
        next_id += 1

    if len(free_players) % 2:
        logger.warning("Player %s has no partner and sits out", free_players[-1].name)
    return pairs


@dataclass
class MatchupState:
    """Which pairs have already met, keyed by index into the pair list."""

    matchups: Dict[int, Set[int]] = field(default_factory=dict)
    next_match_number: int = 1

    @classmethod
    def for_pairs(cls, pair_count: int) -> "MatchupState":
        return cls(matchups={i: set() for i in range(pair_count)})

    def have_met(self, a: int, b: int) -> bool:
        return b in self.matchups[a]

    def total(self, a: int) -> int:
        return len(self.matchups[a])

    def record(self, a: int, b: int) -> None:
        self.matchups[a].add(b)
        self.matchups[b].add(a)


def pick_matchup(available: Sequence[int], state: MatchupState) -> Optional[Tuple[int, int]]:
    """Pick the next two pairs to face each other.

    Prefers pairs that have never met, with the fewest prior matchups
    between them. When every remaining combination has already been played
    the first two remaining pairs are used.
    """
    best = None
    fewest = None
    for i, a in enumerate(available):
        for b in available[i + 1:]:
            if state.have_met(a, b):
                continue
            total = state.total(a) + state.total(b)
            if fewest is None or total < fewest:
                fewest = total
                best = (a, b)

    if best is None and len(available) >= 2:
        best = (available[0], available[1])
    return best


def generate_fixed_rounds(players: Sequence[Player], num_rounds: int) -> List[Match]:
    pairs = build_pairs(players)
    if len(pairs) < 2:
        raise ConfigurationError("Not enough pairs to generate matches")
    if len(pairs) % 2 != 0:
        raise ConfigurationError("The number of pairs must be even to fill every round")

    state = MatchupState.for_pairs(len(pairs))
    matches: List[Match] = []
    for round_num in range(num_rounds):
        available = list(range(len(pairs)))
        for _ in range(len(pairs) // 2):
            chosen = pick_matchup(available, state)
            if chosen is None:
                break
            a, b = chosen
            state.record(a, b)
            available.remove(a)
            available.remove(b)

            matches.append(Match(
                number=state.next_match_number,
                round=round_num + 1,
                side1=pairs[a].members,
                side2=pairs[b].members,
            ))
            state.next_match_number += 1
    return matches
