from collections import defaultdict
from typing import Any, Dict, List, Sequence, Tuple
from urllib.parse import quote

from americano.exceptions import DataInconsistencyError, InvalidScoreError, MatchNotFoundError
from americano.fixed_pairs import generate_fixed_rounds
from americano.free_mode import generate_free_rounds
from americano.models import Match, PairingMode, Player, PlayerStats, TournamentConfig
from log_utils import setup_logger

logger = setup_logger(__name__)

SHARE_BASE_URL = "https://wa.me/?text="
# characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def generate_americano_rounds(config: TournamentConfig) -> List[Match]:
    """Validate the config and generate every match of the tournament."""
    config.validate()

    if config.mode == PairingMode.FIXED_PAIRS:
        matches = generate_fixed_rounds(config.players, config.number_of_rounds)
    else:
        matches = generate_free_rounds(config.players, config.number_of_rounds)

    logger.info(
        "Generated %d matches for %d players over %d rounds (%s)",
        len(matches), len(config.players), config.number_of_rounds, config.mode.value,
    )
    return matches


def _find_match(matches: Sequence[Match], match_number: int) -> Match:
    match = next((m for m in matches if m.number == match_number), None)
    if match is None:
        raise MatchNotFoundError(match_number)
    return match


def update_score(matches: Sequence[Match], match_number: int, score1: int, score2: int) -> Match:
    """Set both scores of one match. Re-applying the same scores changes nothing."""
    if score1 < 0 or score2 < 0:
        raise InvalidScoreError("Scores cannot be negative")

    match = _find_match(matches, match_number)
    match.score1 = score1
    match.score2 = score2
    logger.info("Match %d scored %d:%d", match_number, score1, score2)
    return match


def clear_score(matches: Sequence[Match], match_number: int) -> Match:
    match = _find_match(matches, match_number)
    match.score1 = None
    match.score2 = None
    return match


def _credit(stats: PlayerStats, score_for: int, score_against: int) -> None:
    stats.matches_played += 1
    stats.points_for += score_for
    stats.points_against += score_against
    if score_for > score_against:
        stats.matches_won += 1


def calculate_standings(matches: Sequence[Match], players: Sequence[Player]) -> List[PlayerStats]:
    """Recompute every player's stats from the scored matches.

    Unscored matches are ignored, a tie counts points but no win. Sorted by
    wins then points difference, roster order otherwise.
    """
    standings = {p.id: PlayerStats(player=p) for p in players}

    for match in matches:
        if not match.has_score:
            continue
        for side, score_for, score_against in (
            (match.side1, match.score1, match.score2),
            (match.side2, match.score2, match.score1),
        ):
            for p in side:
                if p.id not in standings:
                    raise DataInconsistencyError(
                        f"Match {match.number} references unknown player {p.id}"
                    )
                _credit(standings[p.id], score_for, score_against)

    return sorted(standings.values(), key=lambda s: (-s.matches_won, -s.difference))


def group_by_round(matches: Sequence[Match]) -> List[Tuple[int, List[Match]]]:
    rounds: Dict[int, List[Match]] = defaultdict(list)
    for match in matches:
        rounds[match.round].append(match)
    return [
        (round_number, sorted(rounds[round_number], key=lambda m: m.number))
        for round_number in sorted(rounds)
    ]


def generate_summary(matches: Sequence[Match]) -> str:
    """Render the fixtures as plain text for copy/paste or sharing."""
    summary = "🏓 PADEL AMERICANO 🏓\n\n"

    for round_number, round_matches in group_by_round(matches):
        summary += f"━━━ ROUND {round_number} ━━━\n"
        summary += f"({len(round_matches)} simultaneous match(es))\n\n"

        for match in round_matches:
            p1, p2 = match.side1
            p3, p4 = match.side2
            line = f"Match {match.number}: [{p1.name}, {p2.name}] vs [{p3.name}, {p4.name}]"
            if match.has_score:
                line += f" - {match.score1}:{match.score2}"
            summary += line + "\n"

        summary += "\n"

    return summary


def share_url(summary: str) -> str:
    return SHARE_BASE_URL + quote(summary, safe=_URI_COMPONENT_SAFE)


def dump_snapshot(config: TournamentConfig, matches: Sequence[Match]) -> Dict[str, Any]:
    """Both documents a caller needs to restore a tournament, JSON-ready."""
    return {
        "config": config.to_dict(),
        "matches": [m.to_dict() for m in matches],
    }


def load_snapshot(doc: Dict[str, Any]) -> Tuple[TournamentConfig, List[Match]]:
    config = TournamentConfig.from_dict(doc["config"])
    matches = [Match.from_dict(m) for m in doc.get("matches") or []]
    return config, matches
