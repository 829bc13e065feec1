import json
from collections import Counter

import pytest

from americano.exceptions import (
    ConfigurationError,
    DataInconsistencyError,
    InvalidScoreError,
    MatchNotFoundError,
)
from americano.functions import (
    calculate_standings,
    clear_score,
    dump_snapshot,
    generate_americano_rounds,
    generate_summary,
    group_by_round,
    load_snapshot,
    share_url,
    update_score,
)
from americano.models import Match, PairingMode, Player, Position
from conftest import make_config, make_pair_players, make_players


def make_match(number, round_number, players, score1=None, score2=None):
    p1, p2, p3, p4 = players
    return Match(
        number=number, round=round_number, side1=(p1, p2), side2=(p3, p4),
        score1=score1, score2=score2,
    )


@pytest.fixture
def scored_round(eight_players):
    p = eight_players
    return [
        make_match(1, 1, p[0:4], 6, 4),
        make_match(2, 1, p[4:8], 4, 6),
    ]


# ── Generation and validation ───────────────────────────────────────────────


def test_generate_free_mode(eight_players):
    matches = generate_americano_rounds(make_config(eight_players, 3))
    assert len(matches) == 6


def test_generate_fixed_pairs_mode():
    config = make_config(make_pair_players(4), 2, mode=PairingMode.FIXED_PAIRS)
    matches = generate_americano_rounds(config)

    assert len(matches) == 4
    assert Counter(m.round for m in matches) == {1: 2, 2: 2}


def test_generate_fixed_pairs_combines_free_players():
    players = make_players(8, pair_ids=[1, 1, 2, 2, None, None, None, None])
    config = make_config(players, 1, mode=PairingMode.FIXED_PAIRS)
    matches = generate_americano_rounds(config)

    sides = {frozenset(p.id for p in side) for m in matches for side in (m.side1, m.side2)}
    assert sides == {frozenset({1, 2}), frozenset({3, 4}), frozenset({5, 6}), frozenset({7, 8})}


@pytest.mark.parametrize(
    "count, rounds, message",
    [
        (4, 1, "at least 8"),
        (10, 1, "multiple of 4"),
        (8, 0, "at least 1 round"),
    ],
)
def test_generate_rejects_bad_counts(count, rounds, message):
    with pytest.raises(ConfigurationError, match=message):
        generate_americano_rounds(make_config(make_players(count), rounds))


def test_validation_reports_every_problem():
    players = make_players(6)
    config = make_config(players, 0)

    with pytest.raises(ConfigurationError) as exc_info:
        generate_americano_rounds(config)
    assert len(exc_info.value.errors) == 3


def test_declared_player_count_must_match_roster(eight_players):
    config = make_config(eight_players, 1)
    config.number_of_players = 12
    with pytest.raises(ConfigurationError, match="declared"):
        generate_americano_rounds(config)


def test_names_must_be_unique_ignoring_case(eight_players):
    eight_players[1] = Player(id=2, name="  player 1 ")
    with pytest.raises(ConfigurationError, match="unique"):
        generate_americano_rounds(make_config(eight_players, 1))


def test_player_ids_must_be_unique():
    players = make_players(8, [Position.RIGHT, Position.LEFT] * 4)
    players[7] = Player(id=1, name="Player 8", position=Position.LEFT)

    with pytest.raises(ConfigurationError, match="ids must be unique"):
        generate_americano_rounds(make_config(players, 2))


def test_names_must_not_be_blank(eight_players):
    eight_players[3] = Player(id=4, name="   ")
    with pytest.raises(ConfigurationError, match="name"):
        generate_americano_rounds(make_config(eight_players, 1))


def test_fixed_pairs_need_two_members_each():
    players = make_players(8, pair_ids=[1, 1, 1, 2, 3, 3, 4, 4])
    config = make_config(players, 1, mode=PairingMode.FIXED_PAIRS)
    with pytest.raises(ConfigurationError, match="exactly two"):
        generate_americano_rounds(config)


# ── Scores ───────────────────────────────────────────────────────────────────


def test_update_score_is_idempotent(scored_round):
    update_score(scored_round, 1, 3, 6)
    once = [m.to_dict() for m in scored_round]
    update_score(scored_round, 1, 3, 6)

    assert [m.to_dict() for m in scored_round] == once
    assert (scored_round[0].score1, scored_round[0].score2) == (3, 6)
    assert (scored_round[1].score1, scored_round[1].score2) == (4, 6)


def test_update_score_unknown_match(scored_round):
    with pytest.raises(MatchNotFoundError):
        update_score(scored_round, 99, 1, 2)


def test_update_score_rejects_negative(scored_round):
    with pytest.raises(InvalidScoreError):
        update_score(scored_round, 1, -1, 2)
    assert scored_round[0].score1 == 6


def test_clear_score_unsets_both(scored_round):
    match = clear_score(scored_round, 2)
    assert match.score1 is None and match.score2 is None
    assert not match.has_score


# ── Standings ────────────────────────────────────────────────────────────────


def test_standings_without_scores(eight_players):
    matches = generate_americano_rounds(make_config(eight_players, 2))
    standings = calculate_standings(matches, eight_players)

    assert len(standings) == 8
    for s in standings:
        assert (s.matches_played, s.matches_won, s.points_for, s.points_against) == (0, 0, 0, 0)
    assert [s.player.id for s in standings] == [p.id for p in eight_players]


def test_standings_rank_winners_first(scored_round, eight_players):
    standings = calculate_standings(scored_round, eight_players)

    assert [s.player.id for s in standings[:4]] == [1, 2, 7, 8]
    assert all(s.matches_won == 1 and s.difference == 2 for s in standings[:4])
    assert all(s.matches_won == 0 and s.difference == -2 for s in standings[4:])


def test_standings_points_balance_per_match(scored_round, eight_players):
    for match in scored_round:
        standings = {s.player.id: s for s in calculate_standings([match], eight_players)}
        side1_for = sum(standings[p.id].points_for for p in match.side1)
        side2_against = sum(standings[p.id].points_against for p in match.side2)
        assert side1_for == side2_against


def test_tie_counts_points_but_no_win(eight_players):
    match = make_match(1, 1, eight_players[:4], 5, 5)
    standings = calculate_standings([match], eight_players)

    played = [s for s in standings if s.matches_played]
    assert len(played) == 4
    assert all(s.matches_won == 0 and s.points_for == 5 and s.difference == 0 for s in played)


def test_unscored_matches_are_ignored(eight_players):
    matches = [
        make_match(1, 1, eight_players[:4], 6, 2),
        make_match(2, 1, eight_players[4:]),
    ]
    standings = {s.player.id: s for s in calculate_standings(matches, eight_players)}
    assert standings[5].matches_played == 0
    assert standings[1].points_for == 6


def test_standings_unknown_player(eight_players):
    stranger = Player(id=42, name="Stranger")
    match = make_match(1, 1, [stranger, *eight_players[1:4]], 6, 1)
    with pytest.raises(DataInconsistencyError):
        calculate_standings([match], eight_players)


# ── Summary and sharing ──────────────────────────────────────────────────────


def test_group_by_round_sorts_rounds_and_matches(eight_players):
    p = eight_players
    matches = [make_match(3, 2, p[:4]), make_match(2, 1, p[4:]), make_match(1, 1, p[:4])]
    grouped = group_by_round(matches)

    assert [r for r, _ in grouped] == [1, 2]
    assert [m.number for m in grouped[0][1]] == [1, 2]


def test_generate_summary_layout(eight_players):
    p = eight_players
    matches = [
        make_match(1, 1, p[0:4], 6, 4),
        make_match(2, 1, p[4:8]),
        make_match(3, 2, [p[0], p[4], p[1], p[5]]),
    ]

    assert generate_summary(matches) == (
        "🏓 PADEL AMERICANO 🏓\n"
        "\n"
        "━━━ ROUND 1 ━━━\n"
        "(2 simultaneous match(es))\n"
        "\n"
        "Match 1: [Player 1, Player 2] vs [Player 3, Player 4] - 6:4\n"
        "Match 2: [Player 5, Player 6] vs [Player 7, Player 8]\n"
        "\n"
        "━━━ ROUND 2 ━━━\n"
        "(1 simultaneous match(es))\n"
        "\n"
        "Match 3: [Player 1, Player 5] vs [Player 2, Player 6]\n"
        "\n"
    )


def test_share_url_encodes_like_a_uri_component():
    url = share_url("Match 1: [A, B] (ok)\n")
    assert url == "https://wa.me/?text=Match%201%3A%20%5BA%2C%20B%5D%20(ok)%0A"


# ── Snapshot ─────────────────────────────────────────────────────────────────


def test_snapshot_round_trips_through_json():
    players = make_players(8, [Position.RIGHT, Position.LEFT] * 4)
    config = make_config(players, 2)
    matches = generate_americano_rounds(config)
    update_score(matches, 2, 7, 5)

    doc = json.loads(json.dumps(dump_snapshot(config, matches)))
    assert set(doc) == {"config", "matches"}

    restored_config, restored_matches = load_snapshot(doc)
    assert restored_config == config
    assert restored_matches == matches
    assert restored_matches[1].score1 == 7
