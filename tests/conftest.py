import pytest

from americano.models import PairingMode, Player, Position, TournamentConfig


def make_players(count, positions=None, pair_ids=None):
    positions = positions or [Position.EITHER] * count
    pair_ids = pair_ids or [None] * count
    return [
        Player(id=i + 1, name=f"Player {i + 1}", position=positions[i], pair_id=pair_ids[i])
        for i in range(count)
    ]


def make_pair_players(pair_count):
    """Two players per declared pair, pair ids 1..pair_count."""
    pair_ids = [i // 2 + 1 for i in range(pair_count * 2)]
    return make_players(pair_count * 2, pair_ids=pair_ids)


def make_config(players, rounds, mode=PairingMode.FREE):
    return TournamentConfig(
        number_of_players=len(players),
        number_of_rounds=rounds,
        mode=mode,
        players=players,
    )


class FakeSession:
    """Minimal stand-in for AsyncSession backed by a dict."""

    def __init__(self, fail_commit=False):
        self.rows = {}
        self.pending = []
        self.fail_commit = fail_commit
        self.rollbacks = 0

    async def get(self, model, key):
        return self.rows.get(key)

    def add(self, obj):
        self.pending.append(obj)

    async def delete(self, obj):
        self.rows.pop(obj.id, None)

    async def commit(self):
        if self.fail_commit:
            from sqlalchemy.exc import OperationalError
            raise OperationalError("COMMIT", {}, Exception("database is down"))
        for obj in self.pending:
            self.rows[obj.id] = obj
        self.pending = []

    async def rollback(self):
        self.rollbacks += 1
        self.pending = []

    async def close(self):
        pass


@pytest.fixture
def eight_players():
    return make_players(8)
