"""Errors raised by the Americano scheduling core."""

from typing import Iterable, List, Union


class AmericanoError(Exception):
    """Base class for every error raised by the core."""

    pass


class ConfigurationError(AmericanoError):
    """Raised when a tournament cannot be generated from the given config.

    Carries every violation found, not only the first one.
    """

    def __init__(self, errors: Union[str, Iterable[str]]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


class MatchNotFoundError(AmericanoError):
    """Raised when a score is applied to a match number that does not exist."""

    def __init__(self, match_number: int):
        self.match_number = match_number
        super().__init__(f"Match {match_number} not found")


class InvalidScoreError(AmericanoError):
    pass


class DataInconsistencyError(AmericanoError):
    """A match references a player that is not in the roster."""

    pass
