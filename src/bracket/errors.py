"""
Exceptions raised by bracket construction and by the tournament layer.

Engine functions (advancement, population, readiness, results) never raise
over well-formed match lists; these are for construction-time problems and
for caller-level validation.
"""


class BracketError(Exception):
    """Base class for bracket errors."""


class InvalidBracketSizeError(BracketError):
    """Entrant count is not a supported bracket size."""

    def __init__(self, size, minimum=2):
        self.size = size
        self.minimum = minimum
        super().__init__(f"Bracket size must be a power of two >= {minimum}, got {size}")


class DuplicatePlayerError(BracketError):
    """The same player id was seeded more than once."""

    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player '{player_id}' appears more than once")


class DanglingReferenceError(BracketError):
    """A next_match_id points at a match that is not part of the bracket."""

    def __init__(self, match_id, next_match_id):
        self.match_id = match_id
        self.next_match_id = next_match_id
        super().__init__(f"Match '{match_id}' feeds unknown match '{next_match_id}'")


class UnresolvedScoreError(BracketError):
    """A winner was required but the score is missing or tied."""

    def __init__(self, match_id, score=None):
        self.match_id = match_id
        self.score = score
        super().__init__(f"Cannot determine a winner for match '{match_id}' (score: {score})")


class UnknownMatchError(BracketError):
    """A match id is not present in the tournament."""

    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Unknown match '{match_id}'")
