"""
Records shared by every bracket: players, scores, table info and matches.
"""
from typing import Optional

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_COMPLETED = 'completed'
STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED)

BRACKET_WINNERS = 'winners'
BRACKET_LOSERS_A = 'losers_a'
BRACKET_LOSERS_B = 'losers_b'
BRACKET_SEMIFINAL = 'semifinal'
BRACKET_FINAL = 'final'
BRACKETS = (BRACKET_WINNERS, BRACKET_LOSERS_A, BRACKET_LOSERS_B, BRACKET_SEMIFINAL, BRACKET_FINAL)


class Player:
    def __init__(self, id, name, rank='', avatar=''):
        if not id or not isinstance(id, str):
            raise ValueError(f"Player id must be a non-empty string, got {id!r}")
        if not name or not isinstance(name, str):
            raise ValueError(f"Player name must be a non-empty string, got {name!r}")
        self.id = id
        self.name = name
        self.rank = rank or ''
        self.avatar = avatar or ''

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return (self.id, self.name, self.rank, self.avatar) == (other.id, other.name, other.rank, other.avatar)

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, rank={self.rank})"

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'rank': self.rank, 'avatar': self.avatar}

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        return cls(str(data.get('id', '')), data.get('name'), data.get('rank', ''), data.get('avatar', ''))


class Score:
    def __init__(self, player1, player2):
        for value in (player1, player2):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Scores must be non-negative integers, got {value!r}")
        self.player1 = player1
        self.player2 = player2

    def is_tied(self) -> bool:
        return self.player1 == self.player2

    def leader(self) -> Optional[int]:
        """Return 1 or 2 for the slot ahead on points, None on a tie."""
        if self.player1 > self.player2:
            return 1
        if self.player2 > self.player1:
            return 2
        return None

    def __eq__(self, other):
        if not isinstance(other, Score):
            return NotImplemented
        return (self.player1, self.player2) == (other.player1, other.player2)

    def __repr__(self):
        return f"Score({self.player1}-{self.player2})"

    def to_dict(self) -> dict:
        return {'player1': self.player1, 'player2': self.player2}

    @classmethod
    def from_dict(cls, data: dict) -> 'Score':
        return cls(data.get('player1'), data.get('player2'))


class GameInfo:
    """Table and handicap details shown on a match card."""

    def __init__(self, table='', handicap='', race_to=7):
        if isinstance(race_to, bool) or not isinstance(race_to, int) or race_to < 1:
            raise ValueError(f"race_to must be a positive integer, got {race_to!r}")
        self.table = table
        self.handicap = handicap
        self.race_to = race_to

    def with_table(self, table) -> 'GameInfo':
        return GameInfo(table, self.handicap, self.race_to)

    def __eq__(self, other):
        if not isinstance(other, GameInfo):
            return NotImplemented
        return (self.table, self.handicap, self.race_to) == (other.table, other.handicap, other.race_to)

    def __repr__(self):
        return f"GameInfo(table={self.table}, handicap={self.handicap}, race_to={self.race_to})"

    def to_dict(self) -> dict:
        return {'table': self.table, 'handicap': self.handicap, 'race_to': self.race_to}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'GameInfo':
        data = data or {}
        return cls(data.get('table', ''), data.get('handicap', ''), data.get('race_to', 7))


class Match:
    """
    One node of a bracket.

    `bracket`, `round` and `position` locate the match structurally;
    `label` is derived from them for display only. `next_match_id` and
    `next_slot` describe the edge to the successor match (slot 1 or 2).
    """

    def __init__(self, id, bracket, round, position=0, player1=None, player2=None, score=None,
                 game_info=None, status=STATUS_PENDING, next_match_id=None, next_slot=None):
        if not id or not isinstance(id, str):
            raise ValueError(f"Match id must be a non-empty string, got {id!r}")
        if bracket not in BRACKETS:
            raise ValueError(f"Unknown bracket '{bracket}' for match {id}")
        if status not in STATUSES:
            raise ValueError(f"Unknown status '{status}' for match {id}")
        if round < 1 or position < 0:
            raise ValueError(f"Invalid round/position ({round}, {position}) for match {id}")
        if next_slot not in (None, 1, 2):
            raise ValueError(f"next_slot must be 1, 2 or None for match {id}")
        if next_slot is not None and next_match_id is None:
            raise ValueError(f"Match {id} has a next_slot but no next_match_id")
        if status == STATUS_COMPLETED and score is None:
            raise ValueError(f"Completed match {id} must have a score")
        self.id = id
        self.bracket = bracket
        self.round = round
        self.position = position
        self.player1 = player1
        self.player2 = player2
        self.score = score
        self.game_info = game_info if game_info is not None else GameInfo()
        self.status = status
        self.next_match_id = next_match_id
        self.next_slot = next_slot

    @property
    def label(self) -> str:
        if self.bracket == BRACKET_WINNERS:
            return f"WINNER ROUND {self.round}{self.position + 1:02d}"
        if self.bracket == BRACKET_LOSERS_A:
            return f"LOSERS A ROUND {self.round}"
        if self.bracket == BRACKET_LOSERS_B:
            return f"LOSERS B ROUND {self.round}"
        if self.bracket == BRACKET_SEMIFINAL:
            return f"SEMI FINAL ROUND {self.position + 1}"
        return "FINAL"

    def get_slot(self, slot: int) -> Optional[Player]:
        return self.player1 if slot == 1 else self.player2

    def set_slot(self, slot: int, player: Optional[Player]):
        if slot == 1:
            self.player1 = player
        else:
            self.player2 = player

    def has_player(self, player_id: str) -> bool:
        return any(p is not None and p.id == player_id for p in (self.player1, self.player2))

    def is_ready(self) -> bool:
        """Both slots are filled and no result has been recorded."""
        return self.player1 is not None and self.player2 is not None and self.status != STATUS_COMPLETED

    def is_resolved(self) -> bool:
        """Completed with a non-tied score."""
        return (self.status == STATUS_COMPLETED and self.score is not None
                and not self.score.is_tied())

    def winner(self) -> Optional[Player]:
        if not self.is_resolved():
            return None
        return self.get_slot(self.score.leader())

    def loser(self) -> Optional[Player]:
        if not self.is_resolved():
            return None
        return self.get_slot(3 - self.score.leader())

    def copy(self) -> 'Match':
        # Players, scores and game info are never mutated, so sharing them is safe.
        return Match(self.id, self.bracket, self.round, self.position, self.player1, self.player2,
                     self.score, self.game_info, self.status, self.next_match_id, self.next_slot)

    def __repr__(self):
        p1 = self.player1.name if self.player1 else None
        p2 = self.player2.name if self.player2 else None
        return f"Match(id={self.id}, {p1} vs {p2}, score={self.score}, status={self.status})"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'bracket': self.bracket,
            'round': self.round,
            'position': self.position,
            'player1': self.player1.to_dict() if self.player1 else None,
            'player2': self.player2.to_dict() if self.player2 else None,
            'score': self.score.to_dict() if self.score else None,
            'game_info': self.game_info.to_dict(),
            'status': self.status,
            'next_match_id': self.next_match_id,
            'next_slot': self.next_slot,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Match':
        # 'label' is derived and ignored on load
        player1 = data.get('player1')
        player2 = data.get('player2')
        score = data.get('score')
        return cls(
            id=data.get('id'),
            bracket=data.get('bracket'),
            round=data.get('round', 1),
            position=data.get('position', 0),
            player1=Player.from_dict(player1) if player1 else None,
            player2=Player.from_dict(player2) if player2 else None,
            score=Score.from_dict(score) if score else None,
            game_info=GameInfo.from_dict(data.get('game_info')),
            status=data.get('status', STATUS_PENDING),
            next_match_id=data.get('next_match_id'),
            next_slot=data.get('next_slot'),
        )
