"""
Losers bracket, semi-final stage and the cross-bracket bridges between them.

The tournament is played in three generated sets of matches:
- Winners Bracket: every entrant, single elimination
- Losers Bracket: Branch A takes the losers of Winners Round 1, Branch B
  the losers of Winners Round 2; each branch plays down to one champion
- Semi-Final stage: each Winners semifinal winner meets a branch
  champion (SF-M1 with Branch A, SF-M2 with Branch B), then the Final

Edges inside a set are ordinary next_match_id links. Moving a player
from one set into another is done by the populate_* functions, which
only ever fill empty slots from completed matches with a clear winner.
"""
from typing import Dict, List, Optional

from .elimination import build_ladder, get_last_round, get_round, is_power_of_two, validate_bracket
from .errors import InvalidBracketSizeError
from .models import (
    BRACKET_FINAL,
    BRACKET_LOSERS_A,
    BRACKET_LOSERS_B,
    BRACKET_SEMIFINAL,
    BRACKET_WINNERS,
    GameInfo,
    Match,
    Player,
)

MIN_DOUBLE_BRACKET_SIZE = 8
SEMI_FINAL_IDS = ('SF-M1', 'SF-M2')
FINAL_ID = 'F'


def generate_losers_bracket(bracket_size: int = 16, game_info: Optional[GameInfo] = None) -> List[Match]:
    """
    Generate both losers branches with empty slots.

    For a 16 player Winners Bracket:
    - Branch A: 8 Winners R1 losers -> 4 matches, 2 matches, branch final
    - Branch B: 4 Winners R2 losers -> 2 matches, branch final

    Branch finals have no next_match_id; their champions enter the
    semi-final stage through populate_semi_final_from_brackets.
    """
    if bracket_size < MIN_DOUBLE_BRACKET_SIZE or not is_power_of_two(bracket_size):
        raise InvalidBracketSizeError(bracket_size, MIN_DOUBLE_BRACKET_SIZE)
    game_info = game_info or GameInfo()

    branch_a = build_ladder(BRACKET_LOSERS_A, 'LA', bracket_size // 2, game_info)
    branch_b = build_ladder(BRACKET_LOSERS_B, 'LB', bracket_size // 4, game_info)
    branch_a[-1].game_info = game_info.with_table("Final A")
    branch_b[-1].game_info = game_info.with_table("Final B")

    matches = branch_a + branch_b
    validate_bracket(matches)
    return matches


def generate_semi_final_stage(game_info: Optional[GameInfo] = None) -> List[Match]:
    """Generate SF-M1 and SF-M2 feeding the Final (slot 1 and slot 2)."""
    game_info = game_info or GameInfo()
    matches = [
        Match(id=SEMI_FINAL_IDS[0], bracket=BRACKET_SEMIFINAL, round=1, position=0,
              game_info=game_info.with_table("Table 1"), next_match_id=FINAL_ID, next_slot=1),
        Match(id=SEMI_FINAL_IDS[1], bracket=BRACKET_SEMIFINAL, round=1, position=1,
              game_info=game_info.with_table("Table 2"), next_match_id=FINAL_ID, next_slot=2),
        Match(id=FINAL_ID, bracket=BRACKET_FINAL, round=1, position=0,
              game_info=game_info.with_table("Final")),
    ]
    validate_bracket(matches)
    return matches


def _fill_slot(match: Match, slot: int, player: Optional[Player]) -> bool:
    """Put a player into an empty slot. Filled slots are left alone."""
    if player is None or match.get_slot(slot) is not None:
        return False
    match.set_slot(slot, player)
    return True


def _drop_losers(sources: List[Match], targets: List[Match]):
    # Source i feeds target i // 2: even sources take slot 1, odd ones slot 2
    for index, source in enumerate(sources):
        if index // 2 >= len(targets):
            break
        _fill_slot(targets[index // 2], index % 2 + 1, source.loser())


def populate_losers_from_winners(winners_matches: List[Match], losers_matches: List[Match]) -> List[Match]:
    """
    Drop Winners Bracket losers into the first round of each losers branch.

    Winners R1 losers go to Branch A R1 and Winners R2 losers to Branch B R1.
    Unfinished or tied source matches are skipped. Returns a new list.
    """
    updated = [m.copy() for m in losers_matches]
    _drop_losers(get_round(winners_matches, BRACKET_WINNERS, 1), get_round(updated, BRACKET_LOSERS_A, 1))
    _drop_losers(get_round(winners_matches, BRACKET_WINNERS, 2), get_round(updated, BRACKET_LOSERS_B, 1))
    return updated


def get_winners_semifinals(winners_matches: List[Match]) -> List[Match]:
    """The two matches feeding the Winners Final."""
    semi_round = get_last_round(winners_matches, BRACKET_WINNERS) - 1
    if semi_round < 1:
        return []
    return get_round(winners_matches, BRACKET_WINNERS, semi_round)


def get_branch_final(losers_matches: List[Match], branch: str) -> Optional[Match]:
    last_round = get_last_round(losers_matches, branch)
    finals = get_round(losers_matches, branch, last_round)
    return finals[0] if len(finals) == 1 else None


def get_branch_champion(losers_matches: List[Match], branch: str) -> Optional[Player]:
    """Winner of a branch final, or None while it is undecided."""
    branch_final = get_branch_final(losers_matches, branch)
    return branch_final.winner() if branch_final else None


def populate_semi_final_from_brackets(winners_matches: List[Match], losers_matches: List[Match],
                                      semi_matches: List[Match]) -> List[Match]:
    """
    Fill the semi-final stage from the other two sets.

    SF-M1: Winners semifinal 1 winner (slot 1) v Branch A champion (slot 2)
    SF-M2: Winners semifinal 2 winner (slot 1) v Branch B champion (slot 2)
    """
    updated = [m.copy() for m in semi_matches]
    semis = get_round(updated, BRACKET_SEMIFINAL, 1)
    winners_semis = get_winners_semifinals(winners_matches)
    champions = (
        get_branch_champion(losers_matches, BRACKET_LOSERS_A),
        get_branch_champion(losers_matches, BRACKET_LOSERS_B),
    )

    for index, semi in enumerate(semis[:2]):
        if index < len(winners_semis):
            _fill_slot(semi, 1, winners_semis[index].winner())
        _fill_slot(semi, 2, champions[index])
    return updated


def can_start_semi_final(winners_matches: List[Match], losers_matches: List[Match]) -> bool:
    """Both Winners semifinals and both branch finals have a decided winner."""
    winners_semis = get_winners_semifinals(winners_matches)
    if len(winners_semis) != 2 or not all(m.is_resolved() for m in winners_semis):
        return False
    for branch in (BRACKET_LOSERS_A, BRACKET_LOSERS_B):
        branch_final = get_branch_final(losers_matches, branch)
        if branch_final is None or not branch_final.is_resolved():
            return False
    return True


def get_tournament_results(semi_matches: List[Match]) -> Dict:
    """
    Placements from the semi-final stage.

    Returns a dict with:
    - 'champion', 'runner_up': set once the Final has a decided winner
    - 'third_place': losers of the decided semi-finals (1 or 2 players)
    Keys are omitted while unknown, so an unfinished stage returns {}.
    """
    results = {}

    final_match = next((m for m in semi_matches if m.bracket == BRACKET_FINAL), None)
    if final_match is not None and final_match.is_resolved():
        results['champion'] = final_match.winner()
        results['runner_up'] = final_match.loser()

    third_place = []
    for semi in get_round(semi_matches, BRACKET_SEMIFINAL, 1):
        loser = semi.loser()
        if loser is not None:
            third_place.append(loser)
    if third_place:
        results['third_place'] = third_place

    return results
