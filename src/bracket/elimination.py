"""
Single elimination ladders and the advancement engine shared by every bracket.

A ladder is a flat list of Match records, round by round. Matches 2i and
2i+1 of round k feed match i of round k+1: the even one into slot 1, the
odd one into slot 2, so the layout does not depend on completion order.
"""
import logging
from typing import Dict, List, NamedTuple, Optional

from .errors import DanglingReferenceError, DuplicatePlayerError, InvalidBracketSizeError
from .models import BRACKET_WINNERS, GameInfo, Match, Player

logger = logging.getLogger(__name__)

OUTCOME_ADVANCED = 'advanced'
OUTCOME_ALREADY_ADVANCED = 'already_advanced'
OUTCOME_SLOT_CONTENTION = 'slot_contention'
OUTCOME_UNKNOWN_MATCH = 'unknown_match'
OUTCOME_NO_SUCCESSOR = 'no_successor'
OUTCOME_UNKNOWN_WINNER = 'unknown_winner'
OUTCOME_DANGLING_SUCCESSOR = 'dangling_successor'


class AdvanceResult(NamedTuple):
    matches: List[Match]
    outcome: str

    @property
    def advanced(self) -> bool:
        return self.outcome == OUTCOME_ADVANCED


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def seed_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 players: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    """
    if bracket_size == 2:
        return [1, 2]

    half_size = bracket_size // 2
    upper_half = seed_order(half_size)

    # Pair each upper seed with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def order_by_seed(players: List[Player]) -> List[Player]:
    """
    Arrange a seed-ranked player list (best first) in bracket order, so that
    feeding the result to generate_winners_bracket pairs seed 1 with the
    lowest seed and keeps the top seeds apart until the last rounds.
    """
    if not is_power_of_two(len(players)) or len(players) < 2:
        raise InvalidBracketSizeError(len(players))
    return [players[seed - 1] for seed in seed_order(len(players))]


def ladder_round_sizes(num_players: int) -> List[int]:
    """Number of matches in each round of a single elimination ladder."""
    sizes = []
    matches = num_players // 2
    while matches >= 1:
        sizes.append(matches)
        matches //= 2
    return sizes


def build_ladder(bracket: str, id_prefix: str, num_players: int, game_info: GameInfo,
                 first_round: Optional[List[Player]] = None) -> List[Match]:
    """
    Build a single elimination ladder for `num_players` entrants.

    Round 1 is filled from `first_round` (pairs in order) when given, and
    left empty otherwise. The last match of the ladder has no successor.
    """
    sizes = ladder_round_sizes(num_players)
    matches = []
    for round_idx, num_matches in enumerate(sizes):
        round_num = round_idx + 1
        is_last_round = round_idx == len(sizes) - 1
        for i in range(num_matches):
            player1 = player2 = None
            if round_num == 1 and first_round is not None:
                player1, player2 = first_round[i * 2], first_round[i * 2 + 1]
            matches.append(Match(
                id=f"{id_prefix}{round_num}-M{i + 1}",
                bracket=bracket,
                round=round_num,
                position=i,
                player1=player1,
                player2=player2,
                game_info=game_info.with_table(f"Table {i + 1}"),
                next_match_id=None if is_last_round else f"{id_prefix}{round_num + 1}-M{i // 2 + 1}",
                next_slot=None if is_last_round else i % 2 + 1,
            ))
    return matches


def generate_winners_bracket(players: List[Player], game_info: Optional[GameInfo] = None) -> List[Match]:
    """
    Generate the winners ladder: n - 1 matches for n players.

    Round 1 pairs players[0] v players[1], players[2] v players[3], ...
    Later rounds start with empty slots. The winners final is the only
    match without a successor.
    """
    num_players = len(players)
    if num_players < 2 or not is_power_of_two(num_players):
        raise InvalidBracketSizeError(num_players)

    seen = set()
    for player in players:
        if player.id in seen:
            raise DuplicatePlayerError(player.id)
        seen.add(player.id)

    matches = build_ladder(BRACKET_WINNERS, 'W', num_players, game_info or GameInfo(), list(players))
    validate_bracket(matches)
    return matches


def validate_bracket(matches: List[Match]):
    """
    Check the structural invariants of a generated bracket set.

    Raises DanglingReferenceError when an edge points outside the set and
    ValueError on duplicate ids or two matches feeding the same slot.
    """
    ids = set()
    for match in matches:
        if match.id in ids:
            raise ValueError(f"Duplicate match id '{match.id}'")
        ids.add(match.id)

    fed_slots = {}
    for match in matches:
        if match.next_match_id is None:
            continue
        if match.next_match_id not in ids:
            raise DanglingReferenceError(match.id, match.next_match_id)
        if match.next_slot is None:
            continue
        key = (match.next_match_id, match.next_slot)
        if key in fed_slots:
            raise ValueError(f"Matches '{fed_slots[key]}' and '{match.id}' both feed "
                             f"slot {match.next_slot} of '{match.next_match_id}'")
        fed_slots[key] = match.id


def find_match(matches: List[Match], match_id: str) -> Optional[Match]:
    for match in matches:
        if match.id == match_id:
            return match
    return None


def get_round(matches: List[Match], bracket: str, round_num: int) -> List[Match]:
    """Matches of one round of one bracket, ordered by position."""
    selected = [m for m in matches if m.bracket == bracket and m.round == round_num]
    return sorted(selected, key=lambda m: m.position)


def get_last_round(matches: List[Match], bracket: str) -> int:
    rounds = [m.round for m in matches if m.bracket == bracket]
    return max(rounds) if rounds else 0


def get_match_progression_map(matches: List[Match]) -> Dict[str, List[str]]:
    """Map each successor match id to the ids of the matches feeding it."""
    progression = {}
    for match in matches:
        if match.next_match_id:
            progression.setdefault(match.next_match_id, []).append(match.id)
    return progression


def advance_winner_with_outcome(matches: List[Match], match_id: str, winner_id: str) -> AdvanceResult:
    """
    Write the winner of `match_id` into its successor's slot.

    Returns a new list and an outcome code. The input list and its matches
    are never modified. When the match declares a next_slot, only that
    slot is written; otherwise the first empty slot is used. A filled slot
    is never overwritten.
    """
    updated = [m.copy() for m in matches]
    match = find_match(updated, match_id)
    if match is None:
        logger.debug("advance: unknown match %s", match_id)
        return AdvanceResult(updated, OUTCOME_UNKNOWN_MATCH)
    if match.next_match_id is None:
        return AdvanceResult(updated, OUTCOME_NO_SUCCESSOR)

    if match.player1 is not None and match.player1.id == winner_id:
        winner = match.player1
    elif match.player2 is not None and match.player2.id == winner_id:
        winner = match.player2
    else:
        logger.debug("advance: %s is not playing in %s", winner_id, match_id)
        return AdvanceResult(updated, OUTCOME_UNKNOWN_WINNER)

    next_match = find_match(updated, match.next_match_id)
    if next_match is None:
        logger.warning("advance: %s feeds unknown match %s", match_id, match.next_match_id)
        return AdvanceResult(updated, OUTCOME_DANGLING_SUCCESSOR)

    if match.next_slot is not None:
        occupant = next_match.get_slot(match.next_slot)
        if occupant is None:
            next_match.set_slot(match.next_slot, winner)
            return AdvanceResult(updated, OUTCOME_ADVANCED)
        if occupant.id == winner.id:
            return AdvanceResult(updated, OUTCOME_ALREADY_ADVANCED)
    else:
        if next_match.has_player(winner.id):
            return AdvanceResult(updated, OUTCOME_ALREADY_ADVANCED)
        for slot in (1, 2):
            if next_match.get_slot(slot) is None:
                next_match.set_slot(slot, winner)
                return AdvanceResult(updated, OUTCOME_ADVANCED)

    logger.warning("advance: no free slot in %s for winner %s of %s", next_match.id, winner_id, match_id)
    return AdvanceResult(updated, OUTCOME_SLOT_CONTENTION)


def advance_winner(matches: List[Match], match_id: str, winner_id: str) -> List[Match]:
    """Advance a winner and return the new match list (see advance_winner_with_outcome)."""
    return advance_winner_with_outcome(matches, match_id, winner_id).matches
