"""
Tournament snapshots: the three generated match sets of one double
elimination event and the score reporting that drives them.

A snapshot is a dict {'winners': [...], 'losers': [...], 'semi_final': [...]}.
Every function returns a new snapshot; callers replace theirs wholesale.
"""
import random
from typing import Dict, List, Optional, Tuple

from .double_elimination import (
    MIN_DOUBLE_BRACKET_SIZE,
    can_start_semi_final,
    generate_losers_bracket,
    generate_semi_final_stage,
    get_tournament_results,
    populate_losers_from_winners,
    populate_semi_final_from_brackets,
)
from .elimination import (
    advance_winner_with_outcome,
    generate_winners_bracket,
    get_match_progression_map,
    is_power_of_two,
    validate_bracket,
)
from .errors import InvalidBracketSizeError, UnknownMatchError, UnresolvedScoreError
from .models import STATUS_COMPLETED, STATUS_IN_PROGRESS, GameInfo, Match, Player, Score

STAGES = ('winners', 'losers', 'semi_final')


def create_tournament(players: List[Player], game_info: Optional[GameInfo] = None) -> Dict[str, List[Match]]:
    """Generate all three match sets for a field of players (power of two, at least 8)."""
    if len(players) < MIN_DOUBLE_BRACKET_SIZE or not is_power_of_two(len(players)):
        raise InvalidBracketSizeError(len(players), MIN_DOUBLE_BRACKET_SIZE)
    return {
        'winners': generate_winners_bracket(players, game_info),
        'losers': generate_losers_bracket(len(players), game_info),
        'semi_final': generate_semi_final_stage(game_info),
    }


def find_tournament_match(tournament: Dict, match_id: str) -> Tuple[Optional[str], Optional[Match]]:
    """Return (stage, match) for a match id, or (None, None)."""
    for stage in STAGES:
        for match in tournament.get(stage, []):
            if match.id == match_id:
                return stage, match
    return None, None


def resolve_winner(match: Match) -> Player:
    """The player ahead on points. Raises UnresolvedScoreError on a missing or tied score."""
    if match.score is None or match.score.is_tied():
        raise UnresolvedScoreError(match.id, match.score)
    winner = match.get_slot(match.score.leader())
    if winner is None:
        raise UnresolvedScoreError(match.id, match.score)
    return winner


def sync_tournament(tournament: Dict) -> Dict[str, List[Match]]:
    """Re-run both cross-bracket populations. Safe to call any number of times."""
    losers = populate_losers_from_winners(tournament['winners'], tournament['losers'])
    semi_final = populate_semi_final_from_brackets(tournament['winners'], losers, tournament['semi_final'])
    return {'winners': list(tournament['winners']), 'losers': losers, 'semi_final': semi_final}


def record_score(tournament: Dict, match_id: str, player1_score: int, player2_score: int,
                 completed: bool = True) -> Tuple[Dict[str, List[Match]], Optional[str]]:
    """
    Record a score and propagate its consequences.

    An in-progress score only updates the match. A completed score resolves
    the winner (a tie raises UnresolvedScoreError and leaves the snapshot as
    it was), advances it along next_match_id and re-populates the losers
    branches and the semi-final stage.

    Returns (new snapshot, advancement outcome or None).
    """
    stage, match = find_tournament_match(tournament, match_id)
    if match is None:
        raise UnknownMatchError(match_id)
    if match.player1 is None or match.player2 is None:
        raise ValueError(f"Match {match_id} is still waiting for its players")
    if match.status == STATUS_COMPLETED:
        raise ValueError(f"Match {match_id} is already completed")
    if stage == 'semi_final' and not can_start_semi_final(tournament['winners'], tournament['losers']):
        raise ValueError("The semi-final stage cannot start before both brackets are decided")

    scored = match.copy()
    scored.score = Score(player1_score, player2_score)
    scored.status = STATUS_COMPLETED if completed else STATUS_IN_PROGRESS
    winner = resolve_winner(scored) if completed else None

    updated = {name: list(tournament[name]) for name in STAGES}
    updated[stage] = [scored if m.id == match_id else m for m in updated[stage]]

    outcome = None
    if winner is not None:
        result = advance_winner_with_outcome(updated[stage], match_id, winner.id)
        updated[stage] = result.matches
        outcome = result.outcome
    return sync_tournament(updated), outcome


def get_ready_matches(tournament: Dict) -> List[Match]:
    """Matches with both players and no final result, in playing order."""
    ready = [m for m in tournament['winners'] + tournament['losers'] if m.is_ready()]
    if can_start_semi_final(tournament['winners'], tournament['losers']):
        ready.extend(m for m in tournament['semi_final'] if m.is_ready())
    return ready


def simulate_match_score(race_to: int, rng: random.Random) -> Tuple[int, int]:
    """Random race result: the winner reaches race_to, the loser stays below it."""
    loser_score = rng.randint(0, race_to - 1)
    if rng.random() < 0.5:
        return race_to, loser_score
    return loser_score, race_to


def play_out(tournament: Dict, rng: Optional[random.Random] = None) -> Dict[str, List[Match]]:
    """Play every match with random scores until nothing is left to play."""
    rng = rng or random.Random()
    ready = get_ready_matches(tournament)
    while ready:
        for match in ready:
            player1_score, player2_score = simulate_match_score(match.game_info.race_to, rng)
            tournament, _ = record_score(tournament, match.id, player1_score, player2_score)
        ready = get_ready_matches(tournament)
    return tournament


def results_to_dict(results: Dict) -> Dict:
    data = {}
    for key in ('champion', 'runner_up'):
        if key in results:
            data[key] = results[key].to_dict()
    if 'third_place' in results:
        data['third_place'] = [p.to_dict() for p in results['third_place']]
    return data


def tournament_to_dict(tournament: Dict) -> Dict:
    return {stage: [m.to_dict() for m in tournament[stage]] for stage in STAGES}


def tournament_from_dict(data: Dict) -> Dict[str, List[Match]]:
    """Load a snapshot saved by tournament_to_dict, re-checking every edge."""
    tournament = {}
    for stage in STAGES:
        matches = [Match.from_dict(m) for m in data.get(stage) or []]
        validate_bracket(matches)
        tournament[stage] = matches
    return tournament


def tournament_summary(tournament: Dict) -> Dict:
    """Snapshot, readiness and placements as plain data."""
    summary = tournament_to_dict(tournament)
    summary['can_start_semi_final'] = can_start_semi_final(tournament['winners'], tournament['losers'])
    summary['results'] = results_to_dict(get_tournament_results(tournament['semi_final']))
    return summary


def progression_maps(tournament: Dict) -> Dict[str, Dict[str, List[str]]]:
    return {stage: get_match_progression_map(tournament[stage]) for stage in STAGES}
