"""
Tests for tournament snapshots and score reporting.
"""
import random

import pytest

from bracket.double_elimination import can_start_semi_final
from bracket.elimination import OUTCOME_ADVANCED, OUTCOME_NO_SUCCESSOR, find_match, get_round
from bracket.errors import InvalidBracketSizeError, UnknownMatchError, UnresolvedScoreError
from bracket.models import BRACKET_LOSERS_A, BRACKET_WINNERS, GameInfo, Player
from bracket.tournament import (
    create_tournament,
    get_ready_matches,
    play_out,
    progression_maps,
    record_score,
    simulate_match_score,
    tournament_from_dict,
    tournament_summary,
    tournament_to_dict,
)


def _play_winners_round(tournament, round_num):
    for match in get_round(tournament['winners'], BRACKET_WINNERS, round_num):
        tournament, _ = record_score(tournament, match.id, 2, 0)
    return tournament


class TestCreateTournament:
    def test_creates_three_stages(self, players16):
        tournament = create_tournament(players16)
        assert len(tournament['winners']) == 15
        assert len(tournament['losers']) == 10
        assert [m.id for m in tournament['semi_final']] == ['SF-M1', 'SF-M2', 'F']

    @pytest.mark.parametrize("size", [2, 4, 6, 12])
    def test_rejects_unsupported_sizes(self, size):
        players = [Player(id=str(i), name=f"P{i}") for i in range(size)]
        with pytest.raises(InvalidBracketSizeError):
            create_tournament(players)

    def test_game_info_reaches_every_stage(self, players8):
        tournament = create_tournament(players8, GameInfo(handicap='Handicap 1', race_to=9))
        for stage in ('winners', 'losers', 'semi_final'):
            assert all(m.game_info.race_to == 9 for m in tournament[stage])


class TestRecordScore:
    """Tests for record_score."""

    def test_in_progress_score_does_not_advance(self, players16):
        tournament = create_tournament(players16)
        updated, outcome = record_score(tournament, 'W1-M1', 3, 1, completed=False)
        match = find_match(updated['winners'], 'W1-M1')
        assert match.status == 'in_progress'
        assert outcome is None
        assert find_match(updated['winners'], 'W2-M1').player1 is None

    def test_completed_score_advances_and_populates(self, players16):
        tournament = create_tournament(players16)
        updated, outcome = record_score(tournament, 'W1-M1', 2, 7)
        assert outcome == OUTCOME_ADVANCED
        assert find_match(updated['winners'], 'W2-M1').player1 == players16[1]
        assert find_match(updated['losers'], 'LA1-M1').player1 == players16[0]
        # Input snapshot untouched
        assert find_match(tournament['winners'], 'W1-M1').status == 'pending'
        assert find_match(tournament['losers'], 'LA1-M1').player1 is None

    def test_tie_is_rejected(self, players16):
        tournament = create_tournament(players16)
        with pytest.raises(UnresolvedScoreError):
            record_score(tournament, 'W1-M1', 4, 4)
        assert find_match(tournament['winners'], 'W1-M1').score is None

    def test_tie_is_allowed_while_in_progress(self, players16):
        tournament = create_tournament(players16)
        updated, _ = record_score(tournament, 'W1-M1', 4, 4, completed=False)
        assert find_match(updated['winners'], 'W1-M1').score.is_tied()

    def test_unknown_match(self, players16):
        with pytest.raises(UnknownMatchError):
            record_score(create_tournament(players16), 'nope', 1, 0)

    def test_match_waiting_for_players(self, players16):
        with pytest.raises(ValueError):
            record_score(create_tournament(players16), 'W2-M1', 1, 0)

    def test_completed_match_cannot_be_rescored(self, players16):
        tournament, _ = record_score(create_tournament(players16), 'W1-M1', 2, 0)
        with pytest.raises(ValueError):
            record_score(tournament, 'W1-M1', 0, 2)

    def test_negative_score_rejected(self, players16):
        with pytest.raises(ValueError):
            record_score(create_tournament(players16), 'W1-M1', -1, 2)

    def test_semi_final_waits_for_both_brackets(self, players16):
        tournament = create_tournament(players16)
        for round_num in (1, 2, 3):
            tournament = _play_winners_round(tournament, round_num)
        for round_num in (1, 2, 3):
            for match in get_round(tournament['losers'], BRACKET_LOSERS_A, round_num):
                tournament, _ = record_score(tournament, match.id, 2, 0)

        sf1 = find_match(tournament['semi_final'], 'SF-M1')
        assert sf1.player1 == players16[0]
        assert sf1.player2 == players16[1]
        assert not can_start_semi_final(tournament['winners'], tournament['losers'])
        with pytest.raises(ValueError):
            record_score(tournament, 'SF-M1', 7, 2)

    def test_branch_final_has_no_successor_outcome(self, players16):
        tournament = create_tournament(players16)
        tournament = _play_winners_round(tournament, 1)
        for round_num in (1, 2, 3):
            for match in get_round(tournament['losers'], BRACKET_LOSERS_A, round_num):
                tournament, outcome = record_score(tournament, match.id, 2, 0)
        assert outcome == OUTCOME_NO_SUCCESSOR


class TestPlayOut:
    """End-to-end runs with random scores."""

    @pytest.mark.parametrize("size", [8, 16, 32])
    def test_play_out_decides_everything(self, size):
        players = [Player(id=str(i), name=f"P{i}") for i in range(size)]
        tournament = play_out(create_tournament(players), random.Random(size))
        summary = tournament_summary(tournament)
        results = summary['results']
        assert summary['can_start_semi_final']
        assert set(results) == {'champion', 'runner_up', 'third_place'}
        placed = [results['champion']['id'], results['runner_up']['id']]
        placed += [p['id'] for p in results['third_place']]
        assert len(set(placed)) == 4
        assert get_ready_matches(tournament) == []

    def test_same_seed_same_tournament(self, players16):
        first = play_out(create_tournament(players16), random.Random(42))
        second = play_out(create_tournament(players16), random.Random(42))
        assert tournament_to_dict(first) == tournament_to_dict(second)

    def test_simulated_scores_never_tie(self):
        rng = random.Random(0)
        for _ in range(200):
            player1_score, player2_score = simulate_match_score(7, rng)
            assert player1_score != player2_score
            assert max(player1_score, player2_score) == 7


class TestSerialisation:
    def test_round_trip(self, players16):
        tournament = play_out(create_tournament(players16), random.Random(1))
        data = tournament_to_dict(tournament)
        assert tournament_to_dict(tournament_from_dict(data)) == data

    def test_progression_maps(self, players16):
        maps = progression_maps(create_tournament(players16))
        assert maps['semi_final'] == {'F': ['SF-M1', 'SF-M2']}
        assert maps['losers']['LB2-M1'] == ['LB1-M1', 'LB1-M2']
