"""
Unit tests for winners bracket generation and bracket validation.
"""
import pytest

from bracket.elimination import (
    generate_winners_bracket,
    get_match_progression_map,
    get_round,
    is_power_of_two,
    ladder_round_sizes,
    order_by_seed,
    seed_order,
    validate_bracket,
)
from bracket.errors import DanglingReferenceError, DuplicatePlayerError, InvalidBracketSizeError
from bracket.models import BRACKET_WINNERS, GameInfo, Match, Player


def _players(count):
    return [Player(id=f"p{i}", name=f"Player {i}") for i in range(count)]


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_is_power_of_two(self):
        assert all(is_power_of_two(n) for n in (1, 2, 4, 8, 16, 64))
        assert not any(is_power_of_two(n) for n in (0, 3, 6, 12, -4))

    def test_ladder_round_sizes(self):
        assert ladder_round_sizes(16) == [8, 4, 2, 1]
        assert ladder_round_sizes(2) == [1]


class TestSeeding:
    """Tests for standard seeding order."""

    def test_seed_order_eight(self):
        assert seed_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

    def test_seed_order_is_a_permutation(self):
        order = seed_order(16)
        assert sorted(order) == list(range(1, 17))
        # Every first-round pair sums to bracket_size + 1
        assert all(order[i] + order[i + 1] == 17 for i in range(0, 16, 2))

    def test_order_by_seed(self):
        players = _players(4)
        assert order_by_seed(players) == [players[0], players[3], players[1], players[2]]

    def test_order_by_seed_rejects_bad_size(self):
        with pytest.raises(InvalidBracketSizeError):
            order_by_seed(_players(6))


class TestGenerateWinnersBracket:
    """Tests for generate_winners_bracket."""

    @pytest.mark.parametrize("size", [2, 4, 8, 16, 32])
    def test_match_count_and_single_terminal(self, size):
        matches = generate_winners_bracket(_players(size))
        assert len(matches) == size - 1
        terminal = [m for m in matches if m.next_match_id is None]
        assert len(terminal) == 1
        assert terminal[0].round == max(m.round for m in matches)

    @pytest.mark.parametrize("size", [0, 1, 3, 6, 12])
    def test_invalid_size(self, size):
        with pytest.raises(InvalidBracketSizeError):
            generate_winners_bracket(_players(size))

    def test_duplicate_players_rejected(self):
        players = _players(4)
        players[3] = Player(id='p0', name='Copy')
        with pytest.raises(DuplicatePlayerError):
            generate_winners_bracket(players)

    def test_first_round_in_input_order(self, players16):
        matches = generate_winners_bracket(players16)
        first_round = get_round(matches, BRACKET_WINNERS, 1)
        assert len(first_round) == 8
        for i, match in enumerate(first_round):
            assert match.player1 == players16[2 * i]
            assert match.player2 == players16[2 * i + 1]
            assert match.status == 'pending'
            assert match.score is None

    def test_later_rounds_start_empty(self, winners16):
        for match in winners16:
            if match.round > 1:
                assert match.player1 is None and match.player2 is None

    def test_edges_follow_seeding_rule(self, winners16):
        by_round = {r: get_round(winners16, BRACKET_WINNERS, r) for r in (1, 2, 3, 4)}
        assert [len(by_round[r]) for r in (1, 2, 3, 4)] == [8, 4, 2, 1]
        for r in (1, 2, 3):
            for i, match in enumerate(by_round[r]):
                assert match.next_match_id == by_round[r + 1][i // 2].id
                assert match.next_slot == (1 if i % 2 == 0 else 2)

    def test_ids_and_labels(self, winners16):
        assert winners16[0].id == 'W1-M1'
        assert winners16[0].label == 'WINNER ROUND 101'
        assert winners16[-1].id == 'W4-M1'

    def test_game_info_is_applied(self, players8):
        matches = generate_winners_bracket(players8, GameInfo(handicap='Handicap 1', race_to=9))
        assert all(m.game_info.race_to == 9 for m in matches)
        assert matches[2].game_info.table == 'Table 3'


class TestValidateBracket:
    """Tests for validate_bracket."""

    def test_generated_bracket_is_valid(self, winners16):
        validate_bracket(winners16)

    def test_dangling_reference(self):
        matches = [Match(id='A', bracket=BRACKET_WINNERS, round=1, next_match_id='missing', next_slot=1)]
        with pytest.raises(DanglingReferenceError) as excinfo:
            validate_bracket(matches)
        assert excinfo.value.next_match_id == 'missing'

    def test_duplicate_ids(self):
        matches = [Match(id='A', bracket=BRACKET_WINNERS, round=1),
                   Match(id='A', bracket=BRACKET_WINNERS, round=1)]
        with pytest.raises(ValueError):
            validate_bracket(matches)

    def test_two_matches_feeding_one_slot(self):
        matches = [
            Match(id='A', bracket=BRACKET_WINNERS, round=1, position=0, next_match_id='C', next_slot=1),
            Match(id='B', bracket=BRACKET_WINNERS, round=1, position=1, next_match_id='C', next_slot=1),
            Match(id='C', bracket=BRACKET_WINNERS, round=2),
        ]
        with pytest.raises(ValueError):
            validate_bracket(matches)


class TestProgressionMap:
    def test_progression_map(self, winners16):
        progression = get_match_progression_map(winners16)
        assert progression['W2-M1'] == ['W1-M1', 'W1-M2']
        assert progression['W4-M1'] == ['W3-M1', 'W3-M2']
        assert 'W1-M1' not in progression
        assert len(progression) == 7
