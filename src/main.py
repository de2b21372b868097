# Entry point: play a double elimination tournament out with random scores

import argparse
import random
import sys

import yaml
from bracket.elimination import order_by_seed
from bracket.errors import BracketError
from bracket.models import GameInfo, Player
from bracket.tournament import create_tournament, play_out, STAGES
from bracket.double_elimination import get_tournament_results

CLUB_ROSTER = [
    ('1', 'C. Ramos', 'H'), ('2', 'Long Sang', 'H'), ('3', 'Minh Tuan', 'G'), ('4', 'Van Nam', 'F'),
    ('5', 'Hoang Anh', 'H'), ('6', 'Thanh Son', 'G'), ('7', 'Duc Thanh', 'F'), ('8', 'Quang Huy', 'H'),
    ('9', 'Trung Kien', 'G'), ('10', 'Bao Long', 'F'), ('11', 'An Khang', 'H'), ('12', 'Phi Long', 'G'),
    ('13', 'Gia Bao', 'F'), ('14', 'Tien Dat', 'G'), ('15', 'Huu Phuoc', 'H'), ('16', 'Khanh Duy', 'F'),
]

STAGE_TITLES = {'winners': "Winners' Bracket", 'losers': "Losers' Bracket", 'semi_final': 'Semi Final'}


def load_players(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('players', [])
    return [Player.from_dict(entry) for entry in data]


def default_players():
    return [Player(id=pid, name=name, rank=rank) for pid, name, rank in CLUB_ROSTER]


def format_match(match):
    p1 = match.player1.name if match.player1 else 'TBD'
    p2 = match.player2.name if match.player2 else 'TBD'
    score = f"{match.score.player1}-{match.score.player2}" if match.score else '-'
    return f"  {match.label:<22} {p1:>14} {score:^7} {p2:<14}"


def main(argv=None):
    parser = argparse.ArgumentParser(description='Play out a double elimination billiards tournament')
    parser.add_argument('players', nargs='?', help='YAML file with a list of players (id, name, rank, avatar)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for demo scores')
    parser.add_argument('--ordered', action='store_true',
                        help='Players are listed best first; arrange them in seeding order')
    parser.add_argument('--race-to', type=int, default=7, help='Racks needed to win a match')
    args = parser.parse_args(argv)

    try:
        players = load_players(args.players) if args.players else default_players()
        if args.ordered:
            players = order_by_seed(players)
        tournament = create_tournament(players, GameInfo(handicap='Handicap 0.5', race_to=args.race_to))
    except (OSError, yaml.YAMLError, BracketError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tournament = play_out(tournament, random.Random(args.seed))

    for stage in STAGES:
        print(f"\n--- {STAGE_TITLES[stage]} ---")
        for match in tournament[stage]:
            print(format_match(match))

    results = get_tournament_results(tournament['semi_final'])
    print("\n--- Results ---")
    print(f"Champion:  {results['champion'].name}")
    print(f"Runner-up: {results['runner_up'].name}")
    print(f"Third:     {', '.join(p.name for p in results.get('third_place', []))}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
