"""
Flask web application for Billiards Bracket.

Serves double elimination tournaments as JSON. Each tournament lives in its
own directory under DATA_DIR/tournaments/<slug>/ (bracket.yaml and
settings.yaml); writers hold that directory's file lock for the whole
read-modify-write of a score update.
"""
import os
import re
import shutil
import random
import yaml
from datetime import datetime
from filelock import FileLock
from flask import Flask, request, jsonify
from bracket.errors import BracketError, UnknownMatchError, UnresolvedScoreError
from bracket.models import GameInfo, Player
from bracket.tournament import (
    create_tournament,
    play_out,
    progression_maps,
    record_score,
    results_to_dict,
    tournament_from_dict,
    tournament_summary,
    tournament_to_dict,
)
from bracket.double_elimination import get_tournament_results

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
TOURNAMENTS_FILE = os.path.join(DATA_DIR, 'tournaments.yaml')
TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')
LOCK_TIMEOUT = 10


class TournamentNotFound(Exception):
    pass


def get_default_settings():
    """Return default tournament settings."""
    return {
        'tournament_name': 'Club Tournament',
        'club_name': 'Billiards Club',
        'handicap': 'Handicap 0.5',
        'race_to': 7,
    }


def _slugify(name: str) -> str:
    """Convert tournament name to filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'tournament'


def _registry_lock() -> FileLock:
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=LOCK_TIMEOUT)


def _tournament_dir(slug: str) -> str:
    return os.path.join(TOURNAMENTS_DIR, slug)


def _tournament_lock(slug: str) -> FileLock:
    """Per-tournament lock serialising score updates."""
    return FileLock(os.path.join(_tournament_dir(slug), '.lock'), timeout=LOCK_TIMEOUT)


def load_tournaments() -> dict:
    """Load the tournaments registry."""
    if not os.path.exists(TOURNAMENTS_FILE):
        return {'tournaments': []}
    try:
        with open(TOURNAMENTS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
            return data if data else {'tournaments': []}
    except Exception as e:
        app.logger.warning(f'Failed to parse {TOURNAMENTS_FILE}: {e}')
        return {'tournaments': []}


def save_tournaments(data: dict):
    """Save the tournaments registry."""
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(TOURNAMENTS_FILE, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False)


def load_settings(slug: str) -> dict:
    """Load tournament settings, filling in defaults for missing keys."""
    settings = get_default_settings()
    path = os.path.join(_tournament_dir(slug), 'settings.yaml')
    if not os.path.exists(path):
        return settings
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return settings
    if isinstance(data, dict):
        settings.update(data)
    return settings


def save_settings(slug: str, settings: dict):
    with open(os.path.join(_tournament_dir(slug), 'settings.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump(settings, f, default_flow_style=False, allow_unicode=True)


def load_bracket(slug: str) -> dict:
    """Load a tournament snapshot. Raises TournamentNotFound if it does not exist."""
    path = os.path.join(_tournament_dir(slug), 'bracket.yaml')
    if not os.path.exists(path):
        raise TournamentNotFound(slug)
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return tournament_from_dict(data or {})


def save_bracket(slug: str, tournament: dict):
    with open(os.path.join(_tournament_dir(slug), 'bracket.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump(tournament_to_dict(tournament), f, default_flow_style=False, allow_unicode=True)


def _game_info_from_settings(settings: dict) -> GameInfo:
    return GameInfo(handicap=settings.get('handicap', ''), race_to=int(settings.get('race_to', 7)))


def _not_found(slug: str):
    return jsonify({'error': f'Tournament "{slug}" not found'}), 404


def _load_or_error(slug: str):
    """Return (tournament, None) or (None, error response)."""
    try:
        return load_bracket(slug), None
    except TournamentNotFound:
        return None, _not_found(slug)
    except (yaml.YAMLError, BracketError, ValueError, TypeError) as e:
        app.logger.warning(f'Failed to load bracket for {slug}: {e}')
        return None, (jsonify({'error': 'Stored bracket is corrupt'}), 500)


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """List all tournaments."""
    return jsonify(load_tournaments())


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    """Create a tournament from a name and a list of players."""
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Tournament name is required'}), 400

    try:
        players = [Player.from_dict(p) for p in data.get('players') or []]
    except (ValueError, TypeError, AttributeError) as e:
        return jsonify({'error': f'Invalid player: {e}'}), 400

    custom = data.get('settings') or {}
    if not isinstance(custom, dict):
        return jsonify({'error': 'Settings must be an object'}), 400

    settings = get_default_settings()
    settings.update(custom)
    settings['tournament_name'] = name

    try:
        tournament = create_tournament(players, _game_info_from_settings(settings))
    except (BracketError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    slug = _slugify(name)
    with _registry_lock():
        registry = load_tournaments()
        if any(t['slug'] == slug for t in registry.get('tournaments', [])):
            return jsonify({'error': f'A tournament with a similar name already exists ("{slug}")'}), 409

        os.makedirs(_tournament_dir(slug), exist_ok=True)
        save_settings(slug, settings)
        save_bracket(slug, tournament)

        registry.setdefault('tournaments', []).append({
            'slug': slug,
            'name': name,
            'players': len(players),
            'created': datetime.now().isoformat()
        })
        save_tournaments(registry)

    app.logger.info(f'Created tournament {slug} with {len(players)} players')
    return jsonify({'success': True, 'slug': slug}), 201


@app.route('/api/tournaments/delete', methods=['POST'])
def api_delete_tournament():
    """Delete a tournament and its data."""
    data = request.get_json(silent=True) or {}
    slug = data.get('slug')
    if not slug:
        return jsonify({'error': 'Missing slug'}), 400

    with _registry_lock():
        registry = load_tournaments()
        remaining = [t for t in registry.get('tournaments', []) if t['slug'] != slug]
        if len(remaining) == len(registry.get('tournaments', [])):
            return jsonify({'error': f'Tournament "{slug}" not found'}), 404
        registry['tournaments'] = remaining
        save_tournaments(registry)
        if os.path.isdir(_tournament_dir(slug)):
            with _tournament_lock(slug):
                shutil.rmtree(_tournament_dir(slug), ignore_errors=True)

    app.logger.info(f'Deleted tournament {slug}')
    return jsonify({'success': True})


@app.route('/api/tournaments/<slug>', methods=['GET'])
def api_get_tournament(slug):
    """Full snapshot with semi-final readiness and placements."""
    tournament, error = _load_or_error(slug)
    if error:
        return error
    summary = tournament_summary(tournament)
    summary['settings'] = load_settings(slug)
    return jsonify(summary)


@app.route('/api/tournaments/<slug>/results', methods=['POST'])
def api_record_result(slug):
    """Record a match score and propagate winners and losers."""
    data = request.get_json(silent=True) or {}
    match_id = data.get('match_id')
    score = data.get('score')
    completed = data.get('completed', True)

    if not match_id:
        return jsonify({'error': 'Missing match_id'}), 400
    if not isinstance(completed, bool):
        return jsonify({'error': 'completed must be true or false'}), 400
    if not isinstance(score, (list, tuple)) or len(score) != 2:
        return jsonify({'error': 'Score must be a pair [player1, player2]'}), 400
    try:
        player1_score, player2_score = int(score[0]), int(score[1])
    except (TypeError, ValueError):
        return jsonify({'error': 'Scores must be integers'}), 400

    if not os.path.isdir(_tournament_dir(slug)):
        return _not_found(slug)

    try:
        with _tournament_lock(slug):
            tournament, error = _load_or_error(slug)
            if error:
                return error
            try:
                tournament, outcome = record_score(tournament, match_id, player1_score, player2_score, completed)
            except UnknownMatchError as e:
                return jsonify({'error': str(e)}), 404
            except UnresolvedScoreError as e:
                app.logger.warning(f'Rejected tied score for {slug}/{match_id}: {score}')
                return jsonify({'error': str(e)}), 400
            except ValueError as e:
                return jsonify({'error': str(e)}), 400
            save_bracket(slug, tournament)
    except FileNotFoundError:
        # Deleted while waiting for the lock
        return _not_found(slug)

    app.logger.info(f'Recorded {slug}/{match_id} {player1_score}-{player2_score} (completed={completed}, outcome={outcome})')
    return jsonify({
        'success': True,
        'match_id': match_id,
        'outcome': outcome,
        'results': results_to_dict(get_tournament_results(tournament['semi_final']))
    })


@app.route('/api/tournaments/<slug>/standings', methods=['GET'])
def api_standings(slug):
    """Champion, runner-up and third places decided so far."""
    tournament, error = _load_or_error(slug)
    if error:
        return error
    return jsonify(results_to_dict(get_tournament_results(tournament['semi_final'])))


@app.route('/api/tournaments/<slug>/progression', methods=['GET'])
def api_progression(slug):
    """Which matches feed which, per stage."""
    tournament, error = _load_or_error(slug)
    if error:
        return error
    return jsonify(progression_maps(tournament))


@app.route('/api/tournaments/<slug>/simulate', methods=['POST'])
def api_simulate(slug):
    """Play out every remaining match with random scores (demo data)."""
    data = request.get_json(silent=True) or {}
    if not os.path.isdir(_tournament_dir(slug)):
        return _not_found(slug)

    try:
        with _tournament_lock(slug):
            tournament, error = _load_or_error(slug)
            if error:
                return error
            tournament = play_out(tournament, random.Random(data.get('seed')))
            save_bracket(slug, tournament)
    except FileNotFoundError:
        return _not_found(slug)

    return jsonify({
        'success': True,
        'results': results_to_dict(get_tournament_results(tournament['semi_final']))
    })


if __name__ == '__main__':
    app.run(debug=True)
