"""
Shared pytest fixtures for bracket tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import Player
from bracket.elimination import generate_winners_bracket
from bracket.double_elimination import generate_losers_bracket, generate_semi_final_stage


def make_players(count):
    return [Player(id=str(i + 1), name=f"Player {i + 1}", rank='H') for i in range(count)]


@pytest.fixture
def players16():
    """Sixteen players, ids '1'..'16' in seeding order."""
    return make_players(16)


@pytest.fixture
def players8():
    return make_players(8)


@pytest.fixture
def winners16(players16):
    return generate_winners_bracket(players16)


@pytest.fixture
def losers16():
    return generate_losers_bracket(16)


@pytest.fixture
def semi_stage():
    return generate_semi_final_stage()


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_FILE', str(data_dir / "tournaments.yaml"))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(data_dir / "tournaments"))
    return str(data_dir)


@pytest.fixture
def client(temp_data_dir):
    """Create a test client over a temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
