import pytest

from jigsnap.core.config import BoardConfig, PuzzleConfig, ScatterConfig, SnapConfig
from jigsnap.puzzle import JigsawPuzzle


PW = (6.0 - 0.2) / 4
PH = (4.5 - 0.2) / 3


def home_of(index, cols=4):
    """Home (x, z) of a piece on the default 4x3 board."""
    row, col = divmod(index, cols)
    return (-2.175 + col * PW, -PH + row * PH)


def drop(puzzle, index, x, z):
    """Grab a piece at its center and release it at (x, z)."""
    start = puzzle.registry.get(index).position
    puzzle.pointer_down(index, (start.x, start.z))
    return puzzle.pointer_up(index, (x, z))


@pytest.fixture
def puzzle_config():
    return PuzzleConfig(scatter=ScatterConfig(seed=1))


@pytest.fixture
def puzzle(puzzle_config):
    return JigsawPuzzle(puzzle_config)


@pytest.fixture
def small_puzzle():
    return JigsawPuzzle(PuzzleConfig(board=BoardConfig.from_preset("3x2"), scatter=ScatterConfig(seed=3)))


@pytest.fixture
def recorded(puzzle):
    """List that collects every event the puzzle emits."""
    events = []
    puzzle.subscribe(events.append)
    return events


def drop_home(puzzle, index, dx=0.0, dz=0.0):
    """Carry a piece to its home cell, optionally off by (dx, dz)."""
    home = puzzle.registry.get(index).home_position
    return drop(puzzle, index, home.x + dx, home.z + dz)
