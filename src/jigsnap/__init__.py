"""
jigsnap: drag-snap-merge assembly core for jigsaw puzzles.

Pieces are picked up with a pointer and carried together with everything
already joined to them. On release a group snaps onto its home cell or onto
a placed neighbor, groups merge, and the puzzle is solved once a single
placed group spans every piece.

Example Usage:
```python
from jigsnap import JigsawPuzzle, PuzzleConfig

puzzle = JigsawPuzzle(PuzzleConfig())
home = puzzle.registry.get(0).home_position
start = puzzle.registry.get(0).position
puzzle.pointer_down(0, (start.x, start.z))
result = puzzle.pointer_up(0, (home.x, home.z))
print(result.outcome)
```

Command-line Usage:
```bash
jigsnap play --layout 3x2
jigsnap replay --config configs/puzzle_4x3.yaml --actions examples/solve_4x3.txt
```
"""

# Normal imports instead of lazy loading to ensure proper registry initialization
from jigsnap.core.config import Config, PuzzleConfig, load_config, validate_config
from jigsnap.puzzle import JigsawPuzzle
from jigsnap.environment import JigsawEnvironment, JigsawConfig
from jigsnap.runner import SessionRunner

__version__ = "0.1.0"

__all__ = [
    "Config",
    "PuzzleConfig",
    "load_config",
    "validate_config",
    "JigsawPuzzle",
    "JigsawEnvironment",
    "JigsawConfig",
    "SessionRunner",
]
