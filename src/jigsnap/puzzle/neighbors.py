"""
Neighbor graph of the solved N x M layout.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from jigsnap.puzzle.geometry import GRID_STEPS, Direction, opposite


@dataclass
class NeighborGraph:
    """Which piece legitimately belongs on each side of every piece. Read-only after build."""
    rows: int
    cols: int
    table: Dict[int, Dict[Direction, int]] = field(default_factory=dict)

    @classmethod
    def from_grid(cls, rows: int, cols: int) -> "NeighborGraph":
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid must be at least 1x1, got {rows}x{cols}")
        table: Dict[int, Dict[Direction, int]] = {}
        for r in range(rows):
            for c in range(cols):
                entry: Dict[Direction, int] = {}
                for direction, (dr, dc) in GRID_STEPS.items():
                    nr, nc = r + dr, c + dc
                    if 0 <= nr < rows and 0 <= nc < cols:
                        entry[direction] = nr * cols + nc
                table[r * cols + c] = entry
        return cls(rows=rows, cols=cols, table=table)

    def neighbors_of(self, index: int) -> Dict[Direction, int]:
        return dict(self.table.get(index, {}))

    def are_neighbors(self, a: int, b: int) -> Optional[Direction]:
        """Direction from a to b, or None. Looks from both sides."""
        for direction, idx in self.table.get(a, {}).items():
            if idx == b:
                return direction
        for direction, idx in self.table.get(b, {}).items():
            if idx == a:
                return opposite(direction)
        return None

    def pointing_at(self, index: int) -> List[Tuple[int, Direction]]:
        """(other, direction from other) for every entry that names index."""
        result = []
        for other in sorted(self.table):
            if other == index:
                continue
            for direction, idx in self.table[other].items():
                if idx == index:
                    result.append((other, direction))
        return result

    def is_symmetric(self) -> bool:
        for index, entry in self.table.items():
            for direction, other in entry.items():
                if self.table.get(other, {}).get(opposite(direction)) != index:
                    return False
        return True
