"""
Piece registry: static piece definitions plus their mutable board state.
"""

import numbers
import operator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

from jigsnap.puzzle.geometry import Direction, Vec3


class Connector(IntEnum):
    """Edge shape of a piece side."""
    SLOT = -1
    FLAT = 0
    TAB = 1


@dataclass(frozen=True)
class ConnectorProfile:
    """Shape of the four sides. Descriptive only, legality comes from the neighbor graph."""
    left: Connector = Connector.FLAT
    right: Connector = Connector.FLAT
    top: Connector = Connector.FLAT
    bottom: Connector = Connector.FLAT

    def side(self, direction: Direction) -> Connector:
        return getattr(self, direction.value)

    def to_dict(self) -> Dict[str, int]:
        return {
            "left": int(self.left),
            "right": int(self.right),
            "top": int(self.top),
            "bottom": int(self.bottom),
        }


@dataclass(frozen=True)
class PieceDef:
    """Immutable per-piece data."""
    index: int
    home_cell: Tuple[int, int]  # (row, col)
    connector_profile: ConnectorProfile
    home_position: Vec3


@dataclass
class PieceState:
    """Mutable per-piece data."""
    position: Vec3
    group_id: Optional[int]
    is_placed_in_box: bool = False
    is_at_home_position: bool = False
    locked: bool = False


@dataclass
class Piece:
    """A piece definition together with its live state."""
    definition: PieceDef
    state: PieceState

    @property
    def index(self) -> int:
        return self.definition.index

    @property
    def home_cell(self) -> Tuple[int, int]:
        return self.definition.home_cell

    @property
    def home_position(self) -> Vec3:
        return self.definition.home_position

    @property
    def connector_profile(self) -> ConnectorProfile:
        return self.definition.connector_profile

    @property
    def position(self) -> Vec3:
        return self.state.position

    @property
    def group_id(self) -> Optional[int]:
        return self.state.group_id

    @property
    def is_placed_in_box(self) -> bool:
        return self.state.is_placed_in_box

    @property
    def is_at_home_position(self) -> bool:
        return self.state.is_at_home_position

    @property
    def locked(self) -> bool:
        return self.state.locked

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "home_cell": list(self.home_cell),
            "connector_profile": self.connector_profile.to_dict(),
            "home_position": list(self.home_position.to_tuple()),
            "position": list(self.position.to_tuple()),
            "group_id": self.group_id,
            "is_placed_in_box": self.is_placed_in_box,
            "is_at_home_position": self.is_at_home_position,
            "locked": self.locked,
        }


@dataclass
class PieceRegistry:
    """
    Every piece of the puzzle, addressed by index.

    Mutations are plain field writes; cross-piece invariants belong to the
    callers (group partition, drag controller, snap resolver).
    """
    pieces: List[Piece] = field(default_factory=list)

    @classmethod
    def from_definitions(cls, definitions: List[PieceDef], positions: List[Vec3]) -> "PieceRegistry":
        if len(definitions) != len(positions):
            raise ValueError("definitions and positions must have the same length")
        pieces = []
        for expected, (definition, position) in enumerate(zip(definitions, positions)):
            if definition.index != expected:
                raise ValueError(f"Piece indices must be 0..N-1 in order, got {definition.index} at {expected}")
            pieces.append(Piece(definition, PieceState(position=position, group_id=definition.index)))
        return cls(pieces=pieces)

    def __len__(self) -> int:
        return len(self.pieces)

    def normalize_index(self, index: object) -> Optional[int]:
        """Plain int for an integral in-range index (numpy ints included), else None."""
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            return None
        index = operator.index(index)
        if not 0 <= index < len(self.pieces):
            return None
        return index

    def __contains__(self, index: object) -> bool:
        return self.normalize_index(index) is not None

    def __iter__(self) -> Iterator[Piece]:
        return iter(self.pieces)

    def indices(self) -> List[int]:
        return list(range(len(self.pieces)))

    def get(self, index: int) -> Optional[Piece]:
        index = self.normalize_index(index)
        if index is None:
            return None
        return self.pieces[index]

    def set_position(self, index: int, pos: Vec3) -> None:
        self.pieces[index].state.position = pos

    def set_group(self, index: int, group_id: Optional[int]) -> None:
        self.pieces[index].state.group_id = group_id

    def set_placed(self, index: int, placed: bool) -> None:
        self.pieces[index].state.is_placed_in_box = placed

    def set_at_home(self, index: int, at_home: bool) -> None:
        self.pieces[index].state.is_at_home_position = at_home

    def set_locked(self, index: int, locked: bool) -> None:
        self.pieces[index].state.locked = locked

    def snapshot(self) -> List[Dict[str, object]]:
        return [p.to_dict() for p in self.pieces]
