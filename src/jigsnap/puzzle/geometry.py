"""
Planar geometry for the jigsaw board.

Pieces live on the XZ plane; Y is only the visual height (resting or lifted
while dragged) and never takes part in a geometric decision.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple, Union


@dataclass(frozen=True)
class Vec3:
    """3D point/vector. x and z span the board, y is height."""
    x: float
    y: float
    z: float

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def planar(self) -> "Vec3":
        """Drop the height component."""
        return Vec3(self.x, 0.0, self.z)

    def with_height(self, y: float) -> "Vec3":
        return Vec3(self.x, y, self.z)

    def axis(self, name: str) -> float:
        """Component by axis name ('x' or 'z')."""
        if name == "x":
            return self.x
        if name == "z":
            return self.z
        raise ValueError(f"Unknown planar axis: {name}")

    def planar_distance(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dz = self.z - other.z
        return (dx * dx + dz * dz) ** 0.5

    def is_close(self, other: "Vec3", eps: float = 1e-6) -> bool:
        """Planar equality within eps."""
        return abs(self.x - other.x) <= eps and abs(self.z - other.z) <= eps

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @staticmethod
    def from_list(lst: Sequence[float]) -> "Vec3":
        return Vec3(float(lst[0]), float(lst[1]), float(lst[2]))


PointLike = Union[Vec3, Sequence[float]]


def to_vec3(point: PointLike, height: float = 0.0) -> Vec3:
    """
    Coerce pointer input to Vec3.

    A 2-sequence is read as (x, z); a 3-sequence as (x, y, z).
    """
    if isinstance(point, Vec3):
        return point
    values = list(point)
    if len(values) == 2:
        return Vec3(float(values[0]), float(height), float(values[1]))
    if len(values) == 3:
        return Vec3.from_list(values)
    raise ValueError(f"Expected a 2D (x, z) or 3D (x, y, z) point, got {len(values)} values")


class Direction(Enum):
    """Cardinal direction on the board, as seen from a piece."""
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class DirectionSpec:
    """Where the neighbor in a direction sits: sign * pitch along axis."""
    axis: str
    sign: int
    opposite: Direction

    @property
    def perpendicular_axis(self) -> str:
        return "z" if self.axis == "x" else "x"


# Rows grow toward +z, columns toward +x.
DIRECTION_TABLE: Dict[Direction, DirectionSpec] = {
    Direction.LEFT: DirectionSpec(axis="x", sign=-1, opposite=Direction.RIGHT),
    Direction.RIGHT: DirectionSpec(axis="x", sign=1, opposite=Direction.LEFT),
    Direction.TOP: DirectionSpec(axis="z", sign=-1, opposite=Direction.BOTTOM),
    Direction.BOTTOM: DirectionSpec(axis="z", sign=1, opposite=Direction.TOP),
}

# (row, col) step for each direction
GRID_STEPS: Dict[Direction, Tuple[int, int]] = {
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
    Direction.TOP: (-1, 0),
    Direction.BOTTOM: (1, 0),
}


def opposite(direction: Direction) -> Direction:
    return DIRECTION_TABLE[direction].opposite


def offset_along(axis: str, amount: float) -> Vec3:
    """Planar vector of length amount along axis."""
    if axis == "x":
        return Vec3(amount, 0.0, 0.0)
    return Vec3(0.0, 0.0, amount)


@dataclass(frozen=True)
class Zone:
    """Axis-aligned assembly rectangle on the board (bounds inclusive)."""
    min_x: float
    max_x: float
    min_z: float
    max_z: float

    @staticmethod
    def centered(center_x: float, center_z: float, width: float, height: float) -> "Zone":
        return Zone(
            min_x=center_x - width / 2,
            max_x=center_x + width / 2,
            min_z=center_z - height / 2,
            max_z=center_z + height / 2,
        )

    def contains(self, point: Vec3) -> bool:
        return self.min_x <= point.x <= self.max_x and self.min_z <= point.z <= self.max_z
