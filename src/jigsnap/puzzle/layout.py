"""
Board layout: home positions, connector shapes and the initial scatter.
"""

import math
from typing import List, Optional

import numpy as np

from jigsnap.core.config import BoardConfig, ScatterConfig
from jigsnap.puzzle.geometry import Vec3
from jigsnap.puzzle.pieces import Connector, ConnectorProfile, PieceDef


def home_position(board: BoardConfig, row: int, col: int) -> Vec3:
    """World position of cell (row, col); rows grow toward +z, columns toward +x."""
    cx, cz = board.zone_center
    pw, ph = board.piece_width, board.piece_height
    start_x = cx - board.cols * pw / 2 + pw / 2
    start_z = cz - board.rows * ph / 2 + ph / 2
    return Vec3(start_x + col * pw, board.resting_height, start_z + row * ph)


def home_positions(board: BoardConfig) -> List[Vec3]:
    return [home_position(board, r, c) for r in range(board.rows) for c in range(board.cols)]


def connector_profile(board: BoardConfig, row: int, col: int) -> ConnectorProfile:
    """
    Tab/slot shape of cell (row, col).

    Horizontal joints alternate by row and vertical joints by column; a
    facing pair is always one tab and one slot, and border edges are flat.
    """
    def right_of(r: int) -> Connector:
        return Connector.SLOT if r % 2 == 0 else Connector.TAB

    def bottom_of(c: int) -> Connector:
        return Connector.TAB if c % 2 == 0 else Connector.SLOT

    left = Connector(-right_of(row)) if col > 0 else Connector.FLAT
    right = right_of(row) if col < board.cols - 1 else Connector.FLAT
    top = Connector(-bottom_of(col)) if row > 0 else Connector.FLAT
    bottom = bottom_of(col) if row < board.rows - 1 else Connector.FLAT
    return ConnectorProfile(left=left, right=right, top=top, bottom=bottom)


def build_definitions(board: BoardConfig) -> List[PieceDef]:
    """Row-major PieceDefs for the whole board."""
    definitions = []
    for r in range(board.rows):
        for c in range(board.cols):
            definitions.append(PieceDef(
                index=r * board.cols + c,
                home_cell=(r, c),
                connector_profile=connector_profile(board, r, c),
                home_position=home_position(board, r, c),
            ))
    return definitions


def scatter_positions(board: BoardConfig, scatter: ScatterConfig, count: Optional[int] = None,
                      seed: Optional[int] = None) -> List[Vec3]:
    """
    Spread pieces on a ring around the zone.

    Piece i sits at angle i*2pi/N plus jitter and at a radius that always
    clears the zone rectangle.

    Args:
        board: Board geometry
        scatter: Ring radius and jitter
        count: Number of pieces (defaults to the board's piece count)
        seed: Overrides scatter.seed when given

    Returns:
        One resting position per piece
    """
    n = board.piece_count if count is None else count
    rng = np.random.default_rng(seed if seed is not None else scatter.seed)
    cx, cz = board.zone_center
    base_radius = max(scatter.radius, board.scatter_reach)

    positions = []
    for i in range(n):
        angle = i * 2 * math.pi / n + rng.uniform(0.0, scatter.angle_jitter)
        radius = base_radius + rng.uniform(0.0, scatter.radius_jitter)
        positions.append(Vec3(
            cx + float(np.cos(angle)) * radius,
            board.resting_height,
            cz + float(np.sin(angle)) * radius,
        ))
    return positions
