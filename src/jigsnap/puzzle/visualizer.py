"""
Top-down matplotlib view of the board, for debugging and observations.
"""

import io
from typing import List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Polygon, Rectangle
from PIL import Image

from jigsnap.puzzle.geometry import Direction, Vec3
from jigsnap.puzzle.pieces import Connector, ConnectorProfile


# One color per group id
GROUP_COLORS = [
    '#FF6B6B',  # red
    '#4ECDC4',  # teal
    '#45B7D1',  # blue
    '#96CEB4',  # green
    '#FFEAA7',  # yellow
    '#DFE6E9',  # grey
    '#FD79A8',  # pink
    '#A29BFE',  # purple
    '#74B9FF',  # light blue
    '#55EFC4',  # mint
    '#FDCB6E',  # orange
    '#E17055',  # burnt orange
]


def get_group_color(group_id: Optional[int]) -> str:
    if group_id is None:
        return GROUP_COLORS[0]
    return GROUP_COLORS[group_id % len(GROUP_COLORS)]


def piece_outline(center: Vec3, width: float, height: float, profile: ConnectorProfile,
                  tab_ratio: float = 0.18, samples: int = 12) -> np.ndarray:
    """
    Polygon (x, z) of a piece body with semicircular tabs and slots.

    Edges are walked top, right, bottom, left. A tab bulges out of its edge,
    a slot bites into it.
    """
    hw, hh = width / 2, height / 2
    radius = tab_ratio * min(width, height)
    cx, cz = center.x, center.z
    corners = np.array([
        [cx - hw, cz - hh],
        [cx + hw, cz - hh],
        [cx + hw, cz + hh],
        [cx - hw, cz + hh],
    ])
    edges = [
        (Direction.TOP, np.array([0.0, -1.0])),
        (Direction.RIGHT, np.array([1.0, 0.0])),
        (Direction.BOTTOM, np.array([0.0, 1.0])),
        (Direction.LEFT, np.array([-1.0, 0.0])),
    ]

    points: List[np.ndarray] = []
    thetas = np.linspace(np.pi, 0.0, samples)
    for i, (direction, normal) in enumerate(edges):
        start, end = corners[i], corners[(i + 1) % 4]
        points.append(start)
        connector = profile.side(direction)
        if connector == Connector.FLAT:
            continue
        tangent = (end - start) / np.linalg.norm(end - start)
        mid = (start + end) / 2
        bulge = normal * int(connector)
        arc = mid + radius * (np.outer(np.cos(thetas), tangent) + np.outer(np.sin(thetas), bulge))
        points.extend(arc)
    return np.array(points)


def visualize_board(puzzle, title: str = "Jigsaw board",
                    figsize: Tuple[float, float] = (8, 6),
                    show_home: bool = True) -> plt.Figure:
    """
    Draw the zone, home cells and every piece at its render target.

    Args:
        puzzle: JigsawPuzzle to draw
        title: Figure title; the solved status is appended
        figsize: Figure size in inches
        show_home: Whether to outline the home cells

    Returns:
        matplotlib Figure object
    """
    board = puzzle.board
    pw, ph = board.piece_width, board.piece_height
    fig, ax = plt.subplots(figsize=figsize)

    min_x, max_x, min_z, max_z = board.zone_bounds
    ax.add_patch(Rectangle((min_x, min_z), max_x - min_x, max_z - min_z,
                           fill=True, facecolor='#F5F5F5', edgecolor='black', linewidth=2, zorder=0))

    if show_home:
        for piece in puzzle.registry:
            home = piece.home_position
            ax.add_patch(Rectangle((home.x - pw / 2, home.z - ph / 2), pw, ph,
                                   fill=False, edgecolor='gray', linestyle='--', linewidth=0.8, zorder=1))
            ax.text(home.x, home.z, str(piece.index), color='lightgray',
                    ha='center', va='center', fontsize=8, zorder=1)

    targets = puzzle.render_targets()
    dragging = set(puzzle.drag.session.members) if puzzle.drag.session else set()
    cx, cz = board.zone_center
    extent = [board.puzzle_width / 2, board.puzzle_height / 2]
    for piece in puzzle.registry:
        pos = targets[piece.index]
        outline = piece_outline(pos, pw, ph, piece.connector_profile)
        lifted = piece.index in dragging
        ax.add_patch(Polygon(outline, closed=True,
                             facecolor=get_group_color(piece.group_id),
                             edgecolor='red' if lifted else 'black',
                             linewidth=2.0 if lifted else 1.0,
                             alpha=0.95, zorder=3 if lifted else 2))
        marker = "*" if piece.is_at_home_position else ""
        ax.text(pos.x, pos.z, f"{piece.index}{marker}", ha='center', va='center',
                fontsize=10, fontweight='bold', zorder=4)
        extent.extend([abs(pos.x - cx) + pw, abs(pos.z - cz) + ph])

    limit = max(extent) + 0.5
    ax.set_xlim(cx - limit, cx + limit)
    ax.set_ylim(cz + limit, cz - limit)
    ax.set_aspect('equal')
    ax.set_xlabel("x")
    ax.set_ylabel("z")

    status = "SOLVED" if puzzle.solved else f"{puzzle.group_count()} groups"
    ax.set_title(f"{title} ({status})", fontsize=12, fontweight='bold')
    fig.tight_layout()
    return fig


def figure_to_image(fig: plt.Figure, dpi: int = 100) -> Image.Image:
    """Rasterize a figure to an RGB PIL image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi)
    buf.seek(0)
    img = Image.open(buf).convert("RGB")
    plt.close(fig)
    return img


def save_visualization(fig: plt.Figure, filename: str, dpi: int = 150):
    fig.savefig(filename, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
