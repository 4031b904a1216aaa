"""
Jigsaw assembly core: pieces, groups, drag, snapping and completion.
"""

from jigsnap.puzzle.geometry import DIRECTION_TABLE, Direction, DirectionSpec, Vec3, Zone, to_vec3
from jigsnap.puzzle.pieces import Connector, ConnectorProfile, Piece, PieceDef, PieceRegistry, PieceState
from jigsnap.puzzle.neighbors import NeighborGraph
from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.drag import DragController, DragRelease, DragSession
from jigsnap.puzzle.snapping import SnapOutcome, SnapResolver, SnapResult
from jigsnap.puzzle.completion import CompletionMonitor
from jigsnap.puzzle.events import EventBus, EventType, PuzzleEvent
from jigsnap.puzzle.layout import build_definitions, home_positions, scatter_positions
from jigsnap.puzzle.game import JigsawPuzzle, PieceView

__all__ = [
    "DIRECTION_TABLE",
    "Direction",
    "DirectionSpec",
    "Vec3",
    "Zone",
    "to_vec3",
    "Connector",
    "ConnectorProfile",
    "Piece",
    "PieceDef",
    "PieceRegistry",
    "PieceState",
    "NeighborGraph",
    "GroupPartition",
    "DragController",
    "DragRelease",
    "DragSession",
    "SnapOutcome",
    "SnapResolver",
    "SnapResult",
    "CompletionMonitor",
    "EventBus",
    "EventType",
    "PuzzleEvent",
    "build_definitions",
    "home_positions",
    "scatter_positions",
    "JigsawPuzzle",
    "PieceView",
]
