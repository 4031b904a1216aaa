"""
JigsawPuzzle: the assembly core behind a pointer-driven front end.

Wires the piece registry, neighbor graph, group partition, drag controller,
snap resolver and completion monitor together and publishes PuzzleEvents.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from jigsnap.core.config import PuzzleConfig
from jigsnap.puzzle.completion import CompletionMonitor
from jigsnap.puzzle.drag import DragController, DragRelease, DragSession
from jigsnap.puzzle.events import EventBus, EventType, PuzzleEvent
from jigsnap.puzzle.geometry import PointLike, Vec3, Zone, to_vec3
from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.layout import build_definitions, scatter_positions
from jigsnap.puzzle.neighbors import NeighborGraph
from jigsnap.puzzle.pieces import PieceRegistry
from jigsnap.puzzle.snapping import SnapOutcome, SnapResolver, SnapResult
from jigsnap.utils.display import LiveLogger


OUTCOME_EVENTS = {
    SnapOutcome.SNAPPED_HOME: EventType.SNAPPED_HOME,
    SnapOutcome.SNAPPED_TO_NEIGHBOR: EventType.SNAPPED_TO_NEIGHBOR,
    SnapOutcome.PLACED_NO_SNAP: EventType.PLACED_NO_SNAP,
    SnapOutcome.DROPPED_OUTSIDE_ZONE: EventType.DROPPED_OUTSIDE_ZONE,
}


@dataclass
class PieceView:
    """What a renderer needs to draw one piece."""
    index: int
    position: Vec3
    group_id: Optional[int]
    is_placed_in_box: bool
    is_at_home_position: bool
    locked: bool = False


class JigsawPuzzle:
    """
    Pointer events in, positions and events out.

    Every public operation tolerates bad or out-of-order input and answers
    with None instead of raising.
    """

    def __init__(self, config: Any = None, logger: Optional[LiveLogger] = None):
        """
        Args:
            config: PuzzleConfig, or any config carrying one as .puzzle
                (e.g. the jigsaw environment config). Defaults to the 4x3 board.
            logger: LiveLogger for event output (silent when omitted)
        """
        if config is None:
            config = PuzzleConfig()
        self.config: PuzzleConfig = getattr(config, "puzzle", config)
        self.board = self.config.board
        self.logger = logger or LiveLogger(verbose=False)

        definitions = build_definitions(self.board)
        positions = scatter_positions(self.board, self.config.scatter, len(definitions))
        self.registry = PieceRegistry.from_definitions(definitions, positions)
        self.graph = NeighborGraph.from_grid(self.board.rows, self.board.cols)
        self.partition = GroupPartition(self.registry)
        self.drag = DragController(
            self.registry, self.partition,
            resting_height=self.board.resting_height,
            drag_height=self.board.drag_height,
        )
        self.resolver = SnapResolver(self.registry, self.graph, self.partition, self.board, self.config.snap)
        self.monitor = CompletionMonitor(self.registry, self.partition)
        self.events = EventBus(logger=self.logger)
        self.zone = Zone(*self.board.zone_bounds)
        self._last_pointer: Optional[Vec3] = None

    # ----- queries -----

    @property
    def piece_count(self) -> int:
        return len(self.registry)

    @property
    def solved(self) -> bool:
        return self.monitor.solved

    @property
    def dragging(self) -> bool:
        return self.drag.active

    def groups(self) -> Dict[int, List[int]]:
        return self.partition.groups()

    def group_count(self) -> int:
        return self.partition.group_count()

    def piece_view(self, index: int) -> Optional[PieceView]:
        piece = self.registry.get(index)
        if piece is None:
            return None
        return PieceView(
            index=piece.index,
            position=piece.position,
            group_id=piece.group_id,
            is_placed_in_box=piece.is_placed_in_box,
            is_at_home_position=piece.is_at_home_position,
            locked=piece.locked,
        )

    def snapshot(self) -> List[Dict[str, object]]:
        return self.registry.snapshot()

    def render_targets(self) -> Dict[int, Vec3]:
        """Live drag targets for pieces in the air, committed positions for the rest."""
        targets = {p.index: p.position for p in self.registry}
        session = self.drag.session
        if session is not None:
            targets.update(session.live_targets)
        return targets

    def subscribe(self, callback: Callable[[PuzzleEvent], None],
                  event_type: Optional[EventType] = None) -> Callable[[], None]:
        return self.events.subscribe(callback, event_type)

    # ----- pointer input -----

    def pointer_down(self, index: int, pointer: PointLike) -> Optional[DragSession]:
        point = self._coerce(pointer)
        if point is None:
            return None
        session = self.drag.start_drag(index, point)
        if session is None:
            return None
        self._last_pointer = point
        self._emit(EventType.PIECE_GRABBED, piece_index=session.anchor_index, group_id=session.group_id,
                   members=session.members, targets=dict(session.live_targets))
        return session

    def pointer_move(self, pointer: PointLike) -> Optional[Dict[int, Vec3]]:
        session = self.drag.session
        point = self._coerce(pointer)
        if session is None or point is None:
            return None
        before = dict(session.live_targets)
        targets = self.drag.update_drag(point)
        self._last_pointer = point
        if targets != before:
            self._emit(EventType.DRAG_UPDATED, piece_index=session.anchor_index, group_id=session.group_id,
                       members=session.members, targets=targets)
        return targets

    def tick(self, pointer: Optional[PointLike] = None) -> Optional[Dict[int, Vec3]]:
        """Re-sample the pointer while dragging; a no-op otherwise."""
        if not self.drag.active:
            return None
        if pointer is None:
            pointer = self._last_pointer
        if pointer is None:
            return None
        return self.pointer_move(pointer)

    def pointer_up(self, index: Optional[int] = None, pointer: Optional[PointLike] = None) -> Optional[SnapResult]:
        """
        Release the dragged group and resolve the drop.

        Args:
            index: Piece under the pointer; the grabbed piece when omitted
                or not a valid index
            pointer: Final pointer position; when given the drag is updated
                to it before release

        Returns:
            SnapResult, or None when no drag was active
        """
        session = self.drag.session
        if session is None:
            return None
        if pointer is not None:
            self.pointer_move(pointer)
        dropped = self.registry.normalize_index(index)
        if dropped is None:
            dropped = session.anchor_index
        fallback = self._last_pointer or self.registry.get(session.anchor_index).position

        release = self.drag.end_drag(dropped, fallback)
        self._last_pointer = None
        result = self.resolver.resolve(release.dropped_index, release.drop_position)

        self._emit(OUTCOME_EVENTS[result.outcome], piece_index=result.dropped_index, group_id=result.group_id,
                   members=result.members, neighbor_index=result.neighbor_index, targets=dict(result.targets))

        if self.monitor.check():
            if self.config.lock_on_solve:
                for i in self.registry.indices():
                    self.registry.set_locked(i, True)
            self._emit(EventType.PUZZLE_SOLVED, piece_index=result.dropped_index, group_id=result.group_id,
                       members=self.registry.indices())
        return result

    def pointer_cancel(self) -> Optional[DragRelease]:
        """Abort the drag (e.g. focus lost); nothing is committed."""
        release = self.drag.cancel()
        if release is None:
            return None
        self._last_pointer = None
        self._emit(EventType.DRAG_CANCELLED, piece_index=release.anchor_index, group_id=release.group_id,
                   members=release.members, targets=dict(release.positions))
        return release

    # ----- lifecycle -----

    def reset(self, seed: Optional[int] = None) -> List[Vec3]:
        """
        Start over: singleton groups, cleared flags, pieces scattered outside the zone.

        Returns:
            The new piece positions
        """
        self.drag.reset()
        self._last_pointer = None
        self.partition.reset()
        positions = scatter_positions(self.board, self.config.scatter, len(self.registry), seed=seed)
        for i, position in zip(self.registry.indices(), positions):
            self.registry.set_position(i, position)
            self.registry.set_placed(i, False)
            self.registry.set_at_home(i, False)
            self.registry.set_locked(i, False)
        self.monitor.reset()
        self._emit(EventType.PUZZLE_RESET, members=self.registry.indices(),
                   targets={i: p for i, p in enumerate(positions)})
        return positions

    # ----- helpers -----

    def _coerce(self, pointer: PointLike) -> Optional[Vec3]:
        try:
            return to_vec3(pointer)
        except (TypeError, ValueError):
            return None

    def _emit(self, event_type: EventType, **fields: Any) -> PuzzleEvent:
        event = self.events.emit(PuzzleEvent(type=event_type, **fields))
        if event_type not in (EventType.DRAG_UPDATED, EventType.PIECE_GRABBED):
            self.logger.log_event(event_type.value, self._describe(event))
        return event

    @staticmethod
    def _describe(event: PuzzleEvent) -> str:
        parts = []
        if event.piece_index is not None:
            parts.append(f"piece {event.piece_index}")
        if event.neighbor_index is not None:
            parts.append(f"neighbor {event.neighbor_index}")
        if event.group_id is not None:
            parts.append(f"group {event.group_id}")
        return ", ".join(parts)
