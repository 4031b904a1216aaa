"""
Events published by the puzzle to the presentation layer.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple

from jigsnap.puzzle.geometry import Vec3
from jigsnap.utils.display import LiveLogger


class EventType(Enum):
    PIECE_GRABBED = "PIECE_GRABBED"
    DRAG_UPDATED = "DRAG_UPDATED"
    DRAG_CANCELLED = "DRAG_CANCELLED"
    SNAPPED_HOME = "SNAPPED_HOME"
    SNAPPED_TO_NEIGHBOR = "SNAPPED_TO_NEIGHBOR"
    PLACED_NO_SNAP = "PLACED_NO_SNAP"
    DROPPED_OUTSIDE_ZONE = "DROPPED_OUTSIDE_ZONE"
    PUZZLE_SOLVED = "PUZZLE_SOLVED"
    PUZZLE_RESET = "PUZZLE_RESET"


@dataclass
class PuzzleEvent:
    """
    One notification. targets maps piece index to the position the
    animation layer should ease that piece toward.
    """
    type: EventType
    piece_index: Optional[int] = None
    group_id: Optional[int] = None
    members: List[int] = field(default_factory=list)
    neighbor_index: Optional[int] = None
    targets: Dict[int, Vec3] = field(default_factory=dict)
    sequence: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type.value,
            "piece_index": self.piece_index,
            "group_id": self.group_id,
            "members": list(self.members),
            "neighbor_index": self.neighbor_index,
            "targets": {str(k): [round(c, 6) for c in v.to_tuple()] for k, v in self.targets.items()},
            "sequence": self.sequence,
        }


Listener = Callable[[PuzzleEvent], None]


class EventBus:
    """
    Synchronous fan-out of PuzzleEvents.

    Listeners run in subscription order inside emit(). A failing listener is
    reported and skipped; the puzzle never sees its exception.
    """

    def __init__(self, history_size: int = 256, logger: Optional[LiveLogger] = None):
        self._listeners: List[Tuple[int, Optional[EventType], Listener]] = []
        self._next_token = 0
        self._sequence = 0
        self.history: Deque[PuzzleEvent] = deque(maxlen=history_size)
        self._pending: List[PuzzleEvent] = []
        self.logger = logger or LiveLogger(verbose=False)

    def subscribe(self, callback: Listener, event_type: Optional[EventType] = None) -> Callable[[], None]:
        """
        Register callback for event_type (or every type when None).

        Returns:
            A function that removes the subscription when called
        """
        token = self._next_token
        self._next_token += 1
        self._listeners.append((token, event_type, callback))

        def unsubscribe() -> None:
            self._listeners = [entry for entry in self._listeners if entry[0] != token]

        return unsubscribe

    def emit(self, event: PuzzleEvent) -> PuzzleEvent:
        self._sequence += 1
        event.sequence = self._sequence
        self.history.append(event)
        self._pending.append(event)

        for _, wanted, callback in list(self._listeners):
            if wanted is not None and wanted != event.type:
                continue
            try:
                callback(event)
            except Exception as e:
                self.logger.log_warning(f"Listener for {event.type.value} failed: {e}")
        return event

    def drain(self) -> List[PuzzleEvent]:
        """Events emitted since the last drain, oldest first."""
        pending, self._pending = self._pending, []
        return pending

    def clear(self) -> None:
        self.history.clear()
        self._pending = []
