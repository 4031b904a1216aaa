"""
Drag session controller: moves a whole group as a rigid body under the pointer.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jigsnap.puzzle.geometry import Vec3
from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.pieces import PieceRegistry


@dataclass
class DragSession:
    """State of one press-move-release gesture."""
    anchor_index: int
    group_id: int
    pointer_offset: Vec3
    member_offsets: Dict[int, Vec3]
    start_positions: Dict[int, Vec3]
    live_targets: Dict[int, Vec3] = field(default_factory=dict)
    active: bool = True

    @property
    def members(self) -> List[int]:
        return sorted(self.member_offsets)


@dataclass
class DragRelease:
    """What happened to the pieces when a session ended."""
    anchor_index: int
    dropped_index: int
    group_id: int
    members: List[int]
    drop_position: Vec3
    positions: Dict[int, Vec3]
    cancelled: bool = False


class DragController:
    """Owns at most one active DragSession."""

    def __init__(self, registry: PieceRegistry, partition: GroupPartition,
                 resting_height: float, drag_height: float):
        self.registry = registry
        self.partition = partition
        self.resting_height = resting_height
        self.drag_height = drag_height
        self._session: Optional[DragSession] = None

    @property
    def active(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def session(self) -> Optional[DragSession]:
        return self._session if self.active else None

    def start_drag(self, index: int, pointer_pos: Vec3) -> Optional[DragSession]:
        """
        Begin dragging the group that contains index.

        Returns None (and changes nothing) when a session is already running,
        the index is unknown or locked, or the piece has no group.
        """
        if self.active:
            return None
        anchor = self.registry.get(index)
        if anchor is None or anchor.locked:
            return None
        group_id = self.partition.group_of(anchor.index)
        if group_id is None:
            return None

        pointer_offset = (pointer_pos - anchor.position).planar()
        member_offsets: Dict[int, Vec3] = {}
        start_positions: Dict[int, Vec3] = {}
        for m in self.partition.members_of(group_id):
            position = self.registry.get(m).position
            member_offsets[m] = position - anchor.position
            start_positions[m] = position

        self._session = DragSession(
            anchor_index=anchor.index,
            group_id=group_id,
            pointer_offset=pointer_offset,
            member_offsets=member_offsets,
            start_positions=start_positions,
            live_targets=dict(start_positions),
        )
        return self._session

    def update_drag(self, pointer_pos: Vec3) -> Optional[Dict[int, Vec3]]:
        """Recompute every member's target from the pointer. Idempotent."""
        session = self.session
        if session is None:
            return None
        anchor_target = (pointer_pos - session.pointer_offset).with_height(self.drag_height)
        targets = {}
        for m, offset in session.member_offsets.items():
            targets[m] = (anchor_target + offset).with_height(self.drag_height)
        session.live_targets = targets
        return dict(targets)

    def end_drag(self, dropped_index: int, pointer_pos: Vec3, cancelled: bool = False) -> Optional[DragRelease]:
        """
        Finish the session.

        On cancel nothing is committed and the release carries the pre-drag
        positions. Otherwise the live targets are written to the registry at
        resting height and the release carries the drop position for snapping.
        """
        session = self.session
        if session is None:
            return None
        self._session = None

        dropped_index = self.registry.normalize_index(dropped_index)
        if dropped_index not in session.member_offsets:
            dropped_index = session.anchor_index

        if cancelled:
            return DragRelease(
                anchor_index=session.anchor_index,
                dropped_index=dropped_index,
                group_id=session.group_id,
                members=session.members,
                drop_position=session.start_positions[dropped_index].planar(),
                positions=dict(session.start_positions),
                cancelled=True,
            )

        committed: Dict[int, Vec3] = {}
        for m in session.members:
            target = session.live_targets.get(m, session.start_positions[m])
            committed[m] = target.with_height(self.resting_height)
            self.registry.set_position(m, committed[m])

        last_target = session.live_targets.get(dropped_index)
        drop_position = last_target.planar() if last_target is not None else pointer_pos.planar()

        return DragRelease(
            anchor_index=session.anchor_index,
            dropped_index=dropped_index,
            group_id=session.group_id,
            members=session.members,
            drop_position=drop_position,
            positions=committed,
        )

    def cancel(self) -> Optional[DragRelease]:
        """Force-clear the session, e.g. when the input surface loses focus."""
        session = self.session
        if session is None:
            return None
        return self.end_drag(session.anchor_index, session.start_positions[session.anchor_index], cancelled=True)

    def reset(self) -> None:
        self._session = None
