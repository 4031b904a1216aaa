"""
Snap resolution for a released drag.

A drop is classified, in priority order, as outside the zone, a home snap,
a neighbor snap or a plain placement. Exactly one SnapResult comes back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from jigsnap.core.config import BoardConfig, SnapConfig
from jigsnap.puzzle.geometry import (
    DIRECTION_TABLE, Direction, Vec3, Zone, offset_along, opposite,
)
from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.neighbors import NeighborGraph
from jigsnap.puzzle.pieces import PieceRegistry


class SnapOutcome(Enum):
    """How a drop was resolved."""
    SNAPPED_HOME = "SnappedHome"
    SNAPPED_TO_NEIGHBOR = "SnappedToNeighbor"
    PLACED_NO_SNAP = "PlacedNoSnap"
    DROPPED_OUTSIDE_ZONE = "DroppedOutsideZone"


@dataclass
class SnapResult:
    """Outcome of one resolve() call."""
    outcome: SnapOutcome
    dropped_index: int
    group_id: Optional[int]
    members: List[int] = field(default_factory=list)
    neighbor_index: Optional[int] = None
    translation: Vec3 = Vec3(0.0, 0.0, 0.0)
    merged_from: Optional[int] = None
    merged_groups: List[int] = field(default_factory=list)
    targets: Dict[int, Vec3] = field(default_factory=dict)

    @property
    def snapped(self) -> bool:
        return self.outcome in (SnapOutcome.SNAPPED_HOME, SnapOutcome.SNAPPED_TO_NEIGHBOR)

    def to_dict(self) -> Dict[str, object]:
        return {
            "outcome": self.outcome.value,
            "dropped_index": self.dropped_index,
            "group_id": self.group_id,
            "members": list(self.members),
            "neighbor_index": self.neighbor_index,
            "translation": list(self.translation.to_tuple()),
            "merged_from": self.merged_from,
            "merged_groups": list(self.merged_groups),
            "targets": {str(k): list(v.to_tuple()) for k, v in self.targets.items()},
        }


class SnapResolver:
    """Decides what a drop does to positions, flags and groups."""

    def __init__(self, registry: PieceRegistry, graph: NeighborGraph,
                 partition: GroupPartition, board: BoardConfig, snap: SnapConfig):
        self.registry = registry
        self.graph = graph
        self.partition = partition
        self.board = board
        self.snap = snap
        self.zone = Zone(*board.zone_bounds)
        self.home_snap_radius = snap.home_snap_radius(board)

    def resolve(self, dropped_index: int, drop_position: Vec3) -> SnapResult:
        """
        Resolve a drop of dropped_index's group at drop_position.

        Args:
            dropped_index: Piece the pointer was released over
            drop_position: Planar drop point (y is ignored)

        Returns:
            SnapResult describing the single outcome
        """
        drop = drop_position.planar()
        group_id = self.partition.group_of(dropped_index)
        members = self.partition.members_of(group_id)

        if not self.zone.contains(drop):
            for m in members:
                self.registry.set_placed(m, False)
            self._refresh_at_home(members)
            return SnapResult(
                outcome=SnapOutcome.DROPPED_OUTSIDE_ZONE,
                dropped_index=dropped_index,
                group_id=group_id,
                members=members,
                targets=self._positions(members),
            )

        for m in members:
            self.registry.set_placed(m, True)

        home = self.registry.get(dropped_index).home_position
        if drop.planar_distance(home) <= self.home_snap_radius:
            return self._apply_home_snap(dropped_index, group_id, members, drop, home)

        candidate = self._best_neighbor(dropped_index, group_id, drop)
        if candidate is not None:
            neighbor_index, direction = candidate
            return self._apply_neighbor_snap(dropped_index, group_id, members, drop, neighbor_index, direction)

        self._refresh_at_home(members)
        return SnapResult(
            outcome=SnapOutcome.PLACED_NO_SNAP,
            dropped_index=dropped_index,
            group_id=group_id,
            members=members,
            targets=self._positions(members),
        )

    def candidates(self, dropped_index: int) -> List[Tuple[int, Direction]]:
        """(neighbor, direction from dropped piece) pairs in ascending neighbor order."""
        found: Dict[int, Direction] = {}
        for direction, n in self.graph.neighbors_of(dropped_index).items():
            found.setdefault(n, direction)
        for other, direction in self.graph.pointing_at(dropped_index):
            found.setdefault(other, opposite(direction))
        return sorted(found.items())

    def _best_neighbor(self, dropped_index: int, group_id: Optional[int],
                       drop: Vec3) -> Optional[Tuple[int, Direction]]:
        best = None
        best_distance = None
        for n, direction in self.candidates(dropped_index):
            neighbor = self.registry.get(n)
            if neighbor is None or not neighbor.is_placed_in_box:
                continue
            if self.partition.group_of(n) == group_id:
                continue

            axis_info = DIRECTION_TABLE[direction]
            delta = drop - neighbor.position
            along = delta.axis(axis_info.axis)
            across = delta.axis(axis_info.perpendicular_axis)
            pitch = self.board.pitch(axis_info.axis)

            if abs(across) >= self.snap.perpendicular_ratio * self.board.pitch(axis_info.perpendicular_axis):
                continue
            if not self.snap.min_distance_ratio * pitch < abs(along) < self.snap.max_distance_ratio * pitch:
                continue
            # the drop must sit on the far side of n, where the dropped piece belongs
            if along * axis_info.sign >= 0:
                continue

            if best_distance is None or abs(along) < best_distance:
                best = (n, direction)
                best_distance = abs(along)
        return best

    def _apply_home_snap(self, dropped_index: int, group_id: Optional[int], members: List[int],
                         drop: Vec3, home: Vec3) -> SnapResult:
        translation = home.planar() - drop
        self._translate(members, translation)
        self.registry.set_position(dropped_index, home.with_height(self.board.resting_height))
        self._refresh_at_home(members)
        self.registry.set_at_home(dropped_index, True)

        merged_groups: List[int] = []
        final_group = group_id
        if self.snap.merge_home_neighbors:
            final_group, merged_groups = self._merge_home_neighbors(group_id)

        return SnapResult(
            outcome=SnapOutcome.SNAPPED_HOME,
            dropped_index=dropped_index,
            group_id=final_group,
            members=members,
            translation=translation,
            merged_from=group_id if merged_groups else None,
            merged_groups=merged_groups,
            targets=self._positions(members),
        )

    def _merge_home_neighbors(self, group_id: Optional[int]) -> Tuple[Optional[int], List[int]]:
        """Join every placed, at-home group that touches an at-home member of group_id."""
        current = group_id
        absorbed: List[int] = []
        changed = True
        while changed:
            changed = False
            for m in self.partition.members_of(current):
                if not self.registry.get(m).is_at_home_position:
                    continue
                for n in sorted(self.graph.neighbors_of(m).values()):
                    other = self.registry.get(n)
                    if not (other.is_placed_in_box and other.is_at_home_position):
                        continue
                    other_group = self.partition.group_of(n)
                    if other_group == current:
                        continue
                    self.partition.merge(current, other_group)
                    absorbed.append(current)
                    current = other_group
                    changed = True
                    break
                if changed:
                    break
        return current, absorbed

    def _apply_neighbor_snap(self, dropped_index: int, group_id: Optional[int], members: List[int],
                             drop: Vec3, neighbor_index: int, direction: Direction) -> SnapResult:
        axis_info = DIRECTION_TABLE[direction]
        neighbor_pos = self.registry.get(neighbor_index).position
        snapped = (neighbor_pos.planar() - offset_along(axis_info.axis, axis_info.sign * self.board.pitch(axis_info.axis)))
        translation = snapped - drop

        self._translate(members, translation)
        self.registry.set_position(dropped_index, snapped.with_height(self.board.resting_height))
        self._refresh_at_home(members)

        target_group = self.partition.group_of(neighbor_index)
        self.partition.merge(group_id, target_group)

        return SnapResult(
            outcome=SnapOutcome.SNAPPED_TO_NEIGHBOR,
            dropped_index=dropped_index,
            group_id=target_group,
            members=members,
            neighbor_index=neighbor_index,
            translation=translation,
            merged_from=group_id,
            merged_groups=[group_id],
            targets=self._positions(members),
        )

    def _translate(self, members: List[int], translation: Vec3) -> None:
        for m in members:
            moved = self.registry.get(m).position + translation
            self.registry.set_position(m, moved.with_height(self.board.resting_height))

    def _refresh_at_home(self, members: List[int]) -> None:
        eps = self.snap.position_epsilon
        for m in members:
            piece = self.registry.get(m)
            at_home = piece.is_placed_in_box and piece.position.is_close(piece.home_position, eps)
            self.registry.set_at_home(m, at_home)

    def _positions(self, members: List[int]) -> Dict[int, Vec3]:
        return {m: self.registry.get(m).position for m in members}
