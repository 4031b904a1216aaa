"""
Partition of piece indices into rigidly connected groups.

Groups are not objects: a group is the set of pieces sharing a group_id.
Merging relabels every member of the source group, which is O(N) and fine
for puzzles of a dozen pieces.
"""

from typing import Dict, List, Optional

from jigsnap.puzzle.pieces import PieceRegistry


class GroupPartition:
    """Group queries and merges over the labels stored in a PieceRegistry."""

    def __init__(self, registry: PieceRegistry):
        self.registry = registry

    def group_of(self, index: int) -> Optional[int]:
        piece = self.registry.get(index)
        if piece is None:
            return None
        return piece.group_id

    def members_of(self, group_id: Optional[int]) -> List[int]:
        if group_id is None:
            return []
        return [p.index for p in self.registry if p.group_id == group_id]

    def merge(self, group_a: Optional[int], group_b: Optional[int]) -> List[int]:
        """
        Move every member of group_a into group_b.

        Returns:
            Indices that were relabeled (empty for a no-op).
        """
        if group_a is None or group_b is None or group_a == group_b:
            return []
        moved = self.members_of(group_a)
        for idx in moved:
            self.registry.set_group(idx, group_b)
        self.check_invariants()
        return moved

    def groups(self) -> Dict[int, List[int]]:
        result: Dict[int, List[int]] = {}
        for piece in self.registry:
            result.setdefault(piece.group_id, []).append(piece.index)
        return result

    def group_count(self) -> int:
        return len(self.groups())

    def reset(self) -> None:
        """Every piece back in its own singleton group."""
        for idx in self.registry.indices():
            self.registry.set_group(idx, idx)
        self.check_invariants()

    def check_invariants(self) -> None:
        """
        Fail loudly on a broken partition: a dangling label, or groups that do
        not cover every piece exactly once. A valid event sequence never
        produces either. Raises AssertionError even under ``python -O``.
        """
        for piece in self.registry:
            if not isinstance(piece.group_id, int) or isinstance(piece.group_id, bool):
                raise AssertionError(f"Piece {piece.index} has no valid group id: {piece.group_id!r}")
        covered: List[int] = []
        for group_id, members in self.groups().items():
            if not members:
                raise AssertionError(f"Group {group_id} is empty")
            covered.extend(members)
        if sorted(covered) != self.registry.indices():
            raise AssertionError(f"Groups do not cover every piece exactly once: {sorted(covered)}")
