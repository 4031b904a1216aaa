"""
One-shot solved detection.
"""

from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.pieces import PieceRegistry


class CompletionMonitor:
    """
    Unsolved -> Solved state machine.

    The puzzle is solved when every piece shares the reference piece's group
    and every piece is placed in the zone. check() reports the transition
    exactly once; reset() re-arms it.
    """

    def __init__(self, registry: PieceRegistry, partition: GroupPartition, reference_index: int = 0):
        if reference_index not in registry:
            raise ValueError(f"reference_index {reference_index} is not a piece")
        self.registry = registry
        self.partition = partition
        self.reference_index = reference_index
        self._solved = False

    @property
    def solved(self) -> bool:
        return self._solved

    def is_complete(self) -> bool:
        reference_group = self.partition.group_of(self.reference_index)
        if reference_group is None:
            return False
        for piece in self.registry:
            if piece.group_id != reference_group or not piece.is_placed_in_box:
                return False
        return True

    def check(self) -> bool:
        """True only on the call that observes the transition to solved."""
        if self._solved:
            return False
        if self.is_complete():
            self._solved = True
            return True
        return False

    def reset(self) -> None:
        self._solved = False
