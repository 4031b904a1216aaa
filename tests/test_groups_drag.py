from pathlib import Path

import numpy as np
import pytest

from jigsnap.puzzle.drag import DragController
from jigsnap.puzzle.geometry import Vec3
from jigsnap.puzzle.groups import GroupPartition
from jigsnap.puzzle.layout import build_definitions
from jigsnap.puzzle.pieces import PieceRegistry
from jigsnap.core import create_environment
from jigsnap.core.config import BoardConfig, load_config
from jigsnap.runner import load_actions


ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def registry():
    board = BoardConfig.from_preset("3x2")
    positions = [Vec3(float(i), 0.101, 10.0) for i in range(board.piece_count)]
    return PieceRegistry.from_definitions(build_definitions(board), positions)


@pytest.fixture
def partition(registry):
    return GroupPartition(registry)


@pytest.fixture
def controller(registry, partition):
    return DragController(registry, partition, resting_height=0.101, drag_height=0.3)


def test_registry_rejects_mismatched_lengths():
    board = BoardConfig.from_preset("3x2")
    with pytest.raises(ValueError):
        PieceRegistry.from_definitions(build_definitions(board), [Vec3(0, 0, 0)])


def test_registry_lookup_ignores_bad_indices(registry):
    assert registry.get(-1) is None
    assert registry.get(6) is None
    assert registry.get(True) is None
    assert registry.get(2).index == 2


def test_registry_accepts_integral_indices_only(registry):
    assert registry.normalize_index(np.int64(3)) == 3
    assert type(registry.normalize_index(np.int64(3))) is int
    assert registry.get(np.int32(4)).index == 4
    assert np.int64(5) in registry
    assert registry.normalize_index(1.0) is None
    assert 1.0 not in registry
    assert registry.normalize_index(False) is None
    assert registry.normalize_index("1") is None


def test_pieces_start_in_singleton_groups(partition):
    assert partition.groups() == {i: [i] for i in range(6)}
    assert partition.group_count() == 6


def test_merge_moves_members_into_target(partition):
    assert partition.merge(1, 0) == [1]
    assert partition.merge(2, 0) == [2]
    assert partition.merge(0, 3) == [0, 1, 2]
    assert partition.members_of(3) == [0, 1, 2, 3]
    assert partition.group_count() == 3


def partition_sets(partition):
    return {frozenset(members) for members in partition.groups().values()}


@pytest.mark.parametrize("a, b", [(0, 1), (2, 5), (4, 3)])
def test_merge_direction_does_not_change_membership(a, b):
    board = BoardConfig.from_preset("3x2")
    positions = [Vec3(float(i), 0.101, 10.0) for i in range(board.piece_count)]
    forward = GroupPartition(PieceRegistry.from_definitions(build_definitions(board), list(positions)))
    backward = GroupPartition(PieceRegistry.from_definitions(build_definitions(board), list(positions)))

    forward.merge(forward.group_of(a), forward.group_of(b))
    backward.merge(backward.group_of(b), backward.group_of(a))

    assert partition_sets(forward) == partition_sets(backward)
    for x in range(board.piece_count):
        for y in range(board.piece_count):
            same_forward = forward.group_of(x) == forward.group_of(y)
            assert same_forward == (backward.group_of(x) == backward.group_of(y))


def test_partition_stays_a_cover_through_mixed_session():
    config = load_config(str(ROOT / "configs" / "puzzle_3x2.yaml"))
    env = create_environment(config.environment)
    env.reset()
    partition = env.puzzle.partition
    indices = set(env.puzzle.registry.indices())

    for action in load_actions(ROOT / "examples" / "mixed_3x2.json"):
        result = env.execute_tool_call(action.tool, action.parameters)
        assert result["status"] == "success", result
        partition.check_invariants()
        groups = [set(members) for members in partition.groups().values()]
        assert set().union(*groups) == indices
        assert sum(len(g) for g in groups) == len(indices)
        for index in indices:
            assert index in partition.members_of(partition.group_of(index))

    assert env.puzzle.solved
    assert partition.group_count() == 1


def test_merge_noop_cases(partition):
    assert partition.merge(1, 1) == []
    assert partition.merge(None, 1) == []
    assert partition.merge(1, None) == []
    assert partition.group_count() == 6


def test_reset_restores_singletons(partition):
    partition.merge(0, 1)
    partition.merge(1, 2)
    partition.reset()
    assert partition.groups() == {i: [i] for i in range(6)}


def test_dangling_label_fails_invariant_check(registry, partition):
    registry.set_group(3, None)
    with pytest.raises(AssertionError):
        partition.check_invariants()


def test_start_drag_rejects_unknown_locked_and_second_session(controller, registry):
    assert controller.start_drag(42, Vec3(0, 0, 0)) is None
    registry.set_locked(1, True)
    assert controller.start_drag(1, Vec3(1, 0, 10)) is None
    assert controller.start_drag(0, Vec3(0, 0, 10)) is not None
    assert controller.start_drag(2, Vec3(2, 0, 10)) is None
    assert controller.session.anchor_index == 0


def test_drag_moves_group_rigidly(controller, partition, registry):
    partition.merge(1, 0)
    session = controller.start_drag(1, Vec3(1.2, 0, 10.1))
    assert session.members == [0, 1]

    targets = controller.update_drag(Vec3(3.2, 0, 5.1))
    assert targets[1].x == pytest.approx(3.0)
    assert targets[1].z == pytest.approx(5.0)
    assert targets[0].x == pytest.approx(2.0)
    assert targets[0].z == pytest.approx(5.0)
    assert all(t.y == pytest.approx(0.3) for t in targets.values())
    # registry only changes on release
    assert registry.get(1).position == Vec3(1.0, 0.101, 10.0)

    assert controller.update_drag(Vec3(3.2, 0, 5.1)) == targets


def test_end_drag_commits_at_resting_height(controller, registry):
    controller.start_drag(2, Vec3(2, 0, 10))
    controller.update_drag(Vec3(-1, 0, 0.5))
    release = controller.end_drag(2, Vec3(-1, 0, 0.5))
    assert not controller.active
    assert release.drop_position == Vec3(-1.0, 0.0, 0.5)
    assert registry.get(2).position == Vec3(-1.0, 0.101, 0.5)


def test_end_drag_with_foreign_index_uses_anchor(controller):
    controller.start_drag(2, Vec3(2, 0, 10))
    release = controller.end_drag(5, Vec3(2, 0, 10))
    assert release.dropped_index == 2


def test_cancel_keeps_start_positions(controller, registry, partition):
    partition.merge(4, 3)
    controller.start_drag(3, Vec3(3, 0, 10))
    controller.update_drag(Vec3(0, 0, 0))
    release = controller.cancel()
    assert release.cancelled
    assert release.positions == {3: Vec3(3.0, 0.101, 10.0), 4: Vec3(4.0, 0.101, 10.0)}
    assert registry.get(3).position == Vec3(3.0, 0.101, 10.0)
    assert controller.cancel() is None
    assert controller.update_drag(Vec3(0, 0, 0)) is None
