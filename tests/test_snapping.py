import pytest

from jigsnap.core.config import PuzzleConfig, ScatterConfig, SnapConfig
from jigsnap.puzzle import JigsawPuzzle
from jigsnap.puzzle.geometry import Direction
from jigsnap.puzzle.snapping import SnapOutcome

from conftest import PH, PW, drop, drop_home


def position_of(puzzle, index):
    p = puzzle.registry.get(index).position
    return (p.x, p.z)


def test_home_snap_lands_exactly_on_home(puzzle):
    result = drop_home(puzzle, 0, 0.1, -0.12)
    home = puzzle.registry.get(0).home_position
    assert result.outcome == SnapOutcome.SNAPPED_HOME
    assert result.snapped
    assert puzzle.registry.get(0).position == home
    assert puzzle.registry.get(0).is_at_home_position
    assert puzzle.registry.get(0).is_placed_in_box


def test_just_outside_home_radius_is_not_home_snap(puzzle):
    radius = puzzle.config.snap.home_snap_radius(puzzle.board)
    assert radius == pytest.approx(0.215)
    result = drop_home(puzzle, 0, radius + 0.01, 0.0)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP
    assert not puzzle.registry.get(0).is_at_home_position


def test_neighbor_snap_joins_placed_neighbor(puzzle):
    drop_home(puzzle, 0)
    p0 = puzzle.registry.get(0).position
    # clear of the home radius so home snap does not take priority
    result = drop(puzzle, 1, p0.x + PW + 0.25, p0.z - 0.2)

    assert result.outcome == SnapOutcome.SNAPPED_TO_NEIGHBOR
    assert result.neighbor_index == 0
    assert result.group_id == 0
    assert result.merged_from == 1
    assert position_of(puzzle, 1) == pytest.approx((p0.x + PW, p0.z))
    assert puzzle.registry.get(1).position.y == pytest.approx(0.101)
    assert puzzle.partition.members_of(0) == [0, 1]
    # its neighbor is at home, so the snapped piece is too
    assert puzzle.registry.get(1).is_at_home_position


def test_exact_neighbor_offset_on_home_cell_reports_home_snap(puzzle):
    drop_home(puzzle, 0)
    p0 = puzzle.registry.get(0).position
    result = drop(puzzle, 1, p0.x + PW, p0.z)

    assert result.outcome == SnapOutcome.SNAPPED_HOME
    assert position_of(puzzle, 1) == pytest.approx((p0.x + PW, p0.z))
    assert puzzle.partition.group_of(1) == puzzle.partition.group_of(0)
    assert puzzle.partition.members_of(result.group_id) == [0, 1]


def test_neighbor_snap_along_z(puzzle):
    drop(puzzle, 1, 0.5, -2.0)
    result = drop(puzzle, 5, 0.5, -0.8)
    assert result.outcome == SnapOutcome.SNAPPED_TO_NEIGHBOR
    assert result.neighbor_index == 1
    assert position_of(puzzle, 5) == pytest.approx((0.5, -2.0 + PH))
    assert not puzzle.registry.get(5).is_at_home_position


def test_drop_on_wrong_side_does_not_snap(puzzle):
    drop(puzzle, 4, 1.0, 1.5)
    result = drop(puzzle, 5, -0.2, 1.5)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP
    assert position_of(puzzle, 5) == pytest.approx((-0.2, 1.5))

    result = drop(puzzle, 5, 2.2, 1.5)
    assert result.outcome == SnapOutcome.SNAPPED_TO_NEIGHBOR
    assert position_of(puzzle, 5) == pytest.approx((1.0 + PW, 1.5))


@pytest.mark.parametrize("offset", [0.8, 1.8])
def test_along_distance_window(puzzle, offset):
    drop(puzzle, 4, -1.0, 1.0)
    result = drop(puzzle, 5, -1.0 + offset, 1.0)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP


def test_perpendicular_tolerance(puzzle):
    drop(puzzle, 4, -1.0, 0.5)
    result = drop(puzzle, 5, -1.0 + PW, 0.5 + 1.2 * PH + 0.01)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP


def test_closest_neighbor_wins(puzzle):
    drop(puzzle, 4, -1.0, 1.0)
    drop(puzzle, 6, 2.0, 1.0)
    result = drop(puzzle, 5, 0.4, 1.0)
    assert result.neighbor_index == 4
    assert position_of(puzzle, 5) == pytest.approx((-1.0 + PW, 1.0))


def test_tie_goes_to_lowest_index(puzzle):
    drop(puzzle, 4, -1.0, 1.0)
    drop(puzzle, 6, 2.0, 1.0)
    assert puzzle.resolver.candidates(5) == [
        (1, Direction.TOP), (4, Direction.LEFT), (6, Direction.RIGHT), (9, Direction.BOTTOM),
    ]
    result = drop(puzzle, 5, 0.5, 1.0)
    assert result.neighbor_index == 4


def test_same_group_neighbor_is_ignored(puzzle):
    drop_home(puzzle, 0)
    drop_home(puzzle, 1)
    assert puzzle.group_count() == 11
    # 0 and 1 already share a group; dragging 1 next to 0 again is a plain move
    result = drop(puzzle, 1, 1.0, 1.2)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP


def test_placed_no_snap_keeps_raw_drop(puzzle):
    result = drop(puzzle, 5, 2.5, 1.8)
    assert result.outcome == SnapOutcome.PLACED_NO_SNAP
    assert position_of(puzzle, 5) == pytest.approx((2.5, 1.8))
    assert puzzle.registry.get(5).is_placed_in_box
    assert puzzle.group_count() == 12


def test_drop_outside_zone_unplaces_whole_group(puzzle):
    drop_home(puzzle, 0)
    p0 = puzzle.registry.get(0).position
    drop(puzzle, 1, p0.x + PW, p0.z)
    result = drop(puzzle, 1, 10.0, 10.0)

    assert result.outcome == SnapOutcome.DROPPED_OUTSIDE_ZONE
    assert not result.snapped
    assert result.members == [0, 1]
    for i in (0, 1):
        piece = puzzle.registry.get(i)
        assert not piece.is_placed_in_box
        assert not piece.is_at_home_position
    assert position_of(puzzle, 1) == pytest.approx((10.0, 10.0))
    assert position_of(puzzle, 0) == pytest.approx((10.0 - PW, 10.0))


def test_unplaced_pieces_are_not_snap_targets(puzzle):
    result = drop(puzzle, 1, puzzle.registry.get(0).position.x + PW, puzzle.registry.get(0).position.z)
    assert result.outcome != SnapOutcome.SNAPPED_TO_NEIGHBOR


def test_home_snap_merges_at_home_neighbors(puzzle):
    drop_home(puzzle, 0)
    result = drop_home(puzzle, 4)
    assert result.outcome == SnapOutcome.SNAPPED_HOME
    assert result.group_id == 0
    assert result.merged_from == 4
    assert result.merged_groups == [4]
    assert puzzle.partition.members_of(0) == [0, 4]


def test_home_snap_without_merging(puzzle_config):
    puzzle_config.snap = SnapConfig(merge_home_neighbors=False)
    puzzle = JigsawPuzzle(puzzle_config)
    drop_home(puzzle, 0)
    result = drop_home(puzzle, 4)
    assert result.outcome == SnapOutcome.SNAPPED_HOME
    assert result.group_id == 4
    assert result.merged_groups == []
    assert puzzle.group_count() == 12


def test_home_snap_translates_the_whole_group(puzzle):
    drop_home(puzzle, 0)
    p0 = puzzle.registry.get(0).position
    drop(puzzle, 1, p0.x + PW, p0.z)
    drop(puzzle, 1, 8.0, -8.0)

    result = drop_home(puzzle, 1, 0.1, 0.05)
    assert result.outcome == SnapOutcome.SNAPPED_HOME
    for i in (0, 1):
        piece = puzzle.registry.get(i)
        assert position_of(puzzle, i) == pytest.approx((piece.home_position.x, piece.home_position.z))
        assert piece.is_at_home_position


def test_resolve_reports_targets_for_every_member(puzzle):
    drop_home(puzzle, 0)
    p0 = puzzle.registry.get(0).position
    result = drop(puzzle, 1, p0.x + PW + 0.1, p0.z + 0.25)
    assert sorted(result.targets) == [1]
    data = result.to_dict()
    assert data["outcome"] == "SnappedToNeighbor"
    assert data["targets"]["1"][0] == pytest.approx(p0.x + PW)


def test_3x2_home_snap_radius():
    config = PuzzleConfig(board={"layout": "3x2"}, scatter=ScatterConfig(seed=0))
    assert config.snap.home_snap_radius(config.board) == pytest.approx(0.21)
