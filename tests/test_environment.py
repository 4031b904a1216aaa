import pytest
from PIL import Image

from jigsnap.core import create_environment
from jigsnap.core.base import Action
from jigsnap.core.config import PuzzleConfig, ScatterConfig
from jigsnap.environment import JigsawConfig, JigsawEnvironment


@pytest.fixture
def env():
    config = JigsawConfig(render_width=320, render_height=240, render_dpi=80,
                          puzzle=PuzzleConfig(board={"layout": "3x2"}, scatter=ScatterConfig(seed=5)))
    environment = create_environment(config)
    yield environment
    environment.close()


def home(env, index):
    h = env.puzzle.registry.get(index).home_position
    return h.x, h.z


def test_registry_builds_jigsaw_environment(env):
    assert isinstance(env, JigsawEnvironment)


def test_jigsaw_config_accepts_puzzle_dict():
    config = JigsawConfig(puzzle={"board": {"layout": "3x2"}})
    assert config.puzzle.board.piece_count == 6
    with pytest.raises(ValueError):
        JigsawConfig(render_dpi=0)


def test_reset_observation(env):
    obs = env.reset()
    assert isinstance(obs.image, Image.Image)
    assert obs.image.size == (320, 240)
    meta = obs.state.metadata
    assert meta["group_count"] == 6
    assert meta["placed_pieces"] == []
    assert [e["type"] for e in meta["events"]] == ["PUZZLE_RESET"]
    assert obs.state.objects[0].name == "zone"
    assert len(obs.state.objects) == 7


def test_tool_schemas(env):
    schemas = {s["function"]["name"]: s["function"] for s in env.get_tool_schemas()}
    assert set(schemas) == {"state", "grab", "move", "release", "cancel", "reset", "piece_info"}
    assert schemas["grab"]["parameters"]["required"] == ["piece_index"]


def test_grab_and_release_home(env):
    env.reset()
    grabbed = env.execute_tool_call("grab", {"piece_index": 0})
    assert grabbed["status"] == "success"
    assert grabbed["members"] == [0]
    x, z = home(env, 0)
    released = env.execute_tool_call("release", {"x": x, "z": z})
    assert released["status"] == "success"
    assert released["outcome"] == "SnappedHome"
    assert env.puzzle.registry.get(0).is_at_home_position


def test_step_reports_events(env):
    env.reset()
    env.step(Action("grab", {"piece_index": 2}))
    x, z = home(env, 2)
    obs = env.step(Action("release", {"x": x, "z": z}))
    meta = obs.state.metadata
    assert meta["tool_result"]["status"] == "success"
    assert [e["type"] for e in meta["events"]] == ["DRAG_UPDATED", "SNAPPED_HOME"]
    assert meta["at_home_pieces"] == [2]
    assert "SNAPPED_HOME" in obs.description


def test_max_steps_flag():
    env = JigsawEnvironment(JigsawConfig(max_steps=2, puzzle=PuzzleConfig(board={"layout": "3x2"})))
    env.reset()
    assert "max_steps_reached" not in env.step(Action("state", {})).state.metadata
    assert env.step(Action("state", {})).state.metadata["max_steps_reached"]


@pytest.mark.parametrize("tool, args", [
    ("fly", {}),
    ("grab", {"piece_index": 99}),
    ("grab", {}),
    ("grab", {"piece_index": "zero"}),
    ("move", {"x": 0.0, "z": 0.0}),
    ("release", {"x": 0.0, "z": 0.0}),
    ("cancel", {}),
    ("piece_info", {"piece_index": -1}),
    ("state", {"verbose": True}),
])
def test_bad_tool_calls_return_errors(env, tool, args):
    env.reset()
    result = env.execute_tool_call(tool, args)
    assert result["status"] == "error"
    assert result["message"]


def test_grab_while_dragging_is_rejected(env):
    env.reset()
    assert env.execute_tool_call("grab", {"piece_index": 0})["status"] == "success"
    assert env.execute_tool_call("grab", {"piece_index": 1})["status"] == "error"
    assert env.execute_tool_call("cancel", {})["status"] == "success"
    assert not env.puzzle.dragging


def test_move_returns_targets(env):
    env.reset()
    env.execute_tool_call("grab", {"piece_index": 1})
    result = env.execute_tool_call("move", {"x": 0.5, "z": 0.25})
    assert result["status"] == "success"
    assert result["targets"]["1"][0] == pytest.approx(0.5)


def test_release_with_bad_coordinates_keeps_drag(env):
    env.reset()
    env.execute_tool_call("grab", {"piece_index": 1})
    result = env.execute_tool_call("release", {"x": "left", "z": 0.0})
    assert result["status"] == "error"
    assert env.puzzle.dragging


def test_piece_info_lists_neighbors(env):
    env.reset()
    result = env.execute_tool_call("piece_info", {"piece_index": 4})
    info = result["info"]
    assert info["home_cell"] == [1, 1]
    assert info["neighbors"] == {"left": 3, "right": 5, "top": 1}


def test_reset_tool_with_seed(env):
    env.reset()
    env.execute_tool_call("grab", {"piece_index": 0})
    first = env.execute_tool_call("reset", {"seed": 3})
    positions = [p.position for p in env.puzzle.registry]
    env.execute_tool_call("reset", {"seed": 3})
    assert first["group_count"] == 6
    assert [p.position for p in env.puzzle.registry] == positions
    assert not env.puzzle.dragging


def test_locked_piece_cannot_be_grabbed():
    env = JigsawEnvironment(JigsawConfig(puzzle=PuzzleConfig(board={"layout": "3x2"}, lock_on_solve=True)))
    env.reset()
    for i in range(6):
        env.execute_tool_call("grab", {"piece_index": i})
        x, z = home(env, i)
        last = env.execute_tool_call("release", {"x": x, "z": z})
    assert last["is_complete"]
    result = env.execute_tool_call("grab", {"piece_index": 0})
    assert result["status"] == "error"
    assert "locked" in result["message"]


def test_action_from_dict_forms():
    assert Action.from_dict({"tool": "grab", "piece_index": 1}).parameters == {"piece_index": 1}
    assert Action.from_dict({"action_type": "move", "parameters": {"x": 1, "z": 2}}).tool == "move"
    with pytest.raises(ValueError):
        Action.from_dict({"x": 1})
