import json
from pathlib import Path

from PIL import Image

from jigsnap.cli import PuzzleShell, main
from jigsnap.core import create_environment
from jigsnap.core.config import create_default_config, load_config


ROOT = Path(__file__).resolve().parent.parent


def test_no_arguments_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_create_and_validate_config(tmp_path):
    path = tmp_path / "config.yaml"
    assert main(["create-config", "--output", str(path), "--layout", "3x2"]) == 0
    assert load_config(str(path)).environment.puzzle.board.piece_count == 6
    assert main(["validate-config", str(path)]) == 0
    assert main(["validate-config", str(tmp_path / "nope.yaml")]) == 1


def test_strict_validation_fails_on_warnings(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "environment:\n  type: jigsaw\n  puzzle:\n    scatter:\n      radius: 1.0\n",
        encoding="utf-8",
    )
    assert main(["validate-config", str(path)]) == 0
    assert main(["validate-config", str(path), "--strict"]) == 1


def test_list_components_json(capsys):
    assert main(["list-components", "--format", "json"]) == 0
    components = json.loads(capsys.readouterr().out)
    assert components["environments"] == ["jigsaw"]
    assert components["layouts"] == ["3x2", "4x3"]


def test_render_writes_png(tmp_path):
    output = tmp_path / "board.png"
    code = main(["render", "--config", str(ROOT / "configs" / "puzzle_3x2.yaml"),
                 "--output", str(output), "--seed", "4", "--dpi", "60"])
    assert code == 0
    with Image.open(output) as image:
        assert image.format == "PNG"
        assert image.width > 0 and image.height > 0


def test_replay_command(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    code = main([
        "replay",
        "--config", str(ROOT / "configs" / "puzzle_3x2.yaml"),
        "--actions", str(ROOT / "examples" / "mixed_3x2.json"),
        "--output-dir", str(tmp_path / "logs"),
        "--quiet",
    ])
    assert code == 0
    assert list((tmp_path / "logs").glob("*/session_log.json"))


def test_replay_missing_actions(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    code = main([
        "replay",
        "--config", str(ROOT / "configs" / "puzzle_3x2.yaml"),
        "--actions", str(tmp_path / "missing.txt"),
        "--output-dir", str(tmp_path / "logs"),
        "--quiet",
    ])
    assert code == 1


def test_shell_plays_a_3x2_board(capsys):
    environment = create_environment(create_default_config(None, layout="3x2").environment)
    environment.reset(seed=2)
    lines = iter(["help", "grab 0", "cancel", "home 0", "home 1", "release 0 0",
                  "home 2", "home 3", "home 4", "home 5", "view", "quit"])
    shell = PuzzleShell(environment, input_fn=lambda prompt: next(lines))
    shell.run()

    out = capsys.readouterr().out
    assert "SNAPPED_HOME" in out
    assert "No piece is being dragged" in out
    assert "PUZZLE COMPLETE" in out
    assert environment.puzzle.solved


def test_shell_positional_parsing():
    environment = create_environment(create_default_config(None, layout="3x2").environment)
    shell = PuzzleShell(environment)
    action = shell.parse("release 1.5 -0.5 4")
    assert action.tool == "release"
    assert action.parameters == {"x": 1.5, "z": -0.5, "piece_index": 4}
    assert shell.parse("grab piece_index=2").parameters == {"piece_index": 2}
    assert shell.execute("exit") is False
