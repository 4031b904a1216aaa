"""
Command-line interface for jigsnap.

Subcommands cover interactive play, scripted replay, rendering a board to
PNG and managing YAML configuration files.
"""

import argparse
import sys
import json
from typing import Callable, Dict, List, Optional
from pathlib import Path

from jigsnap.core.config import (
    Config, LAYOUT_PRESETS, load_config, create_default_config, validate_config,
)
from jigsnap.core.registry import ENVIRONMENT_REGISTRY, ENVIRONMENT_CONFIG_REGISTRY, create_environment
from jigsnap.puzzle.visualizer import save_visualization, visualize_board
from jigsnap.runner import SessionRunner, parse_action_line
from jigsnap.utils.display import StatusDisplay, LiveLogger


def get_available_components() -> Dict[str, List[str]]:
    """Registered environment kinds and board presets."""
    import jigsnap.environment  # noqa: F401

    return {
        "environments": sorted(ENVIRONMENT_REGISTRY.keys()),
        "environment_configs": sorted(ENVIRONMENT_CONFIG_REGISTRY.keys()),
        "layouts": sorted(LAYOUT_PRESETS.keys()),
    }


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="jigsnap: drag-snap-merge jigsaw assembly",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Play in the terminal
  jigsnap play --layout 3x2

  # Replay a scripted session and save step images
  jigsnap replay --config configs/puzzle_4x3.yaml --actions examples/solve_4x3.txt --save-images

  # Render the scattered board
  jigsnap render --config configs/puzzle_4x3.yaml --output board.png --seed 7

  # Create and validate a configuration
  jigsnap create-config --output config.yaml --layout 4x3
  jigsnap validate-config config.yaml
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    play_parser = subparsers.add_parser("play", help="Interactive text mode")
    play_parser.add_argument("--config", "-c", help="Path to configuration file")
    play_parser.add_argument("--layout", choices=sorted(LAYOUT_PRESETS), default="4x3",
                             help="Board preset when no config is given")
    play_parser.add_argument("--seed", type=int, help="Scatter seed")

    replay_parser = subparsers.add_parser("replay", help="Replay a scripted action file")
    replay_parser.add_argument("--config", "-c", required=True, help="Path to configuration file")
    replay_parser.add_argument("--actions", "-a", required=True, help="JSON, YAML or text action file")
    replay_parser.add_argument("--output-dir", help="Override log directory")
    replay_parser.add_argument("--save-images", action="store_true", help="Save a PNG per step")
    replay_parser.add_argument("--seed", type=int, help="Scatter seed")
    replay_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the summary")

    render_parser = subparsers.add_parser("render", help="Render the board to a PNG")
    render_parser.add_argument("--config", "-c", required=True, help="Path to configuration file")
    render_parser.add_argument("--output", "-o", required=True, help="Output PNG file")
    render_parser.add_argument("--seed", type=int, help="Scatter seed")
    render_parser.add_argument("--dpi", type=int, default=150, help="Output resolution (default: 150)")

    config_parser = subparsers.add_parser("create-config", help="Create default configuration file")
    config_parser.add_argument("--output", "-o", default="config.yaml", help="Output configuration file")
    config_parser.add_argument("--layout", choices=sorted(LAYOUT_PRESETS), default="4x3", help="Board preset")
    config_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    validate_parser = subparsers.add_parser("validate-config", help="Validate configuration file")
    validate_parser.add_argument("config", help="Configuration file to validate")
    validate_parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")

    list_parser = subparsers.add_parser("list-components", help="List available components")
    list_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    return parser


def split_issues(issues: List[str]):
    """Separate validate_config output into (errors, warnings) without their prefixes."""
    errors = [i.split(": ", 1)[-1] for i in issues if i.startswith("ERROR")]
    warnings = [i.split(": ", 1)[-1] for i in issues if not i.startswith("ERROR")]
    return errors, warnings


def _load_and_validate_config(path: str, logger: LiveLogger) -> Optional[Config]:
    """Load a config for a command; report problems and return None if it is unusable."""
    logger.log_action("Loading configuration", path)
    try:
        config = load_config(path)
    except FileNotFoundError:
        logger.log_error(f"No configuration at {path}")
        logger.log_info("Run 'jigsnap create-config' to write a default one")
        return None
    except ValueError as e:
        logger.log_error(str(e))
        return None

    errors, warnings = split_issues(validate_config(config))
    for warning in warnings:
        logger.log_warning(warning)
    if errors:
        StatusDisplay.print_section("Configuration Errors")
        for error in errors:
            logger.log_error(error)
        return None

    logger.log_result(f"Loaded {config.runner.experiment_name}")
    return config


class PuzzleShell:
    """
    Line-oriented play mode.

    Tool commands use the same syntax as text action files
    (``grab piece_index=0 x=1 z=2``); positional forms such as
    ``grab 0 1 2`` are accepted too.
    """

    POSITIONAL = {
        "grab": ["piece_index", "x", "z"],
        "move": ["x", "z"],
        "release": ["x", "z", "piece_index"],
        "reset": ["seed"],
        "piece_info": ["piece_index"],
    }

    def __init__(self, environment, input_fn: Callable[[str], str] = input):
        self.env = environment
        self.input_fn = input_fn

    def show_help(self):
        print("\n=== Commands ===")
        print("  state                    : groups, placed pieces, solved flag")
        print("  view                     : grid of group ids by home cell")
        print("  piece_info <i>           : details of piece i")
        print("  grab <i> <x> <z>         : press on piece i at (x, z)")
        print("  move <x> <z>             : drag the held group")
        print("  release <x> <z> [i]      : drop the held group")
        print("  cancel                   : abort the drag")
        print("  home <i>                 : carry piece i (and its group) onto its home cell")
        print("  reset [seed]             : scatter again")
        print("  render <file.png>        : save the board image")
        print("  quit                     : exit")

    def show_grid(self):
        puzzle = self.env.puzzle
        rows, cols = puzzle.board.rows, puzzle.board.cols
        group_rows = []
        placed_rows = []
        for r in range(rows):
            pieces = [puzzle.registry.get(r * cols + c) for c in range(cols)]
            group_rows.append([p.group_id for p in pieces])
            placed_rows.append([p.is_placed_in_box for p in pieces])
        StatusDisplay.print_group_grid(group_rows, placed_rows)

    def parse(self, line: str):
        parts = line.split()
        if any("=" in p for p in parts[1:]) or parts[0] not in self.POSITIONAL:
            return parse_action_line(line)
        names = self.POSITIONAL[parts[0]]
        if len(parts) - 1 > len(names):
            raise ValueError(f"Too many arguments for {parts[0]}")
        return parse_action_line(" ".join([parts[0]] + [f"{n}={v}" for n, v in zip(names, parts[1:])]))

    def carry_home(self, index: int) -> Dict:
        piece = self.env.puzzle.registry.get(index)
        if piece is None:
            return {"status": "error", "message": f"Piece {index} not found"}
        start, home = piece.position, piece.home_position
        grabbed = self.env.execute_tool_call("grab", {"piece_index": index, "x": start.x, "z": start.z})
        if grabbed["status"] != "success":
            return grabbed
        return self.env.execute_tool_call("release", {"x": home.x, "z": home.z})

    def execute(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should exit."""
        parts = line.split()
        command = parts[0].lower()
        if command in ("quit", "exit", "q"):
            return False
        if command == "help":
            self.show_help()
            return True
        if command == "view":
            self.show_grid()
            return True
        if command == "render":
            target = parts[1] if len(parts) > 1 else "board.png"
            self.env.render().save(target)
            print(f"Saved {target}")
            return True

        solved_before = self.env.puzzle.solved
        if command == "home" and len(parts) == 2:
            result = self.carry_home(int(parts[1]))
        else:
            action = self.parse(line)
            result = self.env.execute_tool_call(action.tool, action.parameters)

        mark = "✓" if result.get("status") == "success" else "✗"
        print(f"{mark} {result.get('message')}")
        if command == "state":
            print(json.dumps(result.get("state", {}), indent=2))
        if command == "piece_info" and "info" in result:
            print(json.dumps(result["info"], indent=2))
        for event in self.env.puzzle.events.drain():
            if event.type.value not in ("DRAG_UPDATED",):
                print(f"  · {event.type.value} {event.members}")
        if self.env.puzzle.solved and not solved_before:
            print("\n🎉 PUZZLE COMPLETE! 🎉")
        return True

    def run(self):
        print("=== jigsnap ===")
        print("Type 'help' for commands")
        while True:
            try:
                line = self.input_fn("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break
            if not line:
                continue
            try:
                if not self.execute(line):
                    print("Goodbye!")
                    break
            except ValueError as e:
                print(f"✗ {e}")


def play_command(args) -> int:
    """Execute play command."""
    logger = LiveLogger(verbose=True)
    if args.config:
        config = _load_and_validate_config(args.config, logger)
        if config is None:
            return 1
    else:
        config = create_default_config(output_path=None, layout=args.layout)

    environment = create_environment(config.environment)
    environment.reset(seed=args.seed)
    shell = PuzzleShell(environment)
    shell.show_grid()
    shell.run()
    environment.close()
    return 0


def replay_command(args) -> int:
    """Execute replay command."""
    logger = LiveLogger(verbose=not args.quiet)

    try:
        StatusDisplay.print_header("jigsnap Session Replay")
        config = _load_and_validate_config(args.config, logger)
        if config is None:
            return 1

        if args.output_dir:
            config.runner.log_dir = args.output_dir
        if args.save_images:
            config.runner.save_images = True
        if args.quiet:
            config.runner.verbose = False

        StatusDisplay.print_config({
            "Experiment": config.runner.experiment_name,
            "Environment": config.environment.type,
            "Actions": args.actions,
            "Output Directory": config.runner.log_dir,
            "Save Images": config.runner.save_images,
        }, "Replay Configuration")

        runner = SessionRunner(config)
        runner.setup()
        summary = runner.run_actions(args.actions, seed=args.seed)
        runner.finish()

        StatusDisplay.print_results(summary.to_row(), "Session Results")
        if summary.solved:
            logger.log_result(f"Puzzle solved at step {summary.solved_step}")
        else:
            logger.log_warning(f"Puzzle not solved ({summary.groups_remaining} groups remaining)")
        return 0

    except FileNotFoundError as e:
        logger.log_error(str(e))
        return 1
    except ValueError as e:
        logger.log_error(f"Invalid action script: {e}")
        return 1
    except KeyboardInterrupt:
        logger.log_warning("Replay interrupted by user")
        return 1


def render_command(args) -> int:
    """Execute render command."""
    logger = LiveLogger(verbose=True)
    config = _load_and_validate_config(args.config, logger)
    if config is None:
        return 1
    environment = create_environment(config.environment)
    environment.reset(seed=args.seed)
    puzzle = environment.puzzle
    fig = visualize_board(
        puzzle,
        title=f"{puzzle.board.cols}x{puzzle.board.rows} jigsaw",
        show_home=environment.config.render_home,
    )
    save_visualization(fig, args.output, dpi=args.dpi)
    environment.close()
    logger.log_result(f"Board rendered to {args.output}")
    return 0


def create_config_command(args) -> int:
    """Write a default configuration for a board preset."""
    logger = LiveLogger(verbose=True)

    StatusDisplay.print_header(f"New {args.layout} configuration")
    if Path(args.output).exists() and not args.force:
        logger.log_warning(f"{args.output} already exists")
        if not StatusDisplay.ask_confirmation("Overwrite it?"):
            logger.log_info("Left the existing file untouched")
            return 0

    try:
        config = create_default_config(args.output, layout=args.layout)
    except (OSError, ValueError) as e:
        logger.log_error(f"Could not write {args.output}: {e}")
        return 1

    board = config.environment.puzzle.board
    StatusDisplay.print_results({
        "Output File": args.output,
        "Layout": args.layout,
        "Pieces": board.piece_count,
        "Piece Size": f"{board.piece_width:.3f} x {board.piece_height:.3f}",
    }, "Board")
    logger.log_info(f"Check it with: jigsnap validate-config {args.output}")
    logger.log_info(f"Play it with:  jigsnap play --config {args.output}")
    return 0


def validate_config_command(args) -> int:
    """Load a configuration and list its errors and warnings."""
    logger = LiveLogger(verbose=True)

    StatusDisplay.print_header(f"Validating {args.config}")
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.log_error(f"No configuration at {args.config}")
        return 1
    except ValueError as e:
        logger.log_error(str(e))
        return 1

    _display_config_summary(config)
    errors, warnings = split_issues(validate_config(config))
    if args.strict:
        errors, warnings = errors + warnings, []

    for n, warning in enumerate(warnings, 1):
        logger.log_warning(f"{n}. {warning}")
    for n, error in enumerate(errors, 1):
        logger.log_error(f"{n}. {error}")

    if errors:
        verdict = "❌ INVALID"
    elif warnings:
        verdict = "✓ VALID (with warnings)"
    else:
        verdict = "✅ VALID"
    StatusDisplay.print_results({"Status": verdict, "Errors": len(errors), "Warnings": len(warnings)}, "Verdict")
    return 1 if errors else 0


def _display_config_summary(config: Config) -> None:
    overview = {
        "Experiment": config.runner.experiment_name,
        "Environment": config.environment.type,
        "Log Dir": config.runner.log_dir,
    }
    puzzle = getattr(config.environment, "puzzle", None)
    if puzzle is not None:
        overview["Board"] = f"{puzzle.board.cols}x{puzzle.board.rows}"
        overview["Home Snap Radius"] = round(puzzle.snap.home_snap_radius(puzzle.board), 4)
        overview["Lock On Solve"] = puzzle.lock_on_solve
    StatusDisplay.print_config(overview, "Overview")


def list_components_command(args) -> int:
    """Show registered environments and board presets."""
    components = get_available_components()
    if args.format == "json":
        print(json.dumps(components, indent=2))
        return 0
    for kind, names in components.items():
        StatusDisplay.print_section(kind.replace("_", " ").title())
        for name in names:
            print(f"  • {name}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)
    command_handlers = {
        "play": play_command,
        "replay": replay_command,
        "render": render_command,
        "create-config": create_config_command,
        "validate-config": validate_config_command,
        "list-components": list_components_command,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
