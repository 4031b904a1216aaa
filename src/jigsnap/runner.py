"""
Scripted session runner for jigsnap.

Replays a list of tool calls against the jigsaw environment, logs every
step and summarizes how the session went.
"""

import json
import os
import time
from collections import Counter
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from jigsnap.core import Config, create_environment
from jigsnap.core.base import Action, Observation
from jigsnap.core.config import _ensure_components_registered
from jigsnap.utils.display import ProgressDisplay, StatusDisplay, LiveLogger
from jigsnap.utils.logger import ExperimentLogger


OUTCOME_EVENT_TYPES = (
    "SNAPPED_HOME",
    "SNAPPED_TO_NEIGHBOR",
    "PLACED_NO_SNAP",
    "DROPPED_OUTSIDE_ZONE",
)

ActionSource = Union[str, os.PathLike, List[Union[Action, Dict[str, Any], str]]]


def parse_value(value: str) -> Any:
    """JSON scalar when it parses as one, otherwise the bare (unquoted) string."""
    value = value.strip()
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            return value[1:-1]
        return value


def parse_action_line(line: str) -> Action:
    """
    Parse one text command: ``tool arg=value arg=value``.

    Example: ``release x=1.5 z=-0.3 piece_index=4``
    """
    parts = line.strip().split()
    if not parts:
        raise ValueError("Empty action line")
    parameters: Dict[str, Any] = {}
    for pair in parts[1:]:
        if "=" not in pair:
            raise ValueError(f"Expected arg=value, got '{pair}' in: {line.strip()}")
        key, value = pair.split("=", 1)
        parameters[key.strip()] = parse_value(value)
    return Action(tool=parts[0], parameters=parameters)


def to_action(item: Union[Action, Dict[str, Any], str]) -> Action:
    if isinstance(item, Action):
        return item
    if isinstance(item, dict):
        return Action.from_dict(item)
    if isinstance(item, str):
        return parse_action_line(item)
    raise ValueError(f"Cannot interpret action: {item!r}")


def load_actions(path: Union[str, os.PathLike]) -> List[Action]:
    """
    Load an action script.

    JSON and YAML files hold a list of actions or a mapping with an
    ``actions`` key; any other file is read as one text command per line
    (blank lines and ``#`` comments are skipped).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is not an action list
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Action file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, 'r', encoding='utf-8') as f:
        if suffix in ('.json', '.yaml', '.yml'):
            data = json.load(f) if suffix == '.json' else yaml.safe_load(f)
            if isinstance(data, dict) and 'actions' in data:
                data = data['actions']
            if not isinstance(data, list):
                raise ValueError("Invalid action file. Expected a list of actions or a mapping with an 'actions' key.")
            return [to_action(item) for item in data]
        lines = [line.strip() for line in f]
    return [parse_action_line(line) for line in lines if line and not line.startswith('#')]


@dataclass
class SessionSummary:
    """Outcome of one scripted session."""
    experiment_name: str
    total_actions: int = 0
    failed_actions: int = 0
    outcome_counts: Dict[str, int] = field(default_factory=dict)
    solved: bool = False
    solved_step: Optional[int] = None
    groups_remaining: int = 0
    elapsed_seconds: float = 0.0

    def to_row(self) -> Dict[str, Any]:
        """Flat dict for one spreadsheet row."""
        row = asdict(self)
        counts = row.pop("outcome_counts")
        for name in OUTCOME_EVENT_TYPES:
            row[name.lower()] = counts.get(name, 0)
        return row


class SessionRunner:
    """Runs scripted jigsaw sessions and records them."""

    def __init__(self, config: Config):
        self.config = config
        self.environment = None
        self.logger: Optional[ExperimentLogger] = None
        self.live_logger = LiveLogger(verbose=config.runner.verbose)
        self.summary: Optional[SessionSummary] = None
        self.last_observation: Optional[Observation] = None

    def setup(self) -> None:
        """Create the environment and the log directory."""
        os.makedirs(self.config.runner.log_dir, exist_ok=True)
        _ensure_components_registered()
        self.environment = create_environment(self.config.environment)
        self.logger = ExperimentLogger(
            log_dir=self.config.runner.log_dir,
            experiment_name=self.config.runner.experiment_name,
        )
        self.live_logger.log_info(f"Session setup complete ({self.config.environment.type})")

    def run_actions(self, actions: ActionSource, seed: Optional[int] = None) -> SessionSummary:
        """
        Reset the board and replay actions.

        Args:
            actions: Action objects, action dicts, text commands, or a path
                to a JSON / YAML / text action file
            seed: Scatter seed for the reset (defaults to the configured one)

        Returns:
            SessionSummary of the run
        """
        if self.environment is None:
            self.setup()
        if isinstance(actions, (str, os.PathLike)):
            action_list = load_actions(actions)
        else:
            action_list = [to_action(item) for item in actions]

        verbose = self.config.runner.verbose
        save_images = self.config.runner.save_images
        start = time.time()
        counts: Counter = Counter()
        failed = 0
        solved_step = None

        observation = self.environment.reset(seed=seed)
        self._log(0, "initial", observation, save_images, verbose)

        progress = ProgressDisplay(len(action_list)) if verbose else None
        for step, action in enumerate(action_list, start=1):
            self.live_logger.log_step_start(step, f"{action.tool} {action.parameters}")
            observation = self.environment.step(action)
            metadata = observation.state.metadata or {}
            result = metadata.get("tool_result", {})
            ok = result.get("status") == "success"
            if not ok:
                failed += 1

            for event in metadata.get("events", []):
                counts[event["type"]] += 1
                if event["type"] == "PUZZLE_SOLVED" and solved_step is None:
                    solved_step = step
            self._log(step, "action", observation, save_images, verbose, action=action)
            self.live_logger.log_step_end(step, result.get("message", ""), success=ok)
            if progress:
                progress.update(step, action.tool)
            if metadata.get("max_steps_reached"):
                self.live_logger.log_warning(f"Reached max_steps={self.config.environment.max_steps}")
                break

        puzzle = self.environment.puzzle
        self.last_observation = observation
        self.summary = SessionSummary(
            experiment_name=self.config.runner.experiment_name,
            total_actions=len(action_list),
            failed_actions=failed,
            outcome_counts={name: counts.get(name, 0) for name in OUTCOME_EVENT_TYPES + ("PUZZLE_SOLVED",)},
            solved=puzzle.solved,
            solved_step=solved_step,
            groups_remaining=puzzle.group_count(),
            elapsed_seconds=round(time.time() - start, 3),
        )
        if progress:
            progress.finish(solved=self.summary.solved)
        return self.summary

    def finish(self) -> Optional[str]:
        """
        Save logs and append the summary to the results workbook.

        Returns:
            Path of the JSON session log
        """
        if self.logger is None:
            return None
        verbose = self.config.runner.verbose
        summary = self.summary.to_row() if self.summary else {}
        log_file = self.logger.save_logs(summary=summary, verbose=verbose)
        if self.summary and self.config.runner.results_excel_path:
            self.logger.save_results_to_excel(summary, self.config.runner.results_excel_path, verbose=verbose)
        if self.environment is not None:
            self.environment.close()
        if verbose and self.summary:
            StatusDisplay.print_results(summary, title="Session Summary")
        return log_file

    def _log(self, step: int, step_type: str, observation: Observation, save_images: bool,
             verbose: bool, action: Optional[Action] = None) -> None:
        metadata = observation.state.metadata or {}
        data: Dict[str, Any] = {
            "step_type": step_type,
            "events": metadata.get("events", []),
            "description": observation.description,
            "board": [obj.to_dict() for obj in observation.state.objects],
        }
        if action is not None:
            data["action"] = action.to_dict()
            data["tool_result"] = metadata.get("tool_result")
        if save_images:
            data["image"] = observation.image
        self.logger.log_step(step, data, verbose=verbose)
