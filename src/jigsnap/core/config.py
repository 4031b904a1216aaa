"""
Configuration management for jigsnap.

This module handles loading and validation of YAML configuration files and
provides typed configuration objects for the board geometry, snapping
tolerances, scatter layout, environment and session runner.
"""

import os
import warnings
import yaml
from typing import Any, Dict, Optional, List, Tuple
from dataclasses import dataclass, field, asdict
from pathlib import Path

from jigsnap.core.registry import ENVIRONMENT_CONFIG_REGISTRY


# rows, cols, puzzle_width, puzzle_height
LAYOUT_PRESETS: Dict[str, Tuple[int, int, float, float]] = {
    "4x3": (3, 4, 6.0, 4.5),
    "3x2": (2, 3, 4.5, 3.0),
}


@dataclass
class BoardConfig:
    """Grid layout and the assembly zone it fills."""
    rows: int = 3
    cols: int = 4
    puzzle_width: float = 6.0
    puzzle_height: float = 4.5
    gap_size: float = 0.2
    zone_center: Tuple[float, float] = (0.0, 0.0)  # (x, z)
    resting_height: float = 0.101
    drag_height: float = 0.3

    def __post_init__(self):
        if isinstance(self.zone_center, list):
            self.zone_center = tuple(self.zone_center)
        if not isinstance(self.rows, int) or self.rows <= 0:
            raise ValueError("rows must be a positive integer")
        if not isinstance(self.cols, int) or self.cols <= 0:
            raise ValueError("cols must be a positive integer")
        if not isinstance(self.puzzle_width, (float, int)) or self.puzzle_width <= 0:
            raise ValueError("puzzle_width must be a positive number")
        if not isinstance(self.puzzle_height, (float, int)) or self.puzzle_height <= 0:
            raise ValueError("puzzle_height must be a positive number")
        if not isinstance(self.gap_size, (float, int)) or self.gap_size < 0:
            raise ValueError("gap_size must be a non-negative number")
        if self.gap_size >= min(self.puzzle_width, self.puzzle_height):
            raise ValueError("gap_size must be smaller than the puzzle width and height")
        if not isinstance(self.zone_center, tuple) or len(self.zone_center) != 2:
            raise ValueError("zone_center must be a tuple of 2 floats (x, z)")
        if self.drag_height == self.resting_height:
            raise ValueError("drag_height must differ from resting_height")

    @classmethod
    def from_preset(cls, layout: str, **overrides: Any) -> "BoardConfig":
        if layout not in LAYOUT_PRESETS:
            raise ValueError(f"Unknown layout '{layout}'. Known layouts: {sorted(LAYOUT_PRESETS)}")
        rows, cols, width, height = LAYOUT_PRESETS[layout]
        return cls(rows=rows, cols=cols, puzzle_width=width, puzzle_height=height, **overrides)

    @property
    def piece_count(self) -> int:
        return self.rows * self.cols

    @property
    def piece_width(self) -> float:
        return (self.puzzle_width - self.gap_size) / self.cols

    @property
    def piece_height(self) -> float:
        return (self.puzzle_height - self.gap_size) / self.rows

    def pitch(self, axis: str) -> float:
        """Center-to-center distance of neighbors along axis ('x' or 'z')."""
        return self.piece_width if axis == "x" else self.piece_height

    @property
    def zone_bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, max_x, min_z, max_z) of the assembly zone."""
        cx, cz = self.zone_center
        return (
            cx - self.puzzle_width / 2,
            cx + self.puzzle_width / 2,
            cz - self.puzzle_height / 2,
            cz + self.puzzle_height / 2,
        )

    @property
    def zone_half_diagonal(self) -> float:
        return ((self.puzzle_width ** 2 + self.puzzle_height ** 2) ** 0.5) / 2

    @property
    def scatter_reach(self) -> float:
        """Smallest scatter radius: the zone corner plus half a piece."""
        return self.zone_half_diagonal + max(self.piece_width, self.piece_height) / 2


@dataclass
class SnapConfig:
    """Snap tolerances, as multiples of the piece pitch along the relevant axis."""
    max_distance_ratio: float = 1.2
    min_distance_ratio: float = 0.6
    perpendicular_ratio: float = 1.2
    home_snap_ratio: float = 0.15
    merge_home_neighbors: bool = True
    position_epsilon: float = 1e-6

    def __post_init__(self):
        for name in ("max_distance_ratio", "min_distance_ratio", "perpendicular_ratio", "home_snap_ratio"):
            value = getattr(self, name)
            if not isinstance(value, (float, int)) or value < 0:
                raise ValueError(f"{name} must be a non-negative number")
        if self.min_distance_ratio >= self.max_distance_ratio:
            raise ValueError("min_distance_ratio must be smaller than max_distance_ratio")
        if not isinstance(self.position_epsilon, (float, int)) or self.position_epsilon <= 0:
            raise ValueError("position_epsilon must be a positive number")

    def home_snap_radius(self, board: BoardConfig) -> float:
        return self.home_snap_ratio * min(board.piece_width, board.piece_height)


@dataclass
class ScatterConfig:
    """Where pieces start: a ring around the zone."""
    radius: float = 5.0
    radius_jitter: float = 1.5
    angle_jitter: float = 0.5
    seed: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.radius, (float, int)) or self.radius <= 0:
            raise ValueError("radius must be a positive number")
        if not isinstance(self.radius_jitter, (float, int)) or self.radius_jitter < 0:
            raise ValueError("radius_jitter must be a non-negative number")
        if not isinstance(self.angle_jitter, (float, int)) or self.angle_jitter < 0:
            raise ValueError("angle_jitter must be a non-negative number")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError("seed must be an integer or null")


@dataclass
class PuzzleConfig:
    """Everything the assembly core needs at construction."""
    board: BoardConfig = field(default_factory=BoardConfig)
    snap: SnapConfig = field(default_factory=SnapConfig)
    scatter: ScatterConfig = field(default_factory=ScatterConfig)
    lock_on_solve: bool = False

    def __post_init__(self):
        if isinstance(self.board, dict):
            board_data = dict(self.board)
            layout = board_data.pop("layout", None)
            self.board = BoardConfig.from_preset(layout, **board_data) if layout else BoardConfig(**board_data)
        if isinstance(self.snap, dict):
            self.snap = SnapConfig(**self.snap)
        if isinstance(self.scatter, dict):
            self.scatter = ScatterConfig(**self.scatter)
        min_radius = self.board.scatter_reach
        if self.scatter.radius < min_radius:
            warnings.warn(
                f"scatter radius {self.scatter.radius} is inside the zone reach; "
                f"pieces will be scattered at radius {min_radius:.2f} instead."
            )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["board"]["zone_center"] = list(self.board.zone_center)
        return data


@dataclass
class EnvironmentConfig:
    """Settings every environment kind understands; kinds extend it via the registry."""
    type: str = "jigsaw"
    render_width: int = 640
    render_height: int = 480
    max_steps: int = 500

    def __post_init__(self):
        for name in ("render_width", "render_height", "max_steps"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_dict(cls, env_data: Dict[str, Any]) -> "EnvironmentConfig":
        """Build the config class registered for env_data["type"]."""
        kind = env_data.get("type", "jigsaw")
        return ENVIRONMENT_CONFIG_REGISTRY.get(kind, EnvironmentConfig)(**env_data)

    def to_dict(self) -> Dict[str, Any]:
        return {k: (v.to_dict() if hasattr(v, "to_dict") else v) for k, v in self.__dict__.items()}


@dataclass
class RunnerConfig:
    """Where and how replayed sessions are recorded."""
    experiment_name: str = "jigsaw_session"
    log_dir: str = "logs"
    results_excel_path: str = "session_results.xlsx"
    save_images: bool = False
    verbose: bool = True


@dataclass
class Config:
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return cls(
            runner=RunnerConfig(**(data.get("runner") or {})),
            environment=EnvironmentConfig.from_dict(data.get("environment") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"runner": asdict(self.runner), "environment": self.environment.to_dict()}


def _ensure_components_registered() -> None:
    # Environment configs register themselves on import.
    import jigsnap.environment  # noqa: F401


def load_config(config_path: str) -> Config:
    """
    Read a session configuration from YAML.

    Args:
        config_path: YAML file with optional ``runner`` and ``environment`` sections

    Returns:
        Config object

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the YAML cannot be parsed
        ValueError: If the file is empty or a section holds invalid values
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Malformed YAML in {path}: {e}")

    if not data:
        raise ValueError(f"Configuration file {path} is empty")

    _ensure_components_registered()
    try:
        return Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration in {path}: {e}")


def create_default_config(output_path: Optional[str] = "config.yaml", layout: str = "4x3") -> Config:
    """
    Build the default configuration for a board preset.

    Args:
        output_path: YAML file to write, or None to only return the config
        layout: Board preset name, see LAYOUT_PRESETS

    Returns:
        Default Config object
    """
    _ensure_components_registered()
    env_cls = ENVIRONMENT_CONFIG_REGISTRY.get("jigsaw", EnvironmentConfig)
    environment = env_cls(type="jigsaw", puzzle=PuzzleConfig(board=BoardConfig.from_preset(layout)))
    config = Config(
        runner=RunnerConfig(experiment_name=f"jigsaw_{layout}"),
        environment=environment,
    )

    if output_path:
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)

    return config


def validate_config(config: Config) -> List[str]:
    """
    Check a loaded configuration for settings that load but misbehave.

    Returns:
        Messages prefixed with "ERROR:" or "WARNING:" (empty when clean)
    """
    issues = []

    if not config.runner.experiment_name:
        issues.append("ERROR: runner.experiment_name must not be empty")

    if config.environment.type not in ENVIRONMENT_CONFIG_REGISTRY:
        issues.append(f"ERROR: Unknown environment type: {config.environment.type}")

    puzzle = getattr(config.environment, "puzzle", None)
    if puzzle is None:
        return issues

    board = puzzle.board
    snap = puzzle.snap
    if board.piece_count < 2:
        issues.append("WARNING: A puzzle with a single piece is solved by any drop inside the zone")
    if board.piece_count > 64:
        issues.append("WARNING: Group merges relabel linearly; very large grids will be slow")

    reach = board.scatter_reach
    if puzzle.scatter.radius < reach:
        issues.append(
            f"WARNING: scatter radius {puzzle.scatter.radius} is below {reach:.2f}; it will be raised at reset"
        )

    if snap.max_distance_ratio <= 1.0:
        issues.append("ERROR: max_distance_ratio must exceed 1.0 or exact neighbor drops can never snap")
    if snap.min_distance_ratio >= 1.0:
        issues.append("ERROR: min_distance_ratio must be below 1.0 or exact neighbor drops can never snap")
    if snap.home_snap_ratio >= snap.min_distance_ratio:
        issues.append("WARNING: home_snap_ratio overlaps the neighbor minimum distance; home snaps will shadow neighbor snaps")

    if config.runner.log_dir and os.path.isfile(config.runner.log_dir):
        issues.append(f"ERROR: log_dir points to a file: {config.runner.log_dir}")

    return issues
