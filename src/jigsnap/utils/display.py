"""
Console output for the CLI, the session runner and puzzle events.
"""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence


def format_duration(seconds: float) -> str:
    """Format seconds as 12.3s / 4m 5s / 1h 2m."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


class ProgressDisplay:
    """Single-line progress bar redrawn in place while a script replays."""

    BAR_LENGTH = 30

    def __init__(self, total_steps: int = 100):
        self.total_steps = max(total_steps, 1)
        self.current_step = 0
        self.start_time = time.time()

    def update(self, step: int, description: str = ""):
        self.current_step = step
        fraction = min(step / self.total_steps, 1.0)
        done = int(self.BAR_LENGTH * fraction)
        bar = "█" * done + "░" * (self.BAR_LENGTH - done)
        line = (f"\r⏳ [{bar}] {step}/{self.total_steps} "
                f"| {format_duration(time.time() - self.start_time)}")
        if description:
            line += f" | {description}"
        print(line, end="", flush=True)

    def finish(self, solved: bool = False):
        elapsed = format_duration(time.time() - self.start_time)
        headline = "🧩 Puzzle solved!" if solved else "⏹️  Replay finished."
        print(f"\n{headline} ({elapsed})")


class StatusDisplay:
    """Formatted status output shared by the CLI and the runner."""

    ICONS = {
        "info": "ℹ️",
        "success": "✅",
        "warning": "⚠️",
        "error": "❌",
        "processing": "🔄",
        "snap": "🧲",
        "solved": "🧩",
    }

    @staticmethod
    def print_header(title: str, width: int = 80):
        rule = "=" * width
        print(f"\n{rule}\n{title:^{width}}\n{rule}")

    @staticmethod
    def print_section(title: str, width: int = 60):
        print(f"\n📋 {title}")
        print("-" * width)

    @staticmethod
    def print_config(config_dict: Dict[str, Any], title: str = "Configuration"):
        """Print a config mapping; nested mappings are indented one level."""
        StatusDisplay.print_section(title)
        for key, value in config_dict.items():
            if not isinstance(value, dict):
                print(f"  {key:<20} : {value}")
                continue
            print(f"  {key}:")
            for sub_key, sub_value in value.items():
                print(f"    {sub_key:<18} : {sub_value}")

    @staticmethod
    def print_status(message: str, status: str = "info"):
        icon = StatusDisplay.ICONS.get(status, StatusDisplay.ICONS["info"])
        print(f"{icon} [{datetime.now():%H:%M:%S}] {message}")

    @staticmethod
    def print_results(results: Dict[str, Any], title: str = "Results"):
        StatusDisplay.print_section(title)
        for key, value in results.items():
            if isinstance(value, bool):
                value = f"{'✅' if value else '❌'} {value}"
            elif isinstance(value, float):
                value = f"{value:.3f}"
            print(f"  {key:<20} : {value}")

    @staticmethod
    def print_group_grid(group_rows: Sequence[Sequence[Optional[int]]], placed_rows: Sequence[Sequence[bool]]):
        """
        Print group ids laid out by home cell.

        Pieces outside the zone are shown in parentheses.
        """
        for ids, placed in zip(group_rows, placed_rows):
            cells: List[str] = []
            for gid, is_placed in zip(ids, placed):
                label = "-" if gid is None else str(gid)
                cells.append(f"{label:>4} " if is_placed else f"({label:>2}) ")
            print("  " + "".join(cells))

    @staticmethod
    def ask_confirmation(message: str) -> bool:
        return input(f"❓ {message} (y/N): ").strip().lower() in ("y", "yes")


class LiveLogger:
    """Status lines for steps, actions and puzzle events; silent unless verbose."""

    def __init__(self, verbose: bool = True):
        self.verbose = verbose
        self.step_times: Dict[int, float] = {}

    def _emit(self, message: str, status: str):
        if self.verbose:
            StatusDisplay.print_status(message, status)

    def log_step_start(self, step: int, description: str):
        self.step_times[step] = time.time()
        self._emit(f"Step {step}: {description}", "processing")

    def log_step_end(self, step: int, result: str, success: bool = True):
        elapsed = time.time() - self.step_times.pop(step, time.time())
        self._emit(f"Step {step} → {result} ({elapsed:.2f}s)", "success" if success else "error")

    def log_action(self, action_name: str, details: str = ""):
        self._emit(f"{action_name} - {details}" if details else action_name, "processing")

    def log_event(self, event_name: str, details: str = ""):
        status = "solved" if event_name == "PUZZLE_SOLVED" else "snap"
        self._emit(f"{event_name}: {details}" if details else event_name, status)

    def log_result(self, message: str, success: bool = True):
        self._emit(message, "success" if success else "error")

    def log_info(self, message: str):
        self._emit(message, "info")

    def log_warning(self, message: str):
        self._emit(message, "warning")

    def log_error(self, message: str):
        self._emit(message, "error")
