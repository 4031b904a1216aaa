import os
import json
import pandas as pd
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from PIL import Image


class ExperimentLogger:
    """
    Per-session record of replayed tool calls.

    Each session gets its own directory under log_dir holding
    session_log.json, summary.txt and (optionally) one PNG per step.
    """

    def __init__(self, log_dir: str, experiment_name: str):
        started = datetime.now()
        self.experiment_name = f"{experiment_name}_{started:%Y%m%d_%H%M%S}"
        self.run_dir = os.path.join(log_dir, self.experiment_name)
        self.images_dir = os.path.join(self.run_dir, "images")
        self.logs: List[Dict[str, Any]] = []

        os.makedirs(self.images_dir, exist_ok=True)

    def log_step(self, step: int, data: Dict[str, Any], verbose: bool = True):
        """
        Record one step.

        Args:
            step (int): Step number, 0 for the initial board.
            data (Dict[str, Any]): Step payload. A PIL image under "image" is
                written to images/step_NNN.png and replaced by "image_path".
            verbose (bool): Echo the step and its events to the console.
        """
        entry = {"step": step, "logged_at": datetime.now().isoformat(), **data}

        image = entry.pop("image", None)
        if isinstance(image, Image.Image):
            entry["image_path"] = os.path.join(self.images_dir, f"step_{step:03d}.png")
            image.save(entry["image_path"])

        if verbose:
            if entry.get("step_type") == "initial":
                print(f"🚀 Step {step}: initial board")
            else:
                tool = entry.get("action", {}).get("tool", "?")
                status = (entry.get("tool_result") or {}).get("status", "?")
                print(f"⚡ Step {step}: {tool} [{status}]")
            for event in entry.get("events", []):
                if event.get("type") != "DRAG_UPDATED":
                    print(f"  🧲 {event.get('type')} members={event.get('members')}")

        self.logs.append(entry)

    def event_counts(self) -> Dict[str, int]:
        counts: Counter = Counter(
            event.get("type", "UNKNOWN") for entry in self.logs for event in entry.get("events", [])
        )
        return dict(counts)

    def failed_steps(self) -> List[int]:
        return [
            entry["step"] for entry in self.logs
            if (entry.get("tool_result") or {}).get("status") == "error"
        ]

    def save_logs(self, summary: Optional[Dict[str, Any]] = None, verbose: bool = True) -> str:
        """
        Write session_log.json and summary.txt into the run directory.

        Returns:
            Path of the JSON log
        """
        log_file = os.path.join(self.run_dir, "session_log.json")
        with open(log_file, "w", encoding="utf-8") as f:
            json.dump(self.logs, f, indent=2, default=str)

        summary_file = os.path.join(self.run_dir, "summary.txt")
        self._write_summary(summary_file, summary or {})

        if verbose:
            print(f"📁 Session log: {log_file}")
            print(f"📋 Summary: {summary_file}")
        return log_file

    def _write_summary(self, summary_file: str, summary: Dict[str, Any]):
        tool_steps = [entry for entry in self.logs if entry.get("step_type") == "action"]
        lines = [
            f"Session: {self.experiment_name}",
            "=" * 60,
            f"Tool calls: {len(tool_steps)}",
            f"Failed tool calls: {len(self.failed_steps())}",
            f"Images: {sum(1 for entry in self.logs if 'image_path' in entry)}",
        ]
        lines += [f"{key}: {value}" for key, value in summary.items()]

        lines += ["", "Events", "-" * 30]
        lines += [f"{name}: {count}" for name, count in sorted(self.event_counts().items())]

        lines += ["", "Steps", "-" * 30]
        for entry in self.logs:
            if entry.get("step_type") == "initial":
                lines.append(f"{entry['step']:>4}  initial board")
                continue
            tool = entry.get("action", {}).get("tool", "?")
            message = (entry.get("tool_result") or {}).get("message", "")
            lines.append(f"{entry['step']:>4}  {tool:<10} {message}")

        with open(summary_file, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def save_results_to_excel(self, results: Dict[str, Any], excel_path: str, verbose: bool = True):
        """
        Append one session row to an Excel workbook, creating it if needed.

        Args:
            results (Dict[str, Any]): Flat mapping of column to value.
            excel_path (str): Workbook path.
        """
        row = pd.DataFrame([results])
        table = row
        if os.path.exists(excel_path):
            try:
                table = pd.concat([pd.read_excel(excel_path), row], ignore_index=True)
            except (ValueError, OSError) as e:
                print(f"Could not read existing workbook {excel_path}: {e}. Starting a new one.")

        table.to_excel(excel_path, index=False)
        if verbose:
            print(f"Results appended to {excel_path}")
