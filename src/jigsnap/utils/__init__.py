"""Utility modules for jigsnap."""

from jigsnap.utils.logger import ExperimentLogger
from jigsnap.utils.display import ProgressDisplay, StatusDisplay, LiveLogger, format_duration

__all__ = [
    "ExperimentLogger",
    "ProgressDisplay",
    "StatusDisplay",
    "LiveLogger",
    "format_duration",
]
