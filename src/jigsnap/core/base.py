"""
Shared interfaces: tool-call actions, board observations and the
environment contract the session runner drives.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
from dataclasses import dataclass, field
from PIL import Image
from abc import ABC, abstractmethod
if TYPE_CHECKING:
    from jigsnap.core.config import EnvironmentConfig


@dataclass
class Action:
    """One tool call: a tool name plus keyword arguments."""
    tool: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        """
        Accepts {"tool": "grab", "piece_index": 0, ...} with the arguments
        inline, or {"tool": "grab", "parameters": {...}}. "action_type" is
        read as an alias of "tool".
        """
        data = dict(data)
        tool = data.pop("tool", None) or data.pop("action_type", None)
        if not tool:
            raise ValueError(f"Action is missing a 'tool' name: {data}")
        parameters = data.pop("parameters", None)
        if parameters is None:
            parameters = data
        if not isinstance(parameters, dict):
            raise ValueError(f"Action parameters must be a mapping, got {type(parameters).__name__}")
        return cls(tool=str(tool), parameters=parameters)

    def to_dict(self) -> Dict[str, Any]:
        return {"tool": self.tool, "parameters": dict(self.parameters)}


@dataclass
class ObjectInfo:
    """A drawable thing on the board: the assembly zone or one piece."""
    object_id: int
    name: str
    position: Tuple[float, float, float]
    object_type: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_id": self.object_id,
            "name": self.name,
            "position": [round(c, 6) for c in self.position],
            "object_type": self.object_type,
            "properties": self.properties,
        }


@dataclass
class State:
    """Board snapshot after a step. metadata carries tool results and drained events."""
    step: int
    objects: List[ObjectInfo]
    time_stamp: float
    metadata: Optional[Dict[str, Any]] = field(default_factory=dict)


@dataclass
class Observation:
    image: Image.Image
    state: State
    description: str


class BaseEnvironment(ABC):
    """
    Tool-driven environment.

    Subclasses expose their operations as named tools. execute_tool_call
    never raises for bad input; it answers with {"status": "error", ...}.
    """

    def __init__(self, config: EnvironmentConfig):
        self.config: EnvironmentConfig = config

    @abstractmethod
    def reset(self, seed: Optional[int] = None) -> Observation:
        """Return to the initial board and observe it."""
        pass

    @abstractmethod
    def step(self, action: Action) -> Observation:
        """Run one tool call and observe the result."""
        pass

    @abstractmethod
    def render(self) -> Image.Image:
        pass

    @abstractmethod
    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Function-calling schemas, one per tool."""
        pass

    @abstractmethod
    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
