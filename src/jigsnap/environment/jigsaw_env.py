"""
Jigsaw environment: exposes the assembly core through tool calls.

Each tool maps onto one pointer gesture of JigsawPuzzle, so a scripted
session (or an agent) can grab, move and release pieces and read back the
events the puzzle published.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image

from jigsnap.core import (
    EnvironmentConfig,
    BaseEnvironment,
    PuzzleConfig,
    register_environment,
    register_environment_config,
)
from jigsnap.core.base import Action, Observation, ObjectInfo, State
from jigsnap.puzzle import JigsawPuzzle
from jigsnap.puzzle.visualizer import figure_to_image, visualize_board
from jigsnap.utils.display import LiveLogger


@register_environment_config("jigsaw")
@dataclass
class JigsawConfig(EnvironmentConfig):
    """Configuration for the jigsaw environment."""

    puzzle: PuzzleConfig = field(default_factory=PuzzleConfig)
    render_dpi: int = 100
    render_home: bool = True
    verbose_events: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.puzzle, dict):
            self.puzzle = PuzzleConfig(**self.puzzle)
        if not isinstance(self.render_dpi, int) or self.render_dpi <= 0:
            raise ValueError("render_dpi must be a positive integer")


@register_environment("jigsaw")
class JigsawEnvironment(BaseEnvironment):
    """Tool-call wrapper around JigsawPuzzle."""

    def __init__(self, config: JigsawConfig):
        super().__init__(config)
        self.config: JigsawConfig
        self.step_count: int = 0
        self.current_state: Optional[State] = None
        self.puzzle = JigsawPuzzle(config.puzzle, logger=LiveLogger(verbose=config.verbose_events))
        self._tool_handlers = {
            "state": self._tool_state,
            "grab": self._tool_grab,
            "move": self._tool_move,
            "release": self._tool_release,
            "cancel": self._tool_cancel,
            "reset": self._tool_reset,
            "piece_info": self._tool_piece_info,
        }

    # ------------------------------------------------------------------ #
    # BaseEnvironment API
    # ------------------------------------------------------------------ #
    def reset(self, seed: Optional[int] = None) -> Observation:
        """Scatter the pieces again and return the initial observation."""
        self.step_count = 0
        self.puzzle.reset(seed=seed if seed is not None else self.config.puzzle.scatter.seed)
        events = self._drain_events()
        self.current_state = self._get_current_state(metadata={"events": events})
        return self._create_observation()

    def step(self, action: Action) -> Observation:
        """Execute one tool call and return the new observation."""
        self.step_count += 1
        tool_result = self.execute_tool_call(action.tool, action.parameters)
        metadata = {
            "tool_call": action.to_dict(),
            "tool_result": tool_result,
            "events": self._drain_events(),
        }
        if self.step_count >= self.config.max_steps:
            metadata["max_steps_reached"] = True
        self.current_state = self._get_current_state(metadata=metadata)
        return self._create_observation()

    def render(self) -> Image.Image:
        """Render the board top-down to a PIL image."""
        try:
            dpi = self.config.render_dpi
            fig = visualize_board(
                self.puzzle,
                title=f"{self.puzzle.board.cols}x{self.puzzle.board.rows} jigsaw",
                figsize=(self.config.render_width / dpi, self.config.render_height / dpi),
                show_home=self.config.render_home,
            )
            return figure_to_image(fig, dpi=dpi)
        except (ValueError, RuntimeError, OSError):
            return Image.new("RGB", (self.config.render_width, self.config.render_height), color="white")

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Return JSON schemas for the exposed tools."""
        def build_schema(name: str, desc: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
            return {
                "type": "function",
                "function": {
                    "name": name,
                    "description": desc,
                    "parameters": {
                        "type": "object",
                        "properties": properties,
                        "required": required,
                    },
                },
            }

        coord = {
            "x": {"type": "number", "description": "Pointer x on the board plane."},
            "z": {"type": "number", "description": "Pointer z on the board plane."},
        }
        piece = {"piece_index": {"type": "integer", "description": "Row-major piece index."}}

        return [
            build_schema(
                "state",
                "Show the board: groups, placed pieces, pieces at home and whether the puzzle is solved.",
                {},
                [],
            ),
            build_schema(
                "grab",
                "Press the pointer on a piece (at its center when x and z are omitted). "
                "The whole group it belongs to is picked up. "
                "Fails while another piece is held, or when the piece is unknown or locked.",
                {**piece, **coord},
                ["piece_index"],
            ),
            build_schema(
                "move",
                "Move the pointer while holding a group; the group follows rigidly.",
                coord,
                ["x", "z"],
            ),
            build_schema(
                "release",
                "Release the held group at (x, z). It snaps home, snaps to a placed neighbor, "
                "stays where it was dropped, or is taken out of the zone.",
                {**coord, "piece_index": {"type": "integer", "description": "Piece under the pointer (defaults to the grabbed piece)."}},
                ["x", "z"],
            ),
            build_schema(
                "cancel",
                "Abort the current drag; the held group returns to where it was picked up.",
                {},
                [],
            ),
            build_schema(
                "reset",
                "Break every group apart and scatter the pieces around the zone.",
                {"seed": {"type": "integer", "description": "Optional scatter seed."}},
                [],
            ),
            build_schema(
                "piece_info",
                "Inspect one piece: position, home, group, neighbors and edge shapes.",
                piece,
                ["piece_index"],
            ),
        ]

    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch tool calls."""
        handler = self._tool_handlers.get(tool_name)
        if not handler:
            return {"status": "error", "message": f"Unknown tool '{tool_name}'"}
        try:
            return handler(**(arguments or {}))
        except (TypeError, ValueError, KeyError) as exc:
            return {"status": "error", "message": f"Tool '{tool_name}' failed: {exc}"}

    def close(self) -> None:
        """Drop any drag in progress."""
        self.puzzle.pointer_cancel()
        self.puzzle.events.drain()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _drain_events(self) -> List[Dict[str, Any]]:
        return [event.to_dict() for event in self.puzzle.events.drain()]

    def _get_current_state(self, metadata: Optional[Dict[str, Any]] = None) -> State:
        groups = self.puzzle.groups()
        meta = {
            "piece_count": self.puzzle.piece_count,
            "group_count": len(groups),
            "groups": {str(gid): members for gid, members in sorted(groups.items())},
            "placed_pieces": [p.index for p in self.puzzle.registry if p.is_placed_in_box],
            "at_home_pieces": [p.index for p in self.puzzle.registry if p.is_at_home_position],
            "dragging": self.puzzle.dragging,
            "is_complete": self.puzzle.solved,
        }
        if metadata:
            meta.update(metadata)
        return State(step=self.step_count, objects=self._objects(), time_stamp=float(self.step_count), metadata=meta)

    def _objects(self) -> List[ObjectInfo]:
        board = self.puzzle.board
        objs = [
            ObjectInfo(
                object_id=0,
                name="zone",
                position=(board.zone_center[0], 0.0, board.zone_center[1]),
                object_type="container",
                properties={"bounds": list(board.zone_bounds)},
            )
        ]
        targets = self.puzzle.render_targets()
        for piece in self.puzzle.registry:
            objs.append(
                ObjectInfo(
                    object_id=piece.index + 1,
                    name=f"piece_{piece.index}",
                    position=targets[piece.index].to_tuple(),
                    object_type="piece",
                    properties={
                        "piece_index": piece.index,
                        "home_cell": list(piece.home_cell),
                        "group_id": piece.group_id,
                        "placed": piece.is_placed_in_box,
                        "at_home": piece.is_at_home_position,
                        "locked": piece.locked,
                    },
                )
            )
        return objs

    def _create_observation(self) -> Observation:
        image = self.render()
        return Observation(image=image, state=self.current_state, description=self._get_state_description())

    def _get_state_description(self) -> str:
        """Textual description of the board and the last tool call."""
        placed = sum(1 for p in self.puzzle.registry if p.is_placed_in_box)
        at_home = sum(1 for p in self.puzzle.registry if p.is_at_home_position)
        lines = [
            f"Board: {self.puzzle.board.cols}x{self.puzzle.board.rows}, {self.puzzle.piece_count} pieces",
            f"Groups: {self.puzzle.group_count()}, Placed: {placed}, At home: {at_home}",
        ]
        if self.current_state and self.current_state.metadata:
            tool_call = self.current_state.metadata.get("tool_call")
            tool_res = self.current_state.metadata.get("tool_result")
            if tool_call and tool_res:
                lines.append(
                    f"Last tool: {tool_call.get('tool')} with {tool_call.get('parameters')}, "
                    f"result: {tool_res.get('status')} - {tool_res.get('message')}"
                )
            events = self.current_state.metadata.get("events") or []
            if events:
                lines.append("Events: " + ", ".join(e["type"] for e in events))
        multi = [members for members in self.puzzle.groups().values() if len(members) > 1]
        if multi:
            lines.append("Joined groups: " + "; ".join(str(m) for m in multi))
        if self.puzzle.solved:
            lines.append("Puzzle complete.")
        return "\n".join(lines)

    # ------------------------------------------------------------------ #
    # Tool implementations
    # ------------------------------------------------------------------ #
    def _tool_state(self) -> Dict[str, Any]:
        groups = self.puzzle.groups()
        return {
            "status": "success",
            "message": "State retrieved",
            "state": {
                "group_count": len(groups),
                "groups": {str(gid): members for gid, members in sorted(groups.items())},
                "placed_pieces": [p.index for p in self.puzzle.registry if p.is_placed_in_box],
                "at_home_pieces": [p.index for p in self.puzzle.registry if p.is_at_home_position],
                "dragging": self.puzzle.dragging,
                "is_complete": self.puzzle.solved,
            },
        }

    def _tool_grab(self, piece_index: int, x: Optional[float] = None, z: Optional[float] = None) -> Dict[str, Any]:
        index = int(piece_index)
        if self.puzzle.dragging:
            return {"status": "error", "message": "A group is already being dragged; release or cancel it first"}
        piece = self.puzzle.registry.get(index)
        if piece is None:
            return {"status": "error", "message": f"Piece {index} not found"}
        if piece.locked:
            return {"status": "error", "message": f"Piece {index} is locked"}
        x = piece.position.x if x is None else float(x)
        z = piece.position.z if z is None else float(z)
        session = self.puzzle.pointer_down(index, (x, z))
        if session is None:
            return {"status": "error", "message": f"Piece {index} could not be grabbed"}
        return {
            "status": "success",
            "message": f"Grabbed piece {index} with group {session.group_id}",
            "group_id": session.group_id,
            "members": session.members,
        }

    def _tool_move(self, x: float, z: float) -> Dict[str, Any]:
        targets = self.puzzle.pointer_move((float(x), float(z)))
        if targets is None:
            return {"status": "error", "message": "No piece is being dragged"}
        return {
            "status": "success",
            "message": f"Moved {len(targets)} piece(s)",
            "targets": {str(i): list(v.to_tuple()) for i, v in targets.items()},
        }

    def _tool_release(self, x: float, z: float, piece_index: Optional[int] = None) -> Dict[str, Any]:
        if not self.puzzle.dragging:
            return {"status": "error", "message": "No piece is being dragged"}
        index = int(piece_index) if piece_index is not None else None
        result = self.puzzle.pointer_up(index, (float(x), float(z)))
        if result is None:
            return {"status": "error", "message": "Release failed"}
        message = f"{result.outcome.value}: piece {result.dropped_index}, group {result.group_id}"
        if result.neighbor_index is not None:
            message += f", joined neighbor {result.neighbor_index}"
        return {
            "status": "success",
            "message": message,
            "outcome": result.outcome.value,
            "result": result.to_dict(),
            "is_complete": self.puzzle.solved,
        }

    def _tool_cancel(self) -> Dict[str, Any]:
        release = self.puzzle.pointer_cancel()
        if release is None:
            return {"status": "error", "message": "No piece is being dragged"}
        return {"status": "success", "message": f"Drag of group {release.group_id} cancelled", "members": release.members}

    def _tool_reset(self, seed: Optional[int] = None) -> Dict[str, Any]:
        self.puzzle.reset(seed=int(seed) if seed is not None else None)
        return {"status": "success", "message": "Puzzle reset", "group_count": self.puzzle.group_count()}

    def _tool_piece_info(self, piece_index: int) -> Dict[str, Any]:
        index = int(piece_index)
        piece = self.puzzle.registry.get(index)
        if piece is None:
            return {"status": "error", "message": f"Piece {index} not found"}
        info = piece.to_dict()
        info["neighbors"] = {d.value: n for d, n in self.puzzle.graph.neighbors_of(index).items()}
        return {"status": "success", "message": "Piece info retrieved", "info": info}
