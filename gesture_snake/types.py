"""
Type definitions for the gesture-controlled snake game.
"""
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np


# Anatomical landmark indices of a MediaPipe hand skeleton
WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

NUM_HAND_LANDMARKS = 21


class Landmark(NamedTuple):
    """One normalized 3-D point of a detected hand skeleton."""
    x: float
    y: float
    z: float = 0.0


# A hand is 21 landmarks in anatomical order; anything exposing .x/.y works
Hand = Sequence[Landmark]


@dataclass(frozen=True)
class GestureLabel:
    """Categorical gesture reported by the recognizer model."""
    category_name: str
    confidence: float = 1.0


@dataclass(frozen=True)
class HandDetection:
    """Landmarks and optional model labels for a single detected hand."""
    landmarks: Tuple[Landmark, ...]
    labels: Tuple[GestureLabel, ...] = ()
    handedness: Optional[str] = None


@dataclass(frozen=True)
class FrameResult:
    """Everything a landmark provider reports for one video frame."""
    hands: Tuple[HandDetection, ...] = ()
    timestamp_ms: int = 0


@dataclass(frozen=True)
class ControlState:
    """Per-frame directional flags. Several may be set at once."""
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    @property
    def is_neutral(self) -> bool:
        return not (self.up or self.down or self.left or self.right)

    def merge(self, other: "ControlState") -> "ControlState":
        """Bitwise OR of two control states."""
        return ControlState(
            up=self.up or other.up,
            down=self.down or other.down,
            left=self.left or other.left,
            right=self.right or other.right,
        )


NEUTRAL_CONTROLS = ControlState()


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]


_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class Cell(NamedTuple):
    """Integer grid coordinate."""
    col: int
    row: int

    def shifted(self, direction: Direction) -> "Cell":
        dc, dr = direction.delta
        return Cell(self.col + dc, self.row + dr)


class Status(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class GameOverReason(Enum):
    WALL = "hit the wall"
    SELF = "hit yourself"
    BOARD_FULL = "filled the board"


@dataclass(frozen=True)
class GameState:
    """Read-only snapshot of the game, handed to renderers."""
    snake: Tuple[Cell, ...]
    food: Optional[Cell]
    direction: Direction
    score: int
    status: Status
    grid_width: int
    grid_height: int
    high_score: int = 0
    game_over_reason: Optional[GameOverReason] = None
    tick_count: int = 0

    @property
    def head(self) -> Cell:
        return self.snake[0]


@runtime_checkable
class LandmarkProviderProto(Protocol):
    """Abstract protocol for anything that turns video frames into hand landmarks."""

    def process(self, frame_bgr: np.ndarray, timestamp_ms: int) -> FrameResult:
        """Detect hands in a BGR frame."""
        ...

    def close(self) -> None:
        """Release the underlying model."""
        ...


@runtime_checkable
class RendererProto(Protocol):
    """Abstract protocol for consumers of game snapshots."""

    def draw(self, surface, snapshot: GameState) -> None:
        """Draw a snapshot. Must not feed anything back into the engine."""
        ...
