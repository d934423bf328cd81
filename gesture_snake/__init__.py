"""
Gesture Snake

A Python game that reads webcam frames, detects hand landmarks using MediaPipe,
turns them into up/down/left/right controls and steers a snake with them.
"""

__version__ = "0.1.0"
__author__ = "Gesture Snake Team"

from .types import (
    Cell,
    ControlState,
    Direction,
    FrameResult,
    GameOverReason,
    GameState,
    GestureLabel,
    HandDetection,
    Landmark,
    LandmarkProviderProto,
    Status,
)
from .config import load_config, Cfg
from .classifier import GestureClassifier, HandGestures
from .control import ControlCell, ControlResolver
from .engine import GameEngine, TickGate, resolve_direction
from .pipeline import GesturePipeline
from .provider_mock import MockLandmarkProvider

__all__ = [
    "Cell",
    "ControlState",
    "Direction",
    "FrameResult",
    "GameOverReason",
    "GameState",
    "GestureLabel",
    "HandDetection",
    "Landmark",
    "LandmarkProviderProto",
    "Status",
    "load_config",
    "Cfg",
    "GestureClassifier",
    "HandGestures",
    "ControlCell",
    "ControlResolver",
    "GameEngine",
    "TickGate",
    "resolve_direction",
    "GesturePipeline",
    "MockLandmarkProvider",
]
