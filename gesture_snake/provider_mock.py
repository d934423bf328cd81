"""
Mock landmark provider that replays scripted frames instead of running a model.
"""
import itertools
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .types import FrameResult, GestureLabel, HandDetection, Landmark, NUM_HAND_LANDMARKS


def build_hand(points: Optional[Dict[int, Tuple[float, float]]] = None,
               base: Tuple[float, float] = (0.5, 0.5)) -> Tuple[Landmark, ...]:
    """
    Build a 21-landmark hand with every point at base except the overrides.
    
    A hand with all points stacked on one spot triggers no gesture at all.
    """
    points = points or {}
    return tuple(Landmark(*points.get(i, base)) for i in range(NUM_HAND_LANDMARKS))


# Synthetic poses; each triggers exactly one direction
POSES: Dict[str, Tuple[Landmark, ...]] = {
    "neutral": build_hand(),
    "index_up": build_hand({
        0: (0.5, 0.9),
        5: (0.45, 0.7), 6: (0.45, 0.55), 7: (0.45, 0.45), 8: (0.45, 0.35),
        9: (0.5, 0.7), 12: (0.5, 0.75),
        13: (0.55, 0.7), 16: (0.55, 0.75),
        17: (0.6, 0.7), 20: (0.6, 0.75),
    }),
    "middle_down": build_hand({
        0: (0.5, 0.2),
        5: (0.45, 0.4), 8: (0.45, 0.35),
        9: (0.5, 0.4), 10: (0.5, 0.55), 11: (0.5, 0.68), 12: (0.5, 0.8),
        13: (0.55, 0.4), 16: (0.55, 0.35),
        17: (0.6, 0.4), 20: (0.6, 0.35),
    }),
    "thumb_down": build_hand({
        0: (0.5, 0.4),
        1: (0.45, 0.45), 2: (0.43, 0.52), 3: (0.42, 0.6), 4: (0.42, 0.7),
    }),
    "point_left": build_hand({
        0: (0.7, 0.5),
        8: (0.4, 0.44), 12: (0.38, 0.5), 16: (0.4, 0.56), 20: (0.42, 0.62),
    }),
    "point_right": build_hand({
        0: (0.3, 0.5),
        8: (0.6, 0.44), 12: (0.62, 0.5), 16: (0.6, 0.56), 20: (0.58, 0.62),
    }),
    "open_palm": build_hand({
        0: (0.5, 0.9),
        5: (0.4, 0.6), 9: (0.47, 0.6), 13: (0.54, 0.6), 17: (0.61, 0.6),
        8: (0.35, 0.3), 12: (0.45, 0.25), 16: (0.55, 0.3), 20: (0.65, 0.35),
    }),
    "closed_fist": build_hand({
        0: (0.5, 0.9),
        5: (0.44, 0.6), 9: (0.48, 0.6), 13: (0.52, 0.6), 17: (0.56, 0.6),
        8: (0.44, 0.7), 12: (0.48, 0.7), 16: (0.52, 0.7), 20: (0.56, 0.7),
    }),
}


def frame_of(*poses: str, labels: Iterable[str] = ()) -> FrameResult:
    """One frame holding the named poses; labels are attached to the first hand."""
    hands: List[HandDetection] = []
    label_tuple = tuple(GestureLabel(name, 0.9) for name in labels)
    for i, pose in enumerate(poses):
        hands.append(HandDetection(landmarks=POSES[pose], labels=label_tuple if i == 0 else ()))
    if not hands and label_tuple:
        hands.append(HandDetection(landmarks=(), labels=label_tuple))
    return FrameResult(hands=tuple(hands))


def demo_frames(hold_frames: int = 30) -> List[FrameResult]:
    """Steer the snake around a rectangle: right, down, left, up."""
    script = ["point_right", "middle_down", "point_left", "index_up"]
    frames: List[FrameResult] = []
    for pose in script:
        frames.extend([frame_of(pose)] * hold_frames)
    return frames


class MockLandmarkProvider:
    """Landmark provider that replays FrameResults instead of detecting hands."""
    
    def __init__(self, frames: Iterable[FrameResult], loop: bool = False):
        """
        Initialize the mock provider.
        
        Args:
            frames: FrameResults to hand out, one per process() call
            loop: Start over when the script runs out instead of
                returning empty frames
        """
        self._frames = list(frames)
        self._source = itertools.cycle(self._frames) if loop and self._frames else iter(self._frames)
        self.process_count = 0
        self.closed = False
    
    def process(self, frame_bgr: np.ndarray, timestamp_ms: int) -> FrameResult:
        """Return the next scripted frame, stamped with timestamp_ms."""
        if self.closed:
            raise RuntimeError("Mock provider is closed")
        self.process_count += 1
        scripted = next(self._source, FrameResult())
        return FrameResult(hands=scripted.hands, timestamp_ms=timestamp_ms)
    
    def close(self) -> None:
        self.closed = True
    
    def __enter__(self) -> "MockLandmarkProvider":
        return self
    
    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
