"""
Turn a frame of hand detections into a single ControlState, and hand that
state from the gesture cadence to the game cadence.
"""
import logging
import threading
from typing import Dict, Optional

from .classifier import GestureClassifier
from .types import ControlState, FrameResult, NEUTRAL_CONTROLS

logger = logging.getLogger(__name__)

# Recognizer categories and the direction bit each one sets
LABEL_CONTROLS: Dict[str, ControlState] = {
    "Pointing_Up": ControlState(up=True),
    "Thumb_Down": ControlState(down=True),
    "Open_Palm": ControlState(left=True),
    "Thumb_Left": ControlState(left=True),
    "Closed_Fist": ControlState(right=True),
    "Thumb_Right": ControlState(right=True),
}


class ControlResolver:
    """
    Aggregates model labels and geometric gestures across all hands.

    Both signals are OR-ed together without weighting, and opposite bits are
    passed through untouched for the engine to resolve.
    """

    def __init__(self, classifier: Optional[GestureClassifier] = None):
        self.classifier = classifier or GestureClassifier()

    def labels_to_controls(self, frame: FrameResult) -> ControlState:
        """Map every categorical label in the frame onto direction bits."""
        controls = NEUTRAL_CONTROLS
        for hand in frame.hands:
            for label in hand.labels:
                mapped = LABEL_CONTROLS.get(label.category_name)
                if mapped is not None:
                    controls = controls.merge(mapped)
        return controls

    def landmarks_to_controls(self, frame: FrameResult) -> ControlState:
        """OR together the geometric gestures of every hand."""
        controls = NEUTRAL_CONTROLS
        for hand in frame.hands:
            controls = controls.merge(self.classifier.classify(hand.landmarks).to_control_state())
        return controls

    def resolve(self, frame: FrameResult) -> ControlState:
        """
        Compute the control state for one frame.
        
        Args:
            frame: All hands detected in the frame, possibly none
            
        Returns:
            Union of label-derived and landmark-derived direction bits
        """
        controls = self.labels_to_controls(frame).merge(self.landmarks_to_controls(frame))
        logger.debug(f"Frame {frame.timestamp_ms}: {len(frame.hands)} hand(s) -> {controls}")
        return controls


class ControlCell:
    """
    Latest-value handoff between the gesture pipeline and the game engine.

    Last write wins: nothing is queued, so a state overwritten before the
    engine reads it is dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = NEUTRAL_CONTROLS
        self._version = 0

    def publish(self, state: ControlState) -> None:
        with self._lock:
            self._state = state
            self._version += 1

    def latest(self) -> ControlState:
        with self._lock:
            return self._state

    def clear(self) -> None:
        """Publish the neutral state so a stale gesture stops steering."""
        self.publish(NEUTRAL_CONTROLS)

    @property
    def version(self) -> int:
        """Number of publishes so far."""
        with self._lock:
            return self._version
