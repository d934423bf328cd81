"""
Hand landmark detection and gesture labelling using MediaPipe's GestureRecognizer.
"""
import logging
from pathlib import Path
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from .config import MediaPipeConfig
from .types import FrameResult, GestureLabel, HandDetection, Landmark

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/gesture_recognizer/"
    "gesture_recognizer/float16/1/gesture_recognizer.task"
)

# Bones of the hand skeleton as (landmark, landmark) pairs
HAND_CONNECTIONS = (
    # Thumb
    (0, 1), (1, 2), (2, 3), (3, 4),
    # Index finger
    (0, 5), (5, 6), (6, 7), (7, 8),
    # Middle finger
    (0, 9), (9, 10), (10, 11), (11, 12),
    # Ring finger
    (0, 13), (13, 14), (14, 15), (15, 16),
    # Pinky
    (0, 17), (17, 18), (18, 19), (19, 20),
)


class GestureRecognizerProvider:
    """
    Landmark provider backed by a MediaPipe GestureRecognizer in VIDEO mode.
    
    Use as a context manager so the model is created before the first frame
    and released on shutdown:
    
        with GestureRecognizerProvider(cfg.mediapipe) as provider:
            frame_result = provider.process(frame, timestamp_ms)
    """
    
    def __init__(self, cfg: MediaPipeConfig):
        """
        Initialize the provider. The model is loaded by open().
        
        Args:
            cfg: MediaPipe settings (model path, hand count, confidences)
        """
        self.cfg = cfg
        self.recognizer: Optional[vision.GestureRecognizer] = None
        self._last_timestamp_ms = -1
    
    def open(self) -> "GestureRecognizerProvider":
        """Load the gesture recognizer model."""
        if self.recognizer is not None:
            return self
        
        model_path = Path(self.cfg.model_path)
        if not model_path.exists():
            raise FileNotFoundError(
                f"Gesture recognizer model not found: {model_path} (download it from {MODEL_URL})"
            )
        
        options = vision.GestureRecognizerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.cfg.num_hands,
            min_hand_detection_confidence=self.cfg.min_detection_confidence,
            min_hand_presence_confidence=self.cfg.min_presence_confidence,
            min_tracking_confidence=self.cfg.min_tracking_confidence
        )
        try:
            self.recognizer = vision.GestureRecognizer.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise RuntimeError(f"Failed to create gesture recognizer: {e}") from e
        
        self._last_timestamp_ms = -1
        logger.info(f"✅ Gesture recognizer ready ({model_path}, up to {self.cfg.num_hands} hands)")
        return self
    
    def close(self) -> None:
        """Release the model. Safe to call more than once."""
        if self.recognizer is not None:
            self.recognizer.close()
            self.recognizer = None
            logger.info("🧹 Gesture recognizer closed")
    
    def __enter__(self) -> "GestureRecognizerProvider":
        return self.open()
    
    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
    
    def process(self, frame_bgr: np.ndarray, timestamp_ms: int) -> FrameResult:
        """
        Detect hands and gesture labels in a frame.
        
        Args:
            frame_bgr: Input frame in BGR format
            timestamp_ms: Frame time; forced to increase monotonically
            
        Returns:
            All detected hands with landmarks in [0..1] and their labels
        """
        if self.recognizer is None:
            raise RuntimeError("Gesture recognizer is not open")
        
        # VIDEO mode rejects timestamps that do not increase
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms
        
        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        
        result = self.recognizer.recognize_for_video(mp_image, timestamp_ms)
        return to_frame_result(result, timestamp_ms)


def to_frame_result(result, timestamp_ms: int) -> FrameResult:
    """
    Convert a GestureRecognizerResult into plain types.
    
    Args:
        result: Object with hand_landmarks, gestures and handedness lists,
            one entry per hand
        timestamp_ms: Frame time to attach
        
    Returns:
        FrameResult with one HandDetection per detected hand
    """
    hand_landmarks = getattr(result, "hand_landmarks", None) or []
    gestures = getattr(result, "gestures", None) or []
    handedness = getattr(result, "handedness", None) or []
    
    hands = []
    for i, landmarks in enumerate(hand_landmarks):
        points = tuple(Landmark(lm.x, lm.y, getattr(lm, "z", 0.0)) for lm in landmarks)
        
        labels = ()
        if i < len(gestures):
            labels = tuple(
                GestureLabel(category_name=category.category_name, confidence=category.score)
                for category in gestures[i]
            )
        
        side = None
        if i < len(handedness) and handedness[i]:
            side = handedness[i][0].category_name
        
        hands.append(HandDetection(landmarks=points, labels=labels, handedness=side))
    
    return FrameResult(hands=tuple(hands), timestamp_ms=timestamp_ms)


def draw_landmarks(frame: np.ndarray, frame_result: FrameResult) -> np.ndarray:
    """
    Draw every detected hand skeleton on the frame.
    
    Args:
        frame: Input frame (modified in place)
        frame_result: Hands with landmarks in [0..1] range
        
    Returns:
        Frame with landmarks drawn
    """
    height, width = frame.shape[:2]
    
    for hand in frame_result.hands:
        # Convert normalized coordinates to pixel coordinates
        points = [(int(lm.x * width), int(lm.y * height)) for lm in hand.landmarks]
        
        for start, end in HAND_CONNECTIONS:
            if start < len(points) and end < len(points):
                cv2.line(frame, points[start], points[end], (133, 37, 247), 2)
        
        for px, py in points:
            cv2.circle(frame, (px, py), 4, (240, 201, 76), -1)
        
        if hand.labels and points:
            best = max(hand.labels, key=lambda label: label.confidence)
            cv2.putText(frame, f"{best.category_name} {best.confidence:.2f}",
                        (points[0][0] + 5, points[0][1] + 20),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
    
    return frame
