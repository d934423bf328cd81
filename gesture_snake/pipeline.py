"""
Gesture pipeline: provider -> resolver -> control cell.
"""
import logging
import threading
from typing import Optional, Tuple

import numpy as np

from .control import ControlCell, ControlResolver
from .types import ControlState, FrameResult, LandmarkProviderProto, NEUTRAL_CONTROLS

logger = logging.getLogger(__name__)


class GesturePipeline:
    """
    Runs once per camera frame and publishes the resulting controls.
    
    Stopping the pipeline publishes the neutral state, so a gesture that was
    being held when the camera went away does not keep steering the snake.
    process() may run on a worker thread while stop() runs on the event loop.
    """
    
    def __init__(self, provider: LandmarkProviderProto, cell: ControlCell,
                 resolver: Optional[ControlResolver] = None):
        self.provider = provider
        self.cell = cell
        self.resolver = resolver or ControlResolver()
        self.running = True
        self.frames_processed = 0
        self._lock = threading.Lock()
    
    def process(self, frame_bgr: np.ndarray, timestamp_ms: int) -> Tuple[FrameResult, ControlState]:
        """
        Detect hands in a frame and publish the controls they imply.
        
        Args:
            frame_bgr: Camera frame in BGR format
            timestamp_ms: Frame time in milliseconds
            
        Returns:
            Tuple of (frame_result, controls)
        """
        if not self.running:
            logger.debug("Frame dropped: pipeline stopped")
            return FrameResult(timestamp_ms=timestamp_ms), NEUTRAL_CONTROLS
        
        frame_result = self.provider.process(frame_bgr, timestamp_ms)
        return frame_result, self.publish(frame_result)
    
    def publish(self, frame_result: FrameResult) -> ControlState:
        """Resolve an already detected frame and publish it."""
        controls = self.resolver.resolve(frame_result)
        with self._lock:
            if not self.running:
                return NEUTRAL_CONTROLS
            self.cell.publish(controls)
            self.frames_processed += 1
        return controls
    
    def start(self) -> None:
        with self._lock:
            self.running = True
    
    def stop(self) -> None:
        """Stop accepting frames and neutralize the shared controls."""
        with self._lock:
            if self.running:
                logger.info(f"Gesture pipeline stopped after {self.frames_processed} frames")
            self.running = False
            self.cell.clear()
