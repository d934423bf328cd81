"""
Test cases for the application loop: task failure handling and cadence isolation.
Skipped when mediapipe is not installed.
"""
import unittest
import asyncio
import importlib.util
import os
import sys
import time
from pathlib import Path

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gesture_snake.config import load_config
from gesture_snake.pipeline import GesturePipeline
from gesture_snake.types import FrameResult, NEUTRAL_CONTROLS

HAS_MEDIAPIPE = importlib.util.find_spec("mediapipe") is not None

if HAS_MEDIAPIPE:
    from gesture_snake.main import GestureSnakeApp


class CrashingProvider:
    """Provider whose model dies on the first frame."""
    
    def __init__(self):
        self.closed = False
    
    def process(self, frame_bgr, timestamp_ms):
        raise RuntimeError("recognizer crashed")
    
    def close(self):
        self.closed = True


class SlowProvider:
    """Provider whose inference takes a fixed, blocking amount of time."""
    
    def __init__(self, delay_s):
        self.delay_s = delay_s
        self.closed = False
    
    def process(self, frame_bgr, timestamp_ms):
        time.sleep(self.delay_s)
        return FrameResult(timestamp_ms=timestamp_ms)
    
    def close(self):
        self.closed = True


async def run_for(app, seconds):
    async def stop_later():
        await asyncio.sleep(seconds)
        app.running = False
    
    await asyncio.gather(app.run(), stop_later())


@unittest.skipUnless(HAS_MEDIAPIPE, "mediapipe not installed")
class TestGestureSnakeApp(unittest.TestCase):
    """Run the real loop headless with substitute providers."""
    
    def setUp(self):
        self.cfg = load_config()
        self.cfg.display.show_camera = False
    
    def make_app(self, provider):
        app = GestureSnakeApp(self.cfg, demo=True)
        app.provider = provider
        app.pipeline = GesturePipeline(provider, app.cell)
        return app
    
    def test_crashed_gesture_task_still_cleans_up(self):
        provider = CrashingProvider()
        app = self.make_app(provider)
        
        with self.assertLogs("gesture_snake.main", level="ERROR") as logs:
            asyncio.run(run_for(app, 0.3))
        
        self.assertTrue(provider.closed)
        self.assertIsNone(app.provider)
        self.assertFalse(pygame.get_init())
        self.assertEqual(app.cell.latest(), NEUTRAL_CONTROLS)
        self.assertTrue(any("recognizer crashed" in line for line in logs.output))
    
    def test_slow_inference_does_not_stall_game_loop(self):
        provider = SlowProvider(0.2)
        app = self.make_app(provider)
        render_times = []
        original_render = app._render
        
        def timed_render(screen, controls):
            render_times.append(time.monotonic())
            original_render(screen, controls)
        
        app._render = timed_render
        asyncio.run(run_for(app, 1.0))
        
        gaps = [b - a for a, b in zip(render_times, render_times[1:])]
        self.assertGreater(len(render_times), 20)
        self.assertLess(max(gaps), 0.1)
        self.assertTrue(provider.closed)


if __name__ == '__main__':
    unittest.main()
