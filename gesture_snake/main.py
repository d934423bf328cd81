"""
Main application: webcam gestures steering a snake game.

Two cooperative asyncio tasks share one event loop:
- the gesture task reads camera frames and publishes ControlStates
- the game task pumps pygame events, ticks the engine on a fixed timestep
  and renders
They communicate only through a last-write-wins ControlCell.
"""
import asyncio
import logging
import sys
import time
from typing import List, Optional

import cv2
import numpy as np
import pygame

from .config import Cfg, load_config
from .control import ControlCell
from .engine import GameEngine, TickGate
from .landmarks import GestureRecognizerProvider, draw_landmarks
from .pipeline import GesturePipeline
from .provider_mock import MockLandmarkProvider, demo_frames
from .renderer import BLACK, SnakeRenderer
from .types import ControlState, GameState, LandmarkProviderProto, NEUTRAL_CONTROLS, Status

logger = logging.getLogger(__name__)

HUD_HEIGHT = 120


class GestureSnakeApp:
    """Main application class for the gesture-controlled snake game."""
    
    def __init__(self, config: Cfg, use_camera: bool = True, demo: bool = False):
        """Initialize the application with configuration."""
        self.config = config
        self.engine = GameEngine.from_config(config)
        self.engine.add_game_over_listener(self._on_game_over)
        self.tick_gate = TickGate(config.game.tick_ms)
        self.renderer = SnakeRenderer(config.game.cell_size)
        self.cell = ControlCell()
        
        self.cap: Optional[cv2.VideoCapture] = None
        self.provider: Optional[LandmarkProviderProto] = None
        self.pipeline: Optional[GesturePipeline] = None
        self.last_frame: Optional[np.ndarray] = None
        self.keyboard_controls = NEUTRAL_CONTROLS
        self.running = False
        
        # Choose landmark source
        if demo:
            self.provider = MockLandmarkProvider(demo_frames(), loop=True)
            logger.info("🎬 Demo mode: replaying scripted gestures")
        elif use_camera:
            try:
                self._open_camera()
            except (RuntimeError, FileNotFoundError) as e:
                logger.warning(f"⚠️  Gesture control unavailable, using keyboard only: {e}")
                self._release_camera()
        
        if self.provider is not None:
            self.pipeline = GesturePipeline(self.provider, self.cell)
    
    def _open_camera(self) -> None:
        camera = self.config.camera
        self.cap = cv2.VideoCapture(camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, camera.fps)
        
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {camera.index}")
        
        self.provider = GestureRecognizerProvider(self.config.mediapipe).open()
    
    def _release_camera(self) -> None:
        if self.provider is not None:
            self.provider.close()
            self.provider = None
        if self.cap is not None:
            self.cap.release()
            self.cap = None
    
    def _on_game_over(self, snapshot: GameState) -> None:
        # Ending the game cancels the tick cadence
        self.tick_gate.reset()
    
    # -------------------------------------------------------------------------
    # Gesture cadence
    # -------------------------------------------------------------------------
    
    async def _read_frame(self) -> Optional[np.ndarray]:
        if self.cap is None:
            # Scripted provider: pace it like a camera
            await asyncio.sleep(1.0 / self.config.camera.fps)
            return np.zeros((self.config.camera.height, self.config.camera.width, 3), dtype=np.uint8)
        
        ret, frame = await asyncio.to_thread(self.cap.read)
        if not ret:
            return None
        if self.config.camera.mirror:
            frame = cv2.flip(frame, 1)
        return frame
    
    def _detect(self, frame: np.ndarray, timestamp_ms: int) -> np.ndarray:
        """Run inference and the overlay off the event loop."""
        frame_result, _ = self.pipeline.process(frame, timestamp_ms)
        if self.config.display.show_landmarks:
            frame = draw_landmarks(frame, frame_result)
        return frame
    
    def _on_gesture_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error(f"❌ Gesture task failed: {task.exception()!r}")
        logger.warning("⚠️  Falling back to keyboard control")
        self.cell.clear()
        self.last_frame = None
        self._release_camera()
    
    async def _gesture_loop(self) -> None:
        """Process frames as fast as they arrive and publish controls."""
        try:
            while self.running and self.pipeline.running:
                frame = await self._read_frame()
                if frame is None:
                    logger.warning("Failed to read frame from camera")
                    break
                
                timestamp_ms = int(time.monotonic() * 1000)
                detect = asyncio.ensure_future(asyncio.to_thread(self._detect, frame, timestamp_ms))
                try:
                    self.last_frame = await asyncio.shield(detect)
                except asyncio.CancelledError:
                    # Let in-flight inference finish before the provider is closed
                    await asyncio.wait([detect])
                    raise
                
                await asyncio.sleep(0)
        finally:
            self.pipeline.stop()
    
    # -------------------------------------------------------------------------
    # Game cadence
    # -------------------------------------------------------------------------
    
    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    if self.engine.status is Status.IDLE:
                        self.engine.start()
                    elif self.engine.status is Status.GAME_OVER:
                        self.engine.reset(start=True)
                elif event.key == pygame.K_p:
                    self.engine.toggle_pause()
                elif event.key == pygame.K_r:
                    self.engine.reset()
        
        pressed = pygame.key.get_pressed()
        self.keyboard_controls = ControlState(
            up=bool(pressed[pygame.K_UP]),
            down=bool(pressed[pygame.K_DOWN]),
            left=bool(pressed[pygame.K_LEFT]),
            right=bool(pressed[pygame.K_RIGHT]),
        )
    
    def _render(self, screen: pygame.Surface, controls: ControlState) -> None:
        screen.fill(BLACK)
        snapshot = self.engine.get_snapshot()
        self.renderer.draw(screen, snapshot)
        
        board_width, _ = self.renderer.board_size(snapshot)
        display = self.config.display
        if display.show_camera and self.last_frame is not None:
            rect = pygame.Rect(board_width, 0, display.camera_preview_width, display.camera_preview_height)
            self.renderer.draw_camera(screen, self.last_frame, rect)
        self.renderer.draw_controls(screen, controls, (board_width + 20, display.camera_preview_height + 10))
        
        pygame.display.flip()
    
    async def _game_loop(self, screen: pygame.Surface) -> None:
        """Fixed-timestep game updates over a display-rate loop."""
        frame_s = 1.0 / self.config.display.fps
        
        while self.running:
            self._handle_events()
            
            controls = self.cell.latest().merge(self.keyboard_controls)
            self.engine.set_control_state(controls)
            
            if self.engine.status is Status.RUNNING:
                if self.tick_gate.ready(time.monotonic()):
                    self.engine.tick()
            else:
                self.tick_gate.reset()
            
            self._render(screen, controls)
            await asyncio.sleep(frame_s)
    
    async def run(self) -> None:
        """Run the main application loop."""
        pygame.init()
        game = self.config.game
        display = self.config.display
        board_width = game.grid_width * game.cell_size
        board_height = game.grid_height * game.cell_size
        screen = pygame.display.set_mode((
            board_width + display.camera_preview_width,
            max(board_height, display.camera_preview_height + HUD_HEIGHT),
        ))
        pygame.display.set_caption(display.window_name)
        
        logger.info(f"Starting {display.window_name} ({game.grid_width}x{game.grid_height} grid, {game.tick_ms}ms ticks)")
        logger.info("🎯 Gestures: index up = UP | middle/thumb down = DOWN | "
                    "open palm / point left = LEFT | fist / point right = RIGHT")
        logger.info("⌨️  Keys: arrows steer | SPACE start/restart | P pause | R reset | ESC quit")
        
        self.running = True
        tasks: List[asyncio.Task] = []
        if self.pipeline is not None:
            task = asyncio.create_task(self._gesture_loop())
            task.add_done_callback(self._on_gesture_task_done)
            tasks.append(task)
        
        try:
            await self._game_loop(screen)
        finally:
            self.running = False
            try:
                for task in tasks:
                    task.cancel()
                # Failures were already reported by _on_gesture_task_done
                await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                self.close()
    
    def close(self) -> None:
        """Cleanup resources."""
        if self.pipeline is not None:
            self.pipeline.stop()
        self._release_camera()
        pygame.quit()


def configure_logging(cfg: Cfg) -> None:
    level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=cfg.logging.format)


def _arg_value(argv: List[str], flag: str) -> Optional[str]:
    if flag in argv:
        index = argv.index(flag)
        if index + 1 < len(argv):
            return argv[index + 1]
    return None


async def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the application."""
    argv = sys.argv[1:] if argv is None else argv
    
    # --keyboard skips the camera, --demo replays scripted gestures
    use_camera = "--keyboard" not in argv
    demo = "--demo" in argv
    
    config = load_config(_arg_value(argv, "--config"))
    configure_logging(config)
    
    app = GestureSnakeApp(config, use_camera=use_camera, demo=demo)
    try:
        await app.run()
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
