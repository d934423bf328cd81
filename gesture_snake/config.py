"""
Configuration management for the gesture snake game.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from dotenv import load_dotenv


CONFIG_ENV_VAR = "GESTURE_SNAKE_CONFIG"

# Default snake and food need this much room
MIN_GRID_WIDTH = 11
MIN_GRID_HEIGHT = 11


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    mirror: bool


@dataclass
class MediaPipeConfig:
    """MediaPipe GestureRecognizer configuration settings."""
    model_path: str
    num_hands: int
    min_detection_confidence: float
    min_presence_confidence: float
    min_tracking_confidence: float


@dataclass
class GameConfig:
    """Board geometry and game rules."""
    width: int
    height: int
    cell_size: int
    tick_ms: int
    food_score: int
    max_food_attempts: int
    seed: Optional[int]

    @property
    def grid_width(self) -> int:
        return self.width // self.cell_size

    @property
    def grid_height(self) -> int:
        return self.height // self.cell_size


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    window_name: str
    fps: int
    show_landmarks: bool
    show_camera: bool
    camera_preview_width: int
    camera_preview_height: int


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str
    format: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    game: GameConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.
    
    Args:
        path: Path to config file. If None, uses $GESTURE_SNAKE_CONFIG
            (after reading .env) or config.default.yaml
        
    Returns:
        Configuration object with all settings
    """
    if path is None:
        load_dotenv()
        path = os.getenv(CONFIG_ENV_VAR)
    
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"
    
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    
    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)
    
    cfg = _dict_to_config(data)
    validate_config(cfg)
    return cfg


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps'],
        mirror=camera_data.get('mirror', True)
    )
    
    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        model_path=mp_data['model_path'],
        num_hands=mp_data['num_hands'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_presence_confidence=mp_data['min_presence_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence']
    )
    
    game_data = data['game']
    game = GameConfig(
        width=game_data['width'],
        height=game_data['height'],
        cell_size=game_data['cell_size'],
        tick_ms=game_data['tick_ms'],
        food_score=game_data['food_score'],
        max_food_attempts=game_data['max_food_attempts'],
        seed=game_data.get('seed')
    )
    
    display_data = data['display']
    display = DisplayConfig(
        window_name=display_data['window_name'],
        fps=display_data['fps'],
        show_landmarks=display_data['show_landmarks'],
        show_camera=display_data['show_camera'],
        camera_preview_width=display_data['camera_preview_width'],
        camera_preview_height=display_data['camera_preview_height']
    )
    
    logging_data = data.get('logging', {})
    logging_cfg = LoggingConfig(
        level=logging_data.get('level', 'INFO'),
        format=logging_data.get('format', '%(asctime)s %(levelname)s %(name)s: %(message)s')
    )
    
    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        game=game,
        display=display,
        logging=logging_cfg
    )


def validate_config(cfg: Cfg) -> None:
    """Reject values the game cannot run with."""
    game = cfg.game
    for name in ('width', 'height', 'cell_size', 'tick_ms', 'max_food_attempts'):
        if getattr(game, name) <= 0:
            raise ValueError(f"game.{name} must be positive, got {getattr(game, name)}")
    if game.food_score < 0:
        raise ValueError(f"game.food_score must not be negative, got {game.food_score}")
    if game.grid_width < MIN_GRID_WIDTH or game.grid_height < MIN_GRID_HEIGHT:
        raise ValueError(
            f"Grid {game.grid_width}x{game.grid_height} is too small, "
            f"need at least {MIN_GRID_WIDTH}x{MIN_GRID_HEIGHT} cells"
        )
    if cfg.mediapipe.num_hands <= 0:
        raise ValueError(f"mediapipe.num_hands must be positive, got {cfg.mediapipe.num_hands}")
    if cfg.display.fps <= 0:
        raise ValueError(f"display.fps must be positive, got {cfg.display.fps}")
