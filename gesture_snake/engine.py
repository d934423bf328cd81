"""
Fixed-timestep snake game state machine.

The engine never throttles itself: callers decide when tick() runs, usually
through a TickGate driven by a faster display loop.
"""
import logging
import random
from collections import deque
from typing import Callable, Iterable, List, Optional

from .config import Cfg
from .types import (
    Cell,
    ControlState,
    Direction,
    GameOverReason,
    GameState,
    NEUTRAL_CONTROLS,
    Status,
)

logger = logging.getLogger(__name__)

DEFAULT_GRID_WIDTH = 30
DEFAULT_GRID_HEIGHT = 20
DEFAULT_SNAKE = (Cell(5, 5), Cell(4, 5), Cell(3, 5))
DEFAULT_DIRECTION = Direction.RIGHT
DEFAULT_FOOD = Cell(10, 10)
DEFAULT_TICK_MS = 150
FOOD_SCORE = 10
MAX_FOOD_ATTEMPTS = 100
MIN_SNAKE_LENGTH = 3

GameOverListener = Callable[[GameState], None]


def resolve_direction(current: Direction, controls: ControlState,
                      heading: Optional[Direction] = None) -> Direction:
    """
    Pick the next direction from a control state.
    
    Args:
        current: Direction selected for the next move
        controls: Latest control flags, possibly several at once
        heading: Direction of the last move actually made, if it differs
            from current
        
    Returns:
        The first set flag in up, down, left, right order, unless it would
        reverse current or heading, in which case the current direction
    """
    if controls.up:
        candidate = Direction.UP
    elif controls.down:
        candidate = Direction.DOWN
    elif controls.left:
        candidate = Direction.LEFT
    elif controls.right:
        candidate = Direction.RIGHT
    else:
        return current

    if candidate is current.opposite or (heading is not None and candidate is heading.opposite):
        return current
    return candidate


class GameEngine:
    """
    Owns and mutates the game state.
    
    Lifecycle:
    - Idle -> Running on start()
    - Running <-> Paused on pause()/resume()
    - Running -> GameOver on wall, self collision or a full board
    - any -> Idle (or Running) on reset()
    """

    def __init__(self, grid_width: int = DEFAULT_GRID_WIDTH, grid_height: int = DEFAULT_GRID_HEIGHT,
                 rng: Optional[random.Random] = None, food_score: int = FOOD_SCORE,
                 max_food_attempts: int = MAX_FOOD_ATTEMPTS,
                 initial_snake: Iterable[Cell] = DEFAULT_SNAKE,
                 initial_direction: Direction = DEFAULT_DIRECTION,
                 initial_food: Optional[Cell] = DEFAULT_FOOD):
        if grid_width <= 0 or grid_height <= 0:
            raise ValueError(f"Grid must be positive, got {grid_width}x{grid_height}")
        self.grid_width = grid_width
        self.grid_height = grid_height
        self.rng = rng or random.Random()
        self.food_score = food_score
        self.max_food_attempts = max(1, max_food_attempts)

        self.initial_snake = tuple(Cell(*cell) for cell in initial_snake)
        self.initial_direction = initial_direction
        self.initial_food = Cell(*initial_food) if initial_food is not None else None
        self._check_initial_snake()

        self.high_score = 0
        self._listeners: List[GameOverListener] = []
        self._reset_state(Status.IDLE)

    @classmethod
    def from_config(cls, cfg: Cfg, rng: Optional[random.Random] = None) -> "GameEngine":
        """Build an engine sized to the configured canvas."""
        game = cfg.game
        return cls(
            grid_width=game.grid_width,
            grid_height=game.grid_height,
            rng=rng or random.Random(game.seed),
            food_score=game.food_score,
            max_food_attempts=game.max_food_attempts,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        if self._status is not Status.IDLE:
            logger.debug(f"start() ignored while {self._status.value}")
            return
        self._status = Status.RUNNING
        logger.info("🐍 Game started")

    def pause(self) -> None:
        if self._status is not Status.RUNNING:
            logger.debug(f"pause() ignored while {self._status.value}")
            return
        self._status = Status.PAUSED
        logger.info("⏸️  Game paused")

    def resume(self) -> None:
        if self._status is not Status.PAUSED:
            logger.debug(f"resume() ignored while {self._status.value}")
            return
        self._status = Status.RUNNING
        logger.info("▶️  Game resumed")

    def toggle_pause(self) -> None:
        if self._status is Status.PAUSED:
            self.resume()
        else:
            self.pause()

    def reset(self, start: bool = False) -> None:
        """Restore the starting snake and food. The high score survives."""
        self._reset_state(Status.RUNNING if start else Status.IDLE)
        logger.info(f"🔄 Game reset ({self._status.value})")

    def add_game_over_listener(self, listener: GameOverListener) -> None:
        """Call listener with the final snapshot whenever the game ends."""
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Input and simulation
    # -------------------------------------------------------------------------

    def set_control_state(self, controls: ControlState) -> None:
        """Store the latest controls and steer right away if running."""
        self._controls = controls
        if self._status is Status.RUNNING:
            self._direction = resolve_direction(self._direction, controls, self._heading)

    def tick(self) -> GameState:
        """
        Advance the snake by one cell.
        
        Returns:
            Snapshot after the tick. Unchanged unless the game is running.
        """
        if self._status is not Status.RUNNING:
            return self.get_snapshot()

        self._direction = resolve_direction(self._direction, self._controls, self._heading)
        self._heading = self._direction
        self._tick_count += 1
        new_head = self._snake[0].shifted(self._direction)

        if not self._in_bounds(new_head):
            self._end(GameOverReason.WALL)
            return self.get_snapshot()

        if new_head in self._snake:
            self._end(GameOverReason.SELF)
            return self.get_snapshot()

        self._snake.appendleft(new_head)
        if new_head == self._food:
            # Keep the tail so the snake grows by one
            self._score += self.food_score
            self._food = self._place_food()
            if self._food is None:
                self._end(GameOverReason.BOARD_FULL)
        else:
            self._snake.pop()

        return self.get_snapshot()

    def get_snapshot(self) -> GameState:
        return GameState(
            snake=tuple(self._snake),
            food=self._food,
            direction=self._direction,
            score=self._score,
            status=self._status,
            grid_width=self.grid_width,
            grid_height=self.grid_height,
            high_score=self.high_score,
            game_over_reason=self._game_over_reason,
            tick_count=self._tick_count,
        )

    @property
    def status(self) -> Status:
        return self._status

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def score(self) -> int:
        return self._score

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_initial_snake(self) -> None:
        if len(self.initial_snake) < MIN_SNAKE_LENGTH:
            raise ValueError(f"Snake needs at least {MIN_SNAKE_LENGTH} cells, got {len(self.initial_snake)}")
        if len(set(self.initial_snake)) != len(self.initial_snake):
            raise ValueError("Snake cells must be distinct")
        for cell in self.initial_snake:
            if not self._in_bounds(cell):
                raise ValueError(f"Snake cell {cell} lies outside the {self.grid_width}x{self.grid_height} grid")

    def _reset_state(self, status: Status) -> None:
        self._snake = deque(self.initial_snake)
        self._direction = self.initial_direction
        self._heading = self.initial_direction
        self._score = 0
        self._status = status
        self._game_over_reason: Optional[GameOverReason] = None
        self._controls = NEUTRAL_CONTROLS
        self._tick_count = 0

        food = self.initial_food
        if food is None or not self._in_bounds(food) or food in self._snake:
            food = self._place_food()
        self._food = food

    def _in_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.col < self.grid_width and 0 <= cell.row < self.grid_height

    def _place_food(self) -> Optional[Cell]:
        """
        Pick a uniformly random cell not covered by the snake.

        Rejection sampling is bounded; after max_food_attempts misses the free
        cells are enumerated instead. Returns None when the board is full.
        """
        occupied = set(self._snake)
        for _ in range(self.max_food_attempts):
            cell = Cell(self.rng.randrange(self.grid_width), self.rng.randrange(self.grid_height))
            if cell not in occupied:
                return cell

        free = [Cell(col, row)
                for row in range(self.grid_height)
                for col in range(self.grid_width)
                if Cell(col, row) not in occupied]
        if not free:
            return None
        return self.rng.choice(free)

    def _end(self, reason: GameOverReason) -> None:
        self._status = Status.GAME_OVER
        self._game_over_reason = reason
        self.high_score = max(self.high_score, self._score)
        logger.info(f"💀 Game over: {reason.value} (score {self._score}, high score {self.high_score})")

        snapshot = self.get_snapshot()
        for listener in self._listeners:
            listener(snapshot)


class TickGate:
    """
    Fixed-timestep gate for a variable-rate loop.
    
    The first call arms the gate; after that ready() is True at most once per
    interval.
    """

    def __init__(self, interval_ms: int = DEFAULT_TICK_MS):
        if interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}ms")
        self.interval_s = interval_ms / 1000.0
        self._last_fire: Optional[float] = None

    def ready(self, now: float) -> bool:
        """
        Check whether a tick is due.
        
        Args:
            now: Current timestamp in seconds
            
        Returns:
            True if at least one interval has elapsed since the last tick
        """
        if self._last_fire is None:
            self._last_fire = now
            return False
        if now - self._last_fire >= self.interval_s:
            self._last_fire = now
            return True
        return False

    def reset(self) -> None:
        """Cancel the cadence; the next ready() call re-arms it."""
        self._last_fire = None
