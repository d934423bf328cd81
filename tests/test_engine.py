"""
Test cases for the snake game engine and tick gate.
"""
import unittest
import random
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gesture_snake.config import load_config
from gesture_snake.engine import GameEngine, TickGate, resolve_direction
from gesture_snake.types import (
    Cell,
    ControlState,
    Direction,
    GameOverReason,
    NEUTRAL_CONTROLS,
    Status,
)


def running_engine(**kwargs) -> GameEngine:
    engine = GameEngine(rng=random.Random(7), **kwargs)
    engine.start()
    return engine


class AlwaysZero(random.Random):
    """Random whose randrange never leaves the origin."""
    
    def __init__(self):
        super().__init__(0)
        self.randrange_calls = 0
    
    def randrange(self, *args, **kwargs):
        self.randrange_calls += 1
        return 0


class TestResolveDirection(unittest.TestCase):
    """Test priority and reversal rules."""
    
    def test_neutral_keeps_direction(self):
        for direction in Direction:
            self.assertIs(resolve_direction(direction, NEUTRAL_CONTROLS), direction)
    
    def test_single_flags(self):
        self.assertIs(resolve_direction(Direction.RIGHT, ControlState(up=True)), Direction.UP)
        self.assertIs(resolve_direction(Direction.RIGHT, ControlState(down=True)), Direction.DOWN)
        self.assertIs(resolve_direction(Direction.UP, ControlState(left=True)), Direction.LEFT)
        self.assertIs(resolve_direction(Direction.UP, ControlState(right=True)), Direction.RIGHT)
    
    def test_reversal_is_rejected(self):
        for direction in Direction:
            with self.subTest(direction=direction):
                opposite = direction.opposite
                controls = ControlState(**{opposite.name.lower(): True})
                self.assertIs(resolve_direction(direction, controls), direction)
    
    def test_reversal_of_last_move_is_rejected(self):
        self.assertIs(
            resolve_direction(Direction.UP, ControlState(left=True), heading=Direction.RIGHT),
            Direction.UP,
        )
        self.assertIs(
            resolve_direction(Direction.UP, ControlState(right=True), heading=Direction.RIGHT),
            Direction.RIGHT,
        )
    
    def test_priority_order(self):
        self.assertIs(resolve_direction(Direction.LEFT, ControlState(up=True, left=True)), Direction.UP)
        self.assertIs(resolve_direction(Direction.LEFT, ControlState(up=True, down=True)), Direction.UP)
        self.assertIs(resolve_direction(Direction.UP, ControlState(down=True, right=True, left=True)), Direction.UP)
        self.assertIs(
            resolve_direction(Direction.DOWN, ControlState(up=True, down=True, left=True, right=True)),
            Direction.DOWN,
        )
        self.assertIs(resolve_direction(Direction.UP, ControlState(left=True, right=True)), Direction.LEFT)


class TestLifecycle(unittest.TestCase):
    """Test status transitions."""
    
    def setUp(self):
        self.engine = GameEngine(rng=random.Random(1))
    
    def test_initial_state(self):
        state = self.engine.get_snapshot()
        self.assertEqual(state.snake, (Cell(5, 5), Cell(4, 5), Cell(3, 5)))
        self.assertEqual(state.head, Cell(5, 5))
        self.assertEqual(state.food, Cell(10, 10))
        self.assertIs(state.direction, Direction.RIGHT)
        self.assertEqual(state.score, 0)
        self.assertIs(state.status, Status.IDLE)
        self.assertEqual((state.grid_width, state.grid_height), (30, 20))
        self.assertIsNone(state.game_over_reason)
    
    def test_tick_is_noop_unless_running(self):
        before = self.engine.get_snapshot()
        self.assertEqual(self.engine.tick(), before)
        
        self.engine.start()
        self.engine.pause()
        self.assertIs(self.engine.status, Status.PAUSED)
        paused = self.engine.get_snapshot()
        self.assertEqual(self.engine.tick().snake, paused.snake)
        self.assertEqual(self.engine.get_snapshot().tick_count, 0)
    
    def test_pause_resume_toggle(self):
        self.engine.start()
        self.assertIs(self.engine.status, Status.RUNNING)
        self.engine.toggle_pause()
        self.assertIs(self.engine.status, Status.PAUSED)
        self.engine.toggle_pause()
        self.assertIs(self.engine.status, Status.RUNNING)
        self.engine.pause()
        self.engine.resume()
        self.assertIs(self.engine.status, Status.RUNNING)
    
    def test_resume_and_pause_ignored_when_idle(self):
        self.engine.resume()
        self.assertIs(self.engine.status, Status.IDLE)
        self.engine.pause()
        self.assertIs(self.engine.status, Status.IDLE)
    
    def test_reset_restores_start(self):
        self.engine.start()
        self.engine.set_control_state(ControlState(down=True))
        for _ in range(3):
            self.engine.tick()
        
        self.engine.reset()
        state = self.engine.get_snapshot()
        self.assertIs(state.status, Status.IDLE)
        self.assertEqual(state.snake, (Cell(5, 5), Cell(4, 5), Cell(3, 5)))
        self.assertIs(state.direction, Direction.RIGHT)
        self.assertEqual(state.food, Cell(10, 10))
        self.assertEqual(state.tick_count, 0)
        
        # Stored controls are cleared too
        self.engine.start()
        self.assertEqual(self.engine.tick().head, Cell(6, 5))
    
    def test_reset_and_start(self):
        self.engine.reset(start=True)
        self.assertIs(self.engine.status, Status.RUNNING)
    
    def test_start_ignored_after_game_over(self):
        engine = running_engine(initial_snake=[(29, 5), (28, 5), (27, 5)])
        engine.tick()
        self.assertIs(engine.status, Status.GAME_OVER)
        engine.start()
        engine.resume()
        self.assertIs(engine.status, Status.GAME_OVER)


class TestMovement(unittest.TestCase):
    """Test steering, collisions and growth."""
    
    def test_plain_move_keeps_length(self):
        engine = running_engine()
        state = engine.tick()
        self.assertEqual(state.snake, (Cell(6, 5), Cell(5, 5), Cell(4, 5)))
        self.assertEqual(state.tick_count, 1)
    
    def test_wall_collision(self):
        engine = running_engine(initial_snake=[(29, 5), (28, 5), (27, 5)])
        state = engine.tick()
        self.assertIs(state.status, Status.GAME_OVER)
        self.assertIs(state.game_over_reason, GameOverReason.WALL)
        self.assertEqual(state.snake, (Cell(29, 5), Cell(28, 5), Cell(27, 5)))
    
    def test_top_wall_collision(self):
        engine = running_engine(initial_snake=[(5, 0), (5, 1), (5, 2)],
                                initial_direction=Direction.UP)
        self.assertIs(engine.tick().game_over_reason, GameOverReason.WALL)
    
    def test_self_collision_into_neck(self):
        engine = running_engine(
            initial_snake=[(5, 5), (4, 5), (3, 5), (3, 6), (4, 6), (5, 6)],
            initial_direction=Direction.LEFT,
        )
        state = engine.tick()
        self.assertIs(state.game_over_reason, GameOverReason.SELF)
        self.assertEqual(len(state.snake), 6)

    def test_self_collision_includes_tail(self):
        engine = running_engine(
            initial_snake=[(5, 5), (4, 5), (3, 5), (3, 6), (4, 6), (5, 6)],
            initial_direction=Direction.DOWN,
        )
        state = engine.tick()
        self.assertIs(state.status, Status.GAME_OVER)
        self.assertIs(state.game_over_reason, GameOverReason.SELF)
        self.assertEqual(state.game_over_reason.value, "hit yourself")
    
    def test_eating_food(self):
        engine = running_engine(initial_snake=[(9, 10), (8, 10), (7, 10)])
        state = engine.tick()
        
        self.assertEqual(state.score, 10)
        self.assertEqual(len(state.snake), 4)
        self.assertEqual(state.head, Cell(10, 10))
        self.assertIn(Cell(7, 10), state.snake)
        self.assertIsNotNone(state.food)
        self.assertNotIn(state.food, state.snake)
        self.assertTrue(0 <= state.food.col < 30 and 0 <= state.food.row < 20)
    
    def test_food_score_is_configurable(self):
        engine = running_engine(initial_snake=[(9, 10), (8, 10), (7, 10)], food_score=25)
        self.assertEqual(engine.tick().score, 25)
    
    def test_steering_applies_immediately_while_running(self):
        engine = running_engine()
        engine.set_control_state(ControlState(up=True))
        self.assertIs(engine.direction, Direction.UP)
        self.assertEqual(engine.tick().head, Cell(5, 4))
    
    def test_reversal_ignored(self):
        engine = running_engine()
        engine.set_control_state(ControlState(left=True))
        self.assertIs(engine.direction, Direction.RIGHT)
        self.assertEqual(engine.tick().head, Cell(6, 5))
    
    def test_two_turns_between_ticks_cannot_reverse(self):
        engine = running_engine()
        engine.set_control_state(ControlState(up=True))
        engine.set_control_state(ControlState(left=True))
        self.assertIs(engine.direction, Direction.UP)
        
        state = engine.tick()
        self.assertIs(state.status, Status.RUNNING)
        self.assertEqual(state.head, Cell(5, 4))
        
        # Once the snake has moved up, left is a legal turn
        engine.set_control_state(ControlState(left=True))
        self.assertEqual(engine.tick().head, Cell(4, 4))
    
    def test_priority_on_tick(self):
        engine = running_engine(initial_snake=[(5, 5), (6, 5), (7, 5)],
                                initial_direction=Direction.LEFT)
        engine.set_control_state(ControlState(up=True, left=True))
        state = engine.tick()
        self.assertIs(state.direction, Direction.UP)
        self.assertEqual(state.head, Cell(5, 4))
    
    def test_controls_stored_while_idle(self):
        engine = GameEngine(rng=random.Random(3))
        engine.set_control_state(ControlState(down=True))
        self.assertIs(engine.direction, Direction.RIGHT)
        
        engine.start()
        state = engine.tick()
        self.assertIs(state.direction, Direction.DOWN)
        self.assertEqual(state.head, Cell(5, 6))
    
    def test_snapshot_is_not_mutated(self):
        engine = running_engine()
        before = engine.get_snapshot()
        engine.tick()
        self.assertEqual(before.snake, (Cell(5, 5), Cell(4, 5), Cell(3, 5)))
        self.assertEqual(before.tick_count, 0)


class TestFoodPlacement(unittest.TestCase):
    """Test bounded food placement."""
    
    def test_board_full_ends_game(self):
        engine = GameEngine(
            grid_width=3, grid_height=2, rng=random.Random(0),
            initial_snake=[(0, 0), (1, 0), (2, 0), (2, 1), (1, 1)],
            initial_direction=Direction.DOWN,
            initial_food=(0, 1),
        )
        engine.start()
        state = engine.tick()
        
        self.assertIs(state.status, Status.GAME_OVER)
        self.assertIs(state.game_over_reason, GameOverReason.BOARD_FULL)
        self.assertIsNone(state.food)
        self.assertEqual(len(state.snake), 6)
        self.assertEqual(state.score, 10)
        self.assertEqual(state.high_score, 10)
    
    def test_sampling_falls_back_to_free_cells(self):
        rng = AlwaysZero()
        engine = GameEngine(
            rng=rng, max_food_attempts=5,
            initial_snake=[(0, 0), (1, 0), (2, 0)],
            initial_direction=Direction.DOWN,
            initial_food=None,
        )
        state = engine.get_snapshot()
        
        self.assertEqual(rng.randrange_calls, 10)
        self.assertIsNotNone(state.food)
        self.assertNotIn(state.food, state.snake)
    
    def test_initial_food_on_snake_is_replaced(self):
        engine = GameEngine(rng=random.Random(5), initial_food=(4, 5))
        food = engine.get_snapshot().food
        self.assertNotIn(food, engine.get_snapshot().snake)
    
    def test_same_seed_same_game(self):
        script = ([ControlState(down=True)] * 5 + [ControlState(right=True)] * 6
                  + [ControlState(up=True)] * 4 + [NEUTRAL_CONTROLS] * 10)
        
        def play(seed):
            engine = GameEngine(rng=random.Random(seed), initial_snake=[(9, 10), (8, 10), (7, 10)])
            engine.start()
            states = []
            for controls in script:
                engine.set_control_state(controls)
                states.append(engine.tick())
            return states
        
        self.assertEqual(play(42), play(42))


class TestScoreAndListeners(unittest.TestCase):
    """Test high score tracking and game over notifications."""
    
    def test_listener_gets_final_snapshot(self):
        engine = running_engine(initial_snake=[(29, 5), (28, 5), (27, 5)])
        seen = []
        engine.add_game_over_listener(seen.append)
        engine.tick()
        engine.tick()
        
        self.assertEqual(len(seen), 1)
        self.assertIs(seen[0].status, Status.GAME_OVER)
        self.assertIs(seen[0].game_over_reason, GameOverReason.WALL)
    
    def test_high_score_survives_reset(self):
        engine = running_engine(initial_snake=[(9, 10), (8, 10), (7, 10)])
        engine.tick()
        engine.set_control_state(ControlState(up=True))
        while engine.status is Status.RUNNING:
            engine.tick()
        first_score = engine.score
        self.assertGreaterEqual(first_score, 10)
        self.assertEqual(engine.high_score, first_score)

        # Second run heads up column 9, away from the starting food
        engine.reset(start=True)
        self.assertEqual(engine.score, 0)
        engine.set_control_state(ControlState(up=True))
        while engine.status is Status.RUNNING:
            engine.tick()
        self.assertEqual(engine.score, 0)
        self.assertEqual(engine.get_snapshot().high_score, first_score)


class TestConstruction(unittest.TestCase):
    """Test constructor validation."""
    
    def test_rejects_short_snake(self):
        with self.assertRaises(ValueError):
            GameEngine(initial_snake=[(5, 5), (4, 5)])
    
    def test_rejects_duplicate_cells(self):
        with self.assertRaises(ValueError):
            GameEngine(initial_snake=[(5, 5), (4, 5), (5, 5)])
    
    def test_rejects_out_of_bounds_snake(self):
        with self.assertRaises(ValueError):
            GameEngine(grid_width=4, initial_snake=[(5, 5), (4, 5), (3, 5)])
    
    def test_rejects_empty_grid(self):
        with self.assertRaises(ValueError):
            GameEngine(grid_width=0)
    
    def test_from_config(self):
        engine = GameEngine.from_config(load_config(), rng=random.Random(1))
        self.assertEqual((engine.grid_width, engine.grid_height), (30, 20))
        self.assertEqual(engine.food_score, 10)
        self.assertIs(engine.status, Status.IDLE)


class TestTickGate(unittest.TestCase):
    """Test fixed-timestep gating."""
    
    def test_first_call_arms(self):
        gate = TickGate(150)
        self.assertFalse(gate.ready(0.0))
        self.assertFalse(gate.ready(0.1))
        self.assertTrue(gate.ready(0.15))
        self.assertFalse(gate.ready(0.2))
        self.assertTrue(gate.ready(0.31))
    
    def test_at_most_one_tick_per_call(self):
        gate = TickGate(150)
        gate.ready(0.0)
        self.assertTrue(gate.ready(10.0))
        self.assertFalse(gate.ready(10.01))
    
    def test_reset_rearms(self):
        gate = TickGate(150)
        gate.ready(0.0)
        gate.reset()
        self.assertFalse(gate.ready(5.0))
        self.assertTrue(gate.ready(5.2))
    
    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            TickGate(0)


if __name__ == '__main__':
    unittest.main()
