"""
Geometric hand-gesture predicates over MediaPipe hand landmarks.

All comparisons happen in the recognizer's normalized image space: y grows
toward the bottom of the frame and x toward the (mirrored) right. Every
predicate is a pure function of one hand and returns False instead of raising
when the hand is malformed.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

from .types import (
    ControlState,
    Hand,
    NUM_HAND_LANDMARKS,
    WRIST,
    THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP,
    INDEX_MCP, INDEX_PIP, INDEX_TIP,
    MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP,
    RING_MCP, RING_TIP,
    PINKY_MCP, PINKY_TIP,
)

logger = logging.getLogger(__name__)

# Empirical tolerances, in normalized image units
TIP_TOLERANCE = 0.05          # how clearly a fingertip must stand out
THUMB_DOWN_TOLERANCE = 0.1    # thumb tip below wrist
SIDEWAYS_THRESHOLD = 0.1      # fingertips beyond wrist for pointing
ALIGNMENT_TOLERANCE = 0.05    # fingertips level with each other
FIST_CLUSTER_MAX = 0.1        # fingertips bunched horizontally
PALM_SPREAD_MIN = 0.02        # fingertips fanned out horizontally
SWIPE_THRESHOLD = 0.15        # fingertips far beyond wrist for swiping

FINGERTIPS = (INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)
FINGER_MCPS = (INDEX_MCP, MIDDLE_MCP, RING_MCP, PINKY_MCP)

LEFT = "left"
RIGHT = "right"


def _fail_closed(predicate: Callable[[Hand], bool]) -> Callable[[Hand], bool]:
    """Turn short, missing or malformed hands into a plain False."""
    @functools.wraps(predicate)
    def wrapper(landmarks: Hand) -> bool:
        if landmarks is None:
            return False
        try:
            if len(landmarks) < NUM_HAND_LANDMARKS:
                return False
            return bool(predicate(landmarks))
        except (TypeError, AttributeError, IndexError, ValueError) as e:
            logger.debug(f"{predicate.__name__}: rejected malformed hand ({e})")
            return False
    return wrapper


# =============================================================================
# HELPERS
# =============================================================================

def _tips(landmarks: Hand) -> List:
    return [landmarks[i] for i in FINGERTIPS]


def _adjacent_pairs(points: Sequence) -> List:
    return list(zip(points, points[1:]))


def _fingers_curled(landmarks: Hand) -> bool:
    # tip below its knuckle (inverted y-axis)
    return all(landmarks[tip].y > landmarks[mcp].y for tip, mcp in zip(FINGERTIPS, FINGER_MCPS))


def _fingers_extended(landmarks: Hand) -> bool:
    return all(landmarks[tip].y < landmarks[mcp].y for tip, mcp in zip(FINGERTIPS, FINGER_MCPS))


def _fingertips_level(landmarks: Hand) -> bool:
    """Neighbouring fingertips are at nearly the same height."""
    return all(abs(a.y - b.y) < ALIGNMENT_TOLERANCE for a, b in _adjacent_pairs(_tips(landmarks)))


def _beyond(x: float, wrist_x: float, threshold: float, side: str) -> bool:
    if side == LEFT:
        return x < wrist_x - threshold
    return x > wrist_x + threshold


def _pointing(landmarks: Hand, side: str) -> bool:
    wrist = landmarks[WRIST]
    tips = _tips(landmarks)

    clearly_sideways = all(_beyond(tip.x, wrist.x, SIDEWAYS_THRESHOLD, side) for tip in tips)

    mean_x = sum(tip.x for tip in tips) / len(tips)
    flat_swipe = _beyond(mean_x, wrist.x, SIDEWAYS_THRESHOLD, side) and _fingertips_level(landmarks)

    return clearly_sideways or flat_swipe


def _swiping(landmarks: Hand, side: str) -> bool:
    wrist = landmarks[WRIST]
    return (_fingertips_level(landmarks)
            and all(_beyond(tip.x, wrist.x, SWIPE_THRESHOLD, side) for tip in _tips(landmarks)))


# =============================================================================
# VERTICAL GESTURES
# =============================================================================

@_fail_closed
def is_index_finger_up(landmarks: Hand) -> bool:
    """
    Check if the index finger points up and is clearly the highest fingertip.
    
    Args:
        landmarks: List of 21 hand landmarks
        
    Returns:
        True if index tip, PIP, MCP and wrist rise monotonically and the index
        tip sits at least TIP_TOLERANCE above every other fingertip
    """
    index_tip = landmarks[INDEX_TIP]
    index_pip = landmarks[INDEX_PIP]
    index_mcp = landmarks[INDEX_MCP]
    wrist = landmarks[WRIST]

    pointing_up = index_tip.y < index_pip.y < index_mcp.y < wrist.y

    others = (landmarks[MIDDLE_TIP], landmarks[RING_TIP], landmarks[PINKY_TIP])
    is_highest = all(index_tip.y < other.y - TIP_TOLERANCE for other in others)

    return pointing_up and is_highest


@_fail_closed
def is_middle_finger_down(landmarks: Hand) -> bool:
    """
    Check if the middle finger points down and is clearly the lowest fingertip.
    
    Args:
        landmarks: List of 21 hand landmarks
        
    Returns:
        True if middle tip, PIP, MCP and wrist descend monotonically toward the
        tip and the middle tip sits at least TIP_TOLERANCE below every other
        fingertip
    """
    middle_tip = landmarks[MIDDLE_TIP]
    middle_pip = landmarks[MIDDLE_PIP]
    middle_mcp = landmarks[MIDDLE_MCP]
    wrist = landmarks[WRIST]

    pointing_down = middle_tip.y > middle_pip.y > middle_mcp.y > wrist.y

    others = (landmarks[INDEX_TIP], landmarks[RING_TIP], landmarks[PINKY_TIP])
    is_lowest = all(middle_tip.y > other.y + TIP_TOLERANCE for other in others)

    return pointing_down and is_lowest


@_fail_closed
def is_thumb_down(landmarks: Hand) -> bool:
    """
    Check for a thumbs-down: the thumb chain hangs below the wrist and either
    the other fingers are curled or the thumb tip is well below the wrist.
    """
    thumb_tip = landmarks[THUMB_TIP]
    thumb_ip = landmarks[THUMB_IP]
    thumb_mp = landmarks[THUMB_MCP]
    thumb_cmc = landmarks[THUMB_CMC]
    wrist = landmarks[WRIST]

    pointing_down = thumb_tip.y > thumb_ip.y > thumb_mp.y > thumb_cmc.y > wrist.y
    clearly_down = thumb_tip.y > wrist.y + THUMB_DOWN_TOLERANCE

    return pointing_down and (_fingers_curled(landmarks) or clearly_down)


# =============================================================================
# HORIZONTAL GESTURES
# =============================================================================

@_fail_closed
def is_hand_pointing_left(landmarks: Hand) -> bool:
    """
    Check if the fingers point to the left of the wrist.
    
    Either every fingertip is SIDEWAYS_THRESHOLD left of the wrist, or the
    fingertips' mean is and they are level with each other (flat hand).
    """
    return _pointing(landmarks, LEFT)


@_fail_closed
def is_hand_pointing_right(landmarks: Hand) -> bool:
    """Mirror image of is_hand_pointing_left."""
    return _pointing(landmarks, RIGHT)


@_fail_closed
def is_swiping_left(landmarks: Hand) -> bool:
    """Level fingertips all more than SWIPE_THRESHOLD left of the wrist."""
    return _swiping(landmarks, LEFT)


@_fail_closed
def is_swiping_right(landmarks: Hand) -> bool:
    """Level fingertips all more than SWIPE_THRESHOLD right of the wrist."""
    return _swiping(landmarks, RIGHT)


# =============================================================================
# HAND SHAPES
# =============================================================================

@_fail_closed
def is_closed_fist(landmarks: Hand) -> bool:
    """
    Check if the hand is a closed fist.
    
    Args:
        landmarks: List of 21 hand landmarks
        
    Returns:
        True if every fingertip is below its MCP and neighbouring fingertips
        are within FIST_CLUSTER_MAX of each other horizontally
    """
    clustered = all(abs(a.x - b.x) < FIST_CLUSTER_MAX for a, b in _adjacent_pairs(_tips(landmarks)))
    return _fingers_curled(landmarks) and clustered


@_fail_closed
def is_open_palm(landmarks: Hand) -> bool:
    """
    Check if the hand is an open palm.
    
    Args:
        landmarks: List of 21 hand landmarks
        
    Returns:
        True if every fingertip is above its MCP and neighbouring fingertips
        are more than PALM_SPREAD_MIN apart horizontally
    """
    spread = all(abs(a.x - b.x) > PALM_SPREAD_MIN for a, b in _adjacent_pairs(_tips(landmarks)))
    return _fingers_extended(landmarks) and spread


@dataclass(frozen=True)
class HandGestures:
    """Every predicate evaluated on one hand."""
    index_up: bool = False
    middle_down: bool = False
    thumb_down: bool = False
    pointing_left: bool = False
    pointing_right: bool = False
    closed_fist: bool = False
    open_palm: bool = False
    swiping_left: bool = False
    swiping_right: bool = False

    @property
    def up(self) -> bool:
        return self.index_up

    @property
    def down(self) -> bool:
        return self.middle_down or self.thumb_down

    @property
    def left(self) -> bool:
        return self.pointing_left or self.open_palm or self.swiping_left

    @property
    def right(self) -> bool:
        return self.pointing_right or self.closed_fist or self.swiping_right

    def to_control_state(self) -> ControlState:
        return ControlState(up=self.up, down=self.down, left=self.left, right=self.right)


class GestureClassifier:
    """
    Stateless facade over the gesture predicates.

    One method per predicate so each rule can be exercised on its own, plus
    classify() to evaluate them all at once.
    """

    is_index_finger_up = staticmethod(is_index_finger_up)
    is_middle_finger_down = staticmethod(is_middle_finger_down)
    is_thumb_down = staticmethod(is_thumb_down)
    is_hand_pointing_left = staticmethod(is_hand_pointing_left)
    is_hand_pointing_right = staticmethod(is_hand_pointing_right)
    is_closed_fist = staticmethod(is_closed_fist)
    is_open_palm = staticmethod(is_open_palm)
    is_swiping_left = staticmethod(is_swiping_left)
    is_swiping_right = staticmethod(is_swiping_right)

    def classify(self, landmarks: Hand) -> HandGestures:
        """Evaluate every predicate on one hand."""
        return HandGestures(
            index_up=is_index_finger_up(landmarks),
            middle_down=is_middle_finger_down(landmarks),
            thumb_down=is_thumb_down(landmarks),
            pointing_left=is_hand_pointing_left(landmarks),
            pointing_right=is_hand_pointing_right(landmarks),
            closed_fist=is_closed_fist(landmarks),
            open_palm=is_open_palm(landmarks),
            swiping_left=is_swiping_left(landmarks),
            swiping_right=is_swiping_right(landmarks),
        )
