from __future__ import annotations

"""
Discrete actuator model.

The simulator only accepts one-notch nudges per command, so both the throttle
and the steering are modelled as totally ordered states. `step_command` turns a
(current, desired) pair into at most one nudge.
"""

from enum import Enum
from typing import Optional, Tuple

from common.errors import FieldDecodeError


class Command(str, Enum):
    """Outbound single-character commands."""
    ACCELERATE = "a"
    BRAKE = "b"
    LEFT = "l"
    RIGHT = "r"


class ThrottleState(Enum):
    BRAKE = "b"
    ROLL = "-"
    ACCELERATE = "a"

    @property
    def order(self) -> int:
        return _THROTTLE_ORDER.index(self)


class SteeringState(Enum):
    HARD_LEFT = "L"
    LEFT = "l"
    STRAIGHT = "-"
    RIGHT = "r"
    HARD_RIGHT = "R"

    @property
    def order(self) -> int:
        return _STEERING_ORDER.index(self)


_THROTTLE_ORDER = (ThrottleState.BRAKE, ThrottleState.ROLL, ThrottleState.ACCELERATE)
_STEERING_ORDER = (
    SteeringState.HARD_LEFT,
    SteeringState.LEFT,
    SteeringState.STRAIGHT,
    SteeringState.RIGHT,
    SteeringState.HARD_RIGHT,
)


def parse_control_status(token: str) -> Tuple[ThrottleState, SteeringState]:
    """Split the telemetry `vehicle_ctl` token (e.g. "a-", "bL") into both states."""
    if len(token) != 2:
        raise FieldDecodeError("vehicle_ctl", "control status", token)
    try:
        return ThrottleState(token[0]), SteeringState(token[1])
    except ValueError:
        raise FieldDecodeError("vehicle_ctl", "control status", token) from None


def throttle_command(current: ThrottleState, desired: ThrottleState) -> Optional[Command]:
    diff = desired.order - current.order
    if diff > 0:
        return Command.ACCELERATE
    if diff < 0:
        return Command.BRAKE
    return None


def steering_command(current: SteeringState, desired: SteeringState) -> Optional[Command]:
    diff = desired.order - current.order
    if diff > 0:
        return Command.RIGHT
    if diff < 0:
        return Command.LEFT
    return None


def turn_for(delta_deg: float) -> SteeringState:
    """
    Steering state that turns toward a goal `delta_deg` clockwise of the current
    heading (taken mod 360).
    """
    d = delta_deg % 360.0
    if d < 20.0:
        return SteeringState.RIGHT
    if d < 180.0:
        return SteeringState.HARD_RIGHT
    if d < 340.0:
        return SteeringState.HARD_LEFT
    return SteeringState.LEFT
