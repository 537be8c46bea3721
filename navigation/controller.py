from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from common.errors import SchemaError
from common.geo import (
    Position,
    angle_diff_deg,
    as_tuple,
    compass_from_math_deg,
    distance,
    heading_vector,
    within_cone,
)
from common.config import NavigationConfig
from common.logging_setup import get_logger
from common.types import DecodedRecord, Entity, MessageKind, Target
from navigation.actuators import (
    Command,
    SteeringState,
    ThrottleState,
    parse_control_status,
    steering_command,
    throttle_command,
    turn_for,
)
from navigation.world_map import WorldMap


log = get_logger("navigation")

TELEMETRY_FIELDS = ("vehicle_ctl", "vehicle_x", "vehicle_y", "vehicle_dir", "vehicle_speed")


class RoverController:
    """
    Decision loop driven once per telemetry record.

    Goal selection, first match wins:
      1. a temporary waypoint is active, or something is dead ahead -> avoid it
      2. home has been seen -> head for home
      3. otherwise -> head for the origin

    Commands are pushed through `emit` as single characters; at most one
    throttle nudge and one steering nudge leave per cycle.
    """

    def __init__(
        self,
        emit: Callable[[str], None],
        nav: Optional[NavigationConfig] = None,
    ):
        self._emit = emit
        self.nav = nav or NavigationConfig()
        self._parameters: Dict[str, Any] = {}
        self._sent: List[Command] = []
        self.reset()

    # ---------------------------
    # Run lifecycle
    # ---------------------------

    def reset(self) -> None:
        """Fresh map seeded with the origin, no packet, no waypoint."""
        self.map = WorldMap(seed_origin=True)
        self._latest: Optional[DecodedRecord] = None
        self._temporary_target: Optional[Target] = None
        self._collision_prospect: Optional[Entity] = None

    @property
    def parameters(self) -> Mapping[str, Any]:
        return MappingProxyType(self._parameters)

    def update_parameters(self, values: Mapping[str, Any]) -> None:
        self._parameters.update(values)

    @property
    def temporary_target(self) -> Optional[Target]:
        return self._temporary_target

    @property
    def collision_prospect(self) -> Optional[Entity]:
        return self._collision_prospect

    # ---------------------------
    # Telemetry
    # ---------------------------

    def process(self, packet: DecodedRecord) -> List[Command]:
        """Absorb one telemetry packet and run one decision cycle."""
        if packet.kind is not MessageKind.TELEMETRY:
            raise ValueError(f"controller only consumes telemetry, got {packet.kind.value}")
        missing = [f for f in TELEMETRY_FIELDS if f not in packet.fields]
        if missing:
            raise SchemaError(f"telemetry schema lacks fields {missing}")

        self._latest = packet
        new = self.map.add_all(packet.objects)
        if new:
            log.debug("map updated", extra={"extra": {"new": new, "size": len(self.map)}})

        self._sent = []
        if self.avoiding_collision() or self.going_to_collide():
            self.avoid_collision()
        elif self.map.find("home") is not None:
            self.head_for("home")
        else:
            self.head_for("origin")
        return list(self._sent)

    @property
    def latest(self) -> DecodedRecord:
        if self._latest is None:
            raise RuntimeError("no telemetry received yet")
        return self._latest

    @property
    def position(self) -> Position:
        return Position(float(self.latest["vehicle_x"]), float(self.latest["vehicle_y"]))

    @property
    def heading(self) -> float:
        """Compass heading in [0, 360)."""
        return compass_from_math_deg(float(self.latest["vehicle_dir"]))

    @property
    def speed(self) -> float:
        return float(self.latest["vehicle_speed"])

    @property
    def throttle_state(self) -> ThrottleState:
        return parse_control_status(str(self.latest["vehicle_ctl"]))[0]

    @property
    def steering_state(self) -> SteeringState:
        return parse_control_status(str(self.latest["vehicle_ctl"]))[1]

    # ---------------------------
    # Actuators
    # ---------------------------

    def _send(self, cmd: Command) -> None:
        log.debug("sending command", extra={"extra": {"cmd": cmd.value}})
        self._sent.append(cmd)
        self._emit(cmd.value)

    def set_throttle(self, desired: ThrottleState) -> Optional[Command]:
        cmd = throttle_command(self.throttle_state, desired)
        if cmd is not None:
            self._send(cmd)
        return cmd

    def set_steering(self, desired: SteeringState) -> Optional[Command]:
        cmd = steering_command(self.steering_state, desired)
        if cmd is not None:
            self._send(cmd)
        return cmd

    # ---------------------------
    # Steering toward a goal
    # ---------------------------

    def _resolve(self, target: Union[Entity, str]) -> Optional[Entity]:
        if isinstance(target, Entity):
            return target
        return self.map.find(target)

    def head_for(self, target: Union[Entity, str]) -> None:
        goal = self._resolve(target)
        if goal is None:
            log.warning("no goal to head for", extra={"extra": {"target": str(target)}})
            return
        if goal.position == self.position:
            # Sitting on the goal: no bearing exists, leave the actuators alone.
            return
        if self.pointing_towards(goal):
            self.set_steering(SteeringState.STRAIGHT)
            self.set_throttle(ThrottleState.ACCELERATE)
        else:
            self.set_throttle(ThrottleState.ROLL)
            self.turn_towards(goal)

    def pointing_towards(self, entity: Entity, tolerance: Optional[float] = None) -> bool:
        tol = self.nav.heading_tolerance_deg if tolerance is None else tolerance
        bearing = self.position.heading_to(entity.position)
        return abs(angle_diff_deg(bearing, self.heading)) <= tol

    def turn_towards(self, entity: Entity) -> None:
        bearing = self.position.heading_to(entity.position)
        self.set_steering(turn_for(bearing - self.heading))

    # ---------------------------
    # Collision avoidance
    # ---------------------------

    def avoiding_collision(self) -> bool:
        return self._temporary_target is not None

    def in_path(self, entity: Entity) -> bool:
        if entity.position == self.position:
            return False
        bearing = self.position.heading_to(entity.position)
        return within_cone(bearing, self.nav.forward_cone_deg)

    def going_to_collide(self) -> bool:
        """
        Look for the nearest obstacle dead ahead within the lookahead radius.
        Moving obstacles are never treated as collision risks.
        """
        self._collision_prospect = None
        radius = self.nav.lookahead_factor * self.speed
        in_path = [e for e in self.nearest_entities(radius) if e.is_obstacle and self.in_path(e)]
        if not in_path:
            return False
        nearest = self.nearest_of(in_path)
        if nearest.is_moving:
            return False
        self._collision_prospect = nearest
        log.info("might collide", extra={"extra": nearest.to_dict()})
        return True

    def avoid_collision(self) -> None:
        prospect = self._collision_prospect
        if prospect is not None:
            hyp = prospect.radius + self.nav.clearance
            waypoint = prospect.position + heading_vector(self.heading) * -hyp
            self._temporary_target = Target(waypoint.x, waypoint.y)
            self._collision_prospect = None
            log.info("set temporary target", extra={"extra": {"waypoint": as_tuple(waypoint)}})

        target = self._temporary_target
        if target is None:
            return
        if self.distance_to(target) < self.nav.arrival_radius:
            log.info("temporary target reached", extra={"extra": {"waypoint": as_tuple(target.position)}})
            self._temporary_target = None
        else:
            self.head_for(target)

    def nearest_entities(self, radius: float) -> List[Entity]:
        return [e for e in self.map if self.distance_to(e) < radius]

    def nearest_of(self, entities: Sequence[Entity]) -> Entity:
        if not entities:
            raise ValueError("nearest_of() needs at least one entity")
        d = np.array([self.distance_to(e) for e in entities], dtype=float)
        return entities[int(np.argmin(d))]

    def distance_to(self, entity: Entity) -> float:
        return distance(entity.position, self.position)
