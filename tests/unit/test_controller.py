"""
Unit tests for the navigation controller (navigation.controller)
"""

import os
import sys
from unittest.mock import Mock

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import NavigationConfig
from common.errors import SchemaError
from common.geo import Position
from common.types import Boulder, Crater, DecodedRecord, Home, Martian, MessageKind, Origin, Target
from navigation.actuators import Command, SteeringState, ThrottleState
from navigation.controller import RoverController


def telemetry(x=0.0, y=0.0, heading=0.0, speed=5.0, ctl="--", objects=()):
    """Telemetry packet; `heading` is a compass bearing, converted to the wire's vehicle_dir."""
    return DecodedRecord(
        tag="T",
        kind=MessageKind.TELEMETRY,
        fields={
            "time_stamp": 0,
            "vehicle_ctl": ctl,
            "vehicle_x": x,
            "vehicle_y": y,
            "vehicle_dir": (90.0 - heading) % 360.0,
            "vehicle_speed": speed,
        },
        objects=tuple(objects),
    )


@pytest.fixture
def emit():
    return Mock()


@pytest.fixture
def rover(emit):
    return RoverController(emit)


class TestTelemetryView:
    """Test cases for reading state from the latest packet"""

    def test_position_heading_speed(self, rover):
        rover.process(telemetry(x=3, y=-4, heading=270, speed=7.5, ctl="bR"))
        assert rover.position == Position(3, -4)
        assert rover.heading == pytest.approx(270)
        assert rover.speed == 7.5
        assert rover.throttle_state is ThrottleState.BRAKE
        assert rover.steering_state is SteeringState.HARD_RIGHT

    def test_vehicle_dir_is_counter_clockwise_from_east(self, rover):
        packet = telemetry()
        packet.fields["vehicle_dir"] = 0.0
        rover.process(packet)
        assert rover.heading == pytest.approx(90)

    def test_no_telemetry_yet(self, rover):
        with pytest.raises(RuntimeError):
            rover.position

    def test_rejects_non_telemetry(self, rover):
        with pytest.raises(ValueError):
            rover.process(DecodedRecord("S", MessageKind.SUCCESS, {"time_stamp": 1}))

    def test_rejects_incomplete_schema(self, rover):
        with pytest.raises(SchemaError):
            rover.process(DecodedRecord("T", MessageKind.TELEMETRY, {"vehicle_x": 1.0}))

    def test_objects_land_in_map(self, rover):
        rover.process(telemetry(objects=[Boulder(50, 50, 2), Boulder(50, 50, 2), Crater(-5, 60, 1)]))
        rover.process(telemetry(objects=[Boulder(50, 50, 2)]))
        assert len(rover.map) == 3  # origin + boulder + crater


class TestGoalSelection:
    """Test cases for heading toward home / origin"""

    def test_home_straight_ahead_accelerates(self, rover, emit):
        """At (0,0) facing north with home due north: straight + accelerate every cycle"""
        home = Home(0, 100, 5)
        for _ in range(3):
            sent = rover.process(telemetry(heading=0, speed=5, ctl="--", objects=[home]))
            assert sent == [Command.ACCELERATE]
        assert [c.args[0] for c in emit.call_args_list] == ["a", "a", "a"]

    def test_already_at_full_throttle_sends_nothing(self, rover, emit):
        sent = rover.process(telemetry(heading=0, ctl="a-", objects=[Home(0, 100, 5)]))
        assert sent == []
        emit.assert_not_called()

    def test_pointing_straightens_then_accelerates(self, rover):
        """Steering is brought one notch toward straight before the throttle nudge"""
        sent = rover.process(telemetry(heading=0, ctl="-L", objects=[Home(0, 100, 5)]))
        assert sent == [Command.RIGHT, Command.ACCELERATE]

    def test_tolerance_across_north(self, rover):
        """Heading 358 counts as pointing at a goal on bearing 2"""
        home = Home(2, 57.27, 1)  # bearing ~2 deg from the origin
        sent = rover.process(telemetry(heading=358, ctl="--", objects=[home]))
        assert sent == [Command.ACCELERATE]

    def test_off_course_rolls_and_turns(self, rover):
        """Home due east while facing north: ease off and turn hard right (one notch)"""
        sent = rover.process(telemetry(heading=0, ctl="a-", objects=[Home(100, 0, 5)]))
        assert sent == [Command.BRAKE, Command.RIGHT]

    def test_off_course_left(self, rover):
        """Goal slightly left of the heading: plain left"""
        sent = rover.process(telemetry(heading=10, ctl="--", objects=[Home(-1, 100, 5)]))
        assert sent == [Command.LEFT]

    def test_without_home_heads_for_origin(self, rover):
        sent = rover.process(telemetry(x=0, y=-50, heading=0, ctl="--"))
        assert sent == [Command.ACCELERATE]

    def test_home_wins_over_origin(self, rover):
        sent = rover.process(telemetry(x=0, y=-50, heading=0, ctl="--", objects=[Home(100, -50, 5)]))
        assert Command.ACCELERATE not in sent

    def test_sitting_on_goal_sends_nothing(self, rover, emit):
        """No bearing exists to a goal at the vehicle's own position"""
        assert rover.process(telemetry(x=0, y=0, ctl="--")) == []
        emit.assert_not_called()

    def test_one_throttle_step_per_cycle(self, rover):
        """From brake, reaching accelerate takes two cycles of one nudge each"""
        home = Home(0, 100, 5)
        assert rover.process(telemetry(ctl="b-", objects=[home])) == [Command.ACCELERATE]
        assert rover.process(telemetry(ctl="--", objects=[home])) == [Command.ACCELERATE]
        assert rover.process(telemetry(ctl="a-", objects=[home])) == []


class TestCollisionAvoidance:
    """Test cases for risk detection and temporary waypoints"""

    def test_boulder_ahead_creates_waypoint(self, rover):
        """Waypoint sits radius + clearance behind the boulder along the heading"""
        objects = [Boulder(0, 30, 3), Home(0, 200, 5)]
        sent = rover.process(telemetry(heading=0, speed=20, ctl="a-", objects=objects))
        assert rover.temporary_target == Target(0, 26)
        assert rover.collision_prospect is None
        assert sent == []  # pointing at the waypoint at full throttle already

    def test_waypoint_is_pursued_then_retired(self, rover):
        objects = [Boulder(0, 30, 3), Home(200, 200, 5)]
        rover.process(telemetry(heading=0, speed=20, ctl="a-", objects=objects))
        assert rover.temporary_target == Target(0, 26)

        # Still far from the waypoint: keep heading for it, not for home.
        sent = rover.process(telemetry(x=0, y=5, heading=0, speed=20, ctl="--"))
        assert rover.temporary_target == Target(0, 26)
        assert sent == [Command.ACCELERATE]

        # Inside the arrival radius: retire it, no commands this cycle.
        sent = rover.process(telemetry(x=0, y=20, heading=0, speed=20, ctl="a-"))
        assert rover.temporary_target is None
        assert sent == []

        # Boulder no longer dead ahead: back to heading for home.
        sent = rover.process(telemetry(x=5, y=21, heading=45, speed=20, ctl="--"))
        assert rover.temporary_target is None
        assert sent == [Command.ACCELERATE]

    def test_waypoint_offset_follows_heading(self, rover):
        """The offset is opposite the heading vector, not opposite the obstacle"""
        rover.process(telemetry(heading=1, speed=20, ctl="a-", objects=[Boulder(0, 30, 3)]))
        wp = rover.temporary_target
        assert wp is not None
        assert (Position(0, 30) - wp.position).r == pytest.approx(4.0)
        assert wp.x < 0

    def test_crater_is_a_risk(self, rover):
        rover.process(telemetry(heading=0, speed=20, ctl="a-", objects=[Crater(0, 35, 5)]))
        assert rover.temporary_target == Target(0, 29)

    def test_nearest_martian_suppresses_risk(self, rover):
        """A martian nearest in the cone means no collision risk this cycle"""
        rover.process(telemetry(heading=0, speed=20, objects=[Martian(0, 20), Boulder(0, 30, 3)]))
        assert rover.temporary_target is None
        assert rover.collision_prospect is None

    def test_martian_behind_boulder_does_not_suppress(self, rover):
        rover.process(telemetry(heading=0, speed=20, objects=[Martian(0, 35), Boulder(0, 30, 3)]))
        assert rover.temporary_target == Target(0, 26)

    def test_nearest_boulder_is_chosen(self, rover):
        rover.process(telemetry(heading=0, speed=20, objects=[Boulder(0, 38, 1), Boulder(0.5, 30, 3)]))
        assert rover.temporary_target == Target(0.5, 26)

    def test_beyond_lookahead_is_ignored(self, rover):
        """Only obstacles closer than 2 x speed count"""
        rover.process(telemetry(heading=0, speed=20, objects=[Boulder(0, 40, 3)]))
        assert rover.temporary_target is None
        rover.process(telemetry(heading=0, speed=0, objects=[Boulder(0, 1, 3)]))
        assert rover.temporary_target is None

    def test_outside_cone_is_ignored(self, rover):
        rover.process(telemetry(heading=0, speed=20, objects=[Boulder(3, 30, 3)]))
        assert rover.temporary_target is None

    def test_goals_are_not_risks(self, rover):
        """Home dead ahead is something to drive into, not around"""
        rover.process(telemetry(x=0, y=-10, heading=0, speed=20, objects=[Home(0, 5, 5)]))
        assert rover.temporary_target is None

    def test_custom_thresholds(self, emit):
        nav = NavigationConfig(clearance=2.0, arrival_radius=1.0, lookahead_factor=3.0)
        rover = RoverController(emit, nav)
        rover.process(telemetry(heading=0, speed=5, ctl="a-", objects=[Boulder(0, 12, 3)]))
        assert rover.temporary_target == Target(0, 7)


class TestReset:
    """Test cases for end-of-run reset"""

    def test_reset_reseeds_map_and_clears_waypoint(self, rover):
        rover.update_parameters({"max_speed": 20.0})
        rover.process(telemetry(heading=0, speed=20, ctl="a-", objects=[Boulder(0, 30, 3), Home(0, 200, 5)]))
        assert rover.temporary_target is not None
        rover.reset()
        assert list(rover.map) == [Origin(0, 0)]
        assert rover.temporary_target is None
        assert rover.parameters["max_speed"] == 20.0

    def test_parameters_are_read_only(self, rover):
        rover.update_parameters({"dx": 400.0})
        with pytest.raises(TypeError):
            rover.parameters["dx"] = 1.0  # type: ignore[index]
