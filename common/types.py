from __future__ import annotations

from dataclasses import dataclass, field, fields as dc_fields
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type

from common.geo import Position


class MessageKind(str, Enum):
    """Closed set of record kinds a message-schema tag can map to."""
    INITIALIZATION = "initialization"
    TELEMETRY = "telemetry"
    BOUNCE = "bounce"
    CRATER = "crater"
    KILL = "kill"
    SUCCESS = "success"
    END_OF_RUN = "end_of_run"


class FieldKind(str, Enum):
    """Coercion rule applied to a single token."""
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    SYMBOL = "symbol"


# -------------------------
# World objects
# -------------------------
@dataclass(frozen=True, slots=True)
class Entity:
    """
    A placeable world object. Value semantics: two entities are equal when their
    variant and position match (radius too, for stationary variants).

    Attributes:
        x, y: map coordinates.
    """
    name: ClassVar[str] = "entity"
    is_obstacle: ClassVar[bool] = False
    is_moving: ClassVar[bool] = False

    x: float = 0.0
    y: float = 0.0

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    @property
    def radius(self) -> float:
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in dc_fields(self)}
        d["kind"] = self.name
        return d


@dataclass(frozen=True, slots=True)
class Origin(Entity):
    name: ClassVar[str] = "origin"


@dataclass(frozen=True, slots=True)
class Target(Entity):
    """Temporary waypoint synthesised by collision avoidance."""
    name: ClassVar[str] = "target"


@dataclass(frozen=True, slots=True)
class StationaryObject(Entity):
    name: ClassVar[str] = "stationary"
    r: float = 1.0

    @property
    def radius(self) -> float:
        return self.r


@dataclass(frozen=True, slots=True)
class Home(StationaryObject):
    name: ClassVar[str] = "home"


@dataclass(frozen=True, slots=True)
class Boulder(StationaryObject):
    name: ClassVar[str] = "boulder"
    is_obstacle: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Crater(StationaryObject):
    name: ClassVar[str] = "crater"
    is_obstacle: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class MovingObject(Entity):
    """Heading and speed are a snapshot; they do not take part in equality."""
    name: ClassVar[str] = "moving"
    is_obstacle: ClassVar[bool] = True
    is_moving: ClassVar[bool] = True

    dir: float = field(default=0.0, compare=False)
    speed: float = field(default=0.0, compare=False)


@dataclass(frozen=True, slots=True)
class Martian(MovingObject):
    name: ClassVar[str] = "martian"


ENTITY_TYPES: Mapping[str, Type[Entity]] = {
    cls.name: cls for cls in (Origin, Target, Home, Boulder, Crater, Martian)
}


def entity_field_names(cls: Type[Entity]) -> Tuple[str, ...]:
    return tuple(f.name for f in dc_fields(cls))


# -------------------------
# Decoded frames
# -------------------------
@dataclass(slots=True)
class DecodedRecord:
    """
    One decoded wire record.

    Attributes:
        tag: the record's leading token (e.g. "T").
        kind: message kind the tag maps to in the catalog.
        fields: field name -> coerced value, in schema order.
        objects: embedded world objects (telemetry only).
    """
    tag: str
    kind: MessageKind
    fields: Dict[str, Any]
    objects: Tuple[Entity, ...] = ()

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        return self.fields.get(name, default)

    def to_meta(self) -> Dict[str, Any]:
        """Loggable summary."""
        return {
            "tag": self.tag,
            "kind": self.kind.value,
            "fields": dict(self.fields),
            "objects": [o.to_dict() for o in self.objects],
        }
