from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"


def _defaults() -> Dict[str, Any]:
    return {
        "link": {"host": "127.0.0.1", "port": 17676, "recv_bytes": 255, "connect_timeout_s": 10.0},
        "schema": {"tags": "config/tags.yaml", "objects": "config/objects.yaml"},
        "navigation": {},
        "logging": {"level": "INFO"},
    }


def load_params(path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """Raw params dict; falls back to built-in defaults when the file is absent."""
    if not Path(path).exists():
        return _defaults()
    with open(path, "r") as f:
        P = yaml.safe_load(f) or {}
    merged = _defaults()
    for section, values in P.items():
        if isinstance(values, dict):
            merged.setdefault(section, {}).update(values)
        else:
            merged[section] = values
    return merged


@dataclass(frozen=True, slots=True)
class LinkConfig:
    host: str = "127.0.0.1"
    port: int = 17676
    recv_bytes: int = 255
    connect_timeout_s: float = 10.0


@dataclass(frozen=True, slots=True)
class NavigationConfig:
    """
    Tunables of the decision cycle.

    Attributes:
        heading_tolerance_deg: half width of the "already pointing at the goal" window.
        forward_cone_deg: half width of the collision cone around bearing 0.
        lookahead_factor: obstacles are scanned within factor * current speed.
        clearance: extra distance added to an obstacle's radius for the waypoint offset.
        arrival_radius: a temporary waypoint closer than this is retired.
    """
    heading_tolerance_deg: float = 5.0
    forward_cone_deg: float = 2.0
    lookahead_factor: float = 2.0
    clearance: float = 1.0
    arrival_radius: float = 10.0

    @classmethod
    def from_dict(cls, d: Optional[Dict]) -> "NavigationConfig":
        d = d or {}
        return cls(
            heading_tolerance_deg=float(d.get("heading_tolerance_deg", 5.0)),
            forward_cone_deg=float(d.get("forward_cone_deg", 2.0)),
            lookahead_factor=float(d.get("lookahead_factor", 2.0)),
            clearance=float(d.get("clearance", 1.0)),
            arrival_radius=float(d.get("arrival_radius", 10.0)),
        )


@dataclass(frozen=True, slots=True)
class RoverConfig:
    link: LinkConfig = field(default_factory=LinkConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    tags_path: str = "config/tags.yaml"
    objects_path: str = "config/objects.yaml"
    log_level: str = "INFO"

    @classmethod
    def from_params(cls, P: Dict) -> "RoverConfig":
        link = P.get("link", {})
        schema = P.get("schema", {})
        return cls(
            link=LinkConfig(
                host=str(link.get("host", "127.0.0.1")),
                port=int(link.get("port", 17676)),
                recv_bytes=int(link.get("recv_bytes", 255)),
                connect_timeout_s=float(link.get("connect_timeout_s", 10.0)),
            ),
            navigation=NavigationConfig.from_dict(P.get("navigation")),
            tags_path=str(schema.get("tags", "config/tags.yaml")),
            objects_path=str(schema.get("objects", "config/objects.yaml")),
            log_level=str(P.get("logging", {}).get("level", "INFO")),
        )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> RoverConfig:
    return RoverConfig.from_params(load_params(path))
