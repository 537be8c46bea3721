from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from common.types import Entity, Origin


class WorldMap:
    """
    Deduplicating registry of everything the rover has seen this run.

    Entities are value objects, so re-reporting the same boulder in every
    telemetry frame leaves the map unchanged. Insertion order is preserved.
    """

    def __init__(self, seed_origin: bool = True):
        self._registry: Dict[Entity, None] = {}
        if seed_origin:
            self.add(Origin(0.0, 0.0))

    def add(self, *entities: Entity) -> int:
        """Add entities; returns how many were new."""
        before = len(self._registry)
        for e in entities:
            self._registry.setdefault(e, None)
        return len(self._registry) - before

    def add_all(self, entities: Iterable[Entity]) -> int:
        return self.add(*entities)

    def find(self, name: str) -> Optional[Entity]:
        """First entity of the given logical name ("home", "origin", ...)."""
        for e in self._registry:
            if e.name == name:
                return e
        return None

    def find_all(self, name: str) -> List[Entity]:
        return [e for e in self._registry if e.name == name]

    def clear(self) -> None:
        self._registry.clear()

    def __contains__(self, entity: object) -> bool:
        return entity in self._registry

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._registry)

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"WorldMap({len(self)} entities)"
