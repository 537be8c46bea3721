from __future__ import annotations

"""
Schema catalogs: how each wire record and each embedded world object is laid out.

Two YAML files, both of the form

    <tag>:
      type: <message kind | entity type>
      format:
        - [field_name, decode_kind]
        ...

are loaded once, validated, and frozen into a `SchemaCatalog` that the stream
decoder shares read-only for the life of the process.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple, Type

import yaml

from common.errors import SchemaError
from common.types import ENTITY_TYPES, Entity, FieldKind, MessageKind, entity_field_names


FieldSpec = Tuple[str, FieldKind]


@dataclass(frozen=True, slots=True)
class MessageSchema:
    tag: str
    kind: MessageKind
    fields: Tuple[FieldSpec, ...]


@dataclass(frozen=True, slots=True)
class EntitySchema:
    tag: str
    entity_type: Type[Entity]
    fields: Tuple[FieldSpec, ...]


@dataclass(frozen=True, slots=True)
class SchemaCatalog:
    messages: Mapping[str, MessageSchema]
    entities: Mapping[str, EntitySchema]

    def entity_tags(self) -> frozenset:
        return frozenset(self.entities)


# ---------------------------
# Building from plain data
# ---------------------------

def _parse_format(tag: str, raw: Any) -> Tuple[FieldSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise SchemaError(f"{tag!r}: 'format' must be a list of [name, kind] pairs")
    out = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise SchemaError(f"{tag!r}: bad field spec {item!r}")
        name, kind = str(item[0]), str(item[1])
        try:
            out.append((name, FieldKind(kind)))
        except ValueError:
            raise SchemaError(f"{tag!r}: unsupported decode kind {kind!r} for field {name!r}") from None
    return tuple(out)


def build_message_schemas(raw: Mapping[str, Any]) -> Dict[str, MessageSchema]:
    out: Dict[str, MessageSchema] = {}
    for tag, spec in (raw or {}).items():
        tag = str(tag)
        if not isinstance(spec, Mapping) or "type" not in spec:
            raise SchemaError(f"message {tag!r}: missing 'type'")
        try:
            kind = MessageKind(str(spec["type"]))
        except ValueError:
            raise SchemaError(f"message {tag!r}: unknown message kind {spec['type']!r}") from None
        out[tag] = MessageSchema(tag=tag, kind=kind, fields=_parse_format(tag, spec.get("format")))
    return out


def build_entity_schemas(raw: Mapping[str, Any]) -> Dict[str, EntitySchema]:
    out: Dict[str, EntitySchema] = {}
    for tag, spec in (raw or {}).items():
        tag = str(tag)
        if not isinstance(spec, Mapping) or "type" not in spec:
            raise SchemaError(f"entity {tag!r}: missing 'type'")
        cls = ENTITY_TYPES.get(str(spec["type"]))
        if cls is None:
            raise SchemaError(f"entity {tag!r}: unknown entity type {spec['type']!r}")
        fields = _parse_format(tag, spec.get("format"))
        allowed = set(entity_field_names(cls))
        for name, _ in fields:
            if name not in allowed:
                raise SchemaError(f"entity {tag!r}: {cls.name} has no field {name!r}")
        out[tag] = EntitySchema(tag=tag, entity_type=cls, fields=fields)
    return out


def build_catalog(messages: Mapping[str, Any], entities: Mapping[str, Any]) -> SchemaCatalog:
    msgs = build_message_schemas(messages)
    ents = build_entity_schemas(entities)
    clash = set(msgs) & set(ents)
    if clash:
        # Message tags only appear first in a record, but keep the namespaces apart anyway.
        raise SchemaError(f"tags used for both messages and entities: {sorted(clash)}")
    return SchemaCatalog(messages=MappingProxyType(msgs), entities=MappingProxyType(ents))


# ---------------------------
# YAML loading
# ---------------------------

def _load_yaml(path: str | Path) -> Dict:
    p = Path(path)
    if not p.exists():
        raise SchemaError(f"schema file not found: {p}")
    with p.open("r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaError(f"{p}: top level must be a mapping of tag -> schema")
    return data


def load_catalog(tags_path: str | Path, objects_path: str | Path) -> SchemaCatalog:
    """Load and validate both catalogs (message tags, world objects)."""
    return build_catalog(_load_yaml(tags_path), _load_yaml(objects_path))
