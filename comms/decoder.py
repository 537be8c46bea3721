from __future__ import annotations

import sys
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from common.errors import (
    FieldDecodeError,
    ProtocolError,
    TruncatedRecord,
    UnknownEntityTag,
    UnknownMessageTag,
)
from common.logging_setup import get_logger
from common.schema import FieldSpec, SchemaCatalog
from common.types import DecodedRecord, Entity, FieldKind, MessageKind


log = get_logger("comms.decoder")

DELIMITER = b";"


# ---------------------------
# Token coercion
# ---------------------------

def coerce(name: str, kind: FieldKind, token: str) -> Any:
    """Convert one token according to its declared decode kind."""
    try:
        if kind is FieldKind.INTEGER:
            return int(token)
        if kind is FieldKind.FLOAT:
            return float(token)
    except ValueError:
        raise FieldDecodeError(name, kind.value, token) from None
    if kind is FieldKind.SYMBOL:
        return sys.intern(token)
    return token


def decode_fields(tag: str, spec: Sequence[FieldSpec], tokens: Sequence[str]) -> Dict[str, Any]:
    """Positional decode of `tokens` against `spec`. Surplus tokens are the caller's business."""
    if len(tokens) < len(spec):
        raise TruncatedRecord(tag, len(spec), len(tokens))
    return {name: coerce(name, kind, tok) for (name, kind), tok in zip(spec, tokens)}


# ---------------------------
# Embedded objects (telemetry tail)
# ---------------------------

def split_objects(tokens: Sequence[str], catalog: SchemaCatalog, record_tag: str) -> List[List[str]]:
    """
    Group a tag-delimited token run: every known entity tag opens a new group,
    everything else belongs to the open group.
    """
    groups: List[List[str]] = []
    for tok in tokens:
        if tok in catalog.entities:
            groups.append([tok])
        elif not groups:
            raise UnknownEntityTag(tok, record_tag)
        else:
            groups[-1].append(tok)
    return groups


def decode_objects(tokens: Sequence[str], catalog: SchemaCatalog, record_tag: str) -> Tuple[Entity, ...]:
    objects = []
    for tag, *args in split_objects(tokens, catalog, record_tag):
        schema = catalog.entities[tag]
        values = decode_fields(tag, schema.fields, args)
        n = len(schema.fields)
        if len(args) > n:
            # The token after the object's fields should have been the next tag.
            raise UnknownEntityTag(args[n], record_tag)
        objects.append(schema.entity_type(**values))
    return tuple(objects)


# ---------------------------
# Records
# ---------------------------

def decode_record(text: str, catalog: SchemaCatalog) -> Optional[DecodedRecord]:
    """
    Decode one record body (delimiter already stripped).
    Returns None for a blank record.
    """
    tokens = text.split()
    if not tokens:
        return None
    tag, rest = tokens[0], tokens[1:]
    schema = catalog.messages.get(tag)
    if schema is None:
        raise UnknownMessageTag(tag)

    fields = decode_fields(tag, schema.fields, rest)
    tail = rest[len(schema.fields):]

    objects: Tuple[Entity, ...] = ()
    if schema.kind is MessageKind.TELEMETRY:
        objects = decode_objects(tail, catalog, tag)
    elif tail:
        log.warning("ignoring surplus tokens", extra={"extra": {"tag": tag, "surplus": list(tail)}})

    return DecodedRecord(tag=tag, kind=schema.kind, fields=fields, objects=objects)


class StreamDecoder:
    """
    Incremental framer + decoder for the `;`-delimited simulator stream.

    Usage:
        dec = StreamDecoder(catalog)
        dec.feed(sock.recv(255))
        for rec in dec.records():
            ...
    """

    def __init__(self, catalog: SchemaCatalog, delimiter: bytes = DELIMITER):
        self.catalog = catalog
        self.delimiter = delimiter
        self._buf = bytearray()

    def feed(self, data: bytes) -> None:
        self._buf.extend(data)

    @property
    def buffered(self) -> int:
        return len(self._buf)

    def has_frame(self) -> bool:
        return self.delimiter in self._buf

    def next_frame(self) -> Optional[str]:
        """Pop the text of the next complete record, or None if none is buffered."""
        p = self._buf.find(self.delimiter)
        if p < 0:
            return None
        raw = bytes(self._buf[:p])
        del self._buf[: p + len(self.delimiter)]
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError:
            raise ProtocolError(f"non-ASCII bytes in record {raw[:40]!r}") from None

    def records(self) -> Iterator[DecodedRecord]:
        """Yield every complete record currently buffered, in arrival order."""
        while True:
            text = self.next_frame()
            if text is None:
                return
            rec = decode_record(text, self.catalog)
            if rec is not None:
                yield rec
