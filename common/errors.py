from __future__ import annotations

from typing import Optional


class RoverError(Exception):
    """Base class for every error raised by the rover client."""


# ---------------------------
# Protocol decode failures
# ---------------------------

class ProtocolError(RoverError):
    """A received record could not be decoded. Always fatal to the run."""


class UnknownMessageTag(ProtocolError):
    def __init__(self, tag: str):
        super().__init__(f"unknown message tag {tag!r}")
        self.tag = tag


class UnknownEntityTag(ProtocolError):
    def __init__(self, token: str, record_tag: Optional[str] = None):
        where = f" in {record_tag!r} record" if record_tag else ""
        super().__init__(f"expected an entity tag{where}, got {token!r}")
        self.token = token
        self.record_tag = record_tag


class FieldDecodeError(ProtocolError):
    def __init__(self, field: str, kind: str, token: str):
        super().__init__(f"cannot decode field {field!r} as {kind}: {token!r}")
        self.field = field
        self.kind = kind
        self.token = token


class TruncatedRecord(ProtocolError):
    def __init__(self, tag: str, expected: int, got: int):
        super().__init__(f"record {tag!r} needs {expected} field tokens, got {got}")
        self.tag = tag
        self.expected = expected
        self.got = got


# ---------------------------
# Everything else
# ---------------------------

class TransportError(RoverError):
    """Read/write failure on the simulator connection."""


class DegenerateGeometry(RoverError, ValueError):
    """Bearing requested between two coincident points."""


class SchemaError(RoverError):
    """A schema catalog file is malformed or names an unsupported kind."""


class DispatchError(RoverError):
    """A decoded record reached the dispatcher with no handler for its kind."""
