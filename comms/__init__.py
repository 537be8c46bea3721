"""
Comms — simulator link

Provides:
- StreamDecoder: `;` framing, tokenizing and schema-driven decoding, including
  the embedded world objects trailing each telemetry record
- Dispatcher: routes decoded records by message kind
- SocketTransport: the TCP link to the simulator
- RoverSession: feed(bytes) in, single-character commands out

Entry point:
    python -m comms.client --config config/params.yaml
"""
from .decoder import StreamDecoder, decode_record
from .dispatcher import Dispatcher, Outcome
from .session import RoverSession

__all__ = ["StreamDecoder", "decode_record", "Dispatcher", "Outcome", "RoverSession"]
