from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from common.config import NavigationConfig
from common.errors import ProtocolError
from common.logging_setup import get_logger
from common.schema import SchemaCatalog
from comms.decoder import StreamDecoder
from comms.dispatcher import Dispatcher, OutcomeHandler
from comms.transport import SocketTransport
from navigation.controller import RoverController


log = get_logger("comms.session")


class RoverSession:
    """
    Goal-facing core: bytes in, single-character commands out.

    Wiring:
        raw bytes -> StreamDecoder -> Dispatcher -> RoverController -> emit(cmd)
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        emit: Callable[[str], None],
        *,
        nav: Optional[NavigationConfig] = None,
        on_outcome: Optional[OutcomeHandler] = None,
    ):
        self.decoder = StreamDecoder(catalog)
        self.controller = RoverController(emit, nav)
        self.dispatcher = Dispatcher(self.controller, on_outcome)
        self.records_seen = 0

    @property
    def parameters(self) -> Mapping[str, Any]:
        return self.controller.parameters

    def feed(self, data: bytes) -> int:
        """Buffer `data`, then decode and dispatch every complete record. Returns records handled."""
        self.decoder.feed(data)
        n = 0
        try:
            for record in self.decoder.records():
                self.dispatcher.dispatch(record)
                n += 1
        except ProtocolError:
            log.error("malformed record, aborting run", exc_info=True)
            raise
        self.records_seen += n
        return n

    def run(self, transport: SocketTransport) -> int:
        """
        Block on the transport until the peer closes the connection.
        Returns the number of records handled.
        """
        while True:
            data = transport.recv()
            if not data:
                log.info("simulator closed the connection", extra={"extra": {"records": self.records_seen}})
                if self.decoder.buffered:
                    log.warning("discarding incomplete record", extra={"extra": {"bytes": self.decoder.buffered}})
                return self.records_seen
            self.feed(data)
