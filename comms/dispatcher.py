from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

from common.errors import DispatchError
from common.logging_setup import get_logger
from common.types import DecodedRecord, MessageKind
from navigation.controller import RoverController


log = get_logger("comms.dispatcher")


class Outcome(str, Enum):
    """Run conclusions surfaced to the application. These are not errors."""
    BOUNCE = "bounce"
    CRATER = "crater"
    KILL = "kill"
    SUCCESS = "success"
    END_OF_RUN = "end_of_run"


OutcomeHandler = Callable[[Outcome, DecodedRecord], None]

_OUTCOME_TEXT = {
    Outcome.BOUNCE: "bounced",
    Outcome.CRATER: "fell into a crater",
    Outcome.KILL: "killed by a martian",
    Outcome.SUCCESS: "reached home",
}


class Dispatcher:
    """Routes each decoded record to the handler for its message kind."""

    def __init__(self, controller: RoverController, on_outcome: Optional[OutcomeHandler] = None):
        self.controller = controller
        self.on_outcome = on_outcome
        self._handlers: Dict[MessageKind, Callable[[DecodedRecord], None]] = {
            MessageKind.INITIALIZATION: self._on_initialization,
            MessageKind.TELEMETRY: self._on_telemetry,
            MessageKind.BOUNCE: self._on_terminal,
            MessageKind.CRATER: self._on_terminal,
            MessageKind.KILL: self._on_terminal,
            MessageKind.SUCCESS: self._on_terminal,
            MessageKind.END_OF_RUN: self._on_end_of_run,
        }

    def dispatch(self, record: DecodedRecord) -> None:
        handler = self._handlers.get(record.kind)
        if handler is None:
            raise DispatchError(f"no handler for message kind {record.kind!r} (tag {record.tag!r})")
        handler(record)

    # ---------------------------
    # Handlers
    # ---------------------------

    def _on_initialization(self, record: DecodedRecord) -> None:
        self.controller.update_parameters(record.fields)
        log.info("starting run", extra={"extra": {"parameters": dict(self.controller.parameters)}})

    def _on_telemetry(self, record: DecodedRecord) -> None:
        self.controller.process(record)

    def _on_terminal(self, record: DecodedRecord) -> None:
        outcome = Outcome(record.kind.value)
        log.info(_OUTCOME_TEXT[outcome], extra={"extra": {"outcome": outcome.value, **record.fields}})
        self._notify(outcome, record)

    def _on_end_of_run(self, record: DecodedRecord) -> None:
        log.info("end of run", extra={"extra": {"score": record.get("score")}})
        self.controller.reset()
        self._notify(Outcome.END_OF_RUN, record)

    def _notify(self, outcome: Outcome, record: DecodedRecord) -> None:
        if self.on_outcome is not None:
            self.on_outcome(outcome, record)
