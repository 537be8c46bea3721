from __future__ import annotations

"""
Rover client: connect to the simulator and drive until it hangs up.

Examples:
  python -m comms.client
  python -m comms.client --config config/params.yaml --host 10.0.0.5 --port 17676
  LOG_LEVEL=DEBUG rover-client
"""

import argparse
from typing import Optional, Sequence

from common.config import DEFAULT_CONFIG_PATH, load_config
from common.errors import RoverError
from common.logging_setup import get_logger, setup_logging
from common.schema import load_catalog
from common.types import DecodedRecord
from comms.dispatcher import Outcome
from comms.session import RoverSession
from comms.transport import SocketTransport


log = get_logger("comms.client")


def _log_outcome(outcome: Outcome, record: DecodedRecord) -> None:
    if outcome is Outcome.END_OF_RUN:
        log.info("run finished", extra={"extra": {"score": record.get("score")}})


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Autonomous rover client")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH)
    ap.add_argument("--host", default=None, help="Simulator host (overrides config link.host)")
    ap.add_argument("--port", type=int, default=None, help="Simulator port (overrides config link.port)")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides config)")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    setup_logging(args.log_level or cfg.log_level)

    host = args.host or cfg.link.host
    port = int(args.port or cfg.link.port)

    try:
        catalog = load_catalog(cfg.tags_path, cfg.objects_path)
        log.info("connecting", extra={"extra": {"host": host, "port": port}})
        transport = SocketTransport.connect(
            host, port, recv_bytes=cfg.link.recv_bytes, timeout_s=cfg.link.connect_timeout_s
        )
        with transport:
            session = RoverSession(
                catalog,
                transport.send_command,
                nav=cfg.navigation,
                on_outcome=_log_outcome,
            )
            session.run(transport)
    except RoverError:
        log.error("fatal error", exc_info=True)
        return 1
    except KeyboardInterrupt:
        log.info("interrupted")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
