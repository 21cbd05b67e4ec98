"""Application entrypoint wiring for the radio console.

Parses command line options, configures logging and serves the console over
HTTP. This module must not contain state or gateway logic beyond orchestration.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import uvicorn

from fm_radio_console.config import RadioConfig
from fm_radio_console.console import RadioConsole
from fm_radio_console.gateway.rtl_fm import RtlFmGateway, SimulatedGateway
from fm_radio_console.server.app import create_app


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="FM radio console server")
    parser.add_argument("--host", type=str, default=None, help="Override bind address (e.g., 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Override port (e.g., 8765)")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use a simulated receiver instead of rtl_fm",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = RadioConfig()
    if args.host is not None:
        cfg.host = args.host
    if args.port is not None:
        cfg.port = args.port

    gateway = SimulatedGateway(cfg) if args.simulate else RtlFmGateway(cfg)
    app = create_app(RadioConsole(cfg, gateway=gateway))
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=args.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
