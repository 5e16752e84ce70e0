from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from loki_relay.app import create_app


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(
        prog="loki-relay",
        description="Validate log submissions over HTTP and forward them to Loki.",
    )
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=8080)
    ap.add_argument(
        "--log-level",
        default=os.getenv("RELAY_LOG_LEVEL", "INFO"),
        help="root log level (default: $RELAY_LOG_LEVEL or INFO)",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
