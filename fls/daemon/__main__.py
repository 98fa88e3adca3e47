"""Run the fls daemon in the foreground: python -m fls.daemon"""

import argparse
import logging
import sys
from pathlib import Path

from ..config import LOG_FORMAT, FlsConfig
from ..errors import TransportError
from . import bind_or_none
from .core import FileStackDaemon


def main() -> int:
    parser = argparse.ArgumentParser(description="fls daemon (foreground)")
    parser.add_argument("--socket", help="Socket path (default: per-user path in /tmp)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    config = FlsConfig.from_env()
    if args.socket:
        config = FlsConfig(socket_path=Path(args.socket))
    config = config.with_daemon_role()

    try:
        listener = bind_or_none(config)
    except TransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if listener is None:
        print(f"Daemon already running at {config.socket_path}", file=sys.stderr)
        return 1
    FileStackDaemon(config).run(listener)
    return 0


if __name__ == "__main__":
    sys.exit(main())
