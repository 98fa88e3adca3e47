#!/usr/bin/env python3
"""
fls - push files onto a stack now, copy/move/link them somewhere else later.

Usage:
    fls FILE...              Push FILEs onto the stack
    fls                      Print the stack (same as -p)
    fls -c [-n N] [DEST]     Copy the top N files to DEST or the current dir
    fls -m [-n N] [DEST]     Move the top N files to DEST or the current dir
    fls -s [-n N] [DEST]     Symlink the top N files to DEST or the current dir
    fls -d [-n N]            Drop the top N files, printing their names
    fls -i                   Talk to the daemon directly (debugging)
    fls -q                   Terminate the daemon, losing the stack
"""

import argparse
import logging
import sys
from typing import NoReturn, Optional

from . import PROGRAM_NAME, __version__
from .actions import COUNTED_ACTIONS, FILE_ACTIONS, Action, ActionType, action_verb
from .client import StackClient
from .config import FlsConfig, configure_logging
from .daemon import ensure_daemon
from .engine import ActionEngine
from .errors import FlsError

logger = logging.getLogger(__name__)

ACTION_FLAGS = [
    ("-c", ActionType.COPY, "pop a file from the stack, copy it to DEST or current dir"),
    ("-m", ActionType.MOVE, "pop a file from the stack, move it to DEST or current dir"),
    ("-s", ActionType.SYMLINK, "pop a file from the stack, symlink it to DEST or current dir"),
    ("-d", ActionType.DROP, "pop a file from the stack, print its name"),
    ("-p", ActionType.PRINT, "print the contents of the stack"),
    ("-i", ActionType.INTERACTIVE, "send raw protocol lines to the daemon"),
    ("-q", ActionType.STOP, "terminate the stack daemon, losing the contents of the stack"),
]


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Push FILEs onto the stack, or perform action ACTION.",
        epilog=(
            "If no args are provided, the default action is PRINT.\n"
            "If FILEs are provided, push them onto the stack."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    actions = parser.add_argument_group("actions")
    for flag, action_type, help_text in ACTION_FLAGS:
        actions.add_argument(
            flag,
            dest="actions",
            action="append_const",
            const=action_type,
            help=help_text,
        )

    parser.add_argument(
        "-n",
        dest="count",
        type=int,
        default=1,
        metavar="N",
        help="perform action to the top N files on the stack (COPY, MOVE, SYMLINK, DROP)",
    )
    parser.add_argument(
        "-v",
        dest="verbose",
        action="count",
        default=0,
        help="more output (repeat for protocol traces)",
    )
    parser.add_argument("args", nargs="*", metavar="FILE|DEST")
    return parser


def _usage_error(message: str) -> NoReturn:
    print(f"{PROGRAM_NAME}: {message}", file=sys.stderr)
    print(f"Try `{PROGRAM_NAME} -h' for more information.", file=sys.stderr)
    sys.exit(1)


def parse_action(argv: Optional[list[str]] = None) -> tuple[Action, int]:
    """Turn command-line arguments into an Action and a verbosity level.

    Exits with status 1 on conflicting or misplaced arguments.
    """
    args = _create_parser().parse_args(argv)

    requested = args.actions or []
    if len(requested) > 1:
        _usage_error(
            f"cannot perform two actions ({action_verb(requested[0])}, {action_verb(requested[1])})"
        )
    if args.count < 1:
        _usage_error(f"invalid argument `{args.count}' for option `-n'")

    if not requested:
        if args.args:
            return Action(ActionType.PUSH, operands=tuple(args.args)), args.verbose
        return Action(ActionType.PRINT), args.verbose

    action_type = requested[0]
    count = args.count if action_type in COUNTED_ACTIONS else 1
    if action_type in FILE_ACTIONS:
        if len(args.args) > 1:
            _usage_error(f"Too many supplied arguments for requested action: `{action_verb(action_type)}'")
        destination = args.args[0] if args.args else None
        return Action(action_type, count=count, destination=destination), args.verbose

    if args.args:
        _usage_error(f"Requested action `{action_verb(action_type)}' does not take arguments")
    return Action(action_type, count=count), args.verbose


def main(argv: Optional[list[str]] = None) -> None:
    action, verbose = parse_action(argv)
    config = FlsConfig.from_env(verbose=verbose)
    configure_logging(config)

    try:
        with StackClient(ensure_daemon(config)) as client:
            ActionEngine(client, config).perform(action)
    except KeyboardInterrupt:
        print(file=sys.stderr)
        sys.exit(130)
    except FlsError as e:
        print(f"{PROGRAM_NAME}: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Client exit")


if __name__ == "__main__":
    main()
