"""
Client-side action engine.

Carries out one requested Action against the daemon. The file actions
(copy, move, symlink) follow a peek -> confirm -> act -> pop cycle per
stack entry: an entry is only popped after its external command has
succeeded, so a failed or cancelled action leaves the stack untouched.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from .actions import FILE_ACTIONS, Action, ActionType, command_vector
from .client import StackClient
from .collision import check_batch_names, report_overwrites
from .config import FILEPATH_MAX, INTERACTIVE_DRAIN_TIMEOUT, FlsConfig
from .daemon.protocol import MSG_ERR_STACK_EMPTY
from .errors import (
    ActionFailedError,
    CancelledError,
    IndeterminateStateError,
    PreconditionError,
    ProtocolError,
    TransportError,
)
from .executor import run_command
from .fileinfo import abs_path, isdir, real_target
from .output import color_path, plural
from .prompt import Choice, Prompter

logger = logging.getLogger(__name__)

STACK_NOT_ALTERED = "stack not altered"
STACK_DEBATABLE = "stack state debatable"


class ActionEngine:
    """Runs Actions over one daemon connection.

    Args:
        client: Connection to the daemon
        config: Process configuration
        prompter: Source of confirmations; defaults to the terminal
        runner: Runs an argv and returns its exit status
        write: Prints one line of user-facing output
        interactive: Ask before acting and report files about to be overwritten
    """

    def __init__(
        self,
        client: StackClient,
        config: FlsConfig,
        prompter: Optional[Prompter] = None,
        runner: Callable[[list[str]], int] = run_command,
        write: Callable[[str], None] = print,
        interactive: bool = True,
    ):
        self.client = client
        self.config = config
        self.write = write
        self.prompter = prompter if prompter is not None else Prompter(write=write)
        self.runner = runner
        self.interactive = interactive

        self._handlers: dict[ActionType, Callable[[Action], None]] = {
            ActionType.PUSH: self.push,
            ActionType.DROP: self.drop,
            ActionType.PRINT: self.print_stack,
            ActionType.COPY: self.pop_act,
            ActionType.MOVE: self.pop_act,
            ActionType.SYMLINK: self.pop_act,
            ActionType.INTERACTIVE: self.interactive_session,
            ActionType.STOP: self.stop_daemon,
        }

    def perform(self, action: Action) -> None:
        """Invoke the handler for `action`."""
        logger.info(action.verb)
        self._handlers[action.type](action)

    def _check_depth(self, count: int, verb: str) -> int:
        """Fail unless the stack holds at least `count` entries."""
        depth = self.client.size()
        if count > depth:
            if depth == 0:
                raise PreconditionError("cannot pop, file stack empty")
            raise PreconditionError(
                f"asked to {verb} {count} file{plural(count)}, only {depth} in stack"
            )
        return depth

    def push(self, action: Action) -> None:
        """Push every operand, resolved to an absolute path."""
        paths = []
        for operand in action.operands:
            path = abs_path(operand)
            if path is None:
                raise PreconditionError(f"file `{operand}' does not exist")
            paths.append(path)

        for path in paths:
            stored = self.client.push(path)
            if stored != path:
                raise TransportError("path sent not the same as path pushed")
            self.write(f"Pushed `{color_path(path)}'")

    def drop(self, action: Action) -> None:
        """Pop `action.count` entries without touching the filesystem."""
        self._check_depth(action.count, action.verb)
        for i in range(action.count):
            try:
                path = self.client.pop()
            except ProtocolError as e:
                raise ProtocolError(
                    f"error: `{e.reason}'; popped {i} file{plural(i)}", reason=e.reason
                ) from e
            self.write(path)

    def print_stack(self, action: Action) -> None:
        """List the stack from the top down."""
        size = self.client.size()
        self.write(f"{size} file{plural(size)} in stack")
        for i in range(size):
            try:
                path = self.client.pick(i)
            except ProtocolError as e:
                raise ProtocolError(f"error: `{e.reason}'", reason=e.reason) from e
            self.write(f"{i}: {color_path(path)}")

    def _peek_source(self, verb: str) -> str:
        try:
            return self.client.peek()
        except ProtocolError as e:
            if e.reason == MSG_ERR_STACK_EMPTY:
                raise ProtocolError(f"Could not {verb}; file stack empty", reason=e.reason) from e
            raise ProtocolError(f"received error `{e.reason}' ({STACK_NOT_ALTERED})", reason=e.reason) from e
        except TransportError as e:
            raise TransportError(f"{e} ({STACK_NOT_ALTERED})") from e

    def _report(self, verb: str, source: str, dest: str) -> None:
        self.write(f"{verb} `{color_path(source)}' to `{color_path(dest)}'")

    def _confirm(self, action: Action, source: str, dest: str, first: bool) -> bool:
        """Report what is about to happen and, on the first item, ask.

        Returns:
            True to run the command, False to drop the entry without acting

        Raises:
            CancelledError: If the user cancels
        """
        verb = action.verb
        if not (self.interactive and first):
            self._report(verb, source, dest)
            return True

        if action.count > 1:
            if not self.prompter.confirm_batch(verb, action.count, dest):
                raise CancelledError(f"{verb} canceled by user")
            # the rest of the batch is reported without asking again
            self._report(verb, source, dest)
            return True

        choice = self.prompter.confirm_single(verb, source, dest)
        if choice is Choice.CANCEL:
            raise CancelledError(f"{verb} canceled by user")
        if choice is Choice.DROP:
            self.write(f"drop `{source}'")
            return False
        return True

    def _confirm_pop(self, source: str) -> None:
        """Pop the entry just acted on; the action can no longer be undone."""
        try:
            popped = self.client.pop()
        except (ProtocolError, TransportError) as e:
            raise IndeterminateStateError(
                f"could not confirm pop from stack ({STACK_DEBATABLE}): {e}"
            ) from e
        if popped != source:
            raise IndeterminateStateError(
                f"popped `{popped}' instead of `{source}' ({STACK_DEBATABLE})"
            )

    def pop_act(self, action: Action) -> None:
        """Copy, move or symlink the top `action.count` entries to the destination."""
        if action.type not in FILE_ACTIONS:
            raise ValueError(f"not a file action: {action.verb}")

        verb = action.verb
        remaining = action.count
        first = True
        dest: Optional[str] = None

        while remaining > 0:
            self._check_depth(remaining, verb)

            if dest is None:
                dest = real_target(action.destination)
                if action.count > 1 and not isdir(dest):
                    raise PreconditionError(f"multi-file target `{dest}' is not a directory")

            source = self._peek_source(verb)

            if first:
                names = check_batch_names(self.client, action.count, dest)
                if self.interactive:
                    report_overwrites(names, dest, write=self.write)
            logger.info(f"src: {source}")
            logger.info(f"dst: {dest}")

            argv = command_vector(action.type, source, dest)
            if self._confirm(action, source, dest, first):
                status = self.runner(argv)
                if status != 0:
                    raise ActionFailedError(f"{verb} unsuccessful, aborting... ({STACK_NOT_ALTERED})")

            self._confirm_pop(source)
            remaining -= 1
            first = False

    def interactive_session(self, action: Action) -> None:
        """Pass typed lines straight to the daemon and show every reply.

        Useful for debugging the daemon, not much else. "q" quits.
        """
        while True:
            line = self.prompter.read("> ")
            if line is None or line == "q":
                break
            if len(os.fsencode(line)) >= FILEPATH_MAX:
                self.write("Didn't send, input too long")
                continue

            self.client.send_line(line)
            while True:
                n, text = self.client.receive_line()
                if n < 0:
                    raise TransportError("Quitting for read error")
                if n == 0:
                    raise TransportError("Server closed connection")
                self.write(f"recv> `{text}'")
                # check if there's more
                if not self.client.has_more(INTERACTIVE_DRAIN_TIMEOUT):
                    break

    def stop_daemon(self, action: Action) -> None:
        """Stop the daemon, asking first if the stack isn't empty."""
        if self.client.size() > 0 and not self.prompter.confirm_stop():
            raise CancelledError("Canceled by user")
        if self.client.stop():
            self.write("Server shutting down.")
        else:
            self.write("It doesn't want to.")
