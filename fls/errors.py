"""Exception types raised by the fls client.

Every failure the client can hit surfaces to the user; nothing is retried.
main() prints the message and exits nonzero.
"""

from __future__ import annotations

from typing import Optional


class FlsError(Exception):
    """Base class for fatal client errors."""

    pass


class TransportError(FlsError):
    """Socket error, short read, garbage read or peer gone mid-conversation."""

    pass


class ProtocolError(FlsError):
    """The daemon rejected a command or replied with something unexpected.

    Attributes:
        reason: Reason text sent by the daemon after its error token, if any
    """

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class PreconditionError(FlsError):
    """A client-side check failed before the daemon's stack was touched."""

    pass


class ActionFailedError(FlsError):
    """The external command failed; the entry is still on the stack."""

    pass


class IndeterminateStateError(FlsError):
    """The external command succeeded but the POP that records it did not confirm.

    The filesystem side effect already happened, so the stack may now list
    an entry that was moved away (or list it twice after a retry).
    """

    pass


class CancelledError(FlsError):
    """The user declined at a confirmation prompt."""

    pass
