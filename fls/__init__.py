"""fls - a per-user file stack held by a background daemon.

Push paths from anywhere, then pop them into the current directory with
copy, move or symlink semantics.
"""

__version__ = "0.3.0"

PROGRAM_NAME = "fls"
