"""Detect filename collisions before a batch of stack entries is acted on."""

from __future__ import annotations

import logging
import os
from typing import Callable

from .client import StackClient
from .errors import PreconditionError
from .fileinfo import basename, exists, isdir
from .output import color_path, color_warn, plural

logger = logging.getLogger(__name__)


def check_batch_names(client: StackClient, count: int, dest: str) -> list[str]:
    """Make sure the top `count` stack entries can all land at `dest`.

    Entries are only inspected (PICK), never popped. Two entries with the
    same file name can't both land in one directory, so that aborts the
    whole batch.

    Returns:
        File names of the entries, top first

    Raises:
        PreconditionError: If `count` > 1 and `dest` is not a directory, or
            two entries share a file name
    """
    if count > 1 and not isdir(dest):
        raise PreconditionError(f"multi-file target `{dest}' is not a directory")

    names: list[str] = []
    for i in range(count):
        name = basename(client.pick(i))
        if name in names:
            j = names.index(name)
            raise PreconditionError(
                f"Stack items {j} and {i} are both named `{color_path(name)}', "
                "so I'm not going to let you do that."
            )
        names.append(name)
    return names


def report_overwrites(
    names: list[str],
    dest: str,
    write: Callable[[str], None] = print,
) -> list[str]:
    """Tell the user which existing files at `dest` the batch will replace.

    Returns:
        Names (or, for a non-directory destination, the path) that would be
        overwritten
    """
    dest_is_dir = isdir(dest)
    if dest_is_dir:
        present = set(os.listdir(dest))
        collisions = [name for name in names if name in present]
    else:
        collisions = [dest] if exists(dest) else []

    if collisions:
        logger.info(f"{len(collisions)} collision(s) at {dest}")
        overwrite = color_warn("overwrite")
        if not dest_is_dir:
            write(f"operation will {overwrite} `{color_path(dest)}'")
        elif len(collisions) == 1:
            write(f"operation will {overwrite} `{color_path(os.path.join(dest, collisions[0]))}'")
        else:
            write(f"operation will {overwrite} {len(collisions)} file{plural(len(collisions))}:")
            for name in collisions:
                write(name)
    return collisions


def check_collisions(
    client: StackClient,
    count: int,
    dest: str,
    write: Callable[[str], None] = print,
) -> list[str]:
    """Check the batch's names, then report what it would overwrite."""
    return report_overwrites(check_batch_names(client, count, dest), dest, write=write)
