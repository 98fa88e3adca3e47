"""Collect information about paths on the local filesystem."""

from __future__ import annotations

import os
from typing import Optional

from .errors import PreconditionError


def exists(path: str) -> bool:
    return os.path.exists(path)


def isdir(path: str) -> bool:
    return os.path.isdir(path)


def basename(path: str) -> str:
    """Last path component, ignoring a trailing separator ("/a/b/" -> "b")."""
    stripped = path.rstrip(os.sep)
    if not stripped:
        return os.sep
    return os.path.basename(stripped)


def abs_path(path: str) -> Optional[str]:
    """Canonical absolute path of an existing file.

    Directories (other than the root) get a trailing separator.

    Returns:
        The canonical path, or None if nothing exists at `path`
    """
    try:
        resolved = os.path.realpath(path, strict=True)
    except (FileNotFoundError, NotADirectoryError):
        return None
    if os.path.isdir(resolved) and resolved != os.sep:
        resolved += os.sep
    return resolved


def real_target(target: Optional[str]) -> str:
    """Canonical destination for a file action.

    With no target, the working directory. A target that does not exist
    yet is taken relative to its canonicalized parent, which must exist.

    Raises:
        PreconditionError: If the target's parent directory does not exist
    """
    resolved = abs_path("." if target is None else target)
    if resolved is not None:
        return resolved

    parent, name = os.path.split(target.rstrip(os.sep) or target)
    parent_resolved = abs_path(parent or ".")
    if parent_resolved is None or not os.path.isdir(parent_resolved):
        raise PreconditionError(f"target directory `{parent or '.'}' does not exist")
    return os.path.join(parent_resolved, name)
