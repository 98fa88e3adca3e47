"""Terminal output helpers."""

import sys

COLR_PATH = "\033[36m"
COLR_WARN = "\033[33m"
COLR_RESET = "\033[0m"


def _use_color() -> bool:
    return sys.stdout.isatty()


def color_string(color: str, text: str) -> str:
    """Wrap `text` in an ANSI color when stdout is a terminal."""
    if not _use_color():
        return text
    return f"{color}{text}{COLR_RESET}"


def color_path(path: str) -> str:
    return color_string(COLR_PATH, path)


def color_warn(text: str) -> str:
    return color_string(COLR_WARN, text)


def plural(n: int) -> str:
    return "" if n == 1 else "s"
