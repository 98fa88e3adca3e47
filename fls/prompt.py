"""Line-buffered confirmation prompts.

Answers are judged by their first character; an empty line means yes.
"""

from __future__ import annotations

import enum
from typing import Callable, Optional

from .errors import FlsError
from .output import color_path


class Choice(enum.Enum):
    PROCEED = "proceed"
    DROP = "drop"
    CANCEL = "cancel"


class Prompter:
    """Asks the user questions on the terminal.

    Args:
        read_line: Shows a prompt and returns the typed line (default: input)
        write: Prints one line of output (default: print)
    """

    def __init__(
        self,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ):
        self._read_line = read_line
        self._write = write

    def read(self, prompt: str) -> Optional[str]:
        """One free-form line, or None at end of input."""
        try:
            return self._read_line(prompt)
        except EOFError:
            return None

    def _ask(self, question: str) -> str:
        try:
            return self._read_line(question)
        except EOFError:
            raise FlsError("error reading from stdin") from None

    def _ask_until(self, question: str, answers: dict[str, Choice]) -> Choice:
        while True:
            answer = self._ask(question)
            key = answer[:1].lower()
            if key in answers:
                return answers[key]
            self._write("What?")

    def confirm_batch(self, verb: str, count: int, dest: str) -> bool:
        """[Yn] for a whole multi-file operation."""
        choice = self._ask_until(
            f"{verb} {count} files to `{color_path(dest)}' [Yn]?",
            {"": Choice.PROCEED, "y": Choice.PROCEED, "n": Choice.CANCEL},
        )
        return choice is Choice.PROCEED

    def confirm_single(self, verb: str, source: str, dest: str) -> Choice:
        """[Ynd] for one file: go ahead, cancel, or drop it without acting."""
        return self._ask_until(
            f"{verb} `{color_path(source)}' to `{color_path(dest)}' [Ynd]?",
            {"": Choice.PROCEED, "y": Choice.PROCEED, "n": Choice.CANCEL, "d": Choice.DROP},
        )

    def confirm_stop(self) -> bool:
        answer = self._ask("Stack not empty, still stop daemon [Yn]?")
        return answer[:1].lower() in ("", "y")
