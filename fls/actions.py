"""What a client invocation asks for, and how file actions become commands.

Each action type has a verb for messages and, for the three that touch the
filesystem, an argv template with named SOURCE and DEST placeholders.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ActionType(enum.Enum):
    PUSH = "push"
    DROP = "drop"
    PRINT = "print"
    COPY = "copy"
    MOVE = "move"
    SYMLINK = "symlink"
    INTERACTIVE = "interactive"
    STOP = "stop"


class Slot(enum.Enum):
    """Placeholder in a command template."""

    SOURCE = "source"
    DEST = "dest"


SOURCE = Slot.SOURCE
DEST = Slot.DEST

# Actions that take a count
COUNTED_ACTIONS = frozenset({ActionType.DROP, ActionType.COPY, ActionType.MOVE, ActionType.SYMLINK})

# Actions that run an external command per entry
FILE_ACTIONS = frozenset({ActionType.COPY, ActionType.MOVE, ActionType.SYMLINK})


@dataclass(slots=True, frozen=True)
class ActionDefinition:
    """Static description of an action type."""

    type: ActionType
    verb: str
    template: tuple[str | Slot, ...] = ()


ACTION_DEFINITIONS: dict[ActionType, ActionDefinition] = {
    ActionType.PUSH: ActionDefinition(ActionType.PUSH, "push"),
    ActionType.DROP: ActionDefinition(ActionType.DROP, "drop"),
    ActionType.PRINT: ActionDefinition(ActionType.PRINT, "print"),
    ActionType.COPY: ActionDefinition(ActionType.COPY, "copy", ("cp", "-r", "--", SOURCE, DEST)),
    ActionType.MOVE: ActionDefinition(ActionType.MOVE, "move", ("mv", "--", SOURCE, DEST)),
    ActionType.SYMLINK: ActionDefinition(ActionType.SYMLINK, "symlink", ("ln", "-s", "--", SOURCE, DEST)),
    ActionType.INTERACTIVE: ActionDefinition(ActionType.INTERACTIVE, "interactive mode"),
    ActionType.STOP: ActionDefinition(ActionType.STOP, "terminate daemon"),
}


@dataclass(slots=True, frozen=True)
class Action:
    """A requested action.

    Attributes:
        type: What to do
        count: How many stack entries (copy/move/symlink/drop only)
        operands: Files to push
        destination: Target for copy/move/symlink; None means the working directory
    """

    type: ActionType
    count: int = 1
    operands: tuple[str, ...] = ()
    destination: Optional[str] = None

    def __post_init__(self):
        if self.count < 1:
            raise ValueError(f"count must be at least 1, got {self.count}")

    @property
    def verb(self) -> str:
        return action_verb(self.type)


def action_definition(action_type: ActionType) -> ActionDefinition:
    return ACTION_DEFINITIONS[action_type]


def action_verb(action_type: ActionType) -> str:
    return ACTION_DEFINITIONS[action_type].verb


def command_vector(action_type: ActionType, source: str, dest: str) -> list[str]:
    """Build the argv that performs `action_type` from `source` to `dest`.

    Raises:
        ValueError: If the action type has no external command
    """
    definition = action_definition(action_type)
    if not definition.template:
        raise ValueError(f"unsupported action: {definition.verb}")
    values = {SOURCE: source, DEST: dest}
    return [values[item] if isinstance(item, Slot) else item for item in definition.template]
