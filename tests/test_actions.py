"""Tests for action definitions and command generation."""

import pytest

from fls.actions import Action, ActionType, action_verb, command_vector


class TestCommandVector:
    def test_copy(self):
        assert command_vector(ActionType.COPY, "/src/a", "/dst/") == ["cp", "-r", "--", "/src/a", "/dst/"]

    def test_move(self):
        assert command_vector(ActionType.MOVE, "/src/a", "/dst/") == ["mv", "--", "/src/a", "/dst/"]

    def test_symlink(self):
        assert command_vector(ActionType.SYMLINK, "/src/a", "/dst/") == ["ln", "-s", "--", "/src/a", "/dst/"]

    def test_paths_starting_with_dash_stay_operands(self):
        argv = command_vector(ActionType.MOVE, "-rf", "/dst/")
        assert argv.index("--") < argv.index("-rf")

    @pytest.mark.parametrize("action_type", [ActionType.PUSH, ActionType.PRINT, ActionType.STOP])
    def test_actions_without_template(self, action_type):
        with pytest.raises(ValueError, match="unsupported action"):
            command_vector(action_type, "/a", "/b")


class TestAction:
    def test_defaults(self):
        action = Action(ActionType.COPY)
        assert action.count == 1
        assert action.destination is None
        assert action.verb == "copy"

    def test_count_must_be_positive(self):
        with pytest.raises(ValueError):
            Action(ActionType.DROP, count=0)

    def test_verbs(self):
        assert action_verb(ActionType.STOP) == "terminate daemon"
        assert action_verb(ActionType.INTERACTIVE) == "interactive mode"
