"""Tests for command id detection and the allow-list."""

import pytest

from extcompat.kernel.commands import (
    COMMAND_PREFIXES,
    SUPPORTED_COMMANDS,
    command_from_literal,
    is_command_shaped,
    is_supported_command,
)


@pytest.mark.parametrize("command", sorted(SUPPORTED_COMMANDS))
def test_allow_list_members_are_supported(command):
    assert is_supported_command(command)


def test_commands_are_matched_verbatim():
    """No rewriting: a near miss is unsupported."""
    assert not is_supported_command("vscode.Open")
    assert not is_supported_command("theia.open")
    assert not is_supported_command("workbench.action.files.save")


@pytest.mark.parametrize("prefix", COMMAND_PREFIXES)
def test_prefixes_make_literals_command_shaped(prefix):
    assert is_command_shaped(prefix + "something")


def test_other_literals_are_not_commands():
    assert command_from_literal("hello world") is None
    assert command_from_literal("vscode") is None
    assert command_from_literal("myExt.doThing") is None


def test_empty_and_missing_literals():
    assert command_from_literal("") is None
    assert command_from_literal(None) is None


def test_command_shaped_literal_is_returned():
    assert command_from_literal("editor.action.formatDocument") == "editor.action.formatDocument"
