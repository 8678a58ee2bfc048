"""Tests for deprecated command alias expansion."""
from __future__ import annotations

import io

import pytest

from gitvendor.cli._aliases import DEPRECATED_COMMANDS, expand_deprecated_alias


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["sync"], ["pull", "--locked"]),
        (["update", "lib", "--json"], ["pull", "lib", "--json"]),
        (["verify", "--json"], ["status", "--offline", "--json"]),
        (["outdated"], ["status", "--remote-only"]),
        (["diff", "lib"], ["status", "lib"]),
    ],
)
def test_deprecated_commands_are_rewritten(argv: list[str], expected: list[str]) -> None:
    stream = io.StringIO()

    assert expand_deprecated_alias(argv, stream=stream) == expected
    assert f"'{argv[0]}' is deprecated" in stream.getvalue()


def test_current_commands_pass_through_silently() -> None:
    stream = io.StringIO()

    assert expand_deprecated_alias(["pull", "sync"], stream=stream) == ["pull", "sync"]
    assert stream.getvalue() == ""


def test_options_before_command_are_preserved() -> None:
    stream = io.StringIO()

    assert expand_deprecated_alias(["--version"], stream=stream) == ["--version"]
    assert expand_deprecated_alias([], stream=stream) == []


def test_every_replacement_is_a_real_command() -> None:
    from gitvendor.cli._dispatcher import discover_commands

    commands = {name.replace("_", "-") for name in discover_commands()}
    for replacement in DEPRECATED_COMMANDS.values():
        assert replacement[0] in commands
