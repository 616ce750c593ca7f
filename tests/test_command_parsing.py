from __future__ import annotations

import pytest

from gridwalk.dispatcher import (
    CommandRejectedError,
    MalformedMessageError,
    UnknownCommandError,
    parse_command,
)
from gridwalk.position import Command


@pytest.mark.parametrize("name", ["up", "down", "left", "right"])
def test_valid_commands(name: str) -> None:
    assert parse_command(f'{{"command": "{name}"}}') == Command(name)


def test_bytes_payload_is_accepted() -> None:
    assert parse_command(b'{"command": "left"}') == Command.left


def test_unknown_command_is_rejected_with_its_name() -> None:
    with pytest.raises(UnknownCommandError) as e:
        parse_command('{"command": "jump"}')

    assert e.value.command == "jump"
    assert str(e.value) == "Unrecognized command: jump"


def test_commands_are_case_sensitive() -> None:
    with pytest.raises(UnknownCommandError):
        parse_command('{"command": "UP"}')


@pytest.mark.parametrize(
    ("raw", "reason"),
    [
        ("not json at all", "not valid JSON"),
        ("[1, 2]", "JSON object"),
        ("{}", "'command'"),
        ('{"command": 5}', "'command'"),
        ('{"cmd": "up"}', "'command'"),
    ],
)
def test_malformed_payloads(raw: str, reason: str) -> None:
    with pytest.raises(MalformedMessageError) as e:
        parse_command(raw)

    assert reason in e.value.reason
    assert str(e.value).startswith("Error processing your command")


def test_rejections_share_a_base_class() -> None:
    assert issubclass(MalformedMessageError, CommandRejectedError)
    assert issubclass(UnknownCommandError, CommandRejectedError)
    assert issubclass(CommandRejectedError, ValueError)
