import logging
from pathlib import Path

import pytest

from warden.core import BotSettings
from warden.core.cli import parse_cli_flags
from warden.core.settings import DEFAULT_PERMISSIONS, validate_prefixes


def test_cli_defaults():
    flags = parse_cli_flags([])
    assert flags.prefix == []
    assert flags.owner is None
    assert flags.admin == []
    assert flags.data_path is None
    assert flags.logging_level == logging.INFO
    assert flags.rich_logging is None
    assert flags.commands is None
    assert flags.guild is None
    assert flags.user == 0
    assert flags.bot_permission == []


def test_cli_flags():
    flags = parse_cli_flags(
        [
            "-p",
            "!",
            "--prefix",
            "?",
            "--owner",
            "1",
            "--admin",
            "2",
            "3",
            "--data-path",
            "data",
            "--debug",
            "--force-disable-rich-logging",
            "--guild",
            "4",
            "--bot-permission",
            "send_messages",
            "--bot-permission",
            "embed_links",
        ]
    )
    assert flags.guild == 4
    assert flags.bot_permission == ["send_messages", "embed_links"]
    assert flags.prefix == ["!", "?"]
    assert flags.owner == 1
    assert flags.admin == [2, 3]
    assert flags.data_path == Path("data")
    assert flags.logging_level == logging.DEBUG
    assert flags.rich_logging is False


def test_settings_from_cli_flags():
    settings = BotSettings.from_cli_flags(parse_cli_flags(["-p", "!", "--owner", "1", "--admin", "2"]))
    assert settings.prefixes == ["!"]
    assert settings.primary_prefix == "!"
    assert settings.admin_ids == {1, 2}
    assert settings.default_permissions == DEFAULT_PERMISSIONS


def test_settings_without_prefix():
    with pytest.raises(ValueError):
        BotSettings.from_cli_flags(parse_cli_flags([]))


@pytest.mark.parametrize(
    "prefixes,exc",
    [
        ("!", TypeError),
        ([1], TypeError),
        ([], ValueError),
        ([""], ValueError),
        (["! "], ValueError),
        (["/"], ValueError),
    ],
)
def test_invalid_prefixes(prefixes, exc):
    with pytest.raises(exc):
        validate_prefixes(prefixes)


def test_owner_is_admin():
    settings = BotSettings(prefixes=["!"], owner_id=5)
    assert settings.admin_ids == frozenset({5})
