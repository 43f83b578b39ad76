import asyncio
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import List, Optional, TextIO

import warden.logging
from warden.core.cli import parse_cli_flags
from warden.core.commands import CommandRegistry
from warden.core.errors import WardenError
from warden.core.gate import CommandGate, Invocation
from warden.core.guild_store import JsonGuildStore
from warden.core.models import Actor, Channel, Role, validate_permission_names
from warden.core.settings import BotSettings

log = logging.getLogger("warden.main")


def get_bot_actor(cli_flags: Namespace) -> Actor:
    """The bot as described by ``--bot-permission``.

    Without any permission given, nothing is known about the bot's
    roles, so it is treated as an administrator.
    """
    if not cli_flags.bot_permission:
        return Actor(0, administrator=True)
    validate_permission_names(cli_flags.bot_permission)
    # The @everyone role shares its ID with the guild.
    everyone = Role(cli_flags.guild or 0, 0, frozenset(cli_flags.bot_permission))
    return Actor(0, roles=(everyone,))


def describe(message_text: str, invocation: Optional[Invocation]) -> str:
    if invocation is None:
        return f"{message_text!r}: not a command"
    name = invocation.command.name
    if invocation.allowed:
        return f"{name}: allowed"
    if invocation.missing_permissions:
        return "{}: denied ({}: {})".format(
            name, invocation.reason.value, ", ".join(invocation.missing_permissions)
        )
    return f"{name}: denied ({invocation.reason.value})"


async def check_messages(cli_flags: Namespace, stdin: TextIO, stdout: TextIO) -> None:
    """Check every line of ``stdin`` as a message, and report the outcome to ``stdout``."""
    settings = BotSettings.from_cli_flags(cli_flags)
    data_path = settings.data_path if settings.data_path is not None else Path.cwd() / "data"

    warden.logging.init_logging(
        level=cli_flags.logging_level, location=data_path / "logs", cli_flags=cli_flags
    )

    log.debug("====Basic Config====")
    log.debug("Data Path: %s", data_path)
    log.debug("Prefixes: %s", ", ".join(settings.prefixes))

    commands = CommandRegistry.from_yaml(cli_flags.commands.read_text(encoding="utf-8"))
    gate = CommandGate.from_settings(settings, commands, JsonGuildStore(data_path))

    actor = Actor(cli_flags.user)
    channel = Channel(cli_flags.channel, cli_flags.guild)
    bot = get_bot_actor(cli_flags)

    for line in stdin:
        message_text = line.strip()
        if not message_text:
            continue
        invocation = await gate.get_invocation(message_text, actor, channel, bot)
        print(describe(message_text, invocation), file=stdout)


def main(args: Optional[List[str]] = None) -> None:
    cli_flags = parse_cli_flags(sys.argv[1:] if args is None else args)
    if not cli_flags.prefix:
        print("No prefix set. Use --prefix to set at least one.")
        sys.exit(1)
    if cli_flags.commands is None:
        print("No command file given. Use --commands to point to one.")
        sys.exit(1)

    try:
        asyncio.run(check_messages(cli_flags, sys.stdin, sys.stdout))
    except (WardenError, OSError, TypeError, ValueError) as exc:
        log.critical("Could not check messages: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Aborted!")


if __name__ == "__main__":
    main()
