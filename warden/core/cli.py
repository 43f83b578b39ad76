import argparse
import logging
from pathlib import Path
from typing import List, Optional


def parse_cli_flags(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Warden - command authorization for Discord bots",
        usage="warden [arguments]",
    )
    parser.add_argument(
        "--prefix",
        "-p",
        action="append",
        help="Global prefix. Can be multiple. The first one is the primary prefix, "
        "which a server's custom prefix replaces.",
    )
    parser.add_argument(
        "--owner",
        type=int,
        help="ID of the owner. Only the owner can use owner-only admin commands.",
    )
    parser.add_argument(
        "--admin",
        type=int,
        default=[],
        nargs="+",
        help="ID of a bot admin. Bot admins can use admin commands. Can be multiple.",
    )
    parser.add_argument(
        "--data-path",
        type=Path,
        default=None,
        help="Directory where server settings are stored.",
    )
    parser.add_argument(
        "--commands",
        type=Path,
        default=None,
        help="YAML file declaring the commands to check messages against.",
    )
    parser.add_argument(
        "--guild",
        type=int,
        default=None,
        help="ID of the server the checked messages are sent in. "
        "Messages are treated as direct messages if this is not given.",
    )
    parser.add_argument(
        "--channel",
        type=int,
        default=0,
        help="ID of the channel the checked messages are sent in.",
    )
    parser.add_argument(
        "--user",
        type=int,
        default=0,
        help="ID of the user sending the checked messages.",
    )
    parser.add_argument(
        "--bot-permission",
        action="append",
        help="Permission the bot has in the channel. Can be multiple. "
        "Without any, the bot is treated as an administrator.",
    )
    parser.add_argument(
        "--debug",
        action="store_const",
        dest="logging_level",
        const=logging.DEBUG,
        default=logging.INFO,
        help="Sets the loggers level as debug",
    )
    parser.add_argument(
        "--force-rich-logging",
        action="store_true",
        dest="rich_logging",
        default=None,
        help="Forcefully enables the Rich logging handlers. This is normally enabled for "
        "supported active terminals.",
    )
    parser.add_argument(
        "--force-disable-rich-logging",
        action="store_false",
        dest="rich_logging",
        default=None,
        help="Forcefully disables the Rich logging handlers.",
    )

    args = parser.parse_args(args)

    if not args.prefix:
        args.prefix = []
    if not args.bot_permission:
        args.bot_permission = []

    return args
