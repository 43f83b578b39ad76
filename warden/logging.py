import argparse
import logging.handlers
import pathlib
import sys
from os import isatty
from typing import List

import rich
from rich.highlighter import NullHighlighter
from rich.logging import RichHandler
from rich.style import Style
from rich.theme import Theme

MAX_OLD_LOGS = 8


def init_logging(level: int, location: pathlib.Path, cli_flags: argparse.Namespace) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # DEBUG logging for discord.py is a bit too ridiculous :)
    dpy_logger = logging.getLogger("discord")
    dpy_logger.setLevel(logging.INFO)

    enable_rich_logging = False

    if isatty(0) and cli_flags.rich_logging is None:
        # Check if the bot thinks it has a active terminal.
        enable_rich_logging = True
    elif cli_flags.rich_logging is True:
        enable_rich_logging = True

    file_formatter = logging.Formatter(
        "[{asctime}] [{levelname}] {name}: {message}", datefmt="%Y-%m-%d %H:%M:%S", style="{"
    )
    if enable_rich_logging is True:
        rich_console = rich.get_console()
        rich_console.push_theme(
            Theme(
                {
                    "log.time": Style(dim=True),
                    "logging.level.warning": Style(color="yellow"),
                    "logging.level.critical": Style(color="white", bgcolor="red"),
                    "logging.level.verbose": Style(color="magenta", italic=True, dim=True),
                    "logging.level.trace": Style(color="white", italic=True, dim=True),
                }
            )
        )
        stdout_handler = RichHandler(
            console=rich_console,
            rich_tracebacks=True,
            show_path=False,
            highlighter=NullHighlighter(),
        )
        stdout_handler.setFormatter(logging.Formatter("{message}", datefmt="[%X]", style="{"))
    else:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(file_formatter)

    root_logger.addHandler(stdout_handler)
    logging.captureWarnings(True)

    if not location.exists():
        location.mkdir(parents=True, exist_ok=True)
    # Rotate latest logs to previous logs
    previous_logs: List[pathlib.Path] = list(location.glob("previous.log*"))
    for path in previous_logs:
        path.unlink()
    for path in location.glob("latest.log*"):
        path.replace(location / path.name.replace("latest", "previous", 1))

    latest_fhandler = logging.handlers.RotatingFileHandler(
        location / "latest.log",
        maxBytes=1_000_000,  # About 1MB per logfile
        backupCount=MAX_OLD_LOGS,
        encoding="utf-8",
    )
    latest_fhandler.setFormatter(file_formatter)
    root_logger.addHandler(latest_fhandler)
