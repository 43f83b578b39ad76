from typing import Iterable, List

__all__ = (
    "WardenError",
    "StoreError",
    "ConfigError",
    "CommandCheckFailure",
    "BotMissingPermissions",
    "NotAuthorized",
    "NoPrivateMessage",
)


class WardenError(Exception):
    """Base error class for warden-related errors."""


class StoreError(WardenError):
    """Raised when guild configuration could not be read from or written to the store.

    Authorization never treats this as an allow: the error is propagated to the
    caller, which decides what the user gets to see.
    """


class ConfigError(WardenError):
    """Raised when stored or imported configuration is malformed.

    This is raised as soon as the bad data is loaded, before any verdict
    is computed from it.
    """


class CommandCheckFailure(WardenError):
    """Base class for a command invocation that was refused."""


class BotMissingPermissions(CommandCheckFailure):
    """Raised if the bot is missing permissions required to run a command."""

    def __init__(self, missing: Iterable[str], *args):
        self.missing: List[str] = list(missing)
        super().__init__(*args)

    def __str__(self) -> str:
        return "The bot is missing the following permissions: {}".format(", ".join(self.missing))


class NotAuthorized(CommandCheckFailure):
    """Raised if the invoking user may not run a command."""

    def __init__(self, command_name: str, *args):
        self.command_name = command_name
        super().__init__(*args)

    def __str__(self) -> str:
        return f"You are not allowed to use the command {self.command_name!r} here."


class NoPrivateMessage(CommandCheckFailure):
    """Raised if a guild-only command is used in direct messages."""

    def __init__(self, command_name: str, *args):
        self.command_name = command_name
        super().__init__(*args)

    def __str__(self) -> str:
        return f"The command {self.command_name!r} cannot be used in private messages."
