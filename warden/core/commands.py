from typing import Dict, Iterator, Optional

import yaml
from red_commons.logging import getLogger
from schema import And, Optional as UseOptional, Schema, SchemaError

from .errors import ConfigError
from .models import Command

__all__ = ["MAX_TAG_NAME_LENGTH", "COMMANDS_SCHEMA", "CommandRegistry"]

log = getLogger("warden.commands")

MAX_TAG_NAME_LENGTH = 54

COMMANDS_SCHEMA = Schema(
    [
        {
            "name": And(str, len, error="Every command needs a `name`."),
            "category": And(str, len, error="Every command needs a `category`."),
            UseOptional("aliases", default=[]): [str],
            UseOptional("guild_only", default=False): bool,
            UseOptional("owner_only", default=False): bool,
            UseOptional("required_permissions", default=[]): [str],
            UseOptional("perm_level", default=0): int,
        }
    ],
    error="The command file must be a list of commands.",
)


class CommandRegistry:
    """Lookup table of commands by name and alias."""

    def __init__(self):
        self._commands: Dict[str, Command] = {}
        self._aliases: Dict[str, str] = {}
        self._tags: Dict[str, Command] = {}

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[Command]:
        yield from self._commands.values()
        yield from self._tags.values()

    def __len__(self) -> int:
        return len(self._commands) + len(self._tags)

    @classmethod
    def from_yaml(cls, text: str) -> "CommandRegistry":
        """Build a registry from a YAML list of command declarations.

        Raises
        ------
        ConfigError
            If the file is not valid YAML, does not match `COMMANDS_SCHEMA`,
            names an unknown permission or declares a name twice.

        """
        try:
            data = COMMANDS_SCHEMA.validate(yaml.safe_load(text))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}") from e
        except SchemaError as e:
            raise ConfigError(f"Invalid command file: {e.code}") from e

        registry = cls()
        for entry in data:
            try:
                registry.add_command(
                    Command(
                        name=entry["name"],
                        category=entry["category"],
                        aliases=tuple(entry["aliases"]),
                        guild_only=entry["guild_only"],
                        owner_only=entry["owner_only"],
                        required_permissions=tuple(entry["required_permissions"]),
                        perm_level=entry["perm_level"],
                    )
                )
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid command {entry['name']!r}: {e}") from e
        return registry

    def add_command(self, command: Command) -> None:
        """Register a built-in command and its aliases.

        Raises
        ------
        ValueError
            If the name or one of the aliases is already taken.
        """
        self._ensure_free(command.name)
        for alias in command.aliases:
            self._ensure_free(alias)
        self._commands[command.name] = command
        for alias in command.aliases:
            self._aliases[alias] = command.name
        log.verbose("Registered command %s (category %s)", command.name, command.category)

    def add_tag(self, tag: Command) -> None:
        """Register a user-defined tag command.

        Unlike built-in commands, tag names are length-limited.

        Raises
        ------
        ValueError
            If the tag name is too long or already taken.
        """
        if len(tag.name) > MAX_TAG_NAME_LENGTH:
            raise ValueError(f"A tag name is limited to {MAX_TAG_NAME_LENGTH} characters.")
        self._ensure_free(tag.name)
        self._tags[tag.name] = tag

    def remove_tag(self, name: str) -> Optional[Command]:
        return self._tags.pop(name, None)

    def get(self, name: Optional[str]) -> Optional[Command]:
        """Get a command by name or alias, or ``None`` if nothing matches."""
        if name is None:
            return None
        command = self._commands.get(name) or self._tags.get(name)
        if command is not None:
            return command
        target = self._aliases.get(name)
        if target is None:
            return None
        return self._commands.get(target)

    def _ensure_free(self, name: str) -> None:
        if name in self._commands or name in self._tags or name in self._aliases:
            raise ValueError(f"The name {name!r} is already in use.")
