from typing import TYPE_CHECKING, List, Optional, Sequence

from red_commons.logging import getLogger

from .commands import CommandRegistry
from .models import Command

if TYPE_CHECKING:
    from .guild_store import GuildConfigStore, GuildEntry

__all__ = ["candidate_prefixes", "resolve_prefix_and_command", "PrefixResolver"]

log = getLogger("warden.prefixes")


def candidate_prefixes(
    global_prefixes: Sequence[str], primary_prefix: str, custom_prefix: Optional[str] = None
) -> List[str]:
    """Get the prefixes valid in a guild.

    A guild's custom prefix replaces the primary prefix. The other
    global prefixes stay valid.
    """
    prefixes = list(global_prefixes)
    if custom_prefix:
        prefixes = [p for p in prefixes if p != primary_prefix]
        if custom_prefix not in prefixes:
            prefixes.append(custom_prefix)
    return prefixes


def resolve_prefix_and_command(
    message_text: str,
    guild_entry: Optional["GuildEntry"],
    global_prefixes: Sequence[str],
    commands: CommandRegistry,
    *,
    primary_prefix: Optional[str] = None,
) -> Optional[Command]:
    """Get the command a message invokes, if any.

    The message is split on whitespace. Either the first word is one of
    the valid prefixes and the second word is the command name or alias
    (``"! help"``), or the first word is the prefix directly followed by
    the name (``"!help"``). In the latter case the longest matching
    prefix is used.

    Parameters
    ----------
    message_text : str
        The raw message content.
    guild_entry : Optional[GuildEntry]
        The entry of the guild the message was sent in, or ``None`` for
        direct messages.
    global_prefixes : Sequence[str]
        The bot's configured prefixes.
    commands : CommandRegistry
        The commands to look the name up in.
    primary_prefix : Optional[str]
        The prefix a custom guild prefix replaces. Defaults to the first
        of ``global_prefixes``.

    Returns
    -------
    Optional[Command]
        The invoked command, or ``None`` if the message does not invoke one.

    """
    if not isinstance(message_text, str) or not global_prefixes:
        return None
    if primary_prefix is None:
        primary_prefix = global_prefixes[0]
    custom_prefix = guild_entry.prefix if guild_entry is not None else None

    args = message_text.split()
    if not args:
        return None
    prefixes = candidate_prefixes(global_prefixes, primary_prefix, custom_prefix)

    if args[0] in prefixes:
        name = args[1] if len(args) > 1 else None
    else:
        for prefix in sorted(prefixes, key=len, reverse=True):
            if args[0].startswith(prefix):
                name = args[0][len(prefix) :]
                break
        else:
            return None
    return commands.get(name)


class PrefixResolver:
    """Resolves messages to commands with the bot's prefixes.

    Parameters
    ----------
    prefixes : Sequence[str]
        The bot's global prefixes.
    commands : CommandRegistry
        The known commands.
    primary_prefix : Optional[str]
        The prefix replaced by custom guild prefixes, the first of
        ``prefixes`` if omitted.
    """

    def __init__(
        self,
        prefixes: Sequence[str],
        commands: CommandRegistry,
        *,
        primary_prefix: Optional[str] = None,
    ):
        if not prefixes:
            raise ValueError("You must have at least one prefix.")
        self._prefixes: List[str] = list(prefixes)
        self.primary_prefix: str = primary_prefix if primary_prefix is not None else prefixes[0]
        self.commands = commands

    def get_prefixes(self, guild_entry: Optional["GuildEntry"] = None) -> List[str]:
        custom_prefix = guild_entry.prefix if guild_entry is not None else None
        return candidate_prefixes(self._prefixes, self.primary_prefix, custom_prefix)

    def resolve(
        self, message_text: str, guild_entry: Optional["GuildEntry"] = None
    ) -> Optional[Command]:
        return resolve_prefix_and_command(
            message_text,
            guild_entry,
            self._prefixes,
            self.commands,
            primary_prefix=self.primary_prefix,
        )

    async def parse_command(
        self, message_text: str, guild_id: Optional[int], store: "GuildConfigStore"
    ) -> Optional[Command]:
        """Fetch the guild's entry from ``store``, then `resolve`.

        Raises
        ------
        StoreError
            If the guild's entry could not be fetched.

        """
        guild_entry = await store.get_guild(guild_id) if guild_id is not None else None
        command = self.resolve(message_text, guild_entry)
        if command is not None:
            log.verbose("Message in guild %s invokes %s", guild_id, command.name)
        return command
