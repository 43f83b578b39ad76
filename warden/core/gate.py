"""
core.gate
=========
Runs the full pre-invocation pipeline for one message: prefix and
command resolution, the bot's own permissions, then authorization of
the invoking user.
"""
import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from red_commons.logging import getLogger

from .authorization import AuthorizationEngine
from .bot_permissions import check_client_permissions
from .errors import BotMissingPermissions, NoPrivateMessage, NotAuthorized, StoreError
from .models import Actor, Channel, Command
from .prefixes import PrefixResolver
from .rules import GuildPermissionConfig

if TYPE_CHECKING:
    from .commands import CommandRegistry
    from .guild_store import GuildConfigStore
    from .settings import BotSettings

__all__ = ["DenialReason", "Invocation", "CommandGate"]

log = getLogger("warden.gate")


class DenialReason(str, enum.Enum):
    GUILD_ONLY = "guild_only"
    BOT_MISSING_PERMISSIONS = "bot_missing_permissions"
    NOT_AUTHORIZED = "not_authorized"


@dataclass(frozen=True)
class Invocation:
    command: Command
    allowed: bool
    reason: Optional[DenialReason] = None
    missing_permissions: Tuple[str, ...] = ()


class CommandGate:
    """Decides whether a message invokes a command, and whether it may run.

    The guild's entry is fetched once per message. If the fetch fails,
    the error propagates and nothing runs.
    """

    def __init__(
        self,
        *,
        resolver: PrefixResolver,
        engine: AuthorizationEngine,
        store: "GuildConfigStore",
    ):
        self.resolver = resolver
        self.engine = engine
        self.store = store

    @classmethod
    def from_settings(
        cls, settings: "BotSettings", commands: "CommandRegistry", store: "GuildConfigStore"
    ) -> "CommandGate":
        return cls(
            resolver=PrefixResolver(settings.prefixes, commands),
            engine=AuthorizationEngine.from_settings(settings, store=store),
            store=store,
        )

    async def get_invocation(
        self, message_text: str, actor: Actor, channel: Channel, bot: Actor
    ) -> Optional[Invocation]:
        """Check a message.

        Returns
        -------
        Optional[Invocation]
            ``None`` if the message does not invoke a command, otherwise
            whether the command may run and, if not, why.

        Raises
        ------
        StoreError
            If the guild's entry could not be fetched.

        """
        guild_entry = None
        if channel.guild_id is not None:
            try:
                guild_entry = await self.store.get_guild(channel.guild_id)
            except StoreError:
                log.warning("Could not load settings of guild %s.", channel.guild_id)
                raise

        command = self.resolver.resolve(message_text, guild_entry)
        if command is None:
            return None

        if guild_entry is None:
            if command.guild_only:
                return Invocation(command, False, DenialReason.GUILD_ONLY)
            guild_config = GuildPermissionConfig()
        else:
            missing = check_client_permissions(command.required_permissions, channel, bot)
            if missing is not True:
                return Invocation(
                    command,
                    False,
                    DenialReason.BOT_MISSING_PERMISSIONS,
                    missing_permissions=tuple(missing),
                )
            guild_config = guild_entry.permissions

        if not self.engine.authorize(actor, channel, command, guild_config):
            log.debug("User %s is not allowed to use %s", actor.id, command.name)
            return Invocation(command, False, DenialReason.NOT_AUTHORIZED)
        return Invocation(command, True)

    async def ensure_invocation(
        self, message_text: str, actor: Actor, channel: Channel, bot: Actor
    ) -> Optional[Command]:
        """Like `get_invocation`, but raise if the command may not run.

        Raises
        ------
        NoPrivateMessage
            If a guild-only command was used in direct messages.
        BotMissingPermissions
            If the bot lacks permissions in the channel.
        NotAuthorized
            If the user may not use the command.
        StoreError
            If the guild's entry could not be fetched.

        """
        invocation = await self.get_invocation(message_text, actor, channel, bot)
        if invocation is None:
            return None
        if invocation.reason is DenialReason.GUILD_ONLY:
            raise NoPrivateMessage(invocation.command.name)
        if invocation.reason is DenialReason.BOT_MISSING_PERMISSIONS:
            raise BotMissingPermissions(missing=invocation.missing_permissions)
        if invocation.reason is DenialReason.NOT_AUTHORIZED:
            raise NotAuthorized(invocation.command.name)
        return invocation.command
