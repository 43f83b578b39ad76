"""
core.authorization
==================
This module decides whether a user may invoke a command.

A guild's permission configuration has five layers, evaluated in a
fixed order::

    default < global < channel < role < user

Each layer which has a rule for the invocation gives a `Verdict`, and
every explicit verdict replaces the one before it. Unset verdicts leave
the running result alone. Administrators are then allowed through
regardless of the layers, and finally commands in the ``admin``
category are decided by a separate check against the configured bot
admins and owner, ignoring everything else.
"""
import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, FrozenSet, Iterable, Optional, Tuple

from red_commons.logging import getLogger

from .errors import ConfigError, StoreError
from .models import Actor, Channel, Command, Role, highest_role
from .rules import GuildPermissionConfig, PermissionRule, Verdict

if TYPE_CHECKING:
    from .guild_store import GuildConfigStore
    from .settings import BotSettings

__all__ = [
    "PermissionLayer",
    "LayerResult",
    "Resolution",
    "LAYER_LOOKUPS",
    "highest_ruled_role",
    "AuthorizationEngine",
]

log = getLogger("warden.authorization")


class PermissionLayer(enum.IntEnum):
    """The permission layers, in the order they are evaluated."""

    # Maintainer Note: do NOT re-order these.
    # Later layers take precedence over earlier ones.

    DEFAULT = enum.auto()
    """The bot-wide default rule, always present."""

    GLOBAL = enum.auto()
    """The guild-wide rule."""

    CHANNEL = enum.auto()
    """The rule for the channel the command was used in."""

    ROLE = enum.auto()
    """The rule for the user's highest role which has a rule."""

    USER = enum.auto()
    """The rule for the user themselves."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}.{self.name}>"


RuleLookup = Callable[[GuildPermissionConfig, Actor, Channel], Optional[PermissionRule]]


def highest_ruled_role(actor: Actor, config: GuildPermissionConfig) -> Optional[Role]:
    """Get the actor's highest role which has a rule in the role layer.

    Roles without a rule are skipped, even if they are higher.
    """
    return highest_role(role for role in actor.roles if role.id in config.roles)


def _default_rule(config: GuildPermissionConfig, actor: Actor, channel: Channel):
    return config.default


def _global_rule(config: GuildPermissionConfig, actor: Actor, channel: Channel):
    return config.global_


def _channel_rule(config: GuildPermissionConfig, actor: Actor, channel: Channel):
    return config.channel_rule(channel.id)


def _role_rule(config: GuildPermissionConfig, actor: Actor, channel: Channel):
    role = highest_ruled_role(actor, config)
    return config.role_rule(role.id if role is not None else None)


def _user_rule(config: GuildPermissionConfig, actor: Actor, channel: Channel):
    return config.user_rule(actor.id)


LAYER_LOOKUPS: Tuple[Tuple[PermissionLayer, RuleLookup], ...] = (
    (PermissionLayer.DEFAULT, _default_rule),
    (PermissionLayer.GLOBAL, _global_rule),
    (PermissionLayer.CHANNEL, _channel_rule),
    (PermissionLayer.ROLE, _role_rule),
    (PermissionLayer.USER, _user_rule),
)


@dataclass(frozen=True)
class LayerResult:
    layer: PermissionLayer
    rule: Optional[PermissionRule]
    verdict: Verdict


@dataclass(frozen=True)
class Resolution:
    """How a verdict was reached.

    Attributes
    ----------
    allowed : bool
        The final verdict.
    layers : Tuple[LayerResult, ...]
        The verdict each layer gave, in evaluation order.
    administrator_override : bool
        Whether the administrator permission allowed the command.
    admin_category : bool
        Whether the command went through the admin-category check, in
        which case ``layers`` did not count.
    """

    allowed: bool
    layers: Tuple[LayerResult, ...]
    administrator_override: bool = False
    admin_category: bool = False

    @property
    def deciding_layer(self) -> Optional[PermissionLayer]:
        """The last layer which gave an explicit verdict, if any."""
        for result in reversed(self.layers):
            if result.verdict is not Verdict.UNSET:
                return result.layer
        return None


class AuthorizationEngine:
    """Resolves whether an actor may invoke a command.

    The engine itself holds no mutable state. When it is given a
    `GuildConfigStore`, `fetch_and_authorize` can be used to read the
    guild's configuration first.

    Parameters
    ----------
    default_permissions : PermissionRule
        The default layer, applied to every guild.
    admin_ids : Iterable[int]
        The bot admins, the only users allowed to run ``admin`` commands.
    owner_id : Optional[int]
        The bot owner, the only bot admin allowed to run owner-only
        ``admin`` commands.
    store : Optional[GuildConfigStore]
        Where guild configuration is fetched from.
    """

    def __init__(
        self,
        *,
        default_permissions: PermissionRule,
        admin_ids: Iterable[int] = (),
        owner_id: Optional[int] = None,
        store: Optional["GuildConfigStore"] = None,
    ):
        self.default_permissions = default_permissions
        self.admin_ids: FrozenSet[int] = frozenset(admin_ids)
        self.owner_id = owner_id
        self._store = store

    @classmethod
    def from_settings(
        cls, settings: "BotSettings", store: Optional["GuildConfigStore"] = None
    ) -> "AuthorizationEngine":
        return cls(
            default_permissions=settings.default_permissions,
            admin_ids=settings.admin_ids,
            owner_id=settings.owner_id,
            store=store,
        )

    def explain(
        self, actor: Actor, channel: Channel, command: Command, guild_config: GuildPermissionConfig
    ) -> Resolution:
        """Resolve a verdict and report how every step contributed to it."""
        config = guild_config.with_default(self.default_permissions)

        allowed = False
        results = []
        for layer, lookup in LAYER_LOOKUPS:
            rule = lookup(config, actor, channel)
            verdict = rule.verdict_for(command) if rule is not None else Verdict.UNSET
            results.append(LayerResult(layer, rule, verdict))
            if verdict is not Verdict.UNSET:
                allowed = verdict is Verdict.ALLOW
            log.trace("%r gave %r for %s (actor %s)", layer, verdict, command.name, actor.id)

        administrator_override = actor.administrator and not allowed
        if actor.administrator:
            allowed = True

        if command.is_admin:
            allowed = self._is_bot_admin_for(actor, command)
            administrator_override = False

        return Resolution(
            allowed=allowed,
            layers=tuple(results),
            administrator_override=administrator_override,
            admin_category=command.is_admin,
        )

    def authorize(
        self, actor: Actor, channel: Channel, command: Command, guild_config: GuildPermissionConfig
    ) -> bool:
        """Check whether ``actor`` may use ``command`` in ``channel``."""
        return self.explain(actor, channel, command, guild_config).allowed

    async def fetch_guild_config(self, guild_id: Optional[int]) -> GuildPermissionConfig:
        """Fetch a guild's permission configuration from the store.

        Direct messages (``guild_id`` of ``None``) have an empty
        configuration.

        Raises
        ------
        StoreError
            If the configuration could not be fetched.
        ConfigError
            If the stored configuration is malformed.

        """
        if guild_id is None:
            return GuildPermissionConfig()
        if self._store is None:
            raise RuntimeError("This engine was created without a guild config store.")
        try:
            entry = await self._store.get_guild(guild_id)
        except (StoreError, ConfigError):
            log.warning("Could not load permissions of guild %s, denying.", guild_id)
            raise
        return entry.permissions

    async def fetch_and_authorize(self, actor: Actor, channel: Channel, command: Command) -> bool:
        """Fetch the channel's guild configuration, then `authorize`.

        Fetching is the only thing awaited. If it fails, the error is
        raised and nothing is allowed.
        """
        guild_config = await self.fetch_guild_config(channel.guild_id)
        return self.authorize(actor, channel, command, guild_config)

    def _is_bot_admin_for(self, actor: Actor, command: Command) -> bool:
        if actor.id not in self.admin_ids:
            return False
        return not command.owner_only or actor.id == self.owner_id
