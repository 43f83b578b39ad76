from .authorization import AuthorizationEngine, PermissionLayer, Resolution
from .bot_permissions import check_client_permissions, ensure_client_permissions
from .commands import CommandRegistry
from .errors import (
    BotMissingPermissions,
    ConfigError,
    NoPrivateMessage,
    NotAuthorized,
    StoreError,
    WardenError,
)
from .gate import CommandGate, DenialReason, Invocation
from .guild_store import GuildConfigStore, GuildEntry, JsonGuildStore
from .models import Actor, Channel, Command, Overwrite, OverwriteType, Role
from .overwrites import resolve_channel_overwrite
from .prefixes import PrefixResolver, resolve_prefix_and_command
from .rules import GuildPermissionConfig, PermissionRule, Verdict
from .settings import BotSettings

__all__ = [
    "Actor",
    "AuthorizationEngine",
    "BotMissingPermissions",
    "BotSettings",
    "Channel",
    "Command",
    "CommandGate",
    "CommandRegistry",
    "ConfigError",
    "DenialReason",
    "GuildConfigStore",
    "GuildEntry",
    "GuildPermissionConfig",
    "Invocation",
    "JsonGuildStore",
    "NoPrivateMessage",
    "NotAuthorized",
    "Overwrite",
    "OverwriteType",
    "PermissionLayer",
    "PermissionRule",
    "PrefixResolver",
    "Resolution",
    "Role",
    "StoreError",
    "Verdict",
    "WardenError",
    "check_client_permissions",
    "ensure_client_permissions",
    "resolve_channel_overwrite",
    "resolve_prefix_and_command",
]
