"""
core.models
===========
The platform model the authorization engine works on: roles, actors,
channels and their permission overwrites, and commands.

These are deliberately small, immutable records. Each of them can be
built from the matching discord.py object with ``from_discord``, which
keeps the engine usable (and testable) without a gateway connection.
"""
import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

import discord

if TYPE_CHECKING:
    from discord.abc import GuildChannel

__all__ = [
    "ADMIN_CATEGORY",
    "SEND_MESSAGES",
    "Role",
    "Actor",
    "OverwriteType",
    "Overwrite",
    "Channel",
    "Command",
    "highest_role",
    "validate_permission_names",
]

ADMIN_CATEGORY = "admin"
SEND_MESSAGES = "send_messages"


@dataclass(frozen=True)
class Role:
    id: int
    position: int
    permissions: FrozenSet[str] = frozenset()

    @classmethod
    def from_discord(cls, role: discord.Role) -> "Role":
        return cls(
            id=role.id,
            position=role.position,
            permissions=frozenset(name for name, value in role.permissions if value),
        )


def _role_position(role: Role) -> int:
    return role.position


def highest_role(roles: Iterable[Role]) -> Optional[Role]:
    """Get the most senior role, or ``None`` when there are no roles.

    Positions are unique within a guild, so there is no tie to break.
    """
    return max(roles, key=_role_position, default=None)


@dataclass(frozen=True)
class Actor:
    """A user or bot whose permissions are being evaluated.

    Attributes
    ----------
    id : int
        The user ID.
    roles : Tuple[Role, ...]
        Every role the actor holds in the guild.
    administrator : bool
        Whether the platform grants this actor the administrator permission.
        It is taken as given rather than recomputed from ``roles``.
    """

    id: int
    roles: Tuple[Role, ...] = ()
    administrator: bool = False

    @property
    def role_ids(self) -> FrozenSet[int]:
        return frozenset(role.id for role in self.roles)

    @property
    def permissions(self) -> FrozenSet[str]:
        """The permissions granted through roles, before channel overwrites."""
        granted = set()
        for role in self.roles:
            granted.update(role.permissions)
        return frozenset(granted)

    def get_role(self, role_id: int) -> Optional[Role]:
        for role in self.roles:
            if role.id == role_id:
                return role
        return None

    @classmethod
    def from_discord(cls, member: discord.Member) -> "Actor":
        return cls(
            id=member.id,
            roles=tuple(Role.from_discord(role) for role in member.roles),
            administrator=member.guild_permissions.administrator,
        )


class OverwriteType(enum.Enum):
    USER = "user"
    ROLE = "role"


@dataclass(frozen=True)
class Overwrite:
    """A channel-level permission exception for a single user or role.

    ``permissions`` maps a permission name to ``True`` (allow) or
    ``False`` (deny). Permissions which are not present are unset.
    """

    type: OverwriteType
    id: int
    permissions: Mapping[str, bool] = field(default_factory=dict)

    def get(self, permission: str) -> Optional[bool]:
        return self.permissions.get(permission)

    def is_set(self, permission: str) -> bool:
        return self.permissions.get(permission) is not None

    def targets(self, actor: Actor) -> bool:
        if self.type is OverwriteType.USER:
            return self.id == actor.id
        return self.id in actor.role_ids

    @classmethod
    def from_discord(
        cls,
        target: Union[discord.Role, discord.Member, discord.User, discord.Object],
        overwrite: discord.PermissionOverwrite,
    ) -> "Overwrite":
        # Uncached targets come as discord.Object, typed with the class they stand for.
        if isinstance(target, discord.Role) or getattr(target, "type", None) is discord.Role:
            type_ = OverwriteType.ROLE
        else:
            type_ = OverwriteType.USER
        return cls(
            type=type_,
            id=target.id,
            permissions={name: value for name, value in overwrite if value is not None},
        )


@dataclass(frozen=True)
class Channel:
    id: int
    guild_id: Optional[int] = None
    overwrites: Tuple[Overwrite, ...] = ()

    @classmethod
    def from_discord(cls, channel: "GuildChannel") -> "Channel":
        return cls(
            id=channel.id,
            guild_id=channel.guild.id,
            overwrites=tuple(
                Overwrite.from_discord(target, overwrite)
                for target, overwrite in channel.overwrites.items()
            ),
        )


@dataclass(frozen=True)
class Command:
    """A command the bot knows about.

    Attributes
    ----------
    name : str
        The unique command name.
    category : str
        The category label, matched by ``"<category>*"`` rule entries.
    aliases : Tuple[str, ...]
        Alternative names the command can be invoked with.
    guild_only : bool
        Whether the command refuses to run in direct messages.
    owner_only : bool
        For admin-category commands, restricts usage to the bot owner.
    required_permissions : Tuple[str, ...]
        Permissions the bot needs in the channel to run the command.
    perm_level : int
        Informational permission level carried over from the command's
        declaration.
    """

    name: str
    category: str
    aliases: Tuple[str, ...] = ()
    guild_only: bool = False
    owner_only: bool = False
    required_permissions: Tuple[str, ...] = ()
    perm_level: int = 0

    def __post_init__(self):
        validate_permission_names(self.required_permissions)

    @property
    def category_wildcard(self) -> str:
        return f"{self.category}*"

    @property
    def is_admin(self) -> bool:
        return self.category == ADMIN_CATEGORY


def validate_permission_names(permissions: Iterable[str]) -> None:
    invalid = set(permissions) - set(discord.Permissions.VALID_FLAGS)
    if invalid:
        raise TypeError(f"Invalid perm name(s): {', '.join(sorted(invalid))}")
