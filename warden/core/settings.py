from argparse import Namespace
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, List, Optional

from .rules import PermissionRule

__all__ = ["DEFAULT_PERMISSIONS", "BotSettings", "validate_prefixes"]

# Applied to every guild as the lowest permission layer.
DEFAULT_PERMISSIONS = PermissionRule.from_lists(
    allowed=["generic*", "fun*", "image*", "misc*", "utility*"],
    restricted=["moderation*", "settings*"],
)


def validate_prefixes(prefixes: List[str]) -> None:
    if not isinstance(prefixes, list) or not all(isinstance(pfx, str) for pfx in prefixes):
        raise TypeError("Prefixes must be a list of strings")
    if not prefixes:
        raise ValueError("You must have at least one prefix.")
    if any(not pfx or any(c.isspace() for c in pfx) for pfx in prefixes):
        raise ValueError("Prefixes cannot be empty or contain whitespace.")
    if any(prefix.startswith("/") for prefix in prefixes):
        raise ValueError(
            "Prefixes cannot start with '/', as it conflicts with Discord's slash commands."
        )


@dataclass
class BotSettings:
    """Bot-wide settings.

    Attributes
    ----------
    prefixes : List[str]
        The global prefixes. The first one is the primary prefix.
    owner_id : Optional[int]
        The bot owner.
    admin_ids : FrozenSet[int]
        The bot admins. The owner is always one of them.
    default_permissions : PermissionRule
        The default permission layer.
    data_path : Optional[Path]
        Where guild settings are stored.
    """

    prefixes: List[str]
    owner_id: Optional[int] = None
    admin_ids: FrozenSet[int] = frozenset()
    default_permissions: PermissionRule = DEFAULT_PERMISSIONS
    data_path: Optional[Path] = None

    def __post_init__(self):
        validate_prefixes(self.prefixes)
        admin_ids = set(self.admin_ids)
        if self.owner_id is not None:
            admin_ids.add(self.owner_id)
        self.admin_ids = frozenset(admin_ids)

    @property
    def primary_prefix(self) -> str:
        return self.prefixes[0]

    @classmethod
    def from_cli_flags(cls, cli_flags: Namespace) -> "BotSettings":
        return cls(
            prefixes=list(cli_flags.prefix),
            owner_id=cli_flags.owner,
            admin_ids=frozenset(cli_flags.admin),
            data_path=cli_flags.data_path,
        )
