"""
core.rules
==========
Permission rules and the per-guild permission configuration they are
stored in, including validation of stored and imported data.
"""
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

import yaml
from schema import And, Optional as UseOptional, Or, Schema, SchemaError, Use

from .errors import ConfigError
from .models import Command

__all__ = ["Verdict", "PermissionRule", "GuildPermissionConfig", "CONFIG_SCHEMA"]


class Verdict(enum.Enum):
    """The outcome a single rule or layer gives for a command."""

    UNSET = enum.auto()
    """The rule says nothing about this command."""

    ALLOW = enum.auto()
    """The command is explicitly allowed."""

    DENY = enum.auto()
    """The command is explicitly restricted."""

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> "Verdict":
        """Get a Verdict from a bool or ``NoneType``."""
        if value is True:
            return cls.ALLOW
        elif value is False:
            return cls.DENY
        else:
            return cls.UNSET

    def to_bool(self) -> Optional[bool]:
        if self is Verdict.ALLOW:
            return True
        elif self is Verdict.DENY:
            return False
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}.{self.name}>"


ALLOWED = "allowed_commands"
RESTRICTED = "restricted_commands"


def _is_id(value: Any) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


# The strings in the schema are shown to whoever uploaded the broken file.
_RULE = {
    ALLOWED: And([str], error="`allowed_commands` must be a list of command names."),
    RESTRICTED: And([str], error="`restricted_commands` must be a list of command names."),
}
_ID = And(Or(int, str), Use(int), error="IDs must be numbers.")
_ID_RULE = {"id": _ID, **_RULE}
# Mapping keys are converted in _layer_from_data(), so "1" and 1 are caught as duplicates.
_ID_KEY = And(Or(int, str), _is_id, error="IDs must be numbers.")
_LAYER = Or(
    None,
    [_ID_RULE],
    {},
    {_ID_KEY: _RULE},
    error="Each of `channels`, `roles` and `users` must be a list of rules with an `id`, "
    "or a mapping of IDs to rules.",
)
CONFIG_SCHEMA = Schema(
    Or(
        {
            UseOptional("global"): Or(None, _RULE, error="`global` must be a single rule."),
            UseOptional("channels"): _LAYER,
            UseOptional("roles"): _LAYER,
            UseOptional("users"): _LAYER,
        },
        None,
        error="Top-level keys must be `global`, `channels`, `roles` or `users`.",
    )
)


@dataclass(frozen=True)
class PermissionRule:
    """Allowed and restricted command sets for one layer target.

    Entries are either an exact command name or a category wildcard of
    the form ``"<category>*"``.
    """

    allowed_commands: FrozenSet[str] = frozenset()
    restricted_commands: FrozenSet[str] = frozenset()

    def verdict_for(self, command: Command) -> Verdict:
        """Get this rule's verdict for a command.

        Category wildcards are looked at first, and then exact names, so
        an exact name always has the final say. Within each, restriction
        is applied after permission.
        """
        verdict = Verdict.UNSET
        for entry in (command.category_wildcard, command.name):
            if entry in self.allowed_commands:
                verdict = Verdict.ALLOW
            if entry in self.restricted_commands:
                verdict = Verdict.DENY
        return verdict

    @classmethod
    def from_lists(
        cls, allowed: Iterable[str] = (), restricted: Iterable[str] = ()
    ) -> "PermissionRule":
        return cls(frozenset(allowed), frozenset(restricted))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PermissionRule":
        return cls.from_lists(data[ALLOWED], data[RESTRICTED])

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            ALLOWED: sorted(self.allowed_commands),
            RESTRICTED: sorted(self.restricted_commands),
        }


@dataclass(frozen=True)
class GuildPermissionConfig:
    """The five permission layers of a guild.

    ``default`` is never persisted. It is supplied by the bot before
    evaluation (see `with_default`).
    """

    default: PermissionRule = PermissionRule()
    global_: Optional[PermissionRule] = None
    channels: Mapping[int, PermissionRule] = field(default_factory=dict)
    roles: Mapping[int, PermissionRule] = field(default_factory=dict)
    users: Mapping[int, PermissionRule] = field(default_factory=dict)

    def with_default(self, default: PermissionRule) -> "GuildPermissionConfig":
        return replace(self, default=default)

    def channel_rule(self, channel_id: int) -> Optional[PermissionRule]:
        return self.channels.get(channel_id)

    def role_rule(self, role_id: Optional[int]) -> Optional[PermissionRule]:
        if role_id is None:
            return None
        return self.roles.get(role_id)

    def user_rule(self, user_id: int) -> Optional[PermissionRule]:
        return self.users.get(user_id)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "GuildPermissionConfig":
        """Build the config from its stored form.

        Raises
        ------
        ConfigError
            If the data does not match `CONFIG_SCHEMA`, or a layer has
            more than one rule for the same ID.
        """
        try:
            data = CONFIG_SCHEMA.validate(data)
        except SchemaError as e:
            raise ConfigError(f"Invalid permission configuration: {e.code}") from e
        if data is None:
            return cls()

        global_ = data.get("global")
        return cls(
            global_=PermissionRule.from_dict(global_) if global_ is not None else None,
            channels=_layer_from_data("channels", data.get("channels")),
            roles=_layer_from_data("roles", data.get("roles")),
            users=_layer_from_data("users", data.get("users")),
        )

    def to_dict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {}
        if self.global_ is not None:
            ret["global"] = self.global_.to_dict()
        for name in ("channels", "roles", "users"):
            layer: Mapping[int, PermissionRule] = getattr(self, name)
            ret[name] = [{"id": id_, **rule.to_dict()} for id_, rule in sorted(layer.items())]
        return ret

    @classmethod
    def from_yaml(cls, text: str) -> "GuildPermissionConfig":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}") from e
        return cls.from_dict(data)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)


def _layer_from_data(name: str, layer: Any) -> Dict[int, PermissionRule]:
    if layer is None:
        return {}
    if isinstance(layer, dict):
        entries = list(layer.items())
    else:
        entries = [(entry["id"], entry) for entry in layer]

    ret: Dict[int, PermissionRule] = {}
    for id_, rule in entries:
        id_ = int(id_)
        if id_ in ret:
            raise ConfigError(f"Duplicate rule for ID {id_} in `{name}`.")
        ret[id_] = PermissionRule.from_dict(rule)
    return ret
