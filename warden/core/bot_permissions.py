from typing import Iterable, List, Literal, Union

from red_commons.logging import getLogger

from .errors import BotMissingPermissions
from .models import SEND_MESSAGES, Actor, Channel, validate_permission_names
from .overwrites import resolve_channel_overwrite

__all__ = ["has_channel_permission", "check_client_permissions", "ensure_client_permissions"]

log = getLogger("warden.bot_permissions")


def has_channel_permission(actor: Actor, channel: Channel, permission: str) -> bool:
    """Check whether ``actor`` effectively holds ``permission`` in ``channel``.

    The effective overwrite for the permission, if any, decides. Without
    one, the actor's role grants decide. Administrators hold every
    permission.
    """
    if actor.administrator:
        return True
    overwrite = resolve_channel_overwrite(channel, actor, permission)
    if overwrite is not None:
        return overwrite.get(permission) is True
    return permission in actor.permissions


def check_client_permissions(
    required: Iterable[str], channel: Channel, bot: Actor
) -> Union[Literal[True], List[str]]:
    """Check the bot's own permissions in a channel.

    The bot must always be able to send messages, so that permission is
    checked on top of ``required``.

    Returns
    -------
    Union[Literal[True], List[str]]
        ``True`` if nothing is missing, otherwise the missing permission
        names, in the order they were required, without duplicates.

    Raises
    ------
    TypeError
        If one of the permission names is not a valid permission.

    """
    required = list(dict.fromkeys(required))
    validate_permission_names(required)
    if bot.administrator:
        return True

    if SEND_MESSAGES not in required:
        required.append(SEND_MESSAGES)
    missing = [perm for perm in required if not has_channel_permission(bot, channel, perm)]
    if not missing:
        return True
    log.debug("Missing permissions in channel %s: %s", channel.id, ", ".join(missing))
    return missing


def ensure_client_permissions(required: Iterable[str], channel: Channel, bot: Actor) -> None:
    """Like `check_client_permissions`, but raise when something is missing.

    Raises
    ------
    BotMissingPermissions
        With the list of missing permission names.

    """
    result = check_client_permissions(required, channel, bot)
    if result is not True:
        raise BotMissingPermissions(missing=result)
