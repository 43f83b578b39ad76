from typing import List, Optional

from red_commons.logging import getLogger

from .models import Actor, Channel, Overwrite, OverwriteType, highest_role

__all__ = ["resolve_channel_overwrite"]

log = getLogger("warden.overwrites")


def resolve_channel_overwrite(
    channel: Channel, actor: Actor, permission: str
) -> Optional[Overwrite]:
    """Get the channel overwrite which decides ``permission`` for ``actor``.

    Only overwrites which set the permission and target the actor, either
    directly or through one of their roles, are considered. An overwrite
    targeting the actor directly always wins; otherwise the overwrite of
    the highest role wins.

    Parameters
    ----------
    channel : Channel
        The channel whose overwrites are checked.
    actor : Actor
        The user or bot to resolve the overwrite for.
    permission : str
        The permission name, e.g. ``"send_messages"``.

    Returns
    -------
    Optional[Overwrite]
        The effective overwrite, or ``None`` if no overwrite applies, in
        which case the permission comes from role grants alone.

    """
    matching: List[Overwrite] = [
        overwrite
        for overwrite in channel.overwrites
        if overwrite.is_set(permission) and overwrite.targets(actor)
    ]
    if not matching:
        return None

    for overwrite in matching:
        if overwrite.type is OverwriteType.USER:
            return overwrite

    by_role = {overwrite.id: overwrite for overwrite in matching}
    top_role = highest_role(actor.get_role(role_id) for role_id in by_role)
    log.trace(
        "Overwrite for %s in channel %s for actor %s comes from role %s",
        permission,
        channel.id,
        actor.id,
        top_role.id,
    )
    return by_role[top_role.id]
