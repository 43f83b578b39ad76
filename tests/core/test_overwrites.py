from warden.core import Channel, Overwrite, OverwriteType, resolve_channel_overwrite


def test_no_overwrite(empty_channel, empty_actor):
    assert resolve_channel_overwrite(empty_channel, empty_actor, "send_messages") is None


def test_user_overwrite_beats_role_overwrite(guild_id, role_factory, actor_factory):
    role = role_factory.get(7)
    actor = actor_factory.get(role)
    role_allow = Overwrite(OverwriteType.ROLE, role.id, {"send_messages": True})
    user_deny = Overwrite(OverwriteType.USER, actor.id, {"send_messages": False})
    channel = Channel(1, guild_id, (role_allow, user_deny))

    assert resolve_channel_overwrite(channel, actor, "send_messages") is user_deny


def test_highest_role_overwrite_wins(guild_id, role_factory, actor_factory):
    low = role_factory.get(3)
    high = role_factory.get(7)
    actor = actor_factory.get(low, high)
    high_overwrite = Overwrite(OverwriteType.ROLE, high.id, {"embed_links": False})
    low_overwrite = Overwrite(OverwriteType.ROLE, low.id, {"embed_links": True})

    for overwrites in ((low_overwrite, high_overwrite), (high_overwrite, low_overwrite)):
        channel = Channel(1, guild_id, overwrites)
        assert resolve_channel_overwrite(channel, actor, "embed_links") is high_overwrite


def test_overwrites_not_setting_the_permission_are_ignored(guild_id, role_factory, actor_factory):
    low = role_factory.get(3)
    high = role_factory.get(7)
    actor = actor_factory.get(low, high)
    low_overwrite = Overwrite(OverwriteType.ROLE, low.id, {"embed_links": True})
    channel = Channel(
        1,
        guild_id,
        (
            Overwrite(OverwriteType.USER, actor.id, {"attach_files": False}),
            Overwrite(OverwriteType.ROLE, high.id, {"attach_files": True}),
            low_overwrite,
        ),
    )

    assert resolve_channel_overwrite(channel, actor, "embed_links") is low_overwrite


def test_overwrites_for_others_are_ignored(guild_id, role_factory, actor_factory):
    held = role_factory.get(1)
    not_held = role_factory.get(9)
    actor = actor_factory.get(held)
    other = actor_factory.get(held)
    channel = Channel(
        1,
        guild_id,
        (
            Overwrite(OverwriteType.USER, other.id, {"send_messages": False}),
            Overwrite(OverwriteType.ROLE, not_held.id, {"send_messages": False}),
        ),
    )

    assert resolve_channel_overwrite(channel, actor, "send_messages") is None
