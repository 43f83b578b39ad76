import pytest

from warden.core import (
    BotMissingPermissions,
    Channel,
    Overwrite,
    OverwriteType,
    check_client_permissions,
    ensure_client_permissions,
)
from warden.core.bot_permissions import has_channel_permission


def test_missing_permissions_include_send_messages(empty_channel, role_factory, actor_factory):
    bot = actor_factory.get(role_factory.get(0, "read_messages"))
    assert check_client_permissions(["manage_roles"], empty_channel, bot) == [
        "manage_roles",
        "send_messages",
    ]


def test_all_permissions_present(empty_channel, role_factory, actor_factory):
    bot = actor_factory.get(role_factory.get(1, "manage_roles", "send_messages"))
    assert check_client_permissions(["manage_roles"], empty_channel, bot) is True
    assert check_client_permissions([], empty_channel, bot) is True


def test_administrator_passes(empty_channel, actor_factory):
    bot = actor_factory.get(administrator=True)
    assert check_client_permissions(["manage_roles", "ban_members"], empty_channel, bot) is True


def test_send_messages_checked_once(empty_channel, actor_factory):
    bot = actor_factory.get()
    assert check_client_permissions(
        ["send_messages", "embed_links", "send_messages"], empty_channel, bot
    ) == ["send_messages", "embed_links"]


def test_overwrite_deny_beats_role_grant(guild_id, role_factory, actor_factory):
    role = role_factory.get(2, "send_messages", "embed_links")
    bot = actor_factory.get(role)
    channel = Channel(1, guild_id, (Overwrite(OverwriteType.ROLE, role.id, {"embed_links": False}),))

    assert check_client_permissions(["embed_links"], channel, bot) == ["embed_links"]


def test_overwrite_allow_without_role_grant(guild_id, role_factory, actor_factory):
    role = role_factory.get(2)
    bot = actor_factory.get(role)
    channel = Channel(
        1,
        guild_id,
        (Overwrite(OverwriteType.USER, bot.id, {"send_messages": True, "attach_files": True}),),
    )

    assert has_channel_permission(bot, channel, "attach_files")
    assert check_client_permissions(["attach_files"], channel, bot) is True


def test_invalid_permission_name(empty_channel, actor_factory):
    with pytest.raises(TypeError):
        check_client_permissions(["manageRoles"], empty_channel, actor_factory.get())


def test_ensure_client_permissions_raises(empty_channel, actor_factory):
    with pytest.raises(BotMissingPermissions) as exc_info:
        ensure_client_permissions(["ban_members"], empty_channel, actor_factory.get())
    assert exc_info.value.missing == ["ban_members", "send_messages"]
