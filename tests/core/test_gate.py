import pytest

from warden.core import (
    BotMissingPermissions,
    Channel,
    CommandGate,
    DenialReason,
    GuildPermissionConfig,
    JsonGuildStore,
    NoPrivateMessage,
    NotAuthorized,
    PermissionRule,
    StoreError,
)
from warden.pytest.core import OWNER_ID


@pytest.mark.asyncio
async def test_not_a_command(gate, empty_actor, empty_channel, bot_actor):
    assert await gate.get_invocation("hello there", empty_actor, empty_channel, bot_actor) is None
    assert await gate.get_invocation("!unknown", empty_actor, empty_channel, bot_actor) is None
    assert await gate.ensure_invocation("", empty_actor, empty_channel, bot_actor) is None


@pytest.mark.asyncio
async def test_allowed(gate, empty_actor, empty_channel, bot_actor):
    invocation = await gate.get_invocation("!addtag hi there", empty_actor, empty_channel, bot_actor)
    assert invocation.allowed is True
    assert invocation.command.name == "addtag"
    assert invocation.reason is None
    assert await gate.ensure_invocation("? h", empty_actor, empty_channel, bot_actor) is not None


@pytest.mark.asyncio
async def test_guild_only_in_direct_messages(gate, empty_actor, bot_actor):
    channel = Channel(1)
    invocation = await gate.get_invocation("!addtag", empty_actor, channel, bot_actor)
    assert invocation.allowed is False
    assert invocation.reason is DenialReason.GUILD_ONLY
    with pytest.raises(NoPrivateMessage):
        await gate.ensure_invocation("!addtag", empty_actor, channel, bot_actor)


@pytest.mark.asyncio
async def test_direct_messages_use_defaults(gate, actor_factory):
    # No bot permissions are needed outside of guilds.
    bot = actor_factory.get()
    invocation = await gate.get_invocation("!slap", actor_factory.get(), Channel(1), bot)
    assert invocation.allowed is True


@pytest.mark.asyncio
async def test_bot_missing_permissions(gate, empty_actor, empty_channel, bot_actor):
    invocation = await gate.get_invocation("!slap", empty_actor, empty_channel, bot_actor)
    assert invocation.reason is DenialReason.BOT_MISSING_PERMISSIONS
    assert invocation.missing_permissions == ("embed_links",)
    with pytest.raises(BotMissingPermissions) as exc_info:
        await gate.ensure_invocation("!slap", empty_actor, empty_channel, bot_actor)
    assert exc_info.value.missing == ["embed_links"]


@pytest.mark.asyncio
async def test_not_authorized(gate, store, empty_actor, empty_channel, actor_factory):
    bot = actor_factory.get(administrator=True)
    invocation = await gate.get_invocation("!ban", empty_actor, empty_channel, bot)
    assert invocation.reason is DenialReason.NOT_AUTHORIZED

    entry = await store.get_guild(empty_channel.guild_id)
    entry.permissions = GuildPermissionConfig(
        channels={empty_channel.id: PermissionRule.from_lists([], ["help"])}
    )
    await store.save_guild(entry)
    with pytest.raises(NotAuthorized):
        await gate.ensure_invocation("!help", empty_actor, empty_channel, bot)


@pytest.mark.asyncio
async def test_custom_prefix(gate, store, empty_actor, empty_channel, bot_actor):
    entry = await store.get_guild(empty_channel.guild_id)
    entry.prefix = ">"
    await store.save_guild(entry)

    assert await gate.get_invocation("!help", empty_actor, empty_channel, bot_actor) is None
    invocation = await gate.get_invocation(">help", empty_actor, empty_channel, bot_actor)
    assert invocation.allowed is True


@pytest.mark.asyncio
async def test_admin_commands(gate, empty_channel, bot_actor, actor_factory):
    owner = actor_factory.get(user_id=OWNER_ID)
    invocation = await gate.get_invocation("!eval", owner, empty_channel, bot_actor)
    assert invocation.allowed is True

    administrator = actor_factory.get(administrator=True)
    invocation = await gate.get_invocation("!eval", administrator, empty_channel, bot_actor)
    assert invocation.reason is DenialReason.NOT_AUTHORIZED


@pytest.mark.asyncio
async def test_store_errors_propagate(settings, commands, tmp_path, empty_actor, empty_channel):
    class BrokenStore(JsonGuildStore):
        async def find_guild(self, guild_id):
            raise StoreError("unavailable")

    gate = CommandGate.from_settings(settings, commands, BrokenStore(tmp_path))
    with pytest.raises(StoreError):
        await gate.get_invocation("!help", empty_actor, empty_channel, empty_actor)
