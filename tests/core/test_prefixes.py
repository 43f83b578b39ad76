import pytest

from warden.core import GuildEntry, PrefixResolver, resolve_prefix_and_command
from warden.core.prefixes import candidate_prefixes

GLOBAL_PREFIXES = ["!", "?"]


def test_custom_prefix_replaces_primary_prefix(commands, guild_id):
    entry = GuildEntry(guild_id, prefix=">")
    assert resolve_prefix_and_command("!help", entry, GLOBAL_PREFIXES, commands) is None
    assert resolve_prefix_and_command("?help", entry, GLOBAL_PREFIXES, commands).name == "help"
    assert resolve_prefix_and_command(">help", entry, GLOBAL_PREFIXES, commands).name == "help"


def test_primary_prefix_valid_without_custom_prefix(commands, guild_id):
    entry = GuildEntry(guild_id)
    assert resolve_prefix_and_command("!help", entry, GLOBAL_PREFIXES, commands).name == "help"
    assert resolve_prefix_and_command("!help", None, GLOBAL_PREFIXES, commands).name == "help"


def test_prefix_as_separate_word(commands):
    command = resolve_prefix_and_command("! addtag my tag", None, GLOBAL_PREFIXES, commands)
    assert command.name == "addtag"
    assert resolve_prefix_and_command("!   slap  @someone", None, GLOBAL_PREFIXES, commands).name == (
        "slap"
    )


def test_aliases_resolve_to_command(commands):
    assert resolve_prefix_and_command("!at", None, GLOBAL_PREFIXES, commands).name == "addtag"
    assert resolve_prefix_and_command("? h", None, GLOBAL_PREFIXES, commands).name == "help"


@pytest.mark.parametrize(
    "text",
    ["", "   ", "help", "!", "! ", "!nosuchcommand", "! nosuchcommand", "hello !help", "*help"],
)
def test_no_match(commands, text):
    assert resolve_prefix_and_command(text, None, GLOBAL_PREFIXES, commands) is None


def test_malformed_input_does_not_raise(commands):
    assert resolve_prefix_and_command(None, None, GLOBAL_PREFIXES, commands) is None
    assert resolve_prefix_and_command("!help", None, [], commands) is None


def test_longest_prefix_wins(commands):
    assert resolve_prefix_and_command("!!help", None, ["!", "!!"], commands).name == "help"


def test_custom_prefix_equal_to_primary_stays_valid():
    assert candidate_prefixes(["!", "?"], "!", "!") == ["?", "!"]


def test_candidate_prefixes_keep_secondary_prefixes():
    assert candidate_prefixes(["!", "?", "w!"], "!", ">") == ["?", "w!", ">"]
    assert candidate_prefixes(["!", "?"], "!", None) == ["!", "?"]


def test_resolver_requires_a_prefix(commands):
    with pytest.raises(ValueError):
        PrefixResolver([], commands)


def test_resolver_get_prefixes(commands, guild_id):
    resolver = PrefixResolver(GLOBAL_PREFIXES, commands)
    assert resolver.primary_prefix == "!"
    assert resolver.get_prefixes() == ["!", "?"]
    assert resolver.get_prefixes(GuildEntry(guild_id, prefix="w!")) == ["?", "w!"]


@pytest.mark.asyncio
async def test_parse_command_uses_stored_prefix(commands, store, guild_id):
    await store.save_guild(GuildEntry(guild_id, prefix=">"))
    resolver = PrefixResolver(GLOBAL_PREFIXES, commands)

    assert await resolver.parse_command("!help", guild_id, store) is None
    assert (await resolver.parse_command(">help", guild_id, store)).name == "help"
    # Direct messages have no guild entry
    assert (await resolver.parse_command("!help", None, store)).name == "help"
