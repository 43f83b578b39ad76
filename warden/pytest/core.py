import logging
import random

import pytest

from warden.core import (
    AuthorizationEngine,
    BotSettings,
    Channel,
    Command,
    CommandGate,
    CommandRegistry,
    JsonGuildStore,
    Role,
)
from warden.core.models import Actor
from warden.core.settings import DEFAULT_PERMISSIONS

__all__ = [
    "OWNER_ID",
    "ADMIN_ID",
    "role_factory",
    "actor_factory",
    "guild_id",
    "empty_channel",
    "everyone_role",
    "empty_actor",
    "bot_actor",
    "commands",
    "settings",
    "store",
    "engine",
    "gate",
    "restore_root_logger",
]

OWNER_ID = 78631113035100160
ADMIN_ID = 96733288462286848


@pytest.fixture()
def role_factory():
    class RoleFactory:
        def get(self, position: int, *permissions: str) -> Role:
            return Role(random.randint(1, 999999999), position, frozenset(permissions))

    return RoleFactory()


@pytest.fixture()
def actor_factory():
    class ActorFactory:
        def get(self, *roles: Role, administrator: bool = False, user_id: int = None) -> Actor:
            if user_id is None:
                user_id = random.randint(1, 999999999)
            return Actor(user_id, tuple(roles), administrator)

    return ActorFactory()


@pytest.fixture()
def guild_id():
    return random.randint(1, 999999999)


@pytest.fixture()
def empty_channel(guild_id):
    return Channel(random.randint(1, 999999999), guild_id)


@pytest.fixture()
def everyone_role(guild_id):
    # The @everyone role shares its ID with the guild and sits at the bottom.
    return Role(guild_id, 0, frozenset({"send_messages", "read_messages"}))


@pytest.fixture()
def empty_actor(actor_factory, everyone_role):
    return actor_factory.get(everyone_role)


@pytest.fixture()
def bot_actor(actor_factory, everyone_role):
    return actor_factory.get(everyone_role)


@pytest.fixture()
def commands():
    registry = CommandRegistry()
    registry.add_command(Command("help", "misc", aliases=("h",)))
    registry.add_command(
        Command("addtag", "generic", aliases=("at",), guild_only=True, perm_level=1)
    )
    registry.add_command(Command("slap", "image", required_permissions=("embed_links",)))
    registry.add_command(
        Command("ban", "moderation", guild_only=True, required_permissions=("ban_members",))
    )
    registry.add_command(Command("setgreetings", "settings", guild_only=True))
    registry.add_command(Command("reload", "admin"))
    registry.add_command(Command("eval", "admin", owner_only=True))
    return registry


@pytest.fixture()
def settings(tmp_path):
    return BotSettings(
        prefixes=["!", "?"],
        owner_id=OWNER_ID,
        admin_ids=frozenset({ADMIN_ID}),
        default_permissions=DEFAULT_PERMISSIONS,
        data_path=tmp_path / "data",
    )


@pytest.fixture()
def store(settings):
    return JsonGuildStore(settings.data_path)


@pytest.fixture()
def engine(settings, store):
    return AuthorizationEngine.from_settings(settings, store=store)


@pytest.fixture()
def gate(settings, commands, store):
    return CommandGate.from_settings(settings, commands, store)


@pytest.fixture()
def restore_root_logger():
    """Remove the handlers a test adds to the root logger, and reset its level."""
    root_logger = logging.getLogger()
    level = root_logger.level
    handlers = list(root_logger.handlers)
    yield root_logger
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
    logging.captureWarnings(False)
