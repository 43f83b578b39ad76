import abc
import asyncio
import json
import logging
import os
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from .errors import ConfigError, StoreError
from .rules import GuildPermissionConfig

__all__ = ["GuildEntry", "GuildConfigStore", "JsonGuildStore"]

log = logging.getLogger("warden.guild_store")


@dataclass
class GuildEntry:
    """Everything stored for one guild.

    Attributes
    ----------
    guild_id : int
        The guild's ID.
    prefix : Optional[str]
        The guild's custom prefix, replacing the bot's primary prefix.
    permissions : GuildPermissionConfig
        The guild's permission layers.
    settings : Dict[str, Any]
        Other per-guild settings, stored as given.
    """

    guild_id: int
    prefix: Optional[str] = None
    permissions: GuildPermissionConfig = field(default_factory=GuildPermissionConfig)
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, guild_id: int, data: Mapping[str, Any]) -> "GuildEntry":
        if not isinstance(data, Mapping):
            raise ConfigError(f"Settings for guild {guild_id} must be an object.")
        prefix = data.get("prefix")
        if prefix is not None and not isinstance(prefix, str):
            raise ConfigError(f"The prefix of guild {guild_id} must be a string.")
        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            raise ConfigError(f"The settings of guild {guild_id} must be an object.")
        return cls(
            guild_id=guild_id,
            prefix=prefix or None,
            permissions=GuildPermissionConfig.from_dict(data.get("permissions")),
            settings=settings,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "permissions": self.permissions.to_dict(),
            "settings": self.settings,
        }


class GuildConfigStore(abc.ABC):
    """Persists and serves per-guild configuration.

    A completed `save_guild` must be visible to every read issued after it.
    """

    async def get_guild(self, guild_id: int) -> GuildEntry:
        """Get a guild's entry, creating a default one on first reference.

        Raises
        ------
        StoreError
            If the store could not be read or written.
        ConfigError
            If the stored entry is malformed.

        """
        entry = await self.find_guild(guild_id)
        if entry is None:
            entry = await self.add_guild(GuildEntry(guild_id))
        return entry

    @abc.abstractmethod
    async def find_guild(self, guild_id: int) -> Optional[GuildEntry]:
        """Get a guild's entry, or ``None`` if there is none yet."""
        raise NotImplementedError

    @abc.abstractmethod
    async def save_guild(self, entry: GuildEntry) -> None:
        """Store a guild's entry, replacing the previous one."""
        raise NotImplementedError

    @abc.abstractmethod
    async def add_guild(self, entry: GuildEntry) -> GuildEntry:
        """Store a guild's entry unless it already has one.

        Checking and storing happen in one step, so a concurrent
        `save_guild` is never overwritten.

        Returns
        -------
        GuildEntry
            The entry now stored for the guild.

        """
        raise NotImplementedError


class JsonGuildStore(GuildConfigStore):
    """Keeps every guild in a single JSON file.

    .. py:attribute:: data_path

        The path of the JSON file.
    """

    def __init__(self, data_path: Path, *, file_name: str = "guilds.json"):
        try:
            data_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Could not create the data directory {data_path}") from e
        self.data_path = data_path / file_name
        self._lock = asyncio.Lock()
        self._data: Optional[Dict[str, Any]] = None

    async def find_guild(self, guild_id: int) -> Optional[GuildEntry]:
        async with self._lock:
            data = await self._load()
            raw = data.get(str(guild_id))
            if raw is None:
                return None
            # Callers get their own copy, the cache is only changed through _store()
            raw = pickle.loads(pickle.dumps(raw, -1))
        return GuildEntry.from_dict(guild_id, raw)

    async def save_guild(self, entry: GuildEntry) -> None:
        value = _to_json(entry)
        async with self._lock:
            await self._store(str(entry.guild_id), value)

    async def add_guild(self, entry: GuildEntry) -> GuildEntry:
        value = _to_json(entry)
        key = str(entry.guild_id)
        async with self._lock:
            data = await self._load()
            raw = data.get(key)
            if raw is None:
                await self._store(key, value)
                log.debug("Created settings for guild %s", entry.guild_id)
                return entry
            raw = pickle.loads(pickle.dumps(raw, -1))
        return GuildEntry.from_dict(entry.guild_id, raw)

    async def _store(self, key: str, value: Dict[str, Any]) -> None:
        # Must be called with self._lock held.
        data = await self._load()
        previous = data.get(key)
        data[key] = value
        try:
            await self._save()
        except StoreError:
            if previous is None:
                del data[key]
            else:
                data[key] = previous
            raise

    async def _load(self) -> Dict[str, Any]:
        if self._data is None:
            loop = asyncio.get_running_loop()
            self._data = await loop.run_in_executor(None, _load_json, self.data_path)
        return self._data

    async def _save(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _save_json, self.data_path, self._data)


def _to_json(entry: GuildEntry) -> Dict[str, Any]:
    try:
        # This is both our deepcopy() and our way of making sure this value is actually JSON
        # serializable.
        return json.loads(json.dumps(entry.to_dict()))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Settings for guild {entry.guild_id} are not serializable") from e


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fs:
            data = json.load(fs)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        raise StoreError(f"Could not read guild settings from {path}") from e
    if not isinstance(data, dict):
        raise StoreError(f"Guild settings in {path} must be a JSON object.")
    return data


def _save_json(path: Path, data: Dict[str, Any]) -> None:
    """
    Write to a temp file, fsync it, then replace the target so a crash
    mid-write can never leave a truncated settings file behind.

    On Windows the directory fsync is not available, the replace is still atomic.
    """
    tmp_path = path.parent / "{}-{}.tmp".format(path.stem, uuid4().fields[0])
    try:
        with tmp_path.open(encoding="utf-8", mode="w") as fs:
            json.dump(data, fs)
            fs.flush()  # This does get closed on context exit, ...
            os.fsync(fs.fileno())  # but that needs to happen prior to this line

        tmp_path.replace(path)

        try:
            flag = os.O_DIRECTORY  # pylint: disable=no-member
        except AttributeError:
            pass
        else:
            fd = os.open(path.parent, flag)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
    except OSError as e:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            log.warning("Could not remove the temporary file %s", tmp_path)
        raise StoreError(f"Could not write guild settings to {path}") from e
