"""
Adapters over a game server runtime.

The host server implements (or wires) one of these so metrics can be read
without this package depending on a particular server API.
"""
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, FrozenSet, List, Optional, Sequence

import pytz

from stats_sdk.models import UNKNOWN_VERSION, PlayerInfo, PluginInfo

# Capabilities an adapter can declare
PLAYER_LIST = 'player_list'
PLUGIN_DETAILS = 'plugin_details'


def format_joined(joined: datetime) -> str:
    """
    Format a join time as an ISO-8601 UTC timestamp, e.g. 2026-01-19T13:45:00Z.

    Naive datetimes are taken to be UTC.
    """
    if joined.tzinfo is None:
        joined = pytz.UTC.localize(joined)
    return joined.astimezone(pytz.UTC).replace(microsecond=0).strftime('%Y-%m-%dT%H:%M:%SZ')


def sanitize_plugin_names(names: Optional[Sequence[str]]) -> List[str]:
    """Drop blank entries, trim and de-duplicate while keeping order."""
    result = []
    for name in names or ():
        if name is None:
            continue
        name = name.strip()
        if name and name not in result:
            result.append(name)
    return result


class ServerAdapter(ABC):
    """
    Minimal view of a server runtime.

    ``API_VERSION`` identifies the interface revision the adapter implements.
    Optional data is advertised through ``capabilities()`` instead of being
    discovered by inspecting the adapter.
    """
    API_VERSION = 1

    @abstractmethod
    def online_player_count(self) -> int:
        pass

    @abstractmethod
    def max_players(self) -> int:
        pass

    @abstractmethod
    def server_version(self) -> str:
        pass

    @abstractmethod
    def enabled_plugins(self) -> List[str]:
        """
        Get the names of the enabled plugins. Always available.

        Returns:
            list: Plugin names
        """
        pass

    def capabilities(self) -> FrozenSet[str]:
        """
        Optional data this adapter provides.

        Returns:
            frozenset: Any of PLAYER_LIST, PLUGIN_DETAILS
        """
        return frozenset()

    def online_players(self) -> List[PlayerInfo]:
        """Players currently online. Empty unless the adapter provides them."""
        return []

    def enabled_plugins_detailed(self) -> List[PluginInfo]:
        """
        Enabled plugins with versions.

        Derived from enabled_plugins() with an unknown version unless the
        adapter knows better.
        """
        return [PluginInfo(name, UNKNOWN_VERSION)
                for name in sanitize_plugin_names(self.enabled_plugins())]


class CachedServerAdapter(ServerAdapter):
    """
    Thread-safe adapter whose values are pushed in by the host.

    The reporter runs on its own thread and must not call into server APIs
    that are bound to the server thread. Instead the host refreshes these
    values from a safe thread on its own cadence. Writes are serialized by one
    lock; reads return immutable values and take no lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._online_players = 0
        self._max_players = 1
        self._server_version = UNKNOWN_VERSION
        self._enabled_plugins = ()
        self._players = ()
        self._plugin_details = ()

    def capabilities(self) -> FrozenSet[str]:
        return frozenset((PLAYER_LIST, PLUGIN_DETAILS))

    def set_online_players(self, value: int) -> None:
        with self._lock:
            self._online_players = max(0, int(value))

    def set_max_players(self, value: int) -> None:
        # Snapshots require slots > 0
        with self._lock:
            self._max_players = max(1, int(value))

    def set_server_version(self, value: Optional[str]) -> None:
        with self._lock:
            self._server_version = value if value is not None else UNKNOWN_VERSION

    def set_enabled_plugins(self, names: Optional[Sequence[str]]) -> None:
        with self._lock:
            self._enabled_plugins = tuple(names or ())

    def set_players(self, players: Optional[Sequence[PlayerInfo]]) -> None:
        with self._lock:
            self._players = tuple(players or ())

    def set_plugin_details(self, plugins: Optional[Sequence[PluginInfo]]) -> None:
        """Set plugin details and keep the plain name list in sync."""
        details = tuple(plugins or ())
        with self._lock:
            self._plugin_details = details
            self._enabled_plugins = tuple(p.name for p in details)

    def online_player_count(self) -> int:
        return self._online_players

    def max_players(self) -> int:
        return self._max_players

    def server_version(self) -> str:
        return self._server_version

    def enabled_plugins(self) -> List[str]:
        return list(self._enabled_plugins)

    def online_players(self) -> List[PlayerInfo]:
        return list(self._players)

    def enabled_plugins_detailed(self) -> List[PluginInfo]:
        details = self._plugin_details
        if details:
            return list(details)
        return super().enabled_plugins_detailed()


class FunctionalServerAdapter(ServerAdapter):
    """
    Adapter whose values come from callables, so a host can wire its own API
    without this package importing it.
    """

    def __init__(
        self,
        online_players: Callable[[], int],
        max_players: Callable[[], int],
        version: Optional[Callable[[], str]] = None,
        plugins: Optional[Callable[[], List[str]]] = None,
        players: Optional[Callable[[], List[PlayerInfo]]] = None,
        plugin_details: Optional[Callable[[], List[PluginInfo]]] = None
    ):
        """
        Initialize the adapter.

        Args:
            online_players (callable): Returns the number of players online
            max_players (callable): Returns the number of slots
            version (callable, optional): Returns the server version
            plugins (callable, optional): Returns enabled plugin names
            players (callable, optional): Returns online player entries
            plugin_details (callable, optional): Returns plugin entries with versions
        """
        if online_players is None:
            raise ValueError("online_players supplier must be provided")
        if max_players is None:
            raise ValueError("max_players supplier must be provided")

        self._online_players = online_players
        self._max_players = max_players
        self._version = version or (lambda: UNKNOWN_VERSION)
        self._plugins = plugins or list
        self._players = players
        self._plugin_details = plugin_details

    def capabilities(self) -> FrozenSet[str]:
        provided = set()
        if self._players is not None:
            provided.add(PLAYER_LIST)
        if self._plugin_details is not None:
            provided.add(PLUGIN_DETAILS)
        return frozenset(provided)

    def online_player_count(self) -> int:
        return self._online_players()

    def max_players(self) -> int:
        return self._max_players()

    def server_version(self) -> str:
        return self._version()

    def enabled_plugins(self) -> List[str]:
        return self._plugins()

    def online_players(self) -> List[PlayerInfo]:
        if self._players is None:
            return []
        return list(self._players() or ())

    def enabled_plugins_detailed(self) -> List[PluginInfo]:
        provided = self._plugin_details() if self._plugin_details is not None else None
        if provided:
            return list(provided)
        return super().enabled_plugins_detailed()
