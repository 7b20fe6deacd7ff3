"""
Data carried from the host server to the reporter.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

UNKNOWN_VERSION = 'unknown'


@dataclass(frozen=True)
class PlayerInfo:
    """
    Player entry sent when the player list is enabled.

    ``joined`` is an ISO-8601 UTC timestamp such as ``2026-01-19T13:45:00Z``.
    """
    uuid: str
    name: str
    joined: Optional[str] = None

    def __post_init__(self):
        if not self.uuid or not self.uuid.strip():
            raise ValueError("uuid must not be blank")
        if not self.name or not self.name.strip():
            raise ValueError("name must not be blank")

    def to_dict(self) -> Dict[str, Any]:
        data = {'uuid': self.uuid, 'name': self.name}
        if self.joined is not None:
            data['joined'] = self.joined
        return data


@dataclass(frozen=True)
class PluginInfo:
    """Plugin entry sent when the plugin list is enabled."""
    name: str
    version: str = UNKNOWN_VERSION

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("name must not be blank")
        if self.version is None:
            object.__setattr__(self, 'version', UNKNOWN_VERSION)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'version': self.version}


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time server metrics.

    Attributes:
        players (int): Number of players online
        slots (int): Maximum number of players
        version (str): Server version, ``"unknown"`` when not reported
        player_list (tuple): Optional detailed player entries
        plugins (tuple): Optional detailed plugin entries
    """
    players: int
    slots: int
    version: str = UNKNOWN_VERSION
    player_list: tuple = field(default_factory=tuple)
    plugins: tuple = field(default_factory=tuple)

    def __post_init__(self):
        if self.players < 0:
            raise ValueError("players must be >= 0")
        if self.slots <= 0:
            raise ValueError("slots must be > 0")
        if self.version is None:
            object.__setattr__(self, 'version', UNKNOWN_VERSION)
        # Freeze the detail lists so a snapshot cannot change after it is returned
        object.__setattr__(self, 'player_list', tuple(self.player_list or ()))
        object.__setattr__(self, 'plugins', tuple(self.plugins or ()))

