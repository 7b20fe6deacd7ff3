"""
Telemetry payload assembly and validation.
"""
import json
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from .config import StatisticsConfig, normalize_vanity_url
from .errors import ValidationError
from .models import PlayerInfo, PluginInfo, Snapshot

# Python attribute -> wire key, in wire order
WIRE_KEYS = {
    'vanity_url': 'vanityUrl',
    'version': 'version',
    'captured_at': 'capturedAt',
    'source': 'source',
    'players_online': 'playersOnline',
    'max_players': 'maxPlayers',
    'uptime_percent': 'uptimePercent',
    'latency_ms': 'latencyMs',
    'vote_total': 'voteTotal',
    'votes_delta': 'votesDelta',
    'rank': 'rank',
    'players': 'players',
    'plugins': 'plugins',
}

NON_NEGATIVE_FIELDS = ('players_online', 'max_players', 'latency_ms')


@dataclass(frozen=True)
class StatisticsPayload:
    """
    JSON document POSTed to the telemetry endpoint.

    Fields left as None are omitted from the serialized form.
    """
    vanity_url: str
    version: str
    captured_at: Optional[str] = None
    source: Optional[str] = None
    players_online: Optional[int] = None
    max_players: Optional[int] = None
    uptime_percent: Optional[float] = None
    latency_ms: Optional[int] = None
    vote_total: Optional[int] = None
    votes_delta: Optional[int] = None
    rank: Optional[int] = None
    players: Optional[Tuple[PlayerInfo, ...]] = None
    plugins: Optional[Tuple[PluginInfo, ...]] = None

    def __post_init__(self):
        try:
            vanity_url = normalize_vanity_url(self.vanity_url)
        except ValueError as e:
            raise ValidationError(str(e))
        object.__setattr__(self, 'vanity_url', vanity_url)

        if self.version is None or not str(self.version).strip():
            raise ValidationError("version must not be blank")

        for name in NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValidationError(f"{WIRE_KEYS[name]} must be >= 0")

        if self.uptime_percent is not None and not 0 <= self.uptime_percent <= 100:
            raise ValidationError("uptimePercent must be between 0 and 100")

        if (self.players_online is not None and self.max_players is not None
                and self.players_online > self.max_players):
            raise ValidationError(
                f"playersOnline ({self.players_online}) must not exceed maxPlayers ({self.max_players})")

        if self.players is not None:
            object.__setattr__(self, 'players', tuple(self.players))
        if self.plugins is not None:
            object.__setattr__(self, 'plugins', tuple(self.plugins))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the payload to its wire form.

        Returns:
            dict: Wire document with unset fields absent
        """
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in ('players', 'plugins'):
                value = [entry.to_dict() for entry in value]
            data[WIRE_KEYS[f.name]] = value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)


def build_payload(config: StatisticsConfig, snapshot: Snapshot, latency_ms: int) -> StatisticsPayload:
    """
    Build the payload for one reporting cycle.

    Detail lists are only included when enabled in the config; otherwise the
    field is left out, not sent empty. Out-of-range values raise instead of
    being clamped.

    Args:
        config (StatisticsConfig): Reporter configuration
        snapshot (Snapshot): Current server metrics
        latency_ms (int): Latency measured for this cycle

    Returns:
        StatisticsPayload: The validated payload

    Raises:
        ValidationError: If a payload invariant is violated
    """
    return StatisticsPayload(
        vanity_url=config.vanity_url,
        version=snapshot.version,
        players_online=snapshot.players,
        max_players=snapshot.slots,
        latency_ms=latency_ms,
        players=snapshot.player_list if config.send_player_list else None,
        plugins=snapshot.plugins if config.send_plugin_list else None,
    )
