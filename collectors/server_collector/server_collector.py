import logging

from stats_sdk.collector import SnapshotSource
from stats_sdk.models import Snapshot

from .server_adapter import PLAYER_LIST, PLUGIN_DETAILS, ServerAdapter

logger = logging.getLogger(__name__)


class ServerCollector(SnapshotSource):
    """Snapshot source backed by a ServerAdapter."""

    def __init__(self, adapter: ServerAdapter):
        if adapter is None:
            raise ValueError("adapter is required")
        if adapter.API_VERSION != ServerAdapter.API_VERSION:
            raise ValueError(
                f"Unsupported server adapter API version {adapter.API_VERSION} "
                f"(expected {ServerAdapter.API_VERSION})")
        self.adapter = adapter

    def snapshot(self) -> Snapshot:
        """
        Read the adapter and return a snapshot that satisfies the source contract.

        Servers can report 0 slots early during boot or more players than
        slots; both are corrected here so downstream checks hold.

        Returns:
            Snapshot: Current server metrics
        """
        slots = self.adapter.max_players()
        if slots <= 0:
            slots = 1

        players = self.adapter.online_player_count()
        if players < 0:
            players = 0
        elif players > slots:
            logger.debug("Adapter reported %d players for %d slots; clamping", players, slots)
            players = slots

        capabilities = self.adapter.capabilities()
        player_list = self.adapter.online_players() if PLAYER_LIST in capabilities else []

        if PLUGIN_DETAILS in capabilities:
            plugins = self.adapter.enabled_plugins_detailed()
        else:
            # Derived names-only entries from the base adapter
            plugins = ServerAdapter.enabled_plugins_detailed(self.adapter)

        return Snapshot(
            players=players,
            slots=slots,
            version=self.adapter.server_version(),
            player_list=player_list,
            plugins=plugins,
        )
