"""
Base class for snapshot sources.
"""
from abc import ABC, abstractmethod

from .models import Snapshot


class SnapshotSource(ABC):
    """
    Abstract base class for everything that supplies server metrics.

    Implementations must return a fresh snapshot on every call with
    ``slots >= 1`` and ``players <= slots``. The reporter checks these again
    but never corrects them.
    """

    @abstractmethod
    def snapshot(self) -> Snapshot:
        """
        Read the current server metrics.

        Returns:
            Snapshot: Immutable point-in-time metrics
        """
        pass
