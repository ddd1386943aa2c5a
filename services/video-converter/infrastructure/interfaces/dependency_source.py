"""Abstract interface for fetching large external dependencies."""

from abc import ABC, abstractmethod
from pathlib import Path


class DependencySource(ABC):
    """Knows where a dependency comes from and how to put it on disk."""

    @abstractmethod
    def fetch(self, target_path: Path) -> None:
        """
        Downloads or copies the dependency so that `target_path` exists.

        Called from a worker thread; may block for minutes.

        Args:
            target_path: Marker file whose presence means the dependency
                is installed.

        Raises:
            Exception: Any failure; the bootstrapper decides whether to retry.
        """
