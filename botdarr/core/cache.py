"""
In-memory cache of the entries a backend already knows about.

Each generation is an immutable mapping published through a single reference
assignment, so readers never lock and always see one whole generation.
"""

import logging
import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from .errors import FetchError
from .models import Entry

logger = logging.getLogger(__name__)


class MediaCache:
    """
    Key-addressed store of known entries for one backend (movies or shows).
    """

    def __init__(self, name: str, fetch_all: Callable[[], Iterable[Entry]]):
        """
        Args:
            name: Backend name, used in log messages
            fetch_all: Callable returning every entry the backend knows.
                       Must raise FetchError on failure.
        """
        self.name = name
        self._fetch_all = fetch_all
        self._entries: Mapping[int, Entry] = MappingProxyType({})
        self._reload_lock = threading.Lock()
        self._publish_lock = threading.Lock()
        self.generation = 0
        self.last_reloaded: Optional[datetime] = None

    def reload(self) -> int:
        """
        Replaces the whole cache with a fresh fetch from the backend.

        Returns:
            Number of entries in the new generation

        Raises:
            FetchError: The fetch failed; the previous generation is kept.
        """
        with self._reload_lock:
            try:
                fetched = {entry.id: entry for entry in self._fetch_all()}
            except FetchError:
                logger.warning(f"Reload of '{self.name}' cache failed, keeping {len(self)} cached entries")
                raise
            self._publish(fetched)
            self.last_reloaded = datetime.now(timezone.utc)
            logger.debug(f"Reloaded '{self.name}' cache with {len(fetched)} entries (generation {self.generation})")
            return len(fetched)

    def add(self, entry: Entry):
        """
        Inserts or overwrites one entry outside the refresh cycle.
        A concurrent reload may replace it again; the last publish wins.
        """
        with self._publish_lock:
            updated = dict(self._entries)
            updated[entry.id] = entry
            self._entries = MappingProxyType(updated)
            self.generation += 1
        logger.debug(f"Added '{entry.title}' ({entry.id}) to '{self.name}' cache")

    def lookup(self, entry_id: int) -> Optional[Entry]:
        return self._entries.get(entry_id)

    def contains(self, entry_id: int) -> bool:
        return entry_id in self._entries

    def snapshot(self) -> Mapping[int, Entry]:
        """Read-only view of the current generation."""
        return self._entries

    def _publish(self, entries: dict):
        with self._publish_lock:
            self._entries = MappingProxyType(entries)
            self.generation += 1

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MediaCache(name={self.name!r}, entries={len(self)}, generation={self.generation})"
