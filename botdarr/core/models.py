"""
Shared data models for type-safe data transfer between components.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Entry:
    """One media item as known by a backend. The id is stable across refreshes."""
    id: int
    title: str
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


class EntryStatus(Enum):
    NEW = "new"
    EXISTING = "existing"


class MessageKind(Enum):
    NO_RESULTS = "no_results"
    TOO_MANY_RESULTS = "too_many_results"
    NO_NEW_RESULTS = "no_new_results"
    ALREADY_EXISTS = "already_exists"
    ADDED = "added"
    ADD_FAILED = "add_failed"
    SEARCH_FAILED = "search_failed"
    NO_DOWNLOADS = "no_downloads"
    DOWNLOAD = "download"
    PROFILE = "profile"
    RELEASE = "release"
    DOWNLOAD_STARTED = "download_started"
    DOWNLOAD_FAILED = "download_failed"


@dataclass(frozen=True)
class ClassifiedEntry:
    """A search result tagged as new or already known."""
    entry: Entry
    status: EntryStatus

    @property
    def is_new(self) -> bool:
        return self.status is EntryStatus.NEW


@dataclass(frozen=True)
class StatusMessage:
    """A user-facing status line (rendered by the chat layer)."""
    kind: MessageKind
    text: str


ResultItem = Union[ClassifiedEntry, StatusMessage]


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Ordered outcome of a lookup: classified entries, optionally led by a
    status message, or a single terminal status message.
    """
    items: Tuple[ResultItem, ...] = ()

    @classmethod
    def message(cls, kind: MessageKind, text: str) -> "ReconciliationResult":
        return cls((StatusMessage(kind, text),))

    @property
    def entries(self) -> List[ClassifiedEntry]:
        return [item for item in self.items if isinstance(item, ClassifiedEntry)]

    @property
    def messages(self) -> List[StatusMessage]:
        return [item for item in self.items if isinstance(item, StatusMessage)]

    @property
    def is_terminal(self) -> bool:
        """True when the result is a single status message and nothing else."""
        return len(self.items) == 1 and isinstance(self.items[0], StatusMessage)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ResultItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> ResultItem:
        return self.items[index]


@dataclass(frozen=True)
class QueueItem:
    """An active download in a backend's queue."""
    id: int
    title: str
    status: str
    time_left: Optional[str] = None
    progress: float = 0.0
