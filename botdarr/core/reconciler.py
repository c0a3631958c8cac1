"""
Reconciles a fresh search result set against a backend's cache.
"""

import logging
from typing import List, Optional, Sequence

from .cache import MediaCache
from .models import (
    ClassifiedEntry, Entry, EntryStatus, MessageKind, ReconciliationResult,
    ResultItem, StatusMessage
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 20


def reconcile(raw_results: Sequence[Entry],
              cache: MediaCache,
              find_new_only: bool,
              max_results: int = DEFAULT_MAX_RESULTS,
              media: str = "movie",
              search_term: Optional[str] = None) -> ReconciliationResult:
    """
    Classifies search results as new or existing and bounds the output.

    Args:
        raw_results: Entries in the order the backend returned them
        cache: Cache of entries the backend already has
        find_new_only: Drop entries that are already cached
        max_results: Maximum number of entries returned
        media: Noun used in status messages ("movie", "show")
        search_term: Only used for logging

    Returns:
        ReconciliationResult with classified entries, possibly led by a
        "too many results" message, or a single status message.
    """
    if max_results < 1:
        raise ValueError(f"max_results must be positive, got {max_results}")

    plural = f"{media}s"
    if not raw_results:
        return ReconciliationResult.message(MessageKind.NO_RESULTS, f"No {plural} found")

    # One generation for the whole classification.
    known = cache.snapshot()

    remaining = list(raw_results)
    if find_new_only:
        remaining = [entry for entry in remaining if entry.id not in known]
        if not remaining:
            logger.debug(f"All {len(raw_results)} results for '{search_term}' are already in '{cache.name}'")
            if len(raw_results) == 1:
                return ReconciliationResult.message(
                    MessageKind.ALREADY_EXISTS, f"{media.capitalize()} already exists"
                )
            return ReconciliationResult.message(
                MessageKind.NO_NEW_RESULTS, f"No new {plural} found, check existing {plural}"
            )

    items: List[ResultItem] = []
    if len(remaining) > max_results:
        logger.info(f"Search '{search_term}' returned {len(remaining)} {plural}, truncating to {max_results}")
        items.append(StatusMessage(MessageKind.TOO_MANY_RESULTS, f"Too many {plural} found, please narrow search"))
        remaining = remaining[:max_results]

    for entry in remaining:
        status = EntryStatus.EXISTING if entry.id in known else EntryStatus.NEW
        items.append(ClassifiedEntry(entry, status))
    return ReconciliationResult(tuple(items))
