"""
Process-wide holder for the active filter set.

Readers take the current snapshot without locking. A refresh builds a
complete new FilterSet and swaps the reference, so an in-flight
classification keeps the snapshot it started with.
"""

import logging
import threading
from typing import Optional

from .models import FilterSet

logger = logging.getLogger(__name__)


class FilterStore:
    """Atomically swappable reference to the active FilterSet."""

    def __init__(self, initial: Optional[FilterSet] = None):
        self._current = initial if initial is not None else FilterSet()
        self._swap_lock = threading.Lock()

    def current(self) -> FilterSet:
        """Return the live snapshot."""
        return self._current

    def replace(self, new_set: FilterSet) -> FilterSet:
        """
        Swap in a new snapshot.

        Args:
            new_set: Fully built filter set

        Returns:
            The snapshot that was replaced
        """
        if not isinstance(new_set, FilterSet):
            raise TypeError(f"Expected FilterSet, got {type(new_set).__name__}")

        with self._swap_lock:
            previous = self._current
            self._current = new_set

        logger.info(
            f"Filter set replaced: {len(previous)} -> {len(new_set)} filters "
            f"({', '.join(new_set.names) or 'none'})"
        )
        return previous

    def clear(self) -> None:
        """Replace the active set with an empty one (disables matching)."""
        self.replace(FilterSet())


_default_store = FilterStore()


def get_filter_store() -> FilterStore:
    """Get the process-wide filter store."""
    return _default_store
