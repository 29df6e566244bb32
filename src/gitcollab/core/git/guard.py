"""
Bulk git mutation guard.

Pull, clone and checkout-during-pull can create many files at once. While one
of those runs, the new-file handler must treat created files as coming from
git rather than from the user. The guard is an explicit object shared by the
components that mutate the working tree and the handler that watches it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class BulkMutationGuard:
    """
    Scoped "bulk git mutation in progress" flag.

    Nesting is allowed: the guard stays active until the outermost scope
    exits. Release happens on every exit path, including exceptions.

    Example:
        >>> guard = BulkMutationGuard()
        >>> with guard.bulk_mutation("pull"):
        ...     guard.is_active
        True
        >>> guard.is_active
        False
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._depth = 0

    @property
    def is_active(self) -> bool:
        """Whether a bulk git mutation is currently running."""
        with self._lock:
            return self._depth > 0

    @contextmanager
    def bulk_mutation(self, label: str = "git") -> Iterator[BulkMutationGuard]:
        """
        Mark a bulk git mutation for the duration of the `with` block.

        Args:
            label: Short operation name for debug logging
        """
        with self._lock:
            self._depth += 1
            depth = self._depth
        logger.debug("Bulk git mutation started: %s (depth %d)", label, depth)
        try:
            yield self
        finally:
            with self._lock:
                self._depth -= 1
                depth = self._depth
            logger.debug("Bulk git mutation finished: %s (depth %d)", label, depth)
