import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import UnpackError


class ConcurrencyBudget:
    """Caps how many extraction units run at once across every sheet.

    One budget is shared by all sheet pools of a run, so the cap holds for
    the whole pack rather than per sheet. ``active`` and ``peak`` are kept
    for inspection.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"concurrency limit must be at least 1, got {limit}")
        self.limit = limit
        self._slots = threading.BoundedSemaphore(limit)
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    @contextmanager
    def slot(self) -> Iterator[None]:
        with self._slots:
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            try:
                yield
            finally:
                with self._lock:
                    self.active -= 1


class ResultAggregator:
    """Thread-safe tally of unit outcomes that keeps the first error.

    Later errors are counted but never replace the first one. ``merge``
    folds another aggregator in with the same keep-first rule.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._first_error: Optional[UnpackError] = None
        self.succeeded = 0
        self.failed = 0
        self.errors = 0

    @property
    def first_error(self) -> Optional[UnpackError]:
        with self._lock:
            return self._first_error

    def success(self) -> None:
        with self._lock:
            self.succeeded += 1

    def failure(self, error: UnpackError, units: int = 1) -> None:
        """Record ``error``; ``units`` is how many textures it cost."""
        with self._lock:
            if self._first_error is None:
                self._first_error = error
            self.errors += 1
            self.failed += units

    def merge(self, other: "ResultAggregator") -> None:
        with other._lock:
            first, succeeded, failed, errors = other._first_error, other.succeeded, other.failed, other.errors
        with self._lock:
            if self._first_error is None:
                self._first_error = first
            self.succeeded += succeeded
            self.failed += failed
            self.errors += errors
