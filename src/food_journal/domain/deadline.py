"""Per-call cancellation signal for blocking store operations."""

import threading
import time
from dataclasses import dataclass, field

from food_journal.domain.errors import TransactionTimeout


@dataclass
class Deadline:
    """Expiry time and cancel flag shared between a caller and a store call.

    The caller may cancel from another thread; the store seals the deadline
    right before committing and aborts the transaction if it has passed.
    Once sealed, a cancel no longer takes and the caller must wait for the
    commit's outcome.
    """

    expires_at: float | None = None
    _cancelled: threading.Event = field(default_factory=threading.Event)
    _sealed: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        """Create a deadline that expires ``seconds`` from now."""
        return cls(expires_at=time.monotonic() + seconds)

    def cancel(self) -> bool:
        """Signal that the caller gave up; return False if a commit started."""
        with self._lock:
            if self._sealed:
                return False
            self._cancelled.set()
            return True

    def seal(self) -> None:
        """Run the last check before a commit and refuse later cancels."""
        with self._lock:
            self.check()
            self._sealed = True

    @property
    def cancelled(self) -> bool:
        """Return True once cancel() has been called."""
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Return seconds left, or None when there is no expiry."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def check(self) -> None:
        """Raise TransactionTimeout when cancelled or expired."""
        if self.cancelled:
            raise TransactionTimeout("Operation was cancelled by the caller")
        if self.expires_at is not None and time.monotonic() >= self.expires_at:
            raise TransactionTimeout("Operation deadline expired")
