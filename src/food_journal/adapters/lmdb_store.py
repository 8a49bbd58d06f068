"""LMDB-backed storage for users and journal entries.

All record types share one unnamed LMDB database; ``key_schema`` owns the
key grammar. Each public method opens exactly one transaction and releases
it on every exit path. Reads run on a snapshot and never block; writes are
serialized by LMDB's single-writer lock, which callers in this process wait
for through ``_write_lock`` so the wait can honour a ``Deadline``.

Changing the map size invalidates every transaction the process has open,
so a resize first waits for this store's read snapshots to drain and holds
off new ones until it is done. If they do not drain in time the write fails
with ``Conflict`` and the snapshots stay valid.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import TypeVar

import lmdb

from food_journal.adapters import key_schema
from food_journal.domain.deadline import Deadline
from food_journal.domain.errors import (
    Conflict,
    CorruptRecord,
    InvalidInput,
    NotFound,
    StorageUnavailable,
    TransactionTimeout,
)
from food_journal.domain.models import (
    FoodLog,
    JournalEntry,
    JournalRecord,
    UserProfile,
    UserRecord,
)
from food_journal.services.journal import JournalRepository
from food_journal.services.users import UserRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lands on the next calendar date even when the day was opened after midnight.
ROLLOVER_SPAN = timedelta(hours=27)


def open_environment(path: Path, map_size: int, max_readers: int) -> lmdb.Environment:
    """Open (creating if needed) the LMDB environment rooted at ``path``."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        return lmdb.open(
            str(path),
            map_size=map_size,
            max_readers=max_readers,
            max_dbs=0,
        )
    except (OSError, lmdb.Error) as exc:
        raise StorageUnavailable(
            f"Cannot open LMDB environment at {path}: {exc}"
        ) from exc


@dataclass
class MillisecondClock:
    """Strictly increasing epoch-millisecond source shared by one process."""

    now: Callable[[], float] = time.time
    _last: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def __call__(self) -> int:
        with self._lock:
            stamp = max(int(self.now() * 1000), self._last + 1)
            self._last = stamp
            return stamp


@dataclass
class LmdbJournalStore(UserRepository, JournalRepository):
    """Entity-level operations over a shared LMDB environment."""

    env: lmdb.Environment
    write_retries: int = 3
    resize_wait: float = 1.0
    clock: MillisecondClock = field(default_factory=MillisecondClock)
    _write_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )
    _readers: threading.Condition = field(
        default_factory=threading.Condition, init=False, repr=False
    )
    _open_readers: int = field(default=0, init=False, repr=False)
    _resizing: bool = field(default=False, init=False, repr=False)

    def get_user(self, user_id: str) -> UserProfile:
        """Return a user's profile or raise NotFound."""
        key = key_schema.user_key(user_id)
        with self._read_txn() as txn:
            raw = txn.get(_raw(key))
        if raw is None:
            raise NotFound(f"User {user_id!r} does not exist")
        return key_schema.decode_user(_text(raw))

    def put_user(
        self, user_id: str, profile: UserProfile, deadline: Deadline | None = None
    ) -> UserProfile:
        """Store a profile and return what was written.

        An existing user keeps its stored ``current_date``; only
        ``advance_day`` moves the cursor.
        """
        key = _raw(key_schema.user_key(user_id))

        def work(txn: lmdb.Transaction) -> UserProfile:
            stored = profile
            raw = txn.get(key)
            if raw is not None:
                try:
                    day = key_schema.decode_current_date(_text(raw))
                except CorruptRecord:
                    logger.warning("Replacing corrupt user record %r", key)
                else:
                    stored = replace(profile, current_date=day)
            txn.put(key, _raw(key_schema.encode_user(stored)))
            return stored

        return self._write(work, deadline)

    def list_users(self) -> Iterator[UserRecord]:
        """Yield every user in key order from a single read snapshot."""
        with self._read_txn() as txn:
            for raw_key, raw_value in _prefix_scan(txn, key_schema.user_prefix()):
                try:
                    key = _text(raw_key)
                    record = UserRecord(
                        user_id=key_schema.user_id_from_key(key),
                        profile=key_schema.decode_user(_text(raw_value)),
                    )
                except CorruptRecord:
                    logger.warning("Skipping corrupt user record %r", raw_key)
                    continue
                yield record

    def append_journal_entry(
        self, user_id: str, log: FoodLog, deadline: Deadline | None = None
    ) -> str:
        """Write an entry on the user's current day plus its recall record.

        Both records and the read of the day cursor share one write
        transaction. A missing user raises NotFound before anything is put.
        """
        user_key = _raw(key_schema.user_key(user_id))
        recall_key = _raw(key_schema.recall_key(log.text))

        def work(txn: lmdb.Transaction) -> str:
            raw_user = txn.get(user_key)
            if raw_user is None:
                raise NotFound(f"User {user_id!r} does not exist")
            day = key_schema.decode_current_date(_text(raw_user))
            timestamp = self.clock()
            while True:
                entry = _stamp(log, timestamp)
                key = key_schema.entry_key(user_id, day, timestamp)
                value = _raw(key_schema.encode_entry(entry))
                if txn.put(_raw(key), value, overwrite=False):
                    break
                # Same millisecond from another process; take the next free slot.
                timestamp += 1
            txn.put(recall_key, value)
            return key_schema.entry_id_from_key(key, user_id)

        return self._write(work, deadline)

    def list_journal_entries(self, user_id: str) -> Iterator[JournalRecord]:
        """Yield a user's entries in key order, which is chronological."""
        prefix = key_schema.entry_prefix(user_id)
        with self._read_txn() as txn:
            for raw_key, raw_value in _prefix_scan(txn, prefix):
                try:
                    record = JournalRecord(
                        id=key_schema.entry_id_from_key(_text(raw_key), user_id),
                        entry=key_schema.decode_entry(_text(raw_value)),
                    )
                except CorruptRecord:
                    logger.warning("Skipping corrupt journal entry %r", raw_key)
                    continue
                yield record

    def advance_day(self, user_id: str, deadline: Deadline | None = None) -> date:
        """Roll the user's current date forward and return the new date."""
        key = _raw(key_schema.user_key(user_id))

        def work(txn: lmdb.Transaction) -> tuple[date, date]:
            raw = txn.get(key)
            if raw is None:
                raise NotFound(f"User {user_id!r} does not exist")
            value = _text(raw)
            current = key_schema.decode_current_date(value)
            following = _next_day(current)
            patched = key_schema.replace_field(
                value, "current_date", following.isoformat()
            )
            txn.put(key, _raw(patched))
            return current, following

        current, following = self._write(work, deadline)
        logger.info("Advanced day for %s from %s to %s", user_id, current, following)
        return following

    def close(self) -> None:
        """Close the underlying environment."""
        self.env.close()

    @contextmanager
    def _read_txn(self) -> Iterator[lmdb.Transaction]:
        with self._readers:
            self._readers.wait_for(lambda: not self._resizing)
            self._open_readers += 1
        try:
            with self.env.begin() as txn:
                yield txn
        except lmdb.Error as exc:
            raise StorageUnavailable(f"LMDB read failed: {exc}") from exc
        finally:
            with self._readers:
                self._open_readers -= 1
                self._readers.notify_all()

    def _write(
        self, work: Callable[[lmdb.Transaction], T], deadline: Deadline | None
    ) -> T:
        deadline = deadline or Deadline()
        deadline.check()
        timeout = deadline.remaining()
        if not self._write_lock.acquire(timeout=-1 if timeout is None else timeout):
            raise TransactionTimeout("Timed out waiting for the write transaction")
        try:
            attempt = 0
            while True:
                try:
                    return self._run_write(work, deadline)
                except lmdb.MapResizedError:
                    # Zero adopts the size another process already set.
                    self._resize(0, deadline)
                    reason = "map resized by another process"
                except lmdb.MapFullError:
                    size = self.env.info()["map_size"] * 2
                    self._resize(size, deadline)
                    logger.warning("Grew LMDB map to %d bytes", size)
                    reason = "map full"
                except lmdb.Error as exc:
                    raise StorageUnavailable(f"LMDB write failed: {exc}") from exc
                attempt += 1
                if attempt > self.write_retries:
                    raise Conflict(f"Write gave up after {attempt} attempts: {reason}")
                logger.warning("Retrying write (%s), attempt %d", reason, attempt)
        finally:
            self._write_lock.release()

    def _run_write(
        self, work: Callable[[lmdb.Transaction], T], deadline: Deadline
    ) -> T:
        with self.env.begin(write=True) as txn:
            result = work(txn)
            deadline.seal()
        return result

    def _resize(self, size: int, deadline: Deadline) -> None:
        wait = self.resize_wait
        remaining = deadline.remaining()
        if remaining is not None:
            wait = min(wait, remaining)
        with self._readers:
            self._resizing = True
            try:
                if not self._readers.wait_for(
                    lambda: self._open_readers == 0, timeout=wait
                ):
                    raise Conflict("Cannot resize the map while snapshots are open")
                self.env.set_mapsize(size)
            except lmdb.Error as exc:
                raise StorageUnavailable(f"Cannot resize map to {size}: {exc}") from exc
            finally:
                self._resizing = False
                self._readers.notify_all()


def _prefix_scan(txn: lmdb.Transaction, prefix: str) -> Iterator[tuple[bytes, bytes]]:
    raw_prefix = _raw(prefix)
    cursor = txn.cursor()
    if not cursor.set_range(raw_prefix):
        return
    for raw_key, raw_value in cursor.iternext():
        if not raw_key.startswith(raw_prefix):
            break
        yield raw_key, raw_value


def _stamp(log: FoodLog, timestamp: int) -> JournalEntry:
    return JournalEntry(
        text=log.text,
        quantity=log.quantity,
        quantity_units=log.quantity_units,
        calories=log.calories,
        carbohydrate=log.carbohydrate,
        fat=log.fat,
        protein=log.protein,
        timestamp=timestamp,
    )


def _next_day(current: date) -> date:
    try:
        return (datetime.combine(current, datetime.min.time()) + ROLLOVER_SPAN).date()
    except OverflowError:
        raise InvalidInput(f"Cannot advance past {current}") from None


def _raw(text: str) -> bytes:
    return text.encode("utf-8")


def _text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CorruptRecord(f"Stored bytes are not UTF-8: {exc}") from exc
