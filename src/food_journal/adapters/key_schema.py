"""Key grammar and record serialization for the shared LMDB namespace.

Every logical record type lives in one flat database and the key prefix
discriminates the type:

    user.<user_id>                                -> UserProfile
    entry.<user_id>.<YYYY-MM-DD>.<timestamp>      -> JournalEntry
    food.<first 16 characters of the entry text>  -> JournalEntry (recall index)

Values are field-name keyed JSON objects validated through the models in
``domain.stored``. Dates are ISO formatted and timestamps are zero-padded to
a fixed width, so the lexicographic key order of a user's journal is
chronological.
"""

import json
from dataclasses import asdict
from datetime import date
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from food_journal.domain.errors import CorruptRecord, InvalidInput
from food_journal.domain.models import JournalEntry, UserProfile
from food_journal.domain.stored import StoredDay, StoredEntry, StoredUser

SEPARATOR = "."
RECALL_PREFIX_LENGTH = 16
TIMESTAMP_WIDTH = 13
MAX_TIMESTAMP = 10**TIMESTAMP_WIDTH - 1
MAX_KEY_BYTES = 511

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordKind(Enum):
    """Logical record types multiplexed into the namespace."""

    USER = "user"
    ENTRY = "entry"
    RECALL = "food"

    @property
    def prefix(self) -> str:
        """Return the reserved key prefix, separator included."""
        return self.value + SEPARATOR


# The longest key a user id appears in is an entry key:
# "entry." + id + ".YYYY-MM-DD." + 13-digit timestamp.
MAX_USER_ID_BYTES = (
    MAX_KEY_BYTES
    - len(RecordKind.ENTRY.prefix)
    - len(SEPARATOR + "YYYY-MM-DD" + SEPARATOR)
    - TIMESTAMP_WIDTH
)


def kind_of(key: str) -> RecordKind:
    """Return the record kind a key belongs to."""
    for kind in RecordKind:
        if key.startswith(kind.prefix):
            return kind
    raise CorruptRecord(f"Key {key!r} has no known record prefix")


def user_key(user_id: str) -> str:
    """Return the key of a user profile."""
    _check_user_id(user_id)
    return RecordKind.USER.prefix + user_id


def user_prefix() -> str:
    """Return the scan prefix covering every user profile."""
    return RecordKind.USER.prefix


def entry_prefix(user_id: str) -> str:
    """Return the scan prefix covering one user's journal."""
    _check_user_id(user_id)
    return RecordKind.ENTRY.prefix + user_id + SEPARATOR


def entry_key(user_id: str, day: date, timestamp: int) -> str:
    """Return the key of a journal entry logged on ``day`` at ``timestamp``."""
    if not 0 <= timestamp <= MAX_TIMESTAMP:
        raise InvalidInput(f"Timestamp {timestamp} does not fit the key width")
    return (
        entry_prefix(user_id)
        + day.isoformat()
        + SEPARATOR
        + str(timestamp).zfill(TIMESTAMP_WIDTH)
    )


def recall_key(text: str) -> str:
    """Return the recall-index key for an entry's free text.

    Text shorter than the prefix length is rejected rather than padded.
    """
    if len(text) < RECALL_PREFIX_LENGTH:
        raise InvalidInput(
            f"Text must be at least {RECALL_PREFIX_LENGTH} characters, "
            f"got {len(text)}"
        )
    return RecordKind.RECALL.prefix + text[:RECALL_PREFIX_LENGTH]


def user_id_from_key(key: str) -> str:
    """Recover the user id from a user profile key."""
    prefix = RecordKind.USER.prefix
    if kind_of(key) is not RecordKind.USER or len(key) == len(prefix):
        raise CorruptRecord(f"Key {key!r} is not a user key")
    return key[len(prefix) :]


def entry_id_from_key(key: str, user_id: str) -> str:
    """Strip the user's entry prefix, leaving the ``<date>.<timestamp>`` id."""
    prefix = entry_prefix(user_id)
    if not key.startswith(prefix) or len(key) == len(prefix):
        raise CorruptRecord(f"Key {key!r} is not an entry of user {user_id!r}")
    return key[len(prefix) :]


def encode_user(profile: UserProfile) -> str:
    """Serialize a user profile."""
    return StoredUser(**asdict(profile)).model_dump_json()


def decode_user(value: str) -> UserProfile:
    """Deserialize a user profile, raising CorruptRecord on schema mismatch."""
    return UserProfile(**_validate(StoredUser, value).model_dump())


def decode_current_date(value: str) -> date:
    """Read only the day cursor out of a stored user profile."""
    return _validate(StoredDay, value).current_date


def encode_entry(entry: JournalEntry) -> str:
    """Serialize a journal entry under its stored field names."""
    return StoredEntry(**asdict(entry)).model_dump_json(by_alias=True)


def decode_entry(value: str) -> JournalEntry:
    """Deserialize a journal entry, raising CorruptRecord on schema mismatch."""
    return JournalEntry(**_validate(StoredEntry, value).model_dump())


def replace_field(value: str, name: str, new_value: object) -> str:
    """Rewrite one field of a stored object, keeping every other field."""
    try:
        row = json.loads(value)
    except ValueError as exc:
        raise CorruptRecord(f"Stored value is not JSON: {exc}") from exc
    if not isinstance(row, dict) or name not in row:
        raise CorruptRecord(f"Stored record has no field {name!r}")
    row[name] = new_value
    return json.dumps(row, separators=(",", ":"), ensure_ascii=False)


def _check_user_id(user_id: str) -> None:
    if not user_id:
        raise InvalidInput("user_id must not be empty")
    if SEPARATOR in user_id:
        raise InvalidInput(f"user_id must not contain {SEPARATOR!r}: {user_id!r}")
    if len(user_id.encode("utf-8")) > MAX_USER_ID_BYTES:
        raise InvalidInput(f"user_id exceeds {MAX_USER_ID_BYTES} bytes")


def _validate(model: type[ModelT], value: str) -> ModelT:
    try:
        return model.model_validate_json(value)
    except ValidationError as exc:
        raise CorruptRecord(
            f"Stored value is not a valid {model.__name__}: {exc}"
        ) from exc
