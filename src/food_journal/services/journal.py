"""Food journal service."""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from food_journal.domain.deadline import Deadline
from food_journal.domain.models import FoodLog, JournalRecord


class JournalRepository(Protocol):
    """Persistence interface for journal entries."""

    def append_journal_entry(
        self, user_id: str, log: FoodLog, deadline: Deadline | None = None
    ) -> str:
        """Store a food log on the user's current day and return its id."""

    def list_journal_entries(self, user_id: str) -> Iterator[JournalRecord]:
        """Yield the user's journal in chronological order."""


@dataclass
class JournalService:
    """Application service for journal reads and writes."""

    repository: JournalRepository

    def log_food(
        self, user_id: str, log: FoodLog, deadline: Deadline | None = None
    ) -> str:
        """Append a food log to the user's journal."""
        return self.repository.append_journal_entry(user_id, log, deadline=deadline)

    def list_entries(self, user_id: str) -> list[JournalRecord]:
        """Return the user's journal entries."""
        return list(self.repository.list_journal_entries(user_id))
