"""Shared test fixtures."""

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path

import pytest

from food_journal.adapters.lmdb_store import (
    LmdbJournalStore,
    MillisecondClock,
    open_environment,
)
from food_journal.config import Settings
from food_journal.containers import AppContainer, build_container
from food_journal.domain.deadline import Deadline
from food_journal.domain.errors import NotFound
from food_journal.domain.models import (
    FoodLog,
    JournalEntry,
    JournalRecord,
    UserProfile,
    UserRecord,
)
from food_journal.services.journal import JournalRepository
from food_journal.services.users import UserRepository


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[str, UserProfile] = field(default_factory=dict)
    deadlines: list[Deadline | None] = field(default_factory=list)

    def get_user(self, user_id: str) -> UserProfile:
        if user_id not in self.users:
            raise NotFound(user_id)
        return self.users[user_id]

    def put_user(
        self, user_id: str, profile: UserProfile, deadline: Deadline | None = None
    ) -> UserProfile:
        self.deadlines.append(deadline)
        if user_id in self.users:
            profile = replace(profile, current_date=self.users[user_id].current_date)
        self.users[user_id] = profile
        return profile

    def list_users(self) -> Iterator[UserRecord]:
        for user_id in sorted(self.users):
            yield UserRecord(user_id=user_id, profile=self.users[user_id])

    def advance_day(self, user_id: str, deadline: Deadline | None = None) -> date:
        profile = self.get_user(user_id)
        following = date.fromordinal(profile.current_date.toordinal() + 1)
        self.users[user_id] = replace(profile, current_date=following)
        return following


@dataclass
class InMemoryJournalRepository(JournalRepository):
    """In-memory journal repository for tests."""

    entries: dict[str, list[JournalRecord]] = field(default_factory=dict)
    next_timestamp: int = 1

    def append_journal_entry(
        self, user_id: str, log: FoodLog, deadline: Deadline | None = None
    ) -> str:
        timestamp = self.next_timestamp
        self.next_timestamp += 1
        entry_id = f"2024-03-01.{timestamp:013d}"
        entry = JournalEntry(
            text=log.text,
            quantity=log.quantity,
            quantity_units=log.quantity_units,
            calories=log.calories,
            carbohydrate=log.carbohydrate,
            fat=log.fat,
            protein=log.protein,
            timestamp=timestamp,
        )
        self.entries.setdefault(user_id, []).append(
            JournalRecord(id=entry_id, entry=entry)
        )
        return entry_id

    def list_journal_entries(self, user_id: str) -> Iterator[JournalRecord]:
        yield from self.entries.get(user_id, [])


def make_profile(current_date: date = date(2024, 3, 1), **overrides) -> UserProfile:
    values: dict[str, object] = {
        "image": "https://example.com/alice.png",
        "display_name": "Alice",
        "target_calories": 2400,
        "target_fat": 300,
        "target_protein": 200,
        "target_carbohydrate": 53,
        "current_date": current_date,
    }
    values.update(overrides)
    return UserProfile(**values)


def make_log(text: str = "Greek yogurt with honey", **overrides) -> FoodLog:
    values: dict[str, object] = {
        "text": text,
        "quantity": 1.5,
        "quantity_units": "cup",
        "calories": 320,
        "carbohydrate": 40,
        "fat": 8,
        "protein": 22,
    }
    values.update(overrides)
    return FoodLog(**values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data", request_timeout_seconds=5.0)


@pytest.fixture
def store(tmp_path: Path) -> Iterator[LmdbJournalStore]:
    env = open_environment(tmp_path / "lmdb", map_size=16 * 1024 * 1024, max_readers=16)
    journal_store = LmdbJournalStore(
        env, clock=MillisecondClock(now=lambda: 1_709_251_200.0)
    )
    yield journal_store
    journal_store.close()


@pytest.fixture
def container(settings: Settings) -> Iterator[AppContainer]:
    app_container = build_container(settings)
    yield app_container
    asyncio.run(app_container.close_resources())
