"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from food_journal.adapters.lmdb_store import LmdbJournalStore, open_environment
from food_journal.config import Settings
from food_journal.services.journal import JournalService
from food_journal.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    journal_service: JournalService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    The process owns a single LMDB environment; every service borrows it
    through the store for the lifetime of each transaction.
    """
    resolved_settings = settings or Settings()
    env = open_environment(
        resolved_settings.data_dir,
        map_size=resolved_settings.map_size,
        max_readers=resolved_settings.max_readers,
    )
    store = LmdbJournalStore(env, write_retries=resolved_settings.write_retries)
    user_service = UserService(store)
    journal_service = JournalService(store)

    async def close_resources() -> None:
        store.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        journal_service=journal_service,
        close_resources=close_resources,
    )
