"""User-related business logic."""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from food_journal.domain.deadline import Deadline
from food_journal.domain.models import TargetMacros, UserProfile, UserRecord

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user profiles and the day cursor."""

    def get_user(self, user_id: str) -> UserProfile:
        """Return the profile for a user id or raise NotFound."""

    def put_user(
        self, user_id: str, profile: UserProfile, deadline: Deadline | None = None
    ) -> UserProfile:
        """Upsert a profile, keeping an existing user's current_date."""

    def list_users(self) -> Iterator[UserRecord]:
        """Yield every user in user id order."""

    def advance_day(self, user_id: str, deadline: Deadline | None = None) -> date:
        """Move the user's current date forward and return the new date."""


def target_macros(target_calories: int) -> TargetMacros:
    """Set target macros from a calorie goal using the 50/30/20 rule."""
    return TargetMacros(
        target_fat=target_calories // 8,
        target_protein=target_calories // 12,
        target_carbohydrate=target_calories // 45,
    )


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository
    today: Callable[[], date] = date.today

    def register(  # noqa: PLR0913
        self,
        user_id: str,
        image: str,
        display_name: str,
        target_calories: int,
        current_date: date | None = None,
        deadline: Deadline | None = None,
    ) -> UserRecord:
        """Create or update a user, deriving macro targets from calories.

        Re-registering never moves an existing user's current date.
        """
        macros = target_macros(target_calories)
        profile = UserProfile(
            image=image,
            display_name=display_name,
            target_calories=target_calories,
            target_fat=macros.target_fat,
            target_protein=macros.target_protein,
            target_carbohydrate=macros.target_carbohydrate,
            current_date=current_date or self.today(),
        )
        stored = self.repository.put_user(user_id, profile, deadline=deadline)
        logger.info("Registered user %s on %s", user_id, stored.current_date)
        return UserRecord(user_id=user_id, profile=stored)

    def get_user(self, user_id: str) -> UserRecord:
        """Return a single user."""
        return UserRecord(user_id=user_id, profile=self.repository.get_user(user_id))

    def list_users(self) -> list[UserRecord]:
        """Return all users ordered by id."""
        return list(self.repository.list_users())

    def end_day(self, user_id: str, deadline: Deadline | None = None) -> date:
        """Close the user's current logging day and open the next one."""
        return self.repository.advance_day(user_id, deadline=deadline)
