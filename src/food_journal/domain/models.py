"""Domain models for the food journal."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class UserProfile:
    """A registered user with daily targets and the open logging day."""

    image: str
    display_name: str
    target_calories: int
    target_fat: int
    target_protein: int
    target_carbohydrate: int
    current_date: date


@dataclass(frozen=True)
class JournalEntry:
    """A single food log line. Immutable once written."""

    text: str
    quantity: float
    quantity_units: str
    calories: int
    carbohydrate: int
    fat: int
    protein: int
    timestamp: int


@dataclass(frozen=True)
class JournalRecord:
    """A journal entry paired with its client-facing id."""

    id: str
    entry: JournalEntry


@dataclass(frozen=True)
class UserRecord:
    """A user profile together with the id it is stored under."""

    user_id: str
    profile: UserProfile


@dataclass(frozen=True)
class FoodLog:
    """What the caller reports eating, before the store stamps it."""

    text: str
    quantity: float
    quantity_units: str
    calories: int
    carbohydrate: int
    fat: int
    protein: int


@dataclass(frozen=True)
class TargetMacros:
    """Daily macronutrient targets derived from a calorie goal."""

    target_fat: int
    target_protein: int
    target_carbohydrate: int
