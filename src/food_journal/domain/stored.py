"""Stored JSON layouts of user profiles and journal entries."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class StoredUser(BaseModel):
    """Value stored under ``user.<user_id>``."""

    model_config = ConfigDict(strict=True, frozen=True)

    image: str
    display_name: str
    target_calories: int
    target_fat: int
    target_protein: int
    target_carbohydrate: int
    current_date: date


class StoredDay(BaseModel):
    """Just the day cursor of a stored user profile."""

    model_config = ConfigDict(strict=True, frozen=True)

    current_date: date


class StoredEntry(BaseModel):
    """Value stored under an entry key and its recall key."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)

    text: str
    timestamp: int
    quantity: float = Field(alias="qty")
    quantity_units: str = Field(alias="qty_units")
    calories: int
    carbohydrate: int
    fat: int
    protein: int
