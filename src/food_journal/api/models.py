"""Pydantic models for HTTP request payloads."""

from datetime import date

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Registration payload."""

    image: str
    user_name: str
    display_name: str
    target_calories: int = Field(ge=0)
    current_date: date | None = None


class JournalEntryRequest(BaseModel):
    """Food log payload: what did I eat, and its macros."""

    text: str
    qty: float = Field(ge=0)
    qty_units: str
    calories: int = Field(ge=0)
    carbohydrate: int = Field(ge=0)
    fat: int = Field(ge=0)
    protein: int = Field(ge=0)
