"""User registration, listing and day rollover endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status

from food_journal.api.dependencies import (
    get_container,
    require_user_id,
    run_store_call,
)
from food_journal.api.models import RegisterRequest  # noqa: TC001

if TYPE_CHECKING:
    from food_journal.domain.models import UserRecord

router = APIRouter(prefix="/v1", tags=["users"])


@router.get("/users")
async def list_users(request: Request) -> dict[str, object]:
    """Return every registered user."""
    container = get_container(request)
    users = await run_store_call(
        container, lambda _deadline: container.user_service.list_users()
    )
    return {"users": [_serialize_user(user) for user in users]}


@router.get("/users/{user_name}")
async def get_user(user_name: str, request: Request) -> dict[str, object]:
    """Return one registered user."""
    container = get_container(request)
    user = await run_store_call(
        container, lambda _deadline: container.user_service.get_user(user_name)
    )
    return _serialize_user(user)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, request: Request) -> dict[str, object]:
    """Create or replace a user and return the stored profile."""
    container = get_container(request)
    user = await run_store_call(
        container,
        lambda deadline: container.user_service.register(
            user_id=payload.user_name,
            image=payload.image,
            display_name=payload.display_name,
            target_calories=payload.target_calories,
            current_date=payload.current_date,
            deadline=deadline,
        ),
    )
    return _serialize_user(user)


@router.post("/end-day")
async def end_day(
    request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, str]:
    """Close the caller's current day and return the new one."""
    container = get_container(request)
    following = await run_store_call(
        container,
        lambda deadline: container.user_service.end_day(user_id, deadline=deadline),
    )
    return {"current_date": following.isoformat()}


def _serialize_user(user: UserRecord) -> dict[str, object]:
    profile = user.profile
    return {
        "image": profile.image,
        "user_name": user.user_id,
        "display_name": profile.display_name,
        "target_calories": profile.target_calories,
        "target_fat": profile.target_fat,
        "target_protein": profile.target_protein,
        "target_carbohydrate": profile.target_carbohydrate,
        "current_date": profile.current_date.isoformat(),
    }
