"""Food journal endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, Response, status

from food_journal.api.dependencies import (
    get_container,
    require_user_id,
    run_store_call,
)
from food_journal.api.models import JournalEntryRequest  # noqa: TC001
from food_journal.domain.models import FoodLog

if TYPE_CHECKING:
    from food_journal.domain.models import JournalRecord

router = APIRouter(tags=["journal"])


@router.get("/journal")
async def get_journal(
    request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, object]:
    """Return the caller's journal in chronological order."""
    container = get_container(request)
    records = await run_store_call(
        container,
        lambda _deadline: container.journal_service.list_entries(user_id),
    )
    return {"records": [_serialize_record(record) for record in records]}


@router.post("/journal", status_code=status.HTTP_204_NO_CONTENT)
async def post_journal(
    payload: JournalEntryRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> Response:
    """Log a food on the caller's current day."""
    container = get_container(request)
    log = FoodLog(
        text=payload.text,
        quantity=payload.qty,
        quantity_units=payload.qty_units,
        calories=payload.calories,
        carbohydrate=payload.carbohydrate,
        fat=payload.fat,
        protein=payload.protein,
    )
    entry_id = await run_store_call(
        container,
        lambda deadline: container.journal_service.log_food(
            user_id, log, deadline=deadline
        ),
    )
    return Response(
        status_code=status.HTTP_204_NO_CONTENT, headers={"x-fj-entry": entry_id}
    )


def _serialize_record(record: JournalRecord) -> dict[str, object]:
    entry = record.entry
    return {
        "id": record.id,
        "text": entry.text,
        "timestamp": entry.timestamp,
        "qty": entry.quantity,
        "qty_units": entry.quantity_units,
        "calories": entry.calories,
        "carbohydrate": entry.carbohydrate,
        "fat": entry.fat,
        "protein": entry.protein,
    }
