"""Request-scoped helpers shared by the routers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

from fastapi import Header, HTTPException, Request, status

from food_journal.domain.deadline import Deadline
from food_journal.domain.errors import TransactionTimeout

if TYPE_CHECKING:
    from collections.abc import Callable

    from food_journal.containers import AppContainer

T = TypeVar("T")


def get_container(request: Request) -> AppContainer:
    """Return the container attached to the app."""
    return request.app.state.container


async def require_user_id(x_fj_user: str | None = Header(default=None)) -> str:
    """Return the caller's user id from the x-fj-user header."""
    if not x_fj_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing x-fj-user header",
        )
    return x_fj_user


async def run_store_call(container: AppContainer, work: Callable[[Deadline], T]) -> T:
    """Run a blocking store call in a worker thread under the request timeout.

    On timeout or cancellation the deadline is cancelled, so a write still
    running in the thread aborts instead of committing. A write that had
    already sealed its deadline is committing; on timeout its outcome is
    awaited and returned, so the caller never sees 409 for a landed write.
    """
    timeout = container.settings.request_timeout_seconds
    deadline = Deadline.after(timeout)
    call = asyncio.ensure_future(asyncio.to_thread(work, deadline))
    try:
        return await asyncio.wait_for(asyncio.shield(call), timeout)
    except TimeoutError:
        if deadline.cancel():
            call.add_done_callback(_drop_outcome)
            raise TransactionTimeout(f"Request exceeded {timeout} seconds") from None
        return await call
    except asyncio.CancelledError:
        deadline.cancel()
        call.add_done_callback(_drop_outcome)
        raise


def _drop_outcome(call: asyncio.Future[object]) -> None:
    # Nobody awaits an abandoned call; retrieving its error keeps asyncio quiet.
    if not call.cancelled():
        call.exception()
