import asyncio
from typing import Awaitable, TypeVar

from pdfexport.errors import RenderCancelledError

T = TypeVar("T")


def raise_if_cancelled(cancel_event: asyncio.Event | None, *, engine: str | None = None, stage: str | None = None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelledError("PDF export cancelled", engine=engine, stage=stage)


async def run_cancellable(
    aw: Awaitable[T],
    cancel_event: asyncio.Event | None,
    *,
    engine: str | None = None,
    stage: str | None = None,
) -> T:
    """Await ``aw`` unless ``cancel_event`` fires first, in which case the
    backend call is cancelled and RenderCancelledError is raised."""
    if cancel_event is None:
        return await aw

    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if task in done:
        waiter.cancel()
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise RenderCancelledError("PDF export cancelled", engine=engine, stage=stage)
