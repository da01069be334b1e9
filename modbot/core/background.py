"""
Deferred work: runs after the webhook response has been sent.

Starlette keeps the request open until its BackgroundTasks finish, which is
the "run after response, keep alive until done" primitive interactions need.
Every task goes through run_deferred so a failure is logged and never reaches
the transport.
"""
from typing import Awaitable, Callable, Optional

from fastapi import BackgroundTasks

from ..shared.utils.logger import (bind_request_id, get_logger,
                                   get_request_id, reset_request_id)

logger = get_logger(__name__)


async def run_deferred(
    func: Callable[..., Awaitable],
    *args,
    label: Optional[str] = None,
    request_id: Optional[str] = None,
    **kwargs,
) -> None:
    token = bind_request_id(request_id) if request_id else None
    try:
        await func(*args, **kwargs)
    except Exception:
        logger.exception(f"Deferred task failed: {label or func.__name__}")
    finally:
        if token is not None:
            reset_request_id(token)


def schedule_deferred(
    background_tasks: BackgroundTasks,
    func: Callable[..., Awaitable],
    *args,
    label: Optional[str] = None,
    **kwargs,
) -> None:
    background_tasks.add_task(
        run_deferred, func, *args, label=label, request_id=get_request_id(), **kwargs
    )
