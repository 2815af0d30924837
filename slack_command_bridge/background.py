"""Utilities for running request work after Slack has been acknowledged."""

from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars

# replies (denials, menus, forms) never share workers with long-running jobs
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="command-bridge")
_job_executor = ThreadPoolExecutor(max_workers=32, thread_name_prefix="command-bridge-job")


def _submit(
    executor: ThreadPoolExecutor,
    func: Callable[..., Any],
    args: tuple,
    kwargs: dict,
    trace_id: str | None,
) -> Future:
    context = copy_context()

    if trace_id is not None:
        existing_trace = context.run(lambda: get_contextvars().get("trace_id"))

        if existing_trace != trace_id:
            context.run(lambda: bind_contextvars(trace_id=trace_id))

    task_name = getattr(func, "__name__", repr(func))

    def runner() -> Any:
        try:
            return context.run(func, *args, **kwargs)
        except Exception as exc:
            context.run(
                lambda: structlog.get_logger().exception(
                    "background_task_failed",
                    task=task_name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            )
            raise

    return executor.submit(runner)


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Submit *func* to the shared reply pool and return a Future.

    The caller's structlog context is copied into the worker. Exceptions are
    logged as ``background_task_failed`` (with the trace id) and re-raised so
    the returned Future still carries them.
    """

    return _submit(_executor, func, args, kwargs, trace_id)


def run_job_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Like :func:`run_async`, but on the pool reserved for job runs.

    Job runs may block until the workflow timeout, so they are kept off the
    pool that answers denials, menus and forms.
    """

    return _submit(_job_executor, func, args, kwargs, trace_id)
