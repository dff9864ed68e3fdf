"""
Bounded-concurrency helper for independent provider calls.

Tasks run on a small thread pool; outcomes come back in submission order
regardless of completion order.  A ``threading.Event`` acts as the
cancellation token: once set, queued tasks are cancelled, running ones are
abandoned and ``PlanCancelled`` is raised.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from ev_route_planner.errors import PlanCancelled

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result or exception of one task."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def check_cancelled(cancel_event: Optional[threading.Event], stage: str = "") -> None:
    """Raise PlanCancelled if the token has been set."""
    if cancel_event is not None and cancel_event.is_set():
        where = f" during {stage}" if stage else ""
        raise PlanCancelled(f"Planning request was cancelled{where}.")


def run_bounded(
    tasks: Sequence[Callable[[], T]],
    max_workers: int,
    cancel_event: Optional[threading.Event] = None,
    poll_interval_s: float = 0.05,
    stage: str = "",
) -> List[Outcome[T]]:
    """
    Run independent zero-argument callables with at most ``max_workers`` in flight.

    Every task's exception is captured in its Outcome rather than raised,
    so one failing call never hides the others.

    Raises:
        PlanCancelled: If ``cancel_event`` is set before all tasks finish.
    """
    check_cancelled(cancel_event, stage)
    if not tasks:
        return []

    def _guarded(task: Callable[[], T]) -> T:
        check_cancelled(cancel_event, stage)
        return task()

    workers = max(1, min(int(max_workers), len(tasks)))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="planner")
    futures = [executor.submit(_guarded, task) for task in tasks]
    try:
        pending = set(futures)
        timeout = poll_interval_s if cancel_event is not None else None
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                for fut in pending:
                    fut.cancel()
                check_cancelled(cancel_event, stage)
            _, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    check_cancelled(cancel_event, stage)

    outcomes: List[Outcome[T]] = []
    for fut in futures:
        exc = fut.exception()
        if exc is not None:
            outcomes.append(Outcome(error=exc))
        else:
            outcomes.append(Outcome(value=fut.result()))
    return outcomes
