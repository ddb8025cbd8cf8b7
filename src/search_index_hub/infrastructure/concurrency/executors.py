"""
Executors used for provider fan-out.

Every executor honours the same contract: run N independent units of work,
block until all of them finish, and return their results in submission
order. The first failure is re-raised and pending work is cancelled; no
partial result list is ever returned.
"""

from __future__ import annotations

from concurrent import futures
from multiprocessing import get_context
from typing import Callable, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from search_index_hub.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
Task = Callable[[], T]


@runtime_checkable
class ConcurrencyExecutor(Protocol):
    """Run independent tasks and return their results in submission order."""

    def run(self, tasks: Sequence[Task]) -> List: ...


class SequentialExecutor:
    """Runs tasks in-line, in order. Useful for tests and debugging."""

    def run(self, tasks: Sequence[Task]) -> List:
        return [task() for task in tasks]

    def shutdown(self) -> None:
        pass


class PoolExecutor:
    """
    ``concurrent.futures`` backed executor with fail-fast semantics.

    The pool is created lazily on first use and reused until ``shutdown``.
    Process pools require picklable tasks (``functools.partial`` over
    picklable providers).
    """

    def __init__(self, workers: int, policy: str = "thread") -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self.policy = policy
        self._pool: Optional[futures.Executor] = None

    def _ensure_pool(self) -> futures.Executor:
        if self._pool is None:
            if self.policy == "process":
                mp_ctx = get_context("spawn")
                self._pool = futures.ProcessPoolExecutor(
                    max_workers=self.workers, mp_context=mp_ctx
                )
            else:
                self._pool = futures.ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix="provider-fanout"
                )
        return self._pool

    def run(self, tasks: Sequence[Task]) -> List:
        if not tasks:
            return []

        pool = self._ensure_pool()
        submitted = [pool.submit(task) for task in tasks]
        done, pending = futures.wait(submitted, return_when=futures.FIRST_EXCEPTION)

        for future in submitted:
            if future in done and future.exception() is not None:
                for other in pending:
                    other.cancel()
                logger.debug(
                    "executor.fail_fast",
                    failed=1,
                    cancelled=len(pending),
                )
                raise future.exception()

        return [future.result() for future in submitted]

    def shutdown(self, wait: bool = True) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
            self._pool = None

    def __enter__(self) -> "PoolExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


def create_executor(policy: str, workers: int) -> ConcurrencyExecutor:
    """
    Return an executor configured for the given policy.

    Args:
        policy: ``"sequential"`` runs in-line, ``"process"`` selects a process
            pool, anything else a thread pool suited to IO-bound providers.
        workers: Desired concurrency level. ``<= 1`` always runs in-line.
    """
    normalized = (policy or "thread").lower()
    if normalized == "sequential" or workers <= 1:
        return SequentialExecutor()
    return PoolExecutor(workers=workers, policy=normalized)
