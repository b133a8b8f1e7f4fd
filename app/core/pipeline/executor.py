"""
In-process task execution for document processing.

DocumentTaskExecutor runs document jobs as asyncio tasks behind a
semaphore. CaseCompletionGate serializes the case-level completion check
so synthesis runs at most once per distinct document state of a case.
"""
import asyncio
import logging
from collections import OrderedDict, defaultdict
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Set

from prometheus_client import Gauge

from app.config.pipeline_limits import MAX_CONCURRENT_DOCUMENTS, MAX_TRACKED_CASES

logger = logging.getLogger(__name__)

# Prometheus metrics
ACTIVE_DOCUMENT_TASKS = Gauge(
    "demand_active_document_tasks", "Documents currently being processed")


class DocumentTaskExecutor:
    """Bounded pool of document processing tasks.

    Submitting never blocks: the task is created immediately and waits for
    a slot. Callers poll document status for progress.

    Usage:
        executor = DocumentTaskExecutor(max_concurrent=5)
        executor.submit(case_id, document_id, lambda: processor.process(document_id))
    """

    def __init__(self, max_concurrent: int = MAX_CONCURRENT_DOCUMENTS):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        # created on first use so it binds to the loop running the tasks
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._tasks: Dict[str, Set[asyncio.Task]] = defaultdict(set)
        self._running = 0

    def submit(
        self,
        case_id: str,
        document_id: str,
        job: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task:
        """Schedule job for a document and return its task."""
        task = asyncio.create_task(self._run(document_id, job), name=f"document:{document_id}")
        self._tasks[case_id].add(task)
        task.add_done_callback(lambda t: self._forget(case_id, t))
        logger.info(f"Queued document {document_id} for case {case_id} ({self.in_flight()} in flight)")
        return task

    async def _run(self, document_id: str, job: Callable[[], Awaitable[Any]]) -> Any:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
        async with self._semaphore:
            ACTIVE_DOCUMENT_TASKS.inc()
            self._running += 1
            try:
                return await job()
            except Exception as e:
                logger.error(f"Document task {document_id} failed: {e}")
                raise
            finally:
                self._running -= 1
                ACTIVE_DOCUMENT_TASKS.dec()

    def _forget(self, case_id: str, task: asyncio.Task) -> None:
        tasks = self._tasks.get(case_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[case_id]

    @property
    def running(self) -> int:
        """Tasks currently holding a slot."""
        return self._running

    def in_flight(self, case_id: Optional[str] = None) -> int:
        """Submitted tasks not yet finished, for one case or all cases."""
        if case_id is not None:
            return len(self._tasks.get(case_id, ()))
        return sum(len(tasks) for tasks in self._tasks.values())

    async def drain(self) -> None:
        """Wait for every submitted task to finish (shutdown and tests)."""
        while self._tasks:
            pending = [task for tasks in self._tasks.values() for task in tasks]
            await asyncio.gather(*pending, return_exceptions=True)


class CaseCompletionGate:
    """Single-writer guard for case-level completion work.

    run_once_per_state takes a snapshot of the case's document states under
    the case lock and runs its action only when that snapshot differs from
    the last one evaluated, so concurrent completions that observe the same
    final state trigger the action once.

    A case's lock is dropped once no caller holds or waits on it, and only
    the most recent max_cases snapshots are remembered.
    """

    def __init__(self, max_cases: int = MAX_TRACKED_CASES):
        self.max_cases = max_cases
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = defaultdict(int)
        self._evaluated: "OrderedDict[str, Hashable]" = OrderedDict()

    def last_evaluated(self, case_id: str) -> Optional[Hashable]:
        return self._evaluated.get(case_id)

    @property
    def tracked_locks(self) -> int:
        """Cases with a caller currently inside or waiting on the gate."""
        return len(self._locks)

    async def run_once_per_state(
        self,
        case_id: str,
        snapshot: Callable[[], Awaitable[Hashable]],
        action: Callable[[], Awaitable[Any]],
    ) -> bool:
        """
        Run action for the case's current state if nobody has yet.

        Args:
            case_id: Case being evaluated
            snapshot: Returns a hashable fingerprint of the case's document states
            action: Completion work to run for a new state

        Returns:
            True if this call ran the action
        """
        lock = self._locks.get(case_id)
        if lock is None:
            lock = self._locks[case_id] = asyncio.Lock()
        self._users[case_id] += 1
        try:
            async with lock:
                state = await snapshot()
                if self._evaluated.get(case_id) == state:
                    logger.debug(f"Case {case_id} completion state already evaluated")
                    return False
                self._remember(case_id, state)
                await action()
                return True
        finally:
            self._users[case_id] -= 1
            if not self._users[case_id]:
                del self._users[case_id]
                del self._locks[case_id]

    def _remember(self, case_id: str, state: Hashable) -> None:
        self._evaluated[case_id] = state
        self._evaluated.move_to_end(case_id)
        while len(self._evaluated) > self.max_cases:
            evicted, _ = self._evaluated.popitem(last=False)
            logger.debug(f"Forgetting completion state of case {evicted}")
