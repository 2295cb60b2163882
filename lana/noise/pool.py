"""
Worker Pool
Bounded process pool with a per-task timeout.

Each task runs in its own worker process and sends its result back over a
pipe. At most `workers` processes are alive at any time; a worker that
overruns its deadline is terminated and reported as timed out.
"""

import logging
import multiprocessing
import time
from dataclasses import dataclass
from multiprocessing.connection import Connection, wait
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


class TaskTimeout(Exception):
    """A task did not finish before its deadline."""


class WorkerCrashed(Exception):
    """A worker exited without sending a result."""


@dataclass(frozen=True)
class TaskOutcome:
    """Result (or failure) of one task, tagged with its key."""

    key: Any
    result: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _RunningTask:
    key: Any
    process: multiprocessing.Process
    deadline: float


def _worker_main(conn: Connection, func: Callable, args: Tuple) -> None:
    """Child process body: run func(*args) and send the outcome."""
    try:
        result = func(*args)
    except Exception as e:
        conn.send((False, e))
    else:
        conn.send((True, result))
    finally:
        conn.close()


class WorkerPool:
    """
    Runs independent tasks in at most `workers` parallel processes.

    Example:
        >>> pool = WorkerPool(workers=4, timeout=60)
        >>> for outcome in pool.imap_unordered(process_snapshot_file, tasks):
        ...     print(outcome.key, outcome.ok)
    """

    def __init__(self, workers: int, timeout: float, context: Optional[str] = None):
        """
        Initialize worker pool.

        Args:
            workers: Maximum number of concurrently running tasks
            timeout: Seconds a single task may run before it is terminated
            context: multiprocessing start method (default: platform default)
        """
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.workers = workers
        self.timeout = timeout
        self.ctx = multiprocessing.get_context(context)

    def _start(self, key: Any, func: Callable, args: Tuple) -> Tuple[Connection, _RunningTask]:
        reader, writer = self.ctx.Pipe(duplex=False)
        process = self.ctx.Process(target=_worker_main, args=(writer, func, args), daemon=True)
        process.start()
        # The child holds its own copy of the write end
        writer.close()
        return reader, _RunningTask(key, process, time.monotonic() + self.timeout)

    @staticmethod
    def _finish(conn: Connection, task: _RunningTask) -> TaskOutcome:
        try:
            success, payload = conn.recv()
        except (EOFError, OSError):
            task.process.join()
            return TaskOutcome(
                task.key,
                error=WorkerCrashed(f"worker exited with code {task.process.exitcode}"),
            )
        finally:
            conn.close()

        task.process.join()
        if success:
            return TaskOutcome(task.key, result=payload)
        return TaskOutcome(task.key, error=payload)

    @staticmethod
    def _terminate(conn: Connection, task: _RunningTask) -> None:
        task.process.terminate()
        task.process.join()
        conn.close()

    def imap_unordered(
        self, func: Callable, tasks: Iterable[Tuple[Any, Tuple]]
    ) -> Iterator[TaskOutcome]:
        """
        Run func(*args) for every (key, args) pair, yielding as tasks finish.

        func must be a picklable module-level function. Tasks are started
        lazily, so no more than `workers` are ever in flight.

        Yields:
            TaskOutcome per task; timed out tasks carry a TaskTimeout error
        """
        pending = iter(tasks)
        running: Dict[Connection, _RunningTask] = {}
        exhausted = False

        try:
            while True:
                while not exhausted and len(running) < self.workers:
                    try:
                        key, args = next(pending)
                    except StopIteration:
                        exhausted = True
                        break
                    conn, task = self._start(key, func, args)
                    running[conn] = task

                if not running:
                    return

                next_deadline = min(task.deadline for task in running.values())
                ready = wait(list(running), timeout=max(0.0, next_deadline - time.monotonic()))

                for conn in ready:
                    yield self._finish(conn, running.pop(conn))

                now = time.monotonic()
                for conn, task in list(running.items()):
                    if task.deadline <= now:
                        del running[conn]
                        # Finished while the consumer held the generator
                        if conn.poll():
                            yield self._finish(conn, task)
                            continue
                        self._terminate(conn, task)
                        logger.warning("Task %s timed out after %gs", task.key, self.timeout)
                        yield TaskOutcome(
                            task.key,
                            error=TaskTimeout(f"timed out after {self.timeout}s"),
                        )
        finally:
            # Consumer stopped early or an error escaped: do not leak workers
            for conn, task in running.items():
                self._terminate(conn, task)
