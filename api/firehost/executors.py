"""
Scheduled executors.

:class:`RevivingScheduledExecutor` runs delayed and periodic tasks on a single worker thread. If that
thread dies, a new one takes its place, so work queued on the executor is never stranded. In a
restricted threading environment, where background threads only live for a bounded time, the worker
retires on its own after a while and is replaced the same way.
"""
from __future__ import annotations

import heapq
import itertools
import random
import threading
import time
from concurrent.futures import Executor, Future, InvalidStateError
from logging import getLogger
from typing import Any, Callable, Protocol, runtime_checkable

from firehost.config import ThreadingConfig
from firehost.threads import ThreadFactory

logger = getLogger(__name__)


@runtime_checkable
class ScheduledExecutor(Protocol):
    """An executor that supports delayed and periodic task submission."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        ...

    def schedule(self, fn: Callable[..., Any], delay: float, /, *args: Any, **kwargs: Any) -> Future:
        ...

    def schedule_at_fixed_rate(
        self, fn: Callable[..., Any], initial_delay: float, period: float, /, *args: Any, **kwargs: Any
    ) -> Future:
        ...

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        ...

    def shutdown_now(self) -> list[Callable[..., Any]]:
        ...


class _ScheduledTask:
    """A queued call and the future that reports its outcome."""

    def __init__(
        self,
        fn: Callable[..., Any],
        args: tuple,
        kwargs: dict[str, Any],
        when: float,
        period: float | None = None,
    ):
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.when = when
        self.period = period
        self.future: Future = Future()

    @property
    def periodic(self) -> bool:
        return self.period is not None

    def run(self) -> bool:
        """
        Runs the task once.

        :return: True if a periodic task should run again.
        """
        if self.periodic:
            if self.future.cancelled():
                return False
        elif not self.future.set_running_or_notify_cancel():
            return False

        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as exc:
            if not self.periodic:
                self.future.set_exception(exc)
            elif self._set_periodic_exception(exc):
                logger.exception("Periodic task %r failed; it will not run again", self.fn)
            if not isinstance(exc, Exception):
                raise
            return False

        if self.periodic:
            return not self.future.cancelled()
        self.future.set_result(result)
        return False

    def _set_periodic_exception(self, exc: BaseException) -> bool:
        # A periodic future stays pending between runs, so the caller may cancel it while a run is in progress.
        try:
            self.future.set_exception(exc)
        except InvalidStateError:
            return False
        return True


class RevivingScheduledExecutor(Executor):
    """
    Single-threaded scheduled executor that replaces its worker thread when it dies.

    :param thread_factory: Creates the (unstarted) worker threads.
    :param name: Name given to every worker thread.
    :param restricted: Retire and replace the worker thread periodically.
    :param restart_interval: Seconds a worker lives in restricted mode.
    :param restart_jitter: Upper bound of the random seconds added to ``restart_interval``.
    """

    def __init__(
        self,
        thread_factory: ThreadFactory,
        name: str,
        restricted: bool = False,
        restart_interval: float | None = None,
        restart_jitter: float | None = None,
    ):
        self._thread_factory = thread_factory
        self._name = name
        self._restricted = restricted
        self._restart_interval = ThreadingConfig.restart_interval if restart_interval is None else restart_interval
        self._restart_jitter = ThreadingConfig.restart_jitter if restart_jitter is None else restart_jitter

        self._condition = threading.Condition()
        self._queue: list[tuple[float, int, _ScheduledTask]] = []
        self._sequence = itertools.count()
        self._worker: threading.Thread | None = None
        self._shutdown = False
        self._terminated = threading.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def restricted(self) -> bool:
        return self._restricted

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def is_terminated(self) -> bool:
        return self._terminated.is_set()

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        """Runs ``fn(*args, **kwargs)`` as soon as the worker is free."""
        return self._enqueue(_ScheduledTask(fn, args, kwargs, time.monotonic()))

    def schedule(self, fn: Callable[..., Any], delay: float, /, *args: Any, **kwargs: Any) -> Future:
        """Runs ``fn(*args, **kwargs)`` once, ``delay`` seconds from now."""
        return self._enqueue(_ScheduledTask(fn, args, kwargs, time.monotonic() + max(delay, 0)))

    def schedule_at_fixed_rate(
        self, fn: Callable[..., Any], initial_delay: float, period: float, /, *args: Any, **kwargs: Any
    ) -> Future:
        """
        Runs ``fn(*args, **kwargs)`` after ``initial_delay`` seconds and then every ``period`` seconds.

        The returned future only completes when it is cancelled or when a run raises, in which case it
        holds the exception and no further runs happen.
        """
        if period <= 0:
            raise ValueError("period must be positive")
        task = _ScheduledTask(fn, args, kwargs, time.monotonic() + max(initial_delay, 0), period)
        return self._enqueue(task)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        """
        Stops accepting work and lets the worker exit.

        Periodic tasks are cancelled. Queued one-shot tasks still run, unless ``cancel_futures`` is set.
        """
        with self._condition:
            self._shutdown = True
            kept = []
            for entry in self._queue:
                task = entry[2]
                if task.periodic or cancel_futures:
                    task.future.cancel()
                else:
                    kept.append(entry)
            heapq.heapify(kept)
            self._queue = kept
            self._mark_terminated_if_idle()
            self._condition.notify_all()
        if wait:
            self.await_termination()

    def shutdown_now(self) -> list[Callable[..., Any]]:
        """
        Stops accepting work and cancels every queued task without waiting.

        A task that is already running is not interrupted.

        :return: The callables of the tasks that never started.
        """
        with self._condition:
            self._shutdown = True
            pending = [entry[2] for entry in self._queue]
            self._queue = []
            self._mark_terminated_if_idle()
            self._condition.notify_all()

        cancelled = []
        for task in pending:
            if task.future.cancel():
                cancelled.append(task.fn)
        logger.debug("Executor %s shut down, %d queued tasks cancelled", self._name, len(cancelled))
        return cancelled

    def await_termination(self, timeout: float | None = None) -> bool:
        """Blocks until the executor is shut down and its worker has exited."""
        return self._terminated.wait(timeout)

    def _enqueue(self, task: _ScheduledTask) -> Future:
        with self._condition:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")
            heapq.heappush(self._queue, (task.when, next(self._sequence), task))
            self._ensure_worker()
            self._condition.notify_all()
        return task.future

    def _ensure_worker(self) -> None:
        # Caller holds the condition.
        if self._worker is not None and self._worker.is_alive():
            return
        if self._worker is not None:
            logger.warning("Worker thread of executor %s is gone; starting a new one", self._name)
        self._start_worker()

    def _start_worker(self) -> None:
        # Caller holds the condition.
        worker = self._thread_factory(self._work)
        worker.name = self._name
        self._worker = worker
        worker.start()

    def _mark_terminated_if_idle(self) -> None:
        # Caller holds the condition.
        if self._shutdown and not self._queue and self._worker is None:
            self._terminated.set()

    def _worker_deadline(self) -> float | None:
        if not self._restricted:
            return None
        return time.monotonic() + self._restart_interval + random.uniform(0, self._restart_jitter)

    def _work(self) -> None:
        deadline = self._worker_deadline()
        retired = False
        try:
            while True:
                task = self._next_task(deadline)
                if task is None:
                    retired = True
                    return
                if task.run():
                    self._reschedule(task)
        finally:
            self._on_worker_exit(retired)

    def _next_task(self, deadline: float | None) -> _ScheduledTask | None:
        with self._condition:
            while True:
                if self._shutdown and not self._queue:
                    return None
                now = time.monotonic()
                if deadline is not None and now >= deadline:
                    return None
                timeout = None if deadline is None else deadline - now
                if self._queue:
                    when = self._queue[0][0]
                    if when <= now:
                        return heapq.heappop(self._queue)[2]
                    timeout = when - now if timeout is None else min(timeout, when - now)
                self._condition.wait(timeout)

    def _reschedule(self, task: _ScheduledTask) -> None:
        with self._condition:
            if self._shutdown:
                task.future.cancel()
                return
            task.when += task.period
            heapq.heappush(self._queue, (task.when, next(self._sequence), task))

    def _on_worker_exit(self, retired: bool) -> None:
        with self._condition:
            if self._worker is not threading.current_thread():
                return
            self._worker = None
            if not retired:
                logger.warning("Worker thread of executor %s died", self._name)
            elif not self._shutdown:
                logger.debug("Worker thread of executor %s retired", self._name)
            if self._queue or not self._shutdown:
                self._start_worker()
            self._mark_terminated_if_idle()
