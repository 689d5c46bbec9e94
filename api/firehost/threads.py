"""Thread creation for executors owned by firehost."""
from __future__ import annotations

import threading
from typing import Callable

from firehost.config import ThreadingConfig

ThreadFactory = Callable[[Callable[[], None]], threading.Thread]


def default_thread_factory(target: Callable[[], None]) -> threading.Thread:
    """
    Returns an unstarted daemon thread that runs ``target``.

    Daemon threads do not keep the interpreter alive, so executors that are never shut down do
    not block process exit.
    """
    return threading.Thread(target=target, daemon=True)


def is_restricted_environment() -> bool:
    """Whether worker threads have a limited lifetime in the current environment."""
    return ThreadingConfig.restricted
