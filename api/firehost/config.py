"""Exports config variables that are used throughout the code."""
import os


class ThreadingConfig:
    """Contains the config variables for worker threads."""

    restricted = bool(os.environ.get("FIREHOST_RESTRICTED_THREADING", "").lower() == "true")
    # Lifetime of a worker thread in a restricted environment, in seconds.
    restart_interval = float(os.environ.get("FIREHOST_WORKER_RESTART_INTERVAL", 50 * 60))
    restart_jitter = float(os.environ.get("FIREHOST_WORKER_RESTART_JITTER", 5 * 60))
