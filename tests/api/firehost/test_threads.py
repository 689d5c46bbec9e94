import threading
from unittest.mock import patch

from firehost.threads import default_thread_factory, is_restricted_environment


def test_default_thread_factory_returns_unstarted_daemon_thread():
    """
    Test that the default thread factory returns a daemon thread that has not been started yet.
    """
    ran = threading.Event()
    thread = default_thread_factory(ran.set)

    assert thread.daemon
    assert not thread.is_alive()

    thread.start()
    thread.join(timeout=5)
    assert ran.is_set()


def test_restricted_environment_follows_config():
    with patch("firehost.config.ThreadingConfig.restricted", new=True):
        assert is_restricted_environment()
    with patch("firehost.config.ThreadingConfig.restricted", new=False):
        assert not is_restricted_environment()
