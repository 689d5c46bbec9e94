from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import firebase_admin
import pytest
from pydantic import ValidationError

from firehost.options import FirestoreOptions
from firehost.threads import default_thread_factory


def test_defaults(app):
    options = FirestoreOptions.from_app(app)

    assert options.executor is None
    assert options.worker_thread_factory is default_thread_factory
    assert not options.close_on_delete
    with patch("firehost.config.ThreadingConfig.restricted", new=True):
        assert options.restricted
    with patch("firehost.config.ThreadingConfig.restricted", new=False):
        assert not options.restricted


def test_read_from_app_options(credential):
    factory = MagicMock()
    with ThreadPoolExecutor() as pool:
        app = firebase_admin.initialize_app(
            credential,
            {
                "projectId": "test-project",
                "executor": pool,
                "threadFactory": factory,
                "restrictedThreading": False,
                "closeFirestoreOnDelete": True,
            },
            name="configured",
        )

        options = FirestoreOptions.from_app(app)

        assert options.executor is pool
        assert options.worker_thread_factory is factory
        assert options.close_on_delete
        with patch("firehost.config.ThreadingConfig.restricted", new=True):
            assert not options.restricted


def test_executor_is_not_type_checked(credential):
    """
    Test that any executor object is accepted, leaving the scheduling capability check to the client.
    """
    executor = object()
    app = firebase_admin.initialize_app(credential, {"executor": executor}, name="duck-typed")

    assert FirestoreOptions.from_app(app).executor is executor


def test_invalid_thread_factory_is_rejected(credential):
    app = firebase_admin.initialize_app(credential, {"threadFactory": "not callable"}, name="invalid")

    with pytest.raises(ValidationError):
        FirestoreOptions.from_app(app)
