"""
Firestore client to handle database operations.

This module hands out one ``google.cloud.firestore.Client`` per Firebase app. The client is created on first
use from the app's credential and project ID, and is then reused by every caller asking for the same app.

The project ID is the one the app resolves: the ``projectId`` option, then the project of the app credential,
and finally the ``GOOGLE_CLOUD_PROJECT`` environment variable. If none of these yields a project ID, a
:class:`~firehost.exceptions.ConfigurationError` is raised.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from logging import getLogger
from typing import Union

import firebase_admin
from firebase_admin import _utils
from google.cloud import firestore

from firehost.exceptions import ConfigurationError
from firehost.executors import RevivingScheduledExecutor, ScheduledExecutor
from firehost.options import FirestoreOptions
from firehost.settings import FIRESTORE_SERVICE_ID, FIRESTORE_WORKER_THREAD_NAME

logger = getLogger(__name__)

_MISSING_PROJECT_ID = (
    "Project ID is required for accessing Firestore. Use a service account credential or set the project ID "
    'explicitly via the "projectId" app option. Alternatively you can also set the project ID via the '
    "GOOGLE_CLOUD_PROJECT environment variable."
)


@dataclass(frozen=True)
class Borrowed:
    """An executor supplied by the app. Never shut down here."""

    executor: ScheduledExecutor


@dataclass(frozen=True)
class Owned:
    """An executor created for the client. Shut down on release."""

    executor: ScheduledExecutor


ExecutorHandle = Union[Borrowed, Owned]


class AppExecutorFactory:
    """Provides the scheduled executor used for the background work of an app's Firestore client."""

    def __init__(self, app: firebase_admin.App):
        if app is None:
            raise ConfigurationError("App must not be None")
        self._options = FirestoreOptions.from_app(app)
        self._lock = threading.Lock()
        self._handle: ExecutorHandle | None = None

    @property
    def handle(self) -> ExecutorHandle | None:
        return self._handle

    def get(self) -> ScheduledExecutor:
        """
        Returns the executor, creating it on the first call.

        If the app was initialized with a scheduling-capable executor, that executor is reused so a single
        thread pool serves the app and its Firestore client. Otherwise a new executor is created with the
        app's thread factory.
        """
        with self._lock:
            if self._handle is None:
                self._handle = self._create_handle()
            return self._handle.executor

    def release(self, executor: ScheduledExecutor) -> None:
        """Shuts down ``executor`` immediately if it was created by this factory."""
        with self._lock:
            handle = self._handle
        match handle:
            case Owned(executor=owned) if owned is executor:
                logger.debug("Shutting down executor %s", FIRESTORE_WORKER_THREAD_NAME)
                owned.shutdown_now()
            case Owned() | Borrowed() | None:
                pass

    def _create_handle(self) -> ExecutorHandle:
        executor = self._options.executor
        if isinstance(executor, ScheduledExecutor):
            return Borrowed(executor)
        return Owned(
            RevivingScheduledExecutor(
                self._options.worker_thread_factory,
                FIRESTORE_WORKER_THREAD_NAME,
                restricted=self._options.restricted,
            )
        )


class _FirestoreClient:
    """
    The Firestore service of a Firebase app.

    ``google.cloud.firestore.Client`` takes no executor, so the executor from :class:`AppExecutorFactory` is
    kept next to the client rather than handed to it.
    """

    def __init__(self, app: firebase_admin.App):
        if app is None:
            raise ConfigurationError("App must not be None")
        project_id = app.project_id
        if not project_id:
            raise ConfigurationError(_MISSING_PROJECT_ID)

        self.executor_factory = AppExecutorFactory(app)
        self.firestore = firestore.Client(project=project_id, credentials=app.credential.get_credential())
        self.executor = self.executor_factory.get()
        self._app_name = app.name
        self._close_on_delete = FirestoreOptions.from_app(app).close_on_delete
        logger.info('Created Firestore client for project "%s" of app "%s"', project_id, app.name)

    def close(self) -> None:
        """
        Called by ``firebase_admin`` when the app is deleted.

        Clients already handed out keep working after the app is deleted, so they and their executor are left
        alone unless the app asked for them to be closed.
        """
        if not self._close_on_delete:
            return
        logger.debug('Closing Firestore client of deleted app "%s"', self._app_name)
        try:
            self.firestore.close()
        except Exception:
            logger.exception('Failed to close Firestore client of app "%s"', self._app_name)
        self.executor_factory.release(self.executor)


def _get_instance(app: firebase_admin.App | None) -> _FirestoreClient:
    return _utils.get_app_service(app, FIRESTORE_SERVICE_ID, _FirestoreClient)


def client(app: firebase_admin.App | None = None) -> firestore.Client:
    """
    Returns the Firestore client of a Firebase app.

    :param app: The app to get the client for. Defaults to the default app.
    """
    return _get_instance(app).firestore


def executor(app: firebase_admin.App | None = None) -> ScheduledExecutor:
    """
    Returns the executor bound to the Firestore client of a Firebase app, creating the client if needed.

    :param app: The app to get the executor for. Defaults to the default app.
    """
    return _get_instance(app).executor


__all__ = ["client", "executor"]
