"""
Firestore options read from a Firebase app.

``firebase_admin`` keeps app options in a plain dict, so the keys below can be passed next to the
standard ones:

.. code-block:: python

    firebase_admin.initialize_app(cred, {"projectId": "my-project", "executor": scheduler})
"""
from __future__ import annotations

from typing import Any, Callable

import firebase_admin
from pydantic import BaseModel, ConfigDict, Field

from firehost.threads import ThreadFactory, default_thread_factory, is_restricted_environment


class FirestoreOptions(BaseModel):
    """The Firestore related options of a Firebase app."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, populate_by_name=True)

    # Any object is accepted; whether it can schedule tasks is checked when the client is built.
    executor: Any = Field(
        None,
        description="An executor shared with the Firestore client. Reused when it supports scheduling",
    )
    thread_factory: Callable[[Callable[[], None]], Any] | None = Field(
        None,
        alias="threadFactory",
        description="Creates the worker threads of executors owned by the Firestore client",
    )
    restricted_threading: bool | None = Field(
        None,
        alias="restrictedThreading",
        description="Whether worker threads have a limited lifetime. Detected from the environment if unset",
    )
    close_on_delete: bool = Field(
        False,
        alias="closeFirestoreOnDelete",
        description="Close the Firestore client and release its executor when the app is deleted",
    )

    @classmethod
    def from_app(cls, app: firebase_admin.App) -> FirestoreOptions:
        """
        Reads the options from an app.

        :param app: The Firebase app.
        """
        keys = ("executor", "threadFactory", "restrictedThreading", "closeFirestoreOnDelete")
        return cls.model_validate({key: app.options.get(key) for key in keys if app.options.get(key) is not None})

    @property
    def worker_thread_factory(self) -> ThreadFactory:
        return self.thread_factory or default_thread_factory

    @property
    def restricted(self) -> bool:
        if self.restricted_threading is not None:
            return self.restricted_threading
        return is_restricted_environment()
