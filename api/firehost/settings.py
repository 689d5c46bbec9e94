"""Constants shared across the package."""

# Name given to the worker thread of executors created for Firestore clients.
FIRESTORE_WORKER_THREAD_NAME = "firehost-firestore-worker"

# Key of the Firestore service in the service registry of a Firebase app.
FIRESTORE_SERVICE_ID = "_firehost_firestore"
