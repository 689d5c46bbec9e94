"""
firehost: per-app Cloud Firestore clients for ``firebase_admin`` apps.

Initialize a Firebase app once, then ask for its Firestore client wherever it is needed:

.. code-block:: python

    import firebase_admin
    from firehost.clients import firestore

    firebase_admin.initialize_app(options={"projectId": "my-project"})
    db = firestore.client()
"""

__version__ = "1.0.0.dev0"
