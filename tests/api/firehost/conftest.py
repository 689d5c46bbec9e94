from unittest.mock import MagicMock, patch

import firebase_admin
import pytest
from firebase_admin import credentials
from google.auth.credentials import Credentials as GoogleAuthCredentials


class FakeCredential(credentials.Base):
    """Credential that never talks to Google."""

    def __init__(self, project_id: str | None = None):
        self._project_id = project_id
        self.google_credential = MagicMock(spec=GoogleAuthCredentials)

    def get_credential(self):
        return self.google_credential

    @property
    def project_id(self):
        return self._project_id


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Removes environment variables that feed into app options and project IDs."""
    for env_var in ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT", "FIREBASE_CONFIG"):
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture(autouse=True)
def clean_apps():
    """Deletes every Firebase app a test initialized."""
    yield
    for app in list(firebase_admin._apps.values()):
        firebase_admin.delete_app(app)


@pytest.fixture
def credential() -> FakeCredential:
    return FakeCredential()


@pytest.fixture
def credential_factory():
    """Returns a callable building fake credentials, optionally carrying a project ID."""
    return FakeCredential


@pytest.fixture
def app(credential) -> firebase_admin.App:
    return firebase_admin.initialize_app(credential, {"projectId": "test-project"}, name="test-app")


@pytest.fixture
def mocked_firestore_client():
    """Patches the Firestore client class so that every construction returns a distinct mock."""
    with patch("google.cloud.firestore.Client") as mocked_client:
        mocked_client.side_effect = lambda *args, **kwargs: MagicMock(name="firestore.Client")
        yield mocked_client
