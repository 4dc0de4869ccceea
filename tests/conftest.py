"""Pytest configuration and fixtures."""

import os
import sys
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing jobtracker modules
os.environ.setdefault("APPWRITE_ENDPOINT", "http://appwrite.test/v1")
os.environ.setdefault("APPWRITE_PROJECT_ID", "test-project")
os.environ.setdefault("APPWRITE_DATABASE_ID", "test-db")
os.environ.setdefault("APPWRITE_ADMIN_USER_ID", "user-1")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ["CONNECTIVITY_PROBE_ENABLED"] = "false"
os.environ["PAGE_SIZE"] = "5"

TEST_EMAIL = "owner@example.com"
TEST_PASSWORD = "Secret#123"


class MemorySnapshotStore:
    """In-memory stand-in for the Redis auth snapshot store."""

    def __init__(self, payload: str | None = None):
        self.payload = payload
        self.saves = 0
        self.clears = 0

    async def load(self) -> str | None:
        return self.payload

    async def save(self, payload: str) -> None:
        self.payload = payload
        self.saves += 1

    async def clear(self) -> None:
        self.payload = None
        self.clears += 1


class MemorySessionStore:
    """In-memory stand-in for the Redis browser session store."""

    def __init__(self):
        self.tokens: dict[str, str] = {}

    async def issue(self, user_id: str) -> str:
        token = f"token-{len(self.tokens) + 1}"
        self.tokens[token] = user_id
        return token

    async def is_valid(self, token: str | None) -> bool:
        return bool(token) and token in self.tokens

    async def revoke(self, token: str | None) -> None:
        self.tokens.pop(token, None)


class FakeAuthService:
    """Identity service double with one account and one session."""

    def __init__(self, user, password: str = TEST_PASSWORD):
        self.user = user
        self.password = password
        self.signed_in = False
        self.confirm_login = True
        self.fail_logout = False
        self.login_calls = 0
        self.get_calls = 0

    async def login(self, email: str, password: str):
        from jobtracker.core.exceptions import AppwriteError
        from jobtracker.schemas.auth import Session

        self.login_calls += 1
        if email != TEST_EMAIL or password != self.password:
            raise AppwriteError(
                401,
                "Invalid credentials. Please check the email and password.",
                "user_invalid_credentials",
                {"message": "Invalid credentials. Please check the email and password."},
            )
        self.signed_in = self.confirm_login
        return Session.model_validate(
            {"$id": "session-1", "userId": self.user.id, "current": True}
        )

    async def get_current_user(self):
        self.get_calls += 1
        return self.user if self.signed_in else None

    async def logout(self) -> None:
        if self.fail_logout:
            from jobtracker.core.exceptions import AppwriteError

            raise AppwriteError(0, "Network error: unreachable", "network_failure")
        self.signed_in = False

    async def update_name(self, name: str):
        self.user = self.user.model_copy(update={"name": name})
        return self.user

    async def update_password(self, password: str, old_password: str | None = None):
        from jobtracker.core.exceptions import AppwriteError

        if old_password != self.password:
            raise AppwriteError(
                401,
                "Invalid credentials. Please check the email and password.",
                "user_invalid_credentials",
            )
        self.password = password
        return self.user

    def get_existing_user_id(self) -> str:
        return self.user.id


class FakeApplicationStore:
    """Document store double keeping applications in a dict."""

    def __init__(self, documents: list[dict] | None = None):
        self.documents: dict[str, dict] = {}
        self.list_calls = 0
        self.get_calls = 0
        self.updates: list[tuple[str, dict]] = []
        self.created_ids: list[str] = []
        self._counter = 0
        for doc in documents or []:
            self.documents[doc["$id"]] = doc

    async def list_applications(self, status=None):
        from jobtracker.schemas.application import Application, ApplicationList

        self.list_calls += 1
        docs = sorted(
            self.documents.values(), key=lambda d: d["$createdAt"], reverse=True
        )
        if status is not None:
            docs = [d for d in docs if d["status"] == status.value]
        return ApplicationList(
            documents=[Application.model_validate(d) for d in docs],
            total=len(docs),
        )

    async def get(self, application_id: str):
        from jobtracker.core.exceptions import AppwriteError
        from jobtracker.schemas.application import Application

        self.get_calls += 1
        if application_id not in self.documents:
            raise AppwriteError(
                404,
                "Document with the requested ID could not be found.",
                "document_not_found",
            )
        return Application.model_validate(self.documents[application_id])

    async def create(self, payload: dict, document_id: str | None = None):
        from jobtracker.core.exceptions import AppwriteError
        from jobtracker.schemas.application import Application

        self._counter += 1
        document_id = document_id or f"new-{self._counter}"
        self.created_ids.append(document_id)
        if document_id in self.documents:
            raise AppwriteError(
                409,
                "Document with the requested ID already exists.",
                "document_already_exists",
            )
        now = datetime.now(UTC).isoformat()
        doc = {
            **payload,
            "$id": document_id,
            "$createdAt": now,
            "$updatedAt": now,
        }
        self.documents[doc["$id"]] = doc
        return Application.model_validate(doc)

    async def update(self, application_id: str, payload: dict):
        from jobtracker.core.exceptions import AppwriteError
        from jobtracker.schemas.application import Application

        if application_id not in self.documents:
            raise AppwriteError(
                404,
                "Document with the requested ID could not be found.",
                "document_not_found",
            )
        self.updates.append((application_id, payload))
        self.documents[application_id] = {
            **self.documents[application_id],
            **payload,
            "$updatedAt": datetime.now(UTC).isoformat(),
        }
        return Application.model_validate(self.documents[application_id])

    async def delete(self, application_id: str) -> None:
        from jobtracker.core.exceptions import AppwriteError

        if self.documents.pop(application_id, None) is None:
            raise AppwriteError(
                404,
                "Document with the requested ID could not be found.",
                "document_not_found",
            )


@pytest.fixture
def user_data():
    """Account payload as returned by GET /account."""
    return {
        "$id": "user-1",
        "$createdAt": "2024-03-05T10:00:00.000+00:00",
        "name": "Jane Doe",
        "email": TEST_EMAIL,
        "emailVerification": True,
        "phone": "",
        "phoneVerification": False,
        "status": True,
        "registration": "2024-03-05T10:00:00.000+00:00",
        "passwordUpdate": "2024-04-01T08:30:00.000+00:00",
        "labels": ["admin"],
        "prefs": {},
    }


@pytest.fixture
def sample_user(user_data):
    from jobtracker.schemas.auth import User

    return User.model_validate(user_data)


@pytest.fixture
def make_document():
    """Factory for stored application documents."""

    def _make(index: int = 1, **overrides) -> dict:
        doc = {
            "$id": f"app-{index}",
            "$createdAt": f"2024-03-{index:02d}T09:00:00.000+00:00",
            "$updatedAt": f"2024-03-{index:02d}T09:00:00.000+00:00",
            "$collectionId": "applications",
            "$databaseId": "test-db",
            "$permissions": [],
            "companyName": f"Company {index}",
            "positionTitle": "Python Developer",
            "applicationDate": f"2024-03-{index:02d}T00:00:00.000+00:00",
            "status": "applied",
            "location": "Remote",
            "source": "LinkedIn",
            "jobLink": None,
            "description": None,
            "stacks": "Python, FastAPI",
            "notes": None,
            "nextStep": None,
            "resumeVersion": None,
        }
        doc.update(overrides)
        return doc

    return _make


@pytest.fixture
def sample_applications(make_document):
    """Application records with mixed statuses, newest first."""
    from jobtracker.schemas.application import Application

    docs = [
        make_document(1, companyName="Acme", status="applied", location="Berlin"),
        make_document(2, companyName="Globex", status="interview", source="Referral"),
        make_document(3, companyName="Initech", status="rejected"),
        make_document(4, companyName="Umbrella", status="offer", location="London"),
        make_document(5, companyName="Hooli", status="applied", source="Indeed"),
        make_document(6, companyName="Stark", status="in_review"),
    ]
    return [Application.model_validate(d) for d in reversed(docs)]


@pytest.fixture
def fake_auth_service(sample_user):
    return FakeAuthService(sample_user)


@pytest.fixture
def snapshot_store():
    return MemorySnapshotStore()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def fake_store(make_document):
    return FakeApplicationStore([make_document(i) for i in range(1, 4)])


@pytest.fixture
def app_state(fake_auth_service, snapshot_store, fake_store, session_store):
    """Application state wired to in-memory doubles."""
    from jobtracker.services.application_service import ApplicationService
    from jobtracker.services.auth_state import AuthState
    from jobtracker.services.connectivity import ConnectivityMonitor
    from jobtracker.services.dependencies import AppState
    from jobtracker.services.notifications import Notifier
    from jobtracker.services.query_cache import QueryClient

    notifier = Notifier()
    query_client = QueryClient(retry=1, mutation_retry=1, sleep=AsyncMock())
    return AppState(
        auth_service=fake_auth_service,
        auth_state=AuthState(
            fake_auth_service,
            snapshot_store,
            revalidate_delay=0,
            confirm_timeout=0.2,
            confirm_initial_delay=0.001,
            confirm_max_delay=0.01,
        ),
        query_client=query_client,
        application_service=ApplicationService(fake_store, query_client),
        notifier=notifier,
        connectivity=ConnectivityMonitor(
            notifier, AsyncMock(return_value=True), interval_seconds=30
        ),
        sessions=session_store,
    )


@pytest.fixture
def make_snapshot_store():
    """Factory for in-memory snapshot stores."""
    return MemorySnapshotStore
