"""Tests for the Appwrite REST clients."""

import json
import re

import httpx
import pytest

from jobtracker.core.exceptions import AppwriteError
from jobtracker.schemas.application import ApplicationStatus
from jobtracker.services.application_store import ApplicationStore
from jobtracker.services.appwrite import (
    AccountClient,
    AppwriteClient,
    DatabaseClient,
    Query,
    unique_id,
)
from jobtracker.services.auth_service import AuthService


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def make_client(handler) -> AppwriteClient:
    return AppwriteClient(
        endpoint="http://appwrite.test/v1",
        project_id="test-project",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestQuery:
    def test_equal(self):
        assert json.loads(Query.equal("status", "offer")) == {
            "method": "equal",
            "attribute": "status",
            "values": ["offer"],
        }

    def test_order_desc(self):
        assert json.loads(Query.order_desc("$createdAt")) == {
            "method": "orderDesc",
            "attribute": "$createdAt",
        }


class TestUniqueId:
    def test_format(self):
        value = unique_id()
        assert re.fullmatch(r"[0-9a-f]{20}", value)

    def test_distinct(self):
        assert len({unique_id() for _ in range(50)}) == 50


class TestAppwriteClient:
    """Tests for AppwriteClient.call."""

    @pytest.mark.asyncio
    async def test_project_headers(self):
        recorder = Recorder(httpx.Response(200, json={"$id": "user-1"}))
        async with make_client(recorder) as client:
            assert await client.call("GET", "/account") == {"$id": "user-1"}

        request = recorder.requests[0]
        assert request.url.path == "/v1/account"
        assert request.headers["X-Appwrite-Project"] == "test-project"
        assert request.headers["X-Appwrite-Response-Format"] == "1.5.0"

    @pytest.mark.asyncio
    async def test_error_response(self):
        recorder = Recorder(
            httpx.Response(
                401,
                json={
                    "message": "Invalid credentials. Please check the email and password.",
                    "code": 401,
                    "type": "user_invalid_credentials",
                },
            )
        )
        async with make_client(recorder) as client:
            with pytest.raises(AppwriteError) as exc_info:
                await client.call("POST", "/account/sessions/email", payload={})

        error = exc_info.value
        assert error.status_code == 401
        assert error.error_type == "user_invalid_credentials"
        assert error.message.startswith("Invalid credentials")
        assert error.is_client_error is True

    @pytest.mark.asyncio
    async def test_non_json_error_response(self):
        recorder = Recorder(httpx.Response(502, text="Bad Gateway"))
        async with make_client(recorder) as client:
            with pytest.raises(AppwriteError) as exc_info:
                await client.call("GET", "/account")
        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(AppwriteError) as exc_info:
                await client.call("GET", "/account")
        assert exc_info.value.status_code == 0
        assert exc_info.value.is_network_error is True
        assert exc_info.value.message.startswith("Network error")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        recorder = Recorder(httpx.Response(204))
        async with make_client(recorder) as client:
            assert await client.call("DELETE", "/account/sessions/current") == {}

    @pytest.mark.asyncio
    async def test_fallback_cookies_echoed(self):
        recorder = Recorder(
            httpx.Response(
                201,
                json={"$id": "session-1"},
                headers={"X-Fallback-Cookies": '{"a_session_test-project":"secret"}'},
            ),
            httpx.Response(200, json={"$id": "user-1"}),
        )
        async with make_client(recorder) as client:
            await client.call("POST", "/account/sessions/email", payload={})
            await client.call("GET", "/account")
        assert (
            recorder.requests[1].headers["X-Fallback-Cookies"]
            == '{"a_session_test-project":"secret"}'
        )

    @pytest.mark.asyncio
    async def test_ping(self):
        async with make_client(Recorder(httpx.Response(200, json={}))) as client:
            assert await client.ping() is True

        def offline(request):
            raise httpx.ConnectError("offline", request=request)

        async with make_client(offline) as client:
            assert await client.ping() is False


class TestAccountClient:
    """Tests for AccountClient and AuthService over HTTP."""

    @pytest.mark.asyncio
    async def test_login_request(self):
        recorder = Recorder(
            httpx.Response(201, json={"$id": "session-1", "userId": "user-1", "current": True})
        )
        async with make_client(recorder) as client:
            session = await AuthService(AccountClient(client), "user-1").login(
                "owner@example.com", "Secret#123"
            )
        assert session.user_id == "user-1"
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/account/sessions/email"
        assert json.loads(request.content) == {
            "email": "owner@example.com",
            "password": "Secret#123",
        }

    @pytest.mark.asyncio
    async def test_current_user_none_when_signed_out(self):
        recorder = Recorder(
            httpx.Response(401, json={"message": "User (role: guests) missing scope (account)"})
        )
        async with make_client(recorder) as client:
            assert await AuthService(AccountClient(client)).get_current_user() is None

    @pytest.mark.asyncio
    async def test_current_user_none_for_unreadable_payload(self):
        """Test that an account body without an id reads as signed out."""
        recorder = Recorder(httpx.Response(200, json={"name": "Jane Doe"}))
        async with make_client(recorder) as client:
            assert await AuthService(AccountClient(client)).get_current_user() is None

    @pytest.mark.asyncio
    async def test_logout_deletes_current_session(self):
        recorder = Recorder(
            httpx.Response(200, json={"total": 1, "sessions": [{"$id": "s1"}]}),
            httpx.Response(204),
        )
        async with make_client(recorder) as client:
            await AuthService(AccountClient(client)).logout()
        assert [r.url.path for r in recorder.requests] == [
            "/v1/account/sessions",
            "/v1/account/sessions/current",
        ]

    @pytest.mark.asyncio
    async def test_logout_falls_back_to_all_sessions(self):
        recorder = Recorder(
            httpx.Response(500, json={"message": "boom"}),
            httpx.Response(401, json={"message": "no session"}),
        )
        async with make_client(recorder) as client:
            await AuthService(AccountClient(client)).logout()
        assert [(r.method, r.url.path) for r in recorder.requests] == [
            ("GET", "/v1/account/sessions"),
            ("DELETE", "/v1/account/sessions"),
        ]

    @pytest.mark.asyncio
    async def test_update_password_sends_old_password(self):
        recorder = Recorder(httpx.Response(200, json={"$id": "user-1"}))
        async with make_client(recorder) as client:
            await AccountClient(client).update_password("New#pass1", "Old#pass1")
        assert json.loads(recorder.requests[0].content) == {
            "password": "New#pass1",
            "oldPassword": "Old#pass1",
        }


class TestApplicationStore:
    """Tests for ApplicationStore over HTTP."""

    @pytest.mark.asyncio
    async def test_list_sends_queries(self, make_document):
        recorder = Recorder(
            httpx.Response(200, json={"total": 1, "documents": [make_document(1)]})
        )
        async with make_client(recorder) as client:
            store = ApplicationStore(DatabaseClient(client, "test-db"), "applications")
            result = await store.list_applications(ApplicationStatus.OFFER)

        assert result.total == 1
        assert result.documents[0].id == "app-1"
        request = recorder.requests[0]
        assert request.url.path == "/v1/databases/test-db/collections/applications/documents"
        queries = [json.loads(q) for q in request.url.params.get_list("queries[]")]
        assert queries == [
            {"method": "equal", "attribute": "status", "values": ["offer"]},
            {"method": "orderDesc", "attribute": "$createdAt"},
        ]

    @pytest.mark.asyncio
    async def test_create_generates_document_id(self, make_document):
        recorder = Recorder(httpx.Response(201, json=make_document(7)))
        async with make_client(recorder) as client:
            store = ApplicationStore(DatabaseClient(client, "test-db"), "applications")
            created = await store.create({"companyName": "Company 7"})

        assert created.id == "app-7"
        body = json.loads(recorder.requests[0].content)
        assert re.fullmatch(r"[0-9a-f]{20}", body["documentId"])
        assert body["data"] == {"companyName": "Company 7"}

    @pytest.mark.asyncio
    async def test_update_and_delete(self, make_document):
        recorder = Recorder(
            httpx.Response(200, json=make_document(2, status="offer")),
            httpx.Response(204),
        )
        async with make_client(recorder) as client:
            store = ApplicationStore(DatabaseClient(client, "test-db"), "applications")
            updated = await store.update("app-2", {"status": "offer"})
            await store.delete("app-2")

        assert updated.status is ApplicationStatus.OFFER
        assert [(r.method, r.url.path.rsplit("/", 1)[-1]) for r in recorder.requests] == [
            ("PATCH", "app-2"),
            ("DELETE", "app-2"),
        ]
        assert json.loads(recorder.requests[0].content) == {"data": {"status": "offer"}}
