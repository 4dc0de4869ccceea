"""Appwrite REST API clients for the account and databases services."""

import json
import logging
import secrets
import time
from typing import Any

import httpx

from jobtracker.core.config import settings
from jobtracker.core.exceptions import AppwriteError

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = "1.5.0"
FALLBACK_COOKIES_HEADER = "X-Fallback-Cookies"


def unique_id() -> str:
    """Generate a document id the way the Appwrite SDKs do for ``ID.unique()``."""
    now = time.time()
    seconds = int(now)
    micros = int((now - seconds) * 1_000_000)
    return f"{seconds:08x}{micros:05x}{secrets.token_hex(4)[:7]}"


class Query:
    """Builders for Appwrite list query strings."""

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return json.dumps({"method": "equal", "attribute": attribute, "values": values})

    @staticmethod
    def order_desc(attribute: str) -> str:
        return json.dumps({"method": "orderDesc", "attribute": attribute})


class AppwriteClient:
    """Low-level HTTP client for one Appwrite project.

    The session cookie issued on login is kept in the httpx cookie jar, so a
    single instance represents a single signed-in browser.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        project_id: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = (endpoint or settings.appwrite_endpoint).rstrip("/")
        self.project_id = project_id or settings.appwrite_project_id
        self.client = httpx.AsyncClient(
            base_url=self.endpoint,
            headers={
                "X-Appwrite-Project": self.project_id,
                "X-Appwrite-Response-Format": RESPONSE_FORMAT,
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout or settings.appwrite_timeout),
            transport=transport,
        )
        self._fallback_cookies: str | None = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    def clear_session(self) -> None:
        """Forget any session cookie held locally."""
        self.client.cookies.clear()
        self._fallback_cookies = None

    async def call(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        payload: dict | None = None,
    ) -> dict:
        """Make a request and return the decoded JSON body."""
        headers = {}
        if self._fallback_cookies:
            headers[FALLBACK_COOKIES_HEADER] = self._fallback_cookies

        try:
            response = await self.client.request(
                method, path, params=params, json=payload, headers=headers
            )
        except httpx.TransportError as e:
            logger.warning(f"Network error for {method} {path}: {e!s}")
            raise AppwriteError(
                0, f"Network error: {e!s}", AppwriteError.NETWORK_FAILURE
            ) from e

        fallback = response.headers.get(FALLBACK_COOKIES_HEADER)
        if fallback:
            self._fallback_cookies = fallback

        if response.is_error:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"message": response.text[:500]}
            message = error_data.get("message") or response.reason_phrase
            logger.debug(
                f"Appwrite error {response.status_code} for {method} {path}: {message}"
            )
            raise AppwriteError(
                response.status_code, message, error_data.get("type"), error_data
            )

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise AppwriteError(
                response.status_code,
                f"Invalid JSON response: {e!s}",
                response_data={"response_text": response.text[:500]},
            ) from e

    async def ping(self) -> bool:
        """Return True when the backend answers at all."""
        try:
            await self.client.get("/health/version")
        except httpx.TransportError:
            return False
        return True


class AccountClient:
    """Appwrite Account service."""

    def __init__(self, client: AppwriteClient):
        self.client = client

    async def create_email_password_session(self, email: str, password: str) -> dict:
        return await self.client.call(
            "POST",
            "/account/sessions/email",
            payload={"email": email, "password": password},
        )

    async def get(self) -> dict:
        return await self.client.call("GET", "/account")

    async def list_sessions(self) -> dict:
        return await self.client.call("GET", "/account/sessions")

    async def delete_session(self, session_id: str = "current") -> None:
        await self.client.call("DELETE", f"/account/sessions/{session_id}")
        if session_id == "current":
            self.client.clear_session()

    async def delete_sessions(self) -> None:
        await self.client.call("DELETE", "/account/sessions")
        self.client.clear_session()

    async def update_name(self, name: str) -> dict:
        return await self.client.call("PATCH", "/account/name", payload={"name": name})

    async def update_password(
        self, password: str, old_password: str | None = None
    ) -> dict:
        payload = {"password": password}
        if old_password is not None:
            payload["oldPassword"] = old_password
        return await self.client.call("PATCH", "/account/password", payload=payload)


class DatabaseClient:
    """Appwrite Databases service scoped to one database."""

    def __init__(self, client: AppwriteClient, database_id: str | None = None):
        self.client = client
        self.database_id = database_id or settings.appwrite_database_id

    def _documents_path(self, collection_id: str) -> str:
        return f"/databases/{self.database_id}/collections/{collection_id}/documents"

    async def create_document(
        self, collection_id: str, document_id: str, data: dict
    ) -> dict:
        return await self.client.call(
            "POST",
            self._documents_path(collection_id),
            payload={"documentId": document_id, "data": data},
        )

    async def get_document(self, collection_id: str, document_id: str) -> dict:
        return await self.client.call(
            "GET", f"{self._documents_path(collection_id)}/{document_id}"
        )

    async def list_documents(
        self, collection_id: str, queries: list[str] | None = None
    ) -> dict:
        params = {"queries[]": queries} if queries else None
        return await self.client.call(
            "GET", self._documents_path(collection_id), params=params
        )

    async def update_document(
        self, collection_id: str, document_id: str, data: dict
    ) -> dict:
        return await self.client.call(
            "PATCH",
            f"{self._documents_path(collection_id)}/{document_id}",
            payload={"data": data},
        )

    async def delete_document(self, collection_id: str, document_id: str) -> None:
        await self.client.call(
            "DELETE", f"{self._documents_path(collection_id)}/{document_id}"
        )
