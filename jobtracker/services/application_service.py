"""Application service: cached reads and invalidating mutations."""

import logging
from dataclasses import dataclass
from typing import Any

from jobtracker.core.config import settings
from jobtracker.core.exceptions import AppwriteError
from jobtracker.schemas.application import (
    Application,
    ApplicationForm,
    ApplicationList,
    ApplicationStats,
    ApplicationStatus,
)
from jobtracker.services.application_store import ApplicationStore
from jobtracker.services.appwrite import unique_id
from jobtracker.services.query_cache import QueryClient
from jobtracker.utils.listing import compute_stats

logger = logging.getLogger(__name__)

APPLICATIONS_KEY = ("applications",)


def applications_key(status: ApplicationStatus | None = None) -> tuple:
    return (*APPLICATIONS_KEY, status.value if status else None)


def application_key(application_id: str) -> tuple:
    return ("application", application_id)


@dataclass
class MutationResult:
    """Outcome of a create/update/delete call."""

    ok: bool
    message: str
    data: Application | None = None


class ApplicationService:
    """Core service for handling job application records."""

    def __init__(
        self,
        store: ApplicationStore,
        query_client: QueryClient,
        list_stale_time: float | None = None,
        detail_stale_time: float | None = None,
    ):
        self.store = store
        self.query_client = query_client
        self.list_stale_time = (
            settings.applications_stale_seconds
            if list_stale_time is None
            else list_stale_time
        )
        self.detail_stale_time = (
            settings.application_stale_seconds
            if detail_stale_time is None
            else detail_stale_time
        )

    async def list_applications(
        self, status: ApplicationStatus | None = None
    ) -> ApplicationList:
        """Fetch applications, newest first, served from cache while fresh."""
        return await self.query_client.fetch_query(
            applications_key(status),
            lambda: self.store.list_applications(status),
            stale_time=self.list_stale_time,
        )

    async def get_application(self, application_id: str) -> Application:
        return await self.query_client.fetch_query(
            application_key(application_id),
            lambda: self.store.get(application_id),
            stale_time=self.detail_stale_time,
        )

    async def get_stats(self) -> ApplicationStats:
        """Counts over every stored application."""
        result = await self.list_applications()
        stats = compute_stats(result.documents)
        stats.total = result.total
        return stats

    async def create_application(self, form: ApplicationForm) -> MutationResult:
        """Create a record; retries reuse one document id so at most one is stored."""
        document_id = unique_id()
        payload = form.to_payload()
        attempts = 0

        async def create_once() -> Application:
            nonlocal attempts
            attempts += 1
            try:
                return await self.store.create(payload, document_id)
            except AppwriteError as e:
                # An earlier attempt was stored but its response was lost.
                if e.status_code == 409 and attempts > 1:
                    logger.info(f"Application {document_id} already stored")
                    return await self.store.get(document_id)
                raise

        try:
            created = await self.query_client.mutate(
                create_once,
                on_success=lambda _: self.query_client.invalidate_queries(
                    APPLICATIONS_KEY
                ),
                label="Create application",
            )
        except Exception as e:
            logger.error(f"Error creating application: {e}")
            raise
        logger.info(f"Created application {created.id}")
        return MutationResult(
            ok=True, message="Application created successfully", data=created
        )

    async def update_application(
        self, application_id: str, data: ApplicationForm | dict[str, Any]
    ) -> MutationResult:
        """Apply a full form or a partial payload to an existing record."""
        payload = data.to_payload() if isinstance(data, ApplicationForm) else data

        def invalidate(_: Application) -> None:
            self.query_client.invalidate_queries(APPLICATIONS_KEY)
            self.query_client.invalidate_queries(application_key(application_id))

        try:
            updated = await self.query_client.mutate(
                lambda: self.store.update(application_id, payload),
                on_success=invalidate,
                label="Update application",
            )
        except Exception as e:
            logger.error(f"Error updating application {application_id}: {e}")
            raise
        logger.info(f"Updated application {application_id}")
        return MutationResult(
            ok=True, message="Application updated successfully", data=updated
        )

    async def update_status(
        self, application_id: str, status: ApplicationStatus
    ) -> MutationResult:
        return await self.update_application(application_id, {"status": status.value})

    async def delete_application(self, application_id: str) -> MutationResult:
        def invalidate(_: None) -> None:
            self.query_client.invalidate_queries(APPLICATIONS_KEY)
            self.query_client.remove_queries(application_key(application_id))

        attempts = 0

        async def delete_once() -> None:
            nonlocal attempts
            attempts += 1
            try:
                await self.store.delete(application_id)
            except AppwriteError as e:
                # An earlier attempt succeeded but its response was lost.
                if e.status_code == 404 and attempts > 1:
                    logger.info(f"Application {application_id} already deleted")
                    return
                raise

        try:
            await self.query_client.mutate(
                delete_once,
                on_success=invalidate,
                label="Delete application",
            )
        except Exception as e:
            logger.error(f"Error deleting application {application_id}: {e}")
            raise
        logger.info(f"Deleted application {application_id}")
        return MutationResult(ok=True, message="Application deleted successfully")
