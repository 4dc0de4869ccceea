"""Document store access for the applications collection."""

from jobtracker.core.config import settings
from jobtracker.schemas.application import (
    Application,
    ApplicationList,
    ApplicationStatus,
)
from jobtracker.services.appwrite import DatabaseClient, Query, unique_id


class ApplicationStore:
    """CRUD calls for job application documents."""

    def __init__(self, databases: DatabaseClient, collection_id: str | None = None):
        self.databases = databases
        self.collection_id = (
            collection_id or settings.appwrite_applications_collection
        )

    async def list_applications(
        self, status: ApplicationStatus | None = None
    ) -> ApplicationList:
        """List applications, newest first, optionally by status."""
        queries = []
        if status is not None:
            queries.append(Query.equal("status", status.value))
        queries.append(Query.order_desc("$createdAt"))

        response = await self.databases.list_documents(self.collection_id, queries)
        return ApplicationList(
            documents=[
                Application.model_validate(doc)
                for doc in response.get("documents", [])
            ],
            total=response.get("total", 0),
        )

    async def get(self, application_id: str) -> Application:
        data = await self.databases.get_document(self.collection_id, application_id)
        return Application.model_validate(data)

    async def create(
        self, payload: dict, document_id: str | None = None
    ) -> Application:
        data = await self.databases.create_document(
            self.collection_id, document_id or unique_id(), payload
        )
        return Application.model_validate(data)

    async def update(self, application_id: str, payload: dict) -> Application:
        data = await self.databases.update_document(
            self.collection_id, application_id, payload
        )
        return Application.model_validate(data)

    async def delete(self, application_id: str) -> None:
        await self.databases.delete_document(self.collection_id, application_id)
