"""Auth service for the pre-provisioned Appwrite account."""

import logging

from pydantic import ValidationError

from jobtracker.core.config import settings
from jobtracker.core.exceptions import AppwriteError
from jobtracker.schemas.auth import Session, User
from jobtracker.services.appwrite import AccountClient

logger = logging.getLogger(__name__)


class AuthService:
    """Login, logout and profile calls against the identity service.

    Only one account exists; it is created in the Appwrite console and its
    id is configured through ``APPWRITE_ADMIN_USER_ID``.
    """

    def __init__(self, account: AccountClient, existing_user_id: str | None = None):
        self.account = account
        self._existing_user_id = existing_user_id or settings.appwrite_admin_user_id

    async def login(self, email: str, password: str) -> Session:
        """Create an email/password session."""
        data = await self.account.create_email_password_session(email, password)
        return Session.model_validate(data)

    async def get_current_user(self) -> User | None:
        """Return the signed-in user, or None when there is no valid session."""
        try:
            data = await self.account.get()
        except AppwriteError as e:
            logger.debug(f"No current user: {e.message}")
            return None
        try:
            return User.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unreadable account payload, treating as signed out: {e}")
            return None

    async def logout(self) -> None:
        """Delete the current session, falling back to deleting all sessions."""
        try:
            sessions = await self.account.list_sessions()
            if sessions.get("sessions"):
                await self.account.delete_session("current")
        except AppwriteError:
            try:
                await self.account.delete_sessions()
            except AppwriteError as delete_all_error:
                logger.warning(
                    "Session cleanup failed - user likely already logged out: "
                    f"{delete_all_error.message}"
                )

    async def update_name(self, name: str) -> User:
        data = await self.account.update_name(name)
        return User.model_validate(data)

    async def update_password(
        self, password: str, old_password: str | None = None
    ) -> User:
        data = await self.account.update_password(password, old_password)
        return User.model_validate(data)

    def get_existing_user_id(self) -> str:
        return self._existing_user_id
