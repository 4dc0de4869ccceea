"""View models returned by the routes."""

from typing import Any

from pydantic import BaseModel, Field

from jobtracker.schemas.application import (
    Application,
    ApplicationStats,
    ApplicationStatus,
    StatusOption,
    status_option,
)
from jobtracker.schemas.auth import User
from jobtracker.utils.formatting import format_date_with_ordinal, user_initials


class StatusBadge(BaseModel):
    value: ApplicationStatus
    label: str
    color: str

    @classmethod
    def for_status(cls, status: ApplicationStatus) -> "StatusBadge":
        option = status_option(status)
        return cls(value=option.value, label=option.label, color=option.color)

    @classmethod
    def from_option(cls, option: StatusOption) -> "StatusBadge":
        return cls(value=option.value, label=option.label, color=option.color)


class ApplicationRow(BaseModel):
    """One application with its display extras."""

    application: Application
    badge: StatusBadge
    stacks: list[str] = Field(default_factory=list)
    application_date_display: str

    @classmethod
    def build(cls, application: Application) -> "ApplicationRow":
        return cls(
            application=application,
            badge=StatusBadge.for_status(application.status),
            stacks=application.stack_list,
            application_date_display=format_date_with_ordinal(
                application.application_date
            ),
        )


class StatusFilterLink(BaseModel):
    value: str
    label: str
    url: str
    active: bool


class ListView(BaseModel):
    """The applications list: one page plus filters and stats."""

    items: list[ApplicationRow]
    status: str
    query: str
    page: int
    page_size: int
    total_pages: int
    filtered_count: int
    has_prev: bool
    has_next: bool
    prev_url: str | None = None
    next_url: str | None = None
    filters: list[StatusFilterLink]
    stats: ApplicationStats
    empty_message: str | None = None


class DetailView(BaseModel):
    row: ApplicationRow
    created_display: str | None = None
    updated_display: str | None = None


class FormView(BaseModel):
    """Values and choices for the create/edit form."""

    mode: str
    title: str
    submit_label: str
    values: dict[str, Any]
    status_options: list[StatusBadge]


class ConfirmationView(BaseModel):
    title: str
    description: str
    confirm_label: str
    cancel_label: str = "Cancel"
    action_url: str
    method: str


class ProfileView(BaseModel):
    """Account/profile panel."""

    name: str
    email: str
    initials: str
    is_admin: bool
    email_verified: bool
    phone: str | None = None
    phone_verified: bool | None = None
    account_active: bool
    registration_display: str
    password_updated_display: str

    @classmethod
    def from_user(cls, user: User) -> "ProfileView":
        return cls(
            name=user.name or "User",
            email=user.email,
            initials=user_initials(user.name),
            is_admin=user.is_admin,
            email_verified=user.email_verification,
            phone=user.phone or None,
            phone_verified=user.phone_verification if user.phone else None,
            account_active=user.status,
            registration_display=(
                format_date_with_ordinal(user.registration)
                if user.registration
                else "Unknown"
            ),
            password_updated_display=(
                format_date_with_ordinal(user.password_update)
                if user.password_update
                else "Unknown"
            ),
        )


class LoginView(BaseModel):
    title: str = "Job Tracker"
    subtitle: str = "Personal Application Tracking System"
    next: str | None = None
    year: int


class MessageResponse(BaseModel):
    ok: bool = True
    message: str
    redirect: str | None = None


class MutationResponse(MessageResponse):
    application: Application | None = None


class ConnectivityStatus(BaseModel):
    online: bool
    indicator: str | None = None
