"""Schemas for job application records and forms."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

SCHEMA_VERSION = 2

JOB_LINK_PATTERN = re.compile(r"^https?://.+")


class ApplicationStatus(str, Enum):
    """Lifecycle status of a job application."""

    APPLIED = "applied"
    IN_REVIEW = "in_review"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    CLOSED = "closed"


# Only readable; schema version 1 records may still carry it.
LEGACY_STATUSES = frozenset({ApplicationStatus.IN_REVIEW})


@dataclass(frozen=True)
class StatusOption:
    """Display metadata for a status value."""

    value: ApplicationStatus
    label: str
    color: str


STATUS_OPTIONS: tuple[StatusOption, ...] = (
    StatusOption(ApplicationStatus.APPLIED, "Applied", "bg-blue-100 text-blue-800"),
    StatusOption(
        ApplicationStatus.INTERVIEW, "Interview", "bg-orange-100 text-orange-800"
    ),
    StatusOption(ApplicationStatus.OFFER, "Offer", "bg-green-100 text-green-800"),
    StatusOption(ApplicationStatus.REJECTED, "Rejected", "bg-red-100 text-red-800"),
    StatusOption(
        ApplicationStatus.WITHDRAWN, "Withdrawn", "bg-gray-100 text-gray-800"
    ),
    StatusOption(ApplicationStatus.CLOSED, "Closed", "bg-purple-100 text-purple-800"),
)

_LEGACY_OPTIONS: tuple[StatusOption, ...] = (
    StatusOption(
        ApplicationStatus.IN_REVIEW, "In Review", "bg-yellow-100 text-yellow-800"
    ),
)

_OPTIONS_BY_VALUE = {opt.value: opt for opt in STATUS_OPTIONS + _LEGACY_OPTIONS}


def status_option(status: ApplicationStatus | str) -> StatusOption:
    """Return display metadata for a status."""
    return _OPTIONS_BY_VALUE[ApplicationStatus(status)]


def parse_application_date(value: Any) -> date:
    """Parse a calendar date, truncating ISO datetime strings to the date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", "Application date is required")
    if not isinstance(value, str):
        raise PydanticCustomError(
            "date_type", "Application date must be a valid date"
        )
    try:
        return date.fromisoformat(value.strip().split("T")[0])
    except ValueError:
        raise PydanticCustomError(
            "date_parsing", "Application date must be a valid date"
        ) from None


def _writable_status(value: Any) -> ApplicationStatus:
    if value is None or value == "":
        raise PydanticCustomError("required", "Status is required")
    try:
        status = ApplicationStatus(value)
    except ValueError:
        raise PydanticCustomError(
            "enum",
            "Status must be one of: {choices}",
            {"choices": ", ".join(opt.value.value for opt in STATUS_OPTIONS)},
        ) from None
    if status in LEGACY_STATUSES:
        raise PydanticCustomError(
            "legacy_status",
            "Status {status} can no longer be assigned",
            {"status": status.value},
        )
    return status


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ApplicationForm(_CamelModel):
    """Create/edit form payload for an application."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    company_name: str = ""
    position_title: str = ""
    application_date: date = Field(default_factory=date.today)
    status: ApplicationStatus = ApplicationStatus.APPLIED
    location: str = ""
    source: str = ""
    job_link: str | None = None
    description: str | None = None
    stacks: str | None = None
    notes: str | None = None
    next_step: str | None = None
    resume_version: str | None = None

    @field_validator("company_name", "position_title", mode="before")
    @classmethod
    def validate_min_length(cls, value: Any, info) -> str:
        label = (
            "Company name" if info.field_name == "company_name" else "Position title"
        )
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise PydanticCustomError("string_type", f"{label} must be text")
        value = value.strip()
        if not value:
            raise PydanticCustomError("required", f"{label} is required")
        if len(value) < 2:
            raise PydanticCustomError(
                "too_short", f"{label} must be at least 2 characters"
            )
        return value

    @field_validator("location", "source", mode="before")
    @classmethod
    def validate_required(cls, value: Any, info) -> str:
        label = info.field_name.capitalize()
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("required", f"{label} is required")
        return value.strip()

    @field_validator("application_date", mode="before")
    @classmethod
    def validate_date(cls, value: Any) -> date:
        return parse_application_date(value)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> ApplicationStatus:
        return _writable_status(value)

    @field_validator("job_link", mode="before")
    @classmethod
    def validate_job_link(cls, value: Any) -> str | None:
        value = _blank_to_none(value)
        if value is not None and not JOB_LINK_PATTERN.match(str(value)):
            raise PydanticCustomError(
                "url_pattern",
                "Please enter a valid URL starting with http:// or https://",
            )
        return value

    @field_validator(
        "description", "stacks", "notes", "next_step", "resume_version",
        mode="before",
    )
    @classmethod
    def strip_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_serializer("application_date")
    def serialize_date(self, value: date) -> str:
        return value.isoformat()

    def to_payload(self) -> dict[str, Any]:
        """Document payload for the remote store (server-owned fields excluded)."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_application(cls, application: "Application") -> "ApplicationForm":
        """Prefill an edit form from a stored record."""
        data = application.model_dump(
            include=set(cls.model_fields), exclude={"status", "application_date"}
        )
        data["application_date"] = application.application_date
        if application.status in LEGACY_STATUSES:
            return cls.model_construct(status=application.status, **data)
        return cls(status=application.status, **data)


class StatusUpdate(_CamelModel):
    """Inline status change payload."""

    status: ApplicationStatus

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> ApplicationStatus:
        return _writable_status(value)


class Application(_CamelModel):
    """Job application record as stored in the document store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(alias="$id")
    created_at: datetime | None = Field(default=None, alias="$createdAt")
    updated_at: datetime | None = Field(default=None, alias="$updatedAt")

    company_name: str
    position_title: str
    application_date: date
    status: ApplicationStatus
    location: str
    source: str
    job_link: str | None = None
    description: str | None = None
    stacks: str | None = None
    notes: str | None = None
    next_step: str | None = None
    resume_version: str | None = None

    @field_validator("application_date", mode="before")
    @classmethod
    def validate_date(cls, value: Any) -> date:
        return parse_application_date(value)

    @field_serializer("application_date")
    def serialize_date(self, value: date) -> str:
        return value.isoformat()

    @property
    def stack_list(self) -> list[str]:
        """Technology tags split out of the comma-separated stacks field."""
        if not self.stacks:
            return []
        return [tag.strip() for tag in self.stacks.split(",") if tag.strip()]

    @property
    def schema_version(self) -> int:
        return 1 if self.status in LEGACY_STATUSES else SCHEMA_VERSION


class ApplicationList(BaseModel):
    """A list query result from the document store."""

    documents: list[Application]
    total: int


class ApplicationStats(BaseModel):
    """Aggregate counts over the unfiltered record set."""

    total: int = 0
    applied: int = 0
    interview: int = 0
    offer: int = 0
    rejected: int = 0
    counts: dict[str, int] = Field(default_factory=dict)
