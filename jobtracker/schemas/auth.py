"""Schemas for the account, session and auth state."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PASSWORD_STRENGTH_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[!@#$%^&*])")
PASSWORD_MIN_LENGTH = 8


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class User(_CamelModel):
    """Account profile returned by the identity service."""

    id: str = Field(alias="$id")
    name: str = ""
    email: str = ""
    email_verification: bool = False
    phone: str = ""
    phone_verification: bool = False
    status: bool = True
    registration: str | None = None
    password_update: str | None = None
    labels: list[str] = Field(default_factory=list)
    prefs: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.labels


class Session(_CamelModel):
    """An identity service session."""

    id: str = Field(alias="$id")
    user_id: str = ""
    expire: str | None = None
    provider: str = "email"
    current: bool = False


class LoginRequest(BaseModel):
    """Credentials for the pre-provisioned account."""

    model_config = ConfigDict(validate_default=True)

    email: str = ""
    password: str = Field(default="", repr=False)

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("required", "Email is required")
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise PydanticCustomError("email_pattern", "Invalid email format")
        return value

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("required", "Password is required")
        return value


class NameUpdate(BaseModel):
    """Display name change."""

    name: str = Field(..., min_length=1, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise PydanticCustomError("required", "Name is required")
        return value


class PasswordChange(_CamelModel):
    """Password change form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    current_password: str = Field(default="", repr=False)
    new_password: str = Field(default="", repr=False)
    confirm_password: str = Field(default="", repr=False)

    @field_validator("current_password", mode="before")
    @classmethod
    def validate_current(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("required", "Current password is required")
        return value

    @field_validator("new_password", mode="before")
    @classmethod
    def validate_new(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("required", "New password is required")
        if len(value) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "too_short", "Password must be at least 8 characters"
            )
        if not PASSWORD_STRENGTH_PATTERN.match(value):
            raise PydanticCustomError(
                "password_strength",
                "Password must include lowercase, uppercase, number and special character",
            )
        return value

    @field_validator("confirm_password", mode="before")
    @classmethod
    def validate_confirm(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("required", "Please confirm your new password")
        return value

    @model_validator(mode="after")
    def check_passwords(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise PydanticCustomError("password_mismatch", "Passwords don't match")
        if self.current_password == self.new_password:
            raise PydanticCustomError(
                "password_unchanged",
                "New password must be different from your current password",
            )
        return self


class AuthStatus(BaseModel):
    """Auth state exposed to views."""

    authenticated: bool
    is_loading: bool
    is_authenticating: bool
    user_id: str
    user: User | None = None
