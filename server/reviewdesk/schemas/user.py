from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads, which use camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# Schema for registering a new user.
# `role` is the legacy single-role field, `roles` the current one.
class UserCreate(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    roles: Optional[Union[List[str], str]] = None
    role: Optional[str] = None
    contact_number: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


# Schema for returning a user
class User(CamelModel):
    id: UUID
    name: str
    email: EmailStr
    roles: List[str]
    contact_number: Optional[str] = None
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: UUID
    name: str
    email: str
    roles: List[str] = []


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


# Identity resolved from a bearer token
class CurrentUser(BaseModel):
    id: UUID
    email: EmailStr
    name: Optional[str] = None
    # Roles as carried by the token; may include legacy labels
    roles: List[str] = []

    model_config = ConfigDict(from_attributes=True)
