from datetime import datetime

from pydantic import Field, field_validator

from aquora.auth.roles import Language, UserRole
from aquora.core.schemas import CamelModel

# digits only, country code + number, e.g. 94767804166
MOBILE_NUMBER_PATTERN = r"^94\d{9}$"


class RegisterRequest(CamelModel):
    full_name: str = Field(min_length=1, max_length=255)
    mobile_number: str = Field(pattern=MOBILE_NUMBER_PATTERN)
    # bcrypt hard limit = 72 bytes
    password: str = Field(min_length=8, max_length=72)
    role: UserRole
    preferred_language: Language = Language.EN

    @field_validator("full_name", "mobile_number", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("role")
    @classmethod
    def _no_self_assigned_super_admin(cls, value: UserRole) -> UserRole:
        if value == UserRole.SUPER_ADMIN:
            raise ValueError("SUPER_ADMIN cannot be self-assigned")
        return value


class LoginRequest(CamelModel):
    mobile_number: str = Field(pattern=MOBILE_NUMBER_PATTERN)
    # prevent bcrypt crash on long input
    password: str = Field(min_length=1, max_length=72)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class PublicUser(CamelModel):
    id: str
    mobile_number: str
    full_name: str
    role: UserRole
    preferred_language: Language
    is_active: bool
    society_id: str | None = None
    created_at: datetime


class AuthSuccess(CamelModel):
    user: PublicUser
    access_token: str
    token_type: str = "bearer"
    effective_role: UserRole
    effective_society_id: str | None = None
    refresh_token: str | None = None
