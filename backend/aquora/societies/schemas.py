from datetime import datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from aquora.auth.roles import OfficerRole, UserRole
from aquora.core.schemas import CamelModel


class SocietyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=512)
    water_board_reg_no: str = Field(min_length=1, max_length=64)
    billing_scheme_json: Any = None
    billing_day_of_month: int | None = Field(default=None, ge=1, le=31)
    due_days: int | None = Field(default=None, ge=0)

    @field_validator("name", "address", "water_board_reg_no", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class SocietyUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, min_length=1, max_length=512)
    water_board_reg_no: str | None = Field(default=None, min_length=1, max_length=64)
    billing_scheme_json: Any = None
    billing_day_of_month: int | None = Field(default=None, ge=1, le=31)
    due_days: int | None = Field(default=None, ge=0)

    @field_validator("name", "address", "water_board_reg_no", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _at_least_one_field(self) -> "SocietyUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field is required.")
        for required in ("name", "water_board_reg_no"):
            if required in self.model_fields_set and getattr(self, required) is None:
                raise ValueError(f"{required} cannot be null")
        return self


class SocietySummary(CamelModel):
    id: str
    name: str
    address: str | None = None
    water_board_reg_no: str
    is_active: bool
    billing_day_of_month: int | None = None
    due_days: int | None = None


class OfficerUserSummary(CamelModel):
    id: str
    full_name: str
    mobile_number: str
    role: UserRole
    is_active: bool


class OfficerAssignmentSummary(CamelModel):
    id: str
    role: OfficerRole
    is_active: bool
    assigned_at: datetime
    unassigned_at: datetime | None = None
    user: OfficerUserSummary


class SocietyDetail(SocietySummary):
    billing_scheme_json: Any = None
    created_at: datetime
    updated_at: datetime
    officers: list[OfficerAssignmentSummary]


class OfficerAssignRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=64)
    role: OfficerRole


class OfficersResponse(CamelModel):
    officers: list[OfficerAssignmentSummary]


class OfficerAssignResponse(CamelModel):
    assignment: OfficerAssignmentSummary
    officers: list[OfficerAssignmentSummary]


class SocietyUserSummary(CamelModel):
    id: str
    full_name: str
    mobile_number: str
    role: UserRole
    is_active: bool
