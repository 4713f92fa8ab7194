"""Account management request/response schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from laundry_rbac.models.account import AccountKind
from laundry_rbac.rbac.permission_set import summarize

PHONE_PATTERN = r"^[6-9]\d{9}$"


class AccountCreateBase(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=6)


class AdminCreate(AccountCreateBase):
    """Admin / Center Admin creation by a SuperAdmin.

    ``preset`` seeds the permission set from a preset role; explicit
    ``permissions`` entries are applied on top of it.
    """
    permissions: dict[str, Any] | None = None
    preset: str | None = None
    branch_id: UUID | None = None


class StaffCreate(AccountCreateBase):
    """Staff creation by an Admin. The branch always comes from the admin."""
    permissions: dict[str, Any] | None = None


class PermissionUpdate(BaseModel):
    permissions: dict[str, Any]


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)


class DeactivateRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: AccountKind
    name: str
    email: str
    phone: str
    permissions: dict[str, Any]
    branch_id: UUID | None = None
    created_by_id: UUID | None = None
    is_active: bool
    is_email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def permission_summary(self) -> dict[str, int]:
        return summarize(self.permissions)


class AccountListResponse(BaseModel):
    items: list[AccountResponse]
    total: int
    page: int
    size: int


class DeactivateResponse(BaseModel):
    account: AccountResponse
    cascaded_count: int
