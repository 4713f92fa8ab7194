"""Auth request/response schemas and the request principal."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from laundry_rbac.models.account import Account, AccountKind


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: UUID
    role: str
    branch_id: UUID | None = None


# ── Principal ──────────────────────────────────────
class Principal(BaseModel):
    """Authenticated actor evaluated by the authorization check.

    ``permissions`` is kept loosely typed: the SuperAdmin bypass must hold
    even when the stored set is malformed, and reads of malformed data
    default to deny.
    """
    id: UUID
    role: str
    permissions: dict[str, Any] = Field(default_factory=dict)
    branch_id: UUID | None = None
    email: str = ""
    name: str = ""
    is_active: bool = True

    @property
    def is_superadmin(self) -> bool:
        return self.role == AccountKind.SUPERADMIN.value

    @classmethod
    def from_account(cls, account: Account) -> "Principal":
        return cls(
            id=account.id,
            role=account.role,
            permissions=account.permissions if isinstance(account.permissions, dict) else {},
            branch_id=account.branch_id,
            email=account.email,
            name=account.name,
            is_active=account.is_active,
        )
