"""Pydantic schemas for request/response validation."""

from laundry_rbac.schemas.auth import LoginRequest, TokenResponse, Principal
from laundry_rbac.schemas.account import (
    AdminCreate,
    StaffCreate,
    PermissionUpdate,
    ProfileUpdate,
    DeactivateRequest,
    AccountResponse,
    AccountListResponse,
    DeactivateResponse,
)

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "Principal",
    "AdminCreate",
    "StaffCreate",
    "PermissionUpdate",
    "ProfileUpdate",
    "DeactivateRequest",
    "AccountResponse",
    "AccountListResponse",
    "DeactivateResponse",
]
