"""Admin / Center Admin management endpoints (SuperAdmin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from laundry_rbac.core.deps import get_account_service, rate_limit_sensitive, require_kind
from laundry_rbac.models.account import AccountKind
from laundry_rbac.schemas.account import (
    AccountListResponse,
    AccountResponse,
    AdminCreate,
    DeactivateRequest,
    DeactivateResponse,
    PermissionUpdate,
    ProfileUpdate,
)
from laundry_rbac.schemas.auth import Principal
from laundry_rbac.services.accounts import AccountHierarchyService

router = APIRouter(prefix="/superadmin/admins", tags=["superadmin"])

superadmin_only = require_kind(AccountKind.SUPERADMIN)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_sensitive)],
)
async def create_admin(
    body: AdminCreate,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    """Create an Admin. ``preset`` and ``permissions`` seed its permission set."""
    account = await service.create_admin(current, body)
    return AccountResponse.model_validate(account)


@router.post(
    "/center-admins",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_sensitive)],
)
async def create_center_admin(
    body: AdminCreate,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    """Create a Center Admin. A branch is required."""
    account = await service.create_center_admin(current, body)
    return AccountResponse.model_validate(account)


@router.get("", response_model=AccountListResponse)
async def list_admins(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = None,
    kind: AccountKind | None = None,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    items, total = await service.list_subordinates(
        current, kind=kind, search=search, is_active=is_active, page=page, size=size
    )
    return AccountListResponse(
        items=[AccountResponse.model_validate(a) for a in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{account_id}", response_model=AccountResponse)
async def get_admin(
    account_id: UUID,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.get_subordinate(current, account_id)
    return AccountResponse.model_validate(account)


@router.put("/{account_id}/permissions", response_model=AccountResponse)
async def update_admin_permissions(
    account_id: UUID,
    body: PermissionUpdate,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.update_permissions(current, account_id, body.permissions)
    return AccountResponse.model_validate(account)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_admin_profile(
    account_id: UUID,
    body: ProfileUpdate,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.update_profile(current, account_id, name=body.name, phone=body.phone)
    return AccountResponse.model_validate(account)


@router.post("/{account_id}/deactivate", response_model=DeactivateResponse)
async def deactivate_admin(
    account_id: UUID,
    body: DeactivateRequest | None = None,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    """Deactivate an admin and every active account it created."""
    result = await service.deactivate(current, account_id, reason=body.reason if body else None)
    return DeactivateResponse(
        account=AccountResponse.model_validate(result.account),
        cascaded_count=result.cascaded_count,
    )


@router.post("/{account_id}/reactivate", response_model=AccountResponse)
async def reactivate_admin(
    account_id: UUID,
    current: Principal = Depends(superadmin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    """Reactivate an admin. Its staff stay deactivated."""
    account = await service.reactivate(current, account_id)
    return AccountResponse.model_validate(account)
