"""Staff management endpoints (Admin / Center Admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from laundry_rbac.core.deps import (
    get_account_service,
    rate_limit_sensitive,
    require_kind,
)
from laundry_rbac.models.account import AccountKind
from laundry_rbac.schemas.account import (
    AccountListResponse,
    AccountResponse,
    DeactivateRequest,
    DeactivateResponse,
    PermissionUpdate,
    ProfileUpdate,
    StaffCreate,
)
from laundry_rbac.schemas.auth import Principal
from laundry_rbac.services.accounts import AccountHierarchyService

router = APIRouter(prefix="/admin/staff", tags=["staff"])

admin_only = require_kind(AccountKind.ADMIN, AccountKind.CENTER_ADMIN)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_sensitive)],
)
async def create_staff(
    body: StaffCreate,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    """Create a staff member in the admin's branch with a subset of the admin's permissions."""
    account = await service.create_staff(current, body)
    return AccountResponse.model_validate(account)


@router.get("", response_model=AccountListResponse)
async def list_staff(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = None,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    items, total = await service.list_subordinates(
        current, search=search, is_active=is_active, page=page, size=size
    )
    return AccountListResponse(
        items=[AccountResponse.model_validate(a) for a in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{staff_id}", response_model=AccountResponse)
async def get_staff(
    staff_id: UUID,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.get_subordinate(current, staff_id)
    return AccountResponse.model_validate(account)


@router.put("/{staff_id}/permissions", response_model=AccountResponse)
async def update_staff_permissions(
    staff_id: UUID,
    body: PermissionUpdate,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.update_permissions(current, staff_id, body.permissions)
    return AccountResponse.model_validate(account)


@router.patch("/{staff_id}", response_model=AccountResponse)
async def update_staff_profile(
    staff_id: UUID,
    body: ProfileUpdate,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.update_profile(current, staff_id, name=body.name, phone=body.phone)
    return AccountResponse.model_validate(account)


@router.post("/{staff_id}/deactivate", response_model=DeactivateResponse)
async def deactivate_staff(
    staff_id: UUID,
    body: DeactivateRequest | None = None,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    result = await service.deactivate(current, staff_id, reason=body.reason if body else None)
    return DeactivateResponse(
        account=AccountResponse.model_validate(result.account),
        cascaded_count=result.cascaded_count,
    )


@router.post("/{staff_id}/reactivate", response_model=AccountResponse)
async def reactivate_staff(
    staff_id: UUID,
    current: Principal = Depends(admin_only),
    service: AccountHierarchyService = Depends(get_account_service),
):
    account = await service.reactivate(current, staff_id)
    return AccountResponse.model_validate(account)
