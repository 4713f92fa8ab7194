"""Permission catalog endpoints: taxonomy, defaults, presets, subset preview."""

from fastapi import APIRouter, Depends

from laundry_rbac.core.deps import get_current_principal
from laundry_rbac.rbac.errors import AccountNotFound
from laundry_rbac.rbac.permission_set import empty_set, full_set, is_subset, normalize
from laundry_rbac.rbac.presets import get_preset, list_presets
from laundry_rbac.rbac.taxonomy import MODULES, actions_for
from laundry_rbac.schemas.auth import Principal
from laundry_rbac.schemas.permission import (
    ModuleActions,
    PresetResponse,
    PresetSummary,
    SubsetCheckRequest,
    SubsetCheckResponse,
    TaxonomyResponse,
)

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("/taxonomy", response_model=TaxonomyResponse)
async def get_taxonomy(current: Principal = Depends(get_current_principal)):
    """Every module with the actions valid for it."""
    return TaxonomyResponse(
        modules=[
            ModuleActions(module=module.value, actions=[a.value for a in actions_for(module)])
            for module in MODULES
        ]
    )


@router.get("/default", response_model=dict[str, dict[str, bool]])
async def get_default_permissions(current: Principal = Depends(get_current_principal)):
    """The empty permission set, for building assignment forms."""
    return empty_set()


@router.get("/presets", response_model=list[PresetSummary])
async def get_presets(current: Principal = Depends(get_current_principal)):
    return list_presets()


@router.get("/presets/{key}", response_model=PresetResponse)
async def get_preset_by_key(key: str, current: Principal = Depends(get_current_principal)):
    preset = get_preset(key)
    if preset is None:
        raise AccountNotFound(f"Preset role '{key}' not found")
    return PresetResponse(**preset.summary(), permissions=preset.permissions)


@router.post("/validate-subset", response_model=SubsetCheckResponse)
async def validate_subset(
    body: SubsetCheckRequest,
    current: Principal = Depends(get_current_principal),
):
    """Preview whether ``candidate`` fits within ``parent`` (the caller's own set by default)."""
    candidate = normalize(body.candidate)
    if body.parent is not None:
        parent = body.parent
    else:
        parent = full_set() if current.is_superadmin else current.permissions
    result = is_subset(parent, candidate)
    return SubsetCheckResponse(is_valid=result.is_valid, violations=result.violations)
