"""Permission model: taxonomy, permission sets, presets and authorization."""

from laundry_rbac.rbac.authorization import (
    Decision,
    DenyCode,
    authorize,
    is_superadmin,
    require_all,
    require_any,
    require_module_access,
)
from laundry_rbac.rbac.permission_set import (
    PermissionSet,
    SubsetResult,
    empty_set,
    full_set,
    has_any_permission,
    is_subset,
    normalize,
    read,
    summarize,
)
from laundry_rbac.rbac.presets import PresetRole, get_preset, list_presets
from laundry_rbac.rbac.taxonomy import Action, Module, actions_for, is_valid_pair

__all__ = [
    "Action",
    "Decision",
    "DenyCode",
    "Module",
    "PermissionSet",
    "PresetRole",
    "SubsetResult",
    "actions_for",
    "authorize",
    "empty_set",
    "full_set",
    "get_preset",
    "has_any_permission",
    "is_subset",
    "is_superadmin",
    "is_valid_pair",
    "list_presets",
    "normalize",
    "read",
    "require_all",
    "require_any",
    "require_module_access",
    "summarize",
]
