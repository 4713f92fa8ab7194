"""Preset role templates.

The registry is built once at import and exposed read-only. Every access to
``PresetRole.permissions`` hands out a fresh copy, so callers can never
mutate the shared template.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from laundry_rbac.rbac.permission_set import PermissionSet, normalize


@dataclass(frozen=True)
class PresetRole:
    key: str
    name: str
    description: str
    grants: Mapping[str, Mapping[str, bool]]

    @property
    def permissions(self) -> PermissionSet:
        return {module: dict(actions) for module, actions in self.grants.items()}

    def summary(self) -> dict[str, str]:
        return {"key": self.key, "name": self.name, "description": self.description}


_PRESET_TABLE: tuple[tuple[str, str, str, PermissionSet], ...] = (
    (
        "viewer",
        "Viewer",
        "Read-only access to all modules",
        {
            "orders": {"view": True, "create": False, "update": False, "delete": False, "assign": False, "cancel": False, "refund": False},
            "customers": {"view": True, "create": False, "update": False, "delete": False},
            "branches": {"view": True, "create": False, "update": False, "delete": False},
            "services": {"view": True, "create": False, "update": False, "delete": False, "approveChanges": False},
            "financial": {"view": True, "create": False, "update": False, "delete": False, "approve": False, "export": False},
            "reports": {"view": True, "create": False, "update": False, "delete": False, "export": False},
            "users": {"view": True, "create": False, "update": False, "delete": False, "assignRole": False},
            "settings": {"view": True, "create": False, "update": False, "delete": False},
        },
    ),
    (
        "manager",
        "Manager",
        "Operational access with order management capabilities",
        {
            "orders": {"view": True, "create": True, "update": True, "delete": False, "assign": True, "cancel": True, "refund": False},
            "customers": {"view": True, "create": True, "update": True, "delete": False},
            "branches": {"view": True, "create": False, "update": False, "delete": False},
            "services": {"view": True, "create": False, "update": False, "delete": False, "approveChanges": False},
            "financial": {"view": True, "create": False, "update": False, "delete": False, "approve": False, "export": False},
            "reports": {"view": True, "create": False, "update": False, "delete": False, "export": True},
            "users": {"view": True, "create": True, "update": True, "delete": False, "assignRole": False},
            "settings": {"view": True, "create": False, "update": False, "delete": False},
        },
    ),
    (
        "financeAdmin",
        "Finance Admin",
        "Financial operations and reporting access",
        {
            "orders": {"view": True, "create": False, "update": False, "delete": False, "assign": False, "cancel": False, "refund": True},
            "customers": {"view": True, "create": False, "update": False, "delete": False},
            "branches": {"view": True, "create": False, "update": False, "delete": False},
            "services": {"view": True, "create": False, "update": False, "delete": False, "approveChanges": False},
            "financial": {"view": True, "create": True, "update": True, "delete": False, "approve": True, "export": True},
            "reports": {"view": True, "create": True, "update": False, "delete": False, "export": True},
            "users": {"view": True, "create": False, "update": False, "delete": False, "assignRole": False},
            "settings": {"view": False, "create": False, "update": False, "delete": False},
        },
    ),
    (
        "branchManager",
        "Branch Manager",
        "Full branch operations access",
        {
            "orders": {"view": True, "create": True, "update": True, "delete": True, "assign": True, "cancel": True, "refund": True},
            "customers": {"view": True, "create": True, "update": True, "delete": False},
            "branches": {"view": True, "create": False, "update": True, "delete": False},
            "services": {"view": True, "create": True, "update": True, "delete": False, "approveChanges": False},
            "financial": {"view": True, "create": True, "update": True, "delete": False, "approve": False, "export": True},
            "reports": {"view": True, "create": True, "update": True, "delete": False, "export": True},
            "users": {"view": True, "create": True, "update": True, "delete": True, "assignRole": True},
            "settings": {"view": True, "create": False, "update": True, "delete": False},
        },
    ),
)


def _freeze(permissions: PermissionSet) -> Mapping[str, Mapping[str, bool]]:
    # normalize() rejects any typo in the literal table at import time
    complete = normalize(permissions)
    return MappingProxyType({module: MappingProxyType(dict(actions)) for module, actions in complete.items()})


PRESET_ROLES: Mapping[str, PresetRole] = MappingProxyType({
    key: PresetRole(key=key, name=name, description=description, grants=_freeze(permissions))
    for key, name, description, permissions in _PRESET_TABLE
})


def get_preset(key: str) -> PresetRole | None:
    return PRESET_ROLES.get(key)


def list_presets() -> list[dict[str, str]]:
    """Preset keys, names and descriptions in registry order (no permissions)."""
    return [preset.summary() for preset in PRESET_ROLES.values()]
