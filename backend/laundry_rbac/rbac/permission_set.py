"""Permission set value type and the subset validator.

A permission set is a plain ``dict[str, dict[str, bool]]`` keyed by module
and action values, so it can be stored in a JSON column and returned by the
API unchanged. Anything missing reads as ``False``.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from laundry_rbac.rbac.errors import InvalidModuleOrAction, InvalidPermissions
from laundry_rbac.rbac.taxonomy import (
    MODULES,
    Action,
    Module,
    actions_for,
    coerce_action,
    coerce_module,
    iter_pairs,
    permission_key,
)

PermissionSet = dict[str, dict[str, bool]]


def _build(value: bool) -> PermissionSet:
    return {
        module.value: {action.value: value for action in actions_for(module)}
        for module in MODULES
    }


def empty_set() -> PermissionSet:
    """Every module and action set to False."""
    return _build(False)


def full_set() -> PermissionSet:
    """Every module and action set to True."""
    return _build(True)


def read(permissions: Mapping[str, Any] | None, module: Module | str, action: Action | str) -> bool:
    """Look up one grant, defaulting to False.

    Never raises for a known Module and Action, even when the stored data is
    missing or malformed. Raises InvalidModuleOrAction only when ``module``
    or ``action`` is not part of the taxonomy at all.
    """
    resolved_module = coerce_module(module)
    resolved_action = coerce_action(action)
    if resolved_module is None or resolved_action is None:
        raise InvalidModuleOrAction(module, action)
    if resolved_action not in actions_for(resolved_module):
        return False
    if not isinstance(permissions, Mapping):
        return False
    module_grants = permissions.get(resolved_module.value)
    if not isinstance(module_grants, Mapping):
        return False
    return module_grants.get(resolved_action.value) is True


def has_any_permission(permissions: Mapping[str, Any] | None) -> bool:
    return any(read(permissions, module, action) for module, action in iter_pairs())


def granted(permissions: Mapping[str, Any] | None) -> list[str]:
    """Dotted labels of every granted pair, in taxonomy order."""
    return [
        permission_key(module, action)
        for module, action in iter_pairs()
        if read(permissions, module, action)
    ]


def merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> PermissionSet:
    """Return a copy of ``base`` with every valid entry of ``override`` applied."""
    merged: PermissionSet = {
        module: dict(actions) for module, actions in base.items() if isinstance(actions, Mapping)
    }
    for module in MODULES:
        module_override = override.get(module.value)
        if not isinstance(module_override, Mapping):
            continue
        target = merged.setdefault(module.value, {})
        for action in actions_for(module):
            if action.value in module_override:
                target[action.value] = module_override[action.value]
    return merged


def normalize(raw: Mapping[str, Any] | None, base: Mapping[str, Any] | None = None) -> PermissionSet:
    """Turn a client-supplied (possibly partial) set into a complete one.

    Entries of ``raw`` are applied over ``base`` (the empty set by default).
    Unknown modules, unknown actions and non-boolean values are rejected with
    every offending ``module.action`` listed.
    """
    start = merge(empty_set(), base) if base is not None else empty_set()
    if raw is None:
        return start
    if not isinstance(raw, Mapping):
        raise InvalidPermissions("Permissions must be an object")

    problems: list[str] = []
    for module_name, actions in raw.items():
        module = coerce_module(module_name)
        if module is None:
            problems.append(f"{module_name}.*")
            continue
        if not isinstance(actions, Mapping):
            problems.append(f"{module.value}.*")
            continue
        valid_actions = actions_for(module)
        for action_name, value in actions.items():
            action = coerce_action(action_name)
            if action is None or action not in valid_actions or not isinstance(value, bool):
                problems.append(permission_key(module, action_name))

    if problems:
        raise InvalidPermissions("Permissions contain unknown or malformed entries", problems)
    return merge(start, raw)


@dataclass(frozen=True)
class SubsetResult:
    is_valid: bool
    violations: list[str] = field(default_factory=list)


def is_subset(parent: Mapping[str, Any] | None, candidate: Mapping[str, Any] | None) -> SubsetResult:
    """Check that ``candidate`` grants nothing ``parent`` does not.

    Pairs absent from the candidate are never violations. Violations follow
    taxonomy order so the result is deterministic.
    """
    violations = [
        permission_key(module, action)
        for module, action in iter_pairs()
        if read(candidate, module, action) and not read(parent, module, action)
    ]
    return SubsetResult(is_valid=not violations, violations=violations)


def summarize(permissions: Mapping[str, Any] | None) -> dict[str, int]:
    """Count the modules with any access and the total number of grants."""
    modules = 0
    total = 0
    for module in MODULES:
        module_total = sum(1 for action in actions_for(module) if read(permissions, module, action))
        if module_total:
            modules += 1
            total += module_total
    return {"modules": modules, "total_permissions": total}
