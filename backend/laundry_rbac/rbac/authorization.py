"""Request-time authorization decisions.

``authorize`` and its variants are pure functions of a principal snapshot and
the requested target. The SuperAdmin bypass lives here and nowhere else.
"""

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from laundry_rbac.rbac.errors import InvalidModuleOrAction, PermissionDenied, Unauthorized
from laundry_rbac.rbac.permission_set import read
from laundry_rbac.rbac.taxonomy import Action, Module, actions_for, coerce_module, is_valid_pair, permission_key

SUPERADMIN_ROLE = "superadmin"


class PrincipalLike(Protocol):
    role: Any
    permissions: Any


class DenyCode(str, enum.Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_MODULE_OR_ACTION = "INVALID_MODULE_OR_ACTION"
    PERMISSION_DENIED = "PERMISSION_DENIED"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    code: DenyCode | None = None
    missing: tuple[str, ...] = ()

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, code: DenyCode, missing: Iterable[str] = ()) -> "Decision":
        return cls(allowed=False, code=code, missing=tuple(missing))

    def __bool__(self) -> bool:
        return self.allowed

    def raise_for_denial(self) -> None:
        """Raise the error matching a denial; no-op when allowed."""
        if self.allowed:
            return
        if self.code is DenyCode.UNAUTHORIZED:
            raise Unauthorized()
        if self.code is DenyCode.INVALID_MODULE_OR_ACTION:
            module, _, action = (self.missing[0] if self.missing else "?.?").partition(".")
            raise InvalidModuleOrAction(module, action)
        raise PermissionDenied(self.missing)


def is_superadmin(principal: PrincipalLike | None) -> bool:
    if principal is None:
        return False
    role = getattr(principal, "role", None)
    role_value = role.value if isinstance(role, enum.Enum) else role
    return role_value == SUPERADMIN_ROLE


def authorize(principal: PrincipalLike | None, module: Module | str, action: Action | str) -> Decision:
    if principal is None:
        return Decision.deny(DenyCode.UNAUTHORIZED)
    if is_superadmin(principal):
        return Decision.allow()
    if not is_valid_pair(module, action):
        return Decision.deny(DenyCode.INVALID_MODULE_OR_ACTION, [permission_key(module, action)])
    if read(getattr(principal, "permissions", None), module, action):
        return Decision.allow()
    return Decision.deny(DenyCode.PERMISSION_DENIED, [permission_key(module, action)])


def require_all(
    principal: PrincipalLike | None,
    required: Iterable[tuple[Module | str, Action | str]],
) -> Decision:
    """Allow only when every pair is granted; a denial lists all missing pairs."""
    required = list(required)
    if principal is None:
        return Decision.deny(DenyCode.UNAUTHORIZED)
    if is_superadmin(principal):
        return Decision.allow()

    invalid = [permission_key(m, a) for m, a in required if not is_valid_pair(m, a)]
    if invalid:
        return Decision.deny(DenyCode.INVALID_MODULE_OR_ACTION, invalid)

    missing = [
        permission_key(m, a)
        for m, a in required
        if not read(getattr(principal, "permissions", None), m, a)
    ]
    if missing:
        return Decision.deny(DenyCode.PERMISSION_DENIED, missing)
    return Decision.allow()


def require_any(
    principal: PrincipalLike | None,
    options: Iterable[tuple[Module | str, Action | str]],
) -> Decision:
    """Allow when at least one pair is granted."""
    options = list(options)
    if principal is None:
        return Decision.deny(DenyCode.UNAUTHORIZED)
    if is_superadmin(principal):
        return Decision.allow()

    invalid = [permission_key(m, a) for m, a in options if not is_valid_pair(m, a)]
    if invalid:
        return Decision.deny(DenyCode.INVALID_MODULE_OR_ACTION, invalid)

    permissions = getattr(principal, "permissions", None)
    if any(read(permissions, m, a) for m, a in options):
        return Decision.allow()
    return Decision.deny(DenyCode.PERMISSION_DENIED, [permission_key(m, a) for m, a in options])


def require_module_access(principal: PrincipalLike | None, module: Module | str) -> Decision:
    """Allow when any action of ``module`` is granted, advanced actions included."""
    if principal is None:
        return Decision.deny(DenyCode.UNAUTHORIZED)
    if is_superadmin(principal):
        return Decision.allow()

    resolved = coerce_module(module)
    if resolved is None:
        return Decision.deny(DenyCode.INVALID_MODULE_OR_ACTION, [permission_key(module, "*")])

    permissions = getattr(principal, "permissions", None)
    if any(read(permissions, resolved, action) for action in actions_for(resolved)):
        return Decision.allow()
    return Decision.deny(DenyCode.PERMISSION_DENIED, [permission_key(resolved, "*")])
