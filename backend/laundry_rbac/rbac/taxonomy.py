"""Permission taxonomy: the closed catalog of modules and their actions.

Permission matrix:
┌────────────┬──────┬────────┬────────┬────────┬─────────────────────────┐
│ Module     │ view │ create │ update │ delete │ advanced                │
├────────────┼──────┼────────┼────────┼────────┼─────────────────────────┤
│ orders     │  ✓   │   ✓    │   ✓    │   ✓    │ assign, cancel, refund  │
│ customers  │  ✓   │   ✓    │   ✓    │   ✓    │                         │
│ branches   │  ✓   │   ✓    │   ✓    │   ✓    │                         │
│ services   │  ✓   │   ✓    │   ✓    │   ✓    │ approveChanges          │
│ financial  │  ✓   │   ✓    │   ✓    │   ✓    │ approve, export         │
│ reports    │  ✓   │   ✓    │   ✓    │   ✓    │ export                  │
│ users      │  ✓   │   ✓    │   ✓    │   ✓    │ assignRole              │
│ settings   │  ✓   │   ✓    │   ✓    │   ✓    │                         │
└────────────┴──────┴────────┴────────┴────────┴─────────────────────────┘
"""

import enum

from laundry_rbac.rbac.errors import InvalidModuleOrAction


class Module(str, enum.Enum):
    """Business domains a permission can be granted on."""
    ORDERS = "orders"
    CUSTOMERS = "customers"
    BRANCHES = "branches"
    SERVICES = "services"
    FINANCIAL = "financial"
    REPORTS = "reports"
    USERS = "users"
    SETTINGS = "settings"


class Action(str, enum.Enum):
    # Common
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    # Advanced
    ASSIGN = "assign"
    CANCEL = "cancel"
    REFUND = "refund"
    APPROVE = "approve"
    EXPORT = "export"
    ASSIGN_ROLE = "assignRole"
    APPROVE_CHANGES = "approveChanges"


COMMON_ACTIONS: tuple[Action, ...] = (Action.VIEW, Action.CREATE, Action.UPDATE, Action.DELETE)

ADVANCED_ACTIONS: dict[Module, tuple[Action, ...]] = {
    Module.ORDERS: (Action.ASSIGN, Action.CANCEL, Action.REFUND),
    Module.FINANCIAL: (Action.APPROVE, Action.EXPORT),
    Module.REPORTS: (Action.EXPORT,),
    Module.USERS: (Action.ASSIGN_ROLE,),
    Module.SERVICES: (Action.APPROVE_CHANGES,),
}

MODULES: tuple[Module, ...] = tuple(Module)


def coerce_module(module: Module | str) -> Module | None:
    """Return the Module for ``module`` or None when it is not part of the taxonomy."""
    try:
        return Module(module)
    except ValueError:
        return None


def coerce_action(action: Action | str) -> Action | None:
    try:
        return Action(action)
    except ValueError:
        return None


def actions_for(module: Module | str) -> tuple[Action, ...]:
    """Common actions followed by the module's advanced actions, in a stable order."""
    resolved = coerce_module(module)
    if resolved is None:
        raise InvalidModuleOrAction(module, "*")
    return COMMON_ACTIONS + ADVANCED_ACTIONS.get(resolved, ())


def is_valid_pair(module: Module | str, action: Action | str) -> bool:
    resolved_module = coerce_module(module)
    resolved_action = coerce_action(action)
    if resolved_module is None or resolved_action is None:
        return False
    return resolved_action in actions_for(resolved_module)


def validate_pair(module: Module | str, action: Action | str) -> tuple[Module, Action]:
    """Resolve a (module, action) pair or raise InvalidModuleOrAction."""
    if not is_valid_pair(module, action):
        raise InvalidModuleOrAction(module, action)
    return Module(module), Action(action)


def permission_key(module: Module | str, action: Action | str) -> str:
    """Dotted ``module.action`` label used in violation and denial lists."""
    module_value = module.value if isinstance(module, Module) else str(module)
    action_value = action.value if isinstance(action, Action) else str(action)
    return f"{module_value}.{action_value}"


def iter_pairs():
    """Yield every valid (module, action) pair in taxonomy order."""
    for module in MODULES:
        for action in actions_for(module):
            yield module, action
