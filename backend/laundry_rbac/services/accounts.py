"""Account hierarchy: creation, permission updates, deactivation and reactivation.

SuperAdmin creates Admins and Center Admins; Admin-tier accounts create Staff
only. The kind of a new account is fixed by the operation, never by the
payload. A Staff set must stay within its creating admin's *current* set,
checked on creation and on every update.
"""

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable
from uuid import UUID

from laundry_rbac.core.security import hash_password as default_hash_password
from laundry_rbac.models.account import ADMIN_TIER, Account, AccountKind
from laundry_rbac.rbac.errors import (
    AccountNotFound,
    AlreadyActive,
    AlreadyDeactivated,
    BranchNotFound,
    BranchRequired,
    DuplicateEmail,
    DuplicatePhone,
    Forbidden,
    InvalidPermissions,
    Unauthorized,
)
from laundry_rbac.rbac.permission_set import PermissionSet, has_any_permission, is_subset, normalize
from laundry_rbac.rbac.presets import get_preset
from laundry_rbac.schemas.account import AdminCreate, StaffCreate
from laundry_rbac.schemas.auth import Principal
from laundry_rbac.services.audit import AuditEvent, AuditSink, RiskLevel, record_safely
from laundry_rbac.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)

_KIND_LABELS = {
    AccountKind.SUPERADMIN: "SuperAdmin",
    AccountKind.ADMIN: "Admin",
    AccountKind.CENTER_ADMIN: "Center Admin",
    AccountKind.STAFF: "Staff",
}


@dataclass
class DeactivationResult:
    account: Account
    cascaded_count: int


class AccountHierarchyService:
    def __init__(
        self,
        store: IdentityStore,
        audit: AuditSink,
        hash_password: Callable[[str], str] = default_hash_password,
    ):
        self.store = store
        self.audit = audit
        self._hash_password = hash_password

    # ── Creation ──────────────────────────────────────

    async def create_admin(self, actor: Principal | None, payload: AdminCreate) -> Account:
        return await self._create_subordinate(actor, payload, AccountKind.ADMIN)

    async def create_center_admin(self, actor: Principal | None, payload: AdminCreate) -> Account:
        return await self._create_subordinate(actor, payload, AccountKind.CENTER_ADMIN)

    async def create_staff(self, actor: Principal | None, payload: StaffCreate) -> Account:
        return await self._create_subordinate(actor, payload, AccountKind.STAFF)

    async def _create_subordinate(
        self,
        actor: Principal | None,
        payload: AdminCreate | StaffCreate,
        kind: AccountKind,
    ) -> Account:
        creator = await self._resolve_actor(actor)
        self._check_creation_capability(creator, kind)

        if kind == AccountKind.STAFF:
            # Staff always inherit the admin's branch, including "no branch"
            branch_id = creator.branch_id
        else:
            branch_id = getattr(payload, "branch_id", None)
            if kind == AccountKind.CENTER_ADMIN and branch_id is None:
                raise BranchRequired()
            if branch_id is not None and not await self.store.branch_exists(branch_id):
                raise BranchNotFound()

        email = payload.email.lower()
        if await self.store.find_by_email(email):
            raise DuplicateEmail()
        if await self.store.find_by_phone(payload.phone):
            raise DuplicatePhone()

        permissions = self._requested_permissions(creator, payload, kind)

        account = Account(
            id=uuid.uuid4(),
            kind=kind,
            name=payload.name,
            email=email,
            phone=payload.phone,
            hashed_password=self._hash_password(payload.password),
            permissions=permissions,
            branch_id=branch_id,
            created_by_id=creator.id,
            is_active=True,
            is_email_verified=True,  # internal provisioning, not self-serve signup
        )
        account = await self.store.create(account)
        logger.info(f"{creator.role} {creator.id} created {kind.value} {account.id}")

        label = _KIND_LABELS[kind]
        await self._audit(
            creator,
            action=f"create_{kind.value}",
            description=f"Created new {label}: {account.name} ({account.email})",
            target=account,
            risk_level="low" if kind == AccountKind.STAFF else "medium",
            after={"permissions": copy.deepcopy(account.permissions)},
            metadata={
                "name": account.name,
                "email": account.email,
                "kind": kind.value,
                "branch_id": str(branch_id) if branch_id else None,
            },
        )
        return account

    def _check_creation_capability(self, creator: Account, kind: AccountKind) -> None:
        if kind in ADMIN_TIER:
            if not creator.is_superadmin:
                raise Forbidden(f"Only a SuperAdmin can create {_KIND_LABELS[kind]} accounts")
            return
        if not creator.is_admin_tier:
            raise Forbidden("Only Admin accounts can create Staff")
        if not has_any_permission(creator.permissions):
            raise Forbidden("No permissions assigned to this account")

    def _requested_permissions(
        self,
        creator: Account,
        payload: AdminCreate | StaffCreate,
        kind: AccountKind,
    ) -> PermissionSet:
        base = None
        preset_key = getattr(payload, "preset", None)
        if preset_key:
            preset = get_preset(preset_key)
            if preset is None:
                raise InvalidPermissions(f"Unknown preset role: {preset_key}")
            base = preset.permissions

        permissions = normalize(payload.permissions, base=base)
        if not has_any_permission(permissions):
            raise InvalidPermissions("At least one permission must be assigned")

        if kind == AccountKind.STAFF:
            check = is_subset(creator.permissions, permissions)
            if not check.is_valid:
                raise InvalidPermissions("Cannot assign permissions you don't have", check.violations)
        return permissions

    # ── Mutation ──────────────────────────────────────

    async def update_permissions(
        self,
        actor: Principal | None,
        target_id: UUID,
        new_permissions: dict[str, Any],
    ) -> Account:
        manager = await self._resolve_actor(actor)
        target = await self._load_target(target_id)
        self._check_authority(manager, target)

        permissions = normalize(new_permissions)
        if not has_any_permission(permissions):
            raise InvalidPermissions("At least one permission must be assigned")

        if target.kind == AccountKind.STAFF:
            parent = await self._creator_of(target, manager)
            check = is_subset(parent.permissions if parent else None, permissions)
            if not check.is_valid:
                raise InvalidPermissions("Cannot assign permissions you don't have", check.violations)

        before = copy.deepcopy(target.permissions)
        target.permissions = permissions
        target = await self.store.save(target)

        await self._audit(
            manager,
            action=f"update_{target.role}_permissions",
            description=f"Updated permissions for {_KIND_LABELS[target.kind]}: {target.name} ({target.email})",
            target=target,
            risk_level="low" if target.kind == AccountKind.STAFF else "high",
            before={"permissions": before},
            after={"permissions": copy.deepcopy(target.permissions)},
        )
        return target

    async def update_profile(
        self,
        actor: Principal | None,
        target_id: UUID,
        name: str | None = None,
        phone: str | None = None,
    ) -> Account:
        manager = await self._resolve_actor(actor)
        target = await self._load_target(target_id)
        self._check_authority(manager, target)

        if phone and phone != target.phone and await self.store.find_by_phone(phone):
            raise DuplicatePhone()

        before = {"name": target.name, "phone": target.phone}
        if name:
            target.name = name
        if phone:
            target.phone = phone
        target = await self.store.save(target)

        await self._audit(
            manager,
            action=f"update_{target.role}_profile",
            description=f"Updated {_KIND_LABELS[target.kind]}: {target.name} ({target.email})",
            target=target,
            before=before,
            after={"name": target.name, "phone": target.phone},
        )
        return target

    async def deactivate(
        self,
        actor: Principal | None,
        target_id: UUID,
        reason: str | None = None,
    ) -> DeactivationResult:
        """Soft-delete ``target``. Admin-tier targets take their staff with them."""
        manager = await self._resolve_actor(actor)
        target = await self._load_target(target_id)
        self._check_authority(manager, target)

        if not target.is_active:
            raise AlreadyDeactivated()

        if target.is_admin_tier:
            cascaded = await self.store.deactivate_cascade(target)
        else:
            target.is_active = False
            target = await self.store.save(target)
            cascaded = 0
        logger.info(f"{manager.role} {manager.id} deactivated {target.role} {target.id} (cascaded={cascaded})")

        label = _KIND_LABELS[target.kind]
        await self._audit(
            manager,
            action=f"deactivate_{target.role}",
            description=f"Deactivated {label}: {target.name} ({target.email})"
            + (f" - Reason: {reason}" if reason else ""),
            target=target,
            risk_level="high" if target.is_admin_tier else "low",
            before={"is_active": True},
            after={"is_active": False},
            metadata={"reason": reason or "Not specified", "cascaded_count": cascaded},
        )
        return DeactivationResult(account=target, cascaded_count=cascaded)

    async def reactivate(self, actor: Principal | None, target_id: UUID) -> Account:
        """Reactivate ``target`` only; accounts it created stay as they are."""
        manager = await self._resolve_actor(actor)
        target = await self._load_target(target_id)
        self._check_authority(manager, target)

        if target.is_active:
            raise AlreadyActive()

        target.is_active = True
        target = await self.store.save(target)

        await self._audit(
            manager,
            action=f"reactivate_{target.role}",
            description=f"Reactivated {_KIND_LABELS[target.kind]}: {target.name} ({target.email})",
            target=target,
            risk_level="medium" if target.is_admin_tier else "low",
            before={"is_active": False},
            after={"is_active": True},
        )
        return target

    # ── Queries ───────────────────────────────────────

    async def list_subordinates(
        self,
        actor: Principal | None,
        kind: AccountKind | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        size: int = 10,
    ) -> tuple[list[Account], int]:
        """SuperAdmin sees the admin tier; an admin sees only the staff it created."""
        manager = await self._resolve_actor(actor)
        offset = (page - 1) * size

        if manager.is_superadmin:
            if kind is not None and kind not in ADMIN_TIER:
                raise Forbidden("SuperAdmin listings cover Admin and Center Admin accounts only")
            kinds = ADMIN_TIER if kind is None else (kind,)
            return await self.store.list_accounts(
                kinds, search=search, is_active=is_active, offset=offset, limit=size
            )
        if manager.is_admin_tier:
            if kind is not None and kind != AccountKind.STAFF:
                raise Forbidden("Admins can only list the staff they created")
            return await self.store.list_accounts(
                (AccountKind.STAFF,),
                created_by_id=manager.id,
                search=search,
                is_active=is_active,
                offset=offset,
                limit=size,
            )
        raise Forbidden("You cannot list accounts")

    async def get_subordinate(self, actor: Principal | None, target_id: UUID) -> Account:
        manager = await self._resolve_actor(actor)
        target = await self._load_target(target_id)
        self._check_authority(manager, target)
        return target

    # ── Helpers ───────────────────────────────────────

    async def _resolve_actor(self, actor: Principal | None) -> Account:
        """Reload the acting account so checks use its current stored state."""
        if actor is None:
            raise Unauthorized()
        account = await self.store.find_by_id(actor.id)
        if account is None or not account.is_active:
            raise Unauthorized("Account not found or deactivated")
        return account

    async def _load_target(self, target_id: UUID) -> Account:
        target = await self.store.find_by_id(target_id)
        if target is None:
            raise AccountNotFound()
        return target

    def _check_authority(self, manager: Account, target: Account) -> None:
        if target.id == manager.id:
            raise Forbidden("You cannot manage your own account")
        if target.is_superadmin:
            raise Forbidden("SuperAdmin accounts cannot be managed")
        if manager.is_superadmin:
            return
        if manager.is_admin_tier and target.created_by_id == manager.id:
            return
        raise Forbidden("You can only manage accounts you created")

    async def _creator_of(self, target: Account, manager: Account) -> Account | None:
        if target.created_by_id == manager.id:
            return manager
        if target.created_by_id is None:
            return None
        return await self.store.find_by_id(target.created_by_id)

    async def _audit(
        self,
        actor: Account,
        *,
        action: str,
        description: str,
        target: Account,
        risk_level: RiskLevel = "low",
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await record_safely(
            self.audit,
            AuditEvent(
                actor_id=actor.id,
                actor_type=actor.role,
                action=action,
                category="users",
                description=description,
                resource_type="account",
                resource_id=str(target.id),
                risk_level=risk_level,
                before=before,
                after=after,
                metadata=metadata,
            ),
        )
