"""Shared fixtures: in-memory identity store, recording audit sinks, account factories."""

import itertools
import uuid
from uuid import UUID

import pytest

from laundry_rbac.models.account import Account, AccountKind
from laundry_rbac.rbac.errors import DuplicateEmail, DuplicatePhone
from laundry_rbac.rbac.permission_set import empty_set, full_set, merge
from laundry_rbac.rbac.presets import get_preset
from laundry_rbac.services.accounts import AccountHierarchyService
from laundry_rbac.services.audit import AuditEvent

_phones = itertools.count(9100000000)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class InMemoryIdentityStore:
    def __init__(self):
        self.accounts: dict[UUID, Account] = {}
        self.branches: set[UUID] = set()
        self.saves = 0

    def add(self, account: Account) -> Account:
        self.accounts[account.id] = account
        return account

    async def find_by_id(self, account_id: UUID) -> Account | None:
        return self.accounts.get(account_id)

    async def find_by_email(self, email: str) -> Account | None:
        return next((a for a in self.accounts.values() if a.email == email.lower()), None)

    async def find_by_phone(self, phone: str) -> Account | None:
        return next((a for a in self.accounts.values() if a.phone == phone), None)

    async def create(self, account: Account) -> Account:
        if await self.find_by_email(account.email):
            raise DuplicateEmail()
        if await self.find_by_phone(account.phone):
            raise DuplicatePhone()
        return self.add(account)

    async def save(self, account: Account) -> Account:
        self.saves += 1
        self.accounts[account.id] = account
        return account

    async def deactivate_cascade(self, account: Account) -> int:
        account.is_active = False
        count = 0
        for other in self.accounts.values():
            if other.created_by_id == account.id and other.is_active:
                other.is_active = False
                count += 1
        return count

    async def list_accounts(
        self,
        kinds,
        created_by_id=None,
        search=None,
        is_active=None,
        offset=0,
        limit=50,
    ):
        items = [
            a
            for a in self.accounts.values()
            if a.kind in kinds
            and (created_by_id is None or a.created_by_id == created_by_id)
            and (is_active is None or a.is_active == is_active)
            and (not search or search.lower() in f"{a.name} {a.email} {a.phone}".lower())
        ]
        return items[offset : offset + limit], len(items)

    async def branch_exists(self, branch_id: UUID) -> bool:
        return branch_id in self.branches


class RecordingAuditSink:
    def __init__(self):
        self.events: list[AuditEvent] = []

    async def record(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> list[str]:
        return [e.action for e in self.events]


class FailingAuditSink:
    def __init__(self):
        self.calls = 0

    async def record(self, event: AuditEvent) -> None:
        self.calls += 1
        raise RuntimeError("audit database unavailable")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_account(
    kind: AccountKind,
    permissions=None,
    created_by: Account | None = None,
    branch_id: UUID | None = None,
    is_active: bool = True,
    name: str = "Test Account",
    email: str | None = None,
) -> Account:
    account_id = uuid.uuid4()
    return Account(
        id=account_id,
        kind=kind,
        name=name,
        email=email or f"{kind.value}-{account_id.hex[:8]}@example.com",
        phone=str(next(_phones)),
        hashed_password="hashed:secret1",
        permissions=permissions if permissions is not None else empty_set(),
        branch_id=branch_id,
        created_by_id=created_by.id if created_by else None,
        is_active=is_active,
        is_email_verified=True,
    )


def grants(**modules: list[str]) -> dict[str, dict[str, bool]]:
    """Complete set with only the listed actions granted, e.g. ``grants(orders=["view"])``."""
    return merge(empty_set(), {m: {a: True for a in actions} for m, actions in modules.items()})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def audit() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def service(store, audit) -> AccountHierarchyService:
    return AccountHierarchyService(store, audit, hash_password=lambda plain: f"hashed:{plain}")


@pytest.fixture
def branch_id(store) -> UUID:
    bid = uuid.uuid4()
    store.branches.add(bid)
    return bid


@pytest.fixture
def superadmin(store) -> Account:
    return store.add(make_account(AccountKind.SUPERADMIN, permissions=full_set(), name="Root"))


@pytest.fixture
def admin(store, superadmin, branch_id) -> Account:
    """Admin holding the manager preset, in a branch."""
    return store.add(
        make_account(
            AccountKind.ADMIN,
            permissions=get_preset("manager").permissions,
            created_by=superadmin,
            branch_id=branch_id,
            name="Branch Admin",
        )
    )
