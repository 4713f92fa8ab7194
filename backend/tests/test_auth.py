"""Unit tests for auth: security utils + principal resolution."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from jose import JWTError

from laundry_rbac.core.deps import get_current_principal
from laundry_rbac.core.security import create_access_token, decode_access_token, hash_password, verify_password
from laundry_rbac.models.account import AccountKind
from laundry_rbac.rbac.authorization import authorize
from laundry_rbac.rbac.errors import Unauthorized

from conftest import grants, make_account


# ── Password hashing ──────────────────────────────

def test_hash_and_verify():
    plain = "SecurePass123!"
    hashed = hash_password(plain)
    assert hashed != plain
    assert verify_password(plain, hashed)
    assert not verify_password("wrong", hashed)


# ── JWT ────────────────────────────────────────────

def test_create_and_decode_token():
    aid = uuid.uuid4()
    bid = uuid.uuid4()
    token = create_access_token(account_id=aid, role="center_admin", branch_id=bid)
    payload = decode_access_token(token)
    assert payload["sub"] == str(aid)
    assert payload["role"] == "center_admin"
    assert payload["branch_id"] == str(bid)
    assert "permissions" not in payload


def test_token_without_branch():
    payload = decode_access_token(create_access_token(account_id=uuid.uuid4(), role="admin"))
    assert payload["branch_id"] is None


def test_expired_token():
    token = create_access_token(
        account_id=uuid.uuid4(),
        role="staff",
        expires_delta=timedelta(seconds=-1),
    )
    with pytest.raises(JWTError):
        decode_access_token(token)


# ── Principal resolution ──────────────────────────

def _db_returning(account):
    result = MagicMock()
    result.scalar_one_or_none.return_value = account
    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    return db


class TestCurrentPrincipal:
    @pytest.mark.asyncio
    async def test_loads_stored_permissions(self):
        account = make_account(AccountKind.STAFF, permissions=grants(orders=["view"]))
        token = create_access_token(account_id=account.id, role=account.role)
        principal = await get_current_principal(token=token, db=_db_returning(account))
        assert principal.id == account.id
        assert principal.role == "staff"
        assert principal.permissions["orders"]["view"] is True

    @pytest.mark.asyncio
    async def test_missing_token(self):
        with pytest.raises(Unauthorized):
            await get_current_principal(token=None, db=_db_returning(None))

    @pytest.mark.asyncio
    async def test_garbage_token(self):
        with pytest.raises(Unauthorized):
            await get_current_principal(token="not-a-jwt", db=_db_returning(None))

    @pytest.mark.asyncio
    async def test_unknown_account(self):
        token = create_access_token(account_id=uuid.uuid4(), role="admin")
        with pytest.raises(Unauthorized):
            await get_current_principal(token=token, db=_db_returning(None))

    @pytest.mark.asyncio
    async def test_deactivated_account(self):
        account = make_account(AccountKind.ADMIN, is_active=False)
        token = create_access_token(account_id=account.id, role=account.role)
        with pytest.raises(Unauthorized):
            await get_current_principal(token=token, db=_db_returning(account))

    @pytest.mark.asyncio
    async def test_superadmin_with_malformed_set_still_resolves(self):
        root = make_account(AccountKind.SUPERADMIN, permissions=["garbage"])
        token = create_access_token(account_id=root.id, role=root.role)
        principal = await get_current_principal(token=token, db=_db_returning(root))
        assert principal.is_superadmin
        assert principal.permissions == {}
        assert authorize(principal, "financial", "approve").allowed

    @pytest.mark.asyncio
    async def test_malformed_set_denies_everyone_else(self):
        admin = make_account(AccountKind.ADMIN, permissions="orders.view")
        token = create_access_token(account_id=admin.id, role=admin.role)
        principal = await get_current_principal(token=token, db=_db_returning(admin))
        assert not authorize(principal, "orders", "view").allowed
