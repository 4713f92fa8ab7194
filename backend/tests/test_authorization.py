"""Unit tests for request-time authorization decisions."""

import uuid

import pytest

from laundry_rbac.models.account import AccountKind
from laundry_rbac.rbac.authorization import (
    Decision,
    DenyCode,
    authorize,
    is_superadmin,
    require_all,
    require_any,
    require_module_access,
)
from laundry_rbac.rbac.errors import InvalidModuleOrAction, PermissionDenied, Unauthorized
from laundry_rbac.rbac.permission_set import empty_set, iter_pairs
from laundry_rbac.schemas.auth import Principal

from conftest import grants


def _principal(role: str = "staff", permissions=None) -> Principal:
    return Principal(id=uuid.uuid4(), role=role, permissions=permissions if permissions is not None else {})


# ── authorize ─────────────────────────────────────


class TestAuthorize:
    def test_no_principal_is_unauthorized(self):
        decision = authorize(None, "orders", "view")
        assert not decision
        assert decision.code is DenyCode.UNAUTHORIZED

    def test_granted_pair_allowed(self):
        staff = _principal(permissions=grants(orders=["view", "create"]))
        assert authorize(staff, "orders", "view").allowed
        assert authorize(staff, "orders", "create").allowed

    def test_missing_pair_denied(self):
        staff = _principal(permissions=grants(orders=["view", "create"]))
        decision = authorize(staff, "orders", "delete")
        assert decision.code is DenyCode.PERMISSION_DENIED
        assert decision.missing == ("orders.delete",)

    def test_staff_without_refund(self):
        staff = _principal(permissions=grants(orders=["view", "create"]))
        assert authorize(staff, "orders", "view").allowed
        assert authorize(staff, "orders", "refund").code is DenyCode.PERMISSION_DENIED

    def test_invalid_pair_for_regular_principal(self):
        staff = _principal(permissions=grants(customers=["view"]))
        decision = authorize(staff, "customers", "refund")
        assert decision.code is DenyCode.INVALID_MODULE_OR_ACTION
        assert decision.missing == ("customers.refund",)

    def test_unknown_names_never_raise(self):
        staff = _principal()
        assert authorize(staff, "laundry", "fold").code is DenyCode.INVALID_MODULE_OR_ACTION

    def test_malformed_stored_set_defaults_to_deny(self):
        staff = _principal(permissions={"orders": "everything", "users": {"view": 1}})
        assert authorize(staff, "orders", "view").code is DenyCode.PERMISSION_DENIED
        assert authorize(staff, "users", "view").code is DenyCode.PERMISSION_DENIED

    def test_superadmin_bypass_on_every_pair(self):
        root = _principal(role=AccountKind.SUPERADMIN.value, permissions=empty_set())
        for module, action in iter_pairs():
            assert authorize(root, module, action).allowed

    def test_superadmin_bypass_even_for_invalid_pairs_and_malformed_data(self):
        root = _principal(role="superadmin", permissions={"orders": "garbage"})
        assert authorize(root, "customers", "refund").allowed
        assert authorize(root, "laundry", "fold").allowed

    def test_is_superadmin_accepts_enum_role(self):
        class _Raw:
            role = AccountKind.SUPERADMIN
            permissions = None

        assert is_superadmin(_Raw())
        assert not is_superadmin(None)
        assert not is_superadmin(_principal(role="admin"))


# ── Variants ──────────────────────────────────────


class TestVariants:
    def test_require_all_lists_every_missing_pair(self):
        staff = _principal(permissions=grants(orders=["view"]))
        decision = require_all(staff, [("orders", "view"), ("orders", "refund"), ("reports", "export")])
        assert decision.code is DenyCode.PERMISSION_DENIED
        assert decision.missing == ("orders.refund", "reports.export")

    def test_require_all_allowed(self):
        staff = _principal(permissions=grants(orders=["view", "refund"]))
        assert require_all(staff, [("orders", "view"), ("orders", "refund")]).allowed

    def test_require_all_invalid_pair(self):
        staff = _principal(permissions=grants(orders=["view"]))
        decision = require_all(staff, [("orders", "view"), ("settings", "export")])
        assert decision.code is DenyCode.INVALID_MODULE_OR_ACTION

    def test_require_any(self):
        staff = _principal(permissions=grants(reports=["export"]))
        assert require_any(staff, [("financial", "export"), ("reports", "export")]).allowed
        denied = require_any(staff, [("financial", "export"), ("financial", "approve")])
        assert denied.code is DenyCode.PERMISSION_DENIED
        assert denied.missing == ("financial.export", "financial.approve")

    def test_module_access_counts_advanced_actions(self):
        staff = _principal(permissions=grants(orders=["refund"]))
        assert require_module_access(staff, "orders").allowed

    def test_module_access_denied(self):
        staff = _principal(permissions=grants(orders=["view"]))
        decision = require_module_access(staff, "financial")
        assert decision.code is DenyCode.PERMISSION_DENIED
        assert decision.missing == ("financial.*",)

    def test_module_access_unknown_module(self):
        decision = require_module_access(_principal(), "laundry")
        assert decision.code is DenyCode.INVALID_MODULE_OR_ACTION

    def test_variants_bypass_for_superadmin(self):
        root = _principal(role="superadmin")
        assert require_all(root, [("orders", "refund"), ("settings", "delete")]).allowed
        assert require_any(root, [("financial", "approve")]).allowed
        assert require_module_access(root, "settings").allowed

    def test_variants_without_principal(self):
        assert require_all(None, [("orders", "view")]).code is DenyCode.UNAUTHORIZED
        assert require_any(None, [("orders", "view")]).code is DenyCode.UNAUTHORIZED
        assert require_module_access(None, "orders").code is DenyCode.UNAUTHORIZED


# ── Decision → error ──────────────────────────────


class TestRaiseForDenial:
    def test_allowed_is_noop(self):
        Decision.allow().raise_for_denial()

    def test_unauthorized(self):
        with pytest.raises(Unauthorized):
            Decision.deny(DenyCode.UNAUTHORIZED).raise_for_denial()

    def test_invalid_module_or_action(self):
        with pytest.raises(InvalidModuleOrAction) as exc_info:
            Decision.deny(DenyCode.INVALID_MODULE_OR_ACTION, ["customers.refund"]).raise_for_denial()
        assert exc_info.value.status_code == 500

    def test_permission_denied_carries_missing(self):
        with pytest.raises(PermissionDenied) as exc_info:
            Decision.deny(DenyCode.PERMISSION_DENIED, ["orders.refund", "orders.delete"]).raise_for_denial()
        assert exc_info.value.missing == ["orders.refund", "orders.delete"]
        assert exc_info.value.to_dict()["code"] == "PERMISSION_DENIED"
