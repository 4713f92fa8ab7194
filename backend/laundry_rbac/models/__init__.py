"""SQLAlchemy models for the RBAC core."""

from laundry_rbac.models.branch import Branch
from laundry_rbac.models.account import Account, AccountKind, ADMIN_TIER
from laundry_rbac.models.audit import AuditLog

__all__ = [
    "Branch",
    "Account",
    "AccountKind",
    "ADMIN_TIER",
    "AuditLog",
]
