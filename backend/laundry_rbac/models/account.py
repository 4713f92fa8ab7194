"""Account model: SuperAdmin, Admin, Center Admin and Staff in one table."""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from laundry_rbac.db.base import Base
from laundry_rbac.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class AccountKind(str, enum.Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    CENTER_ADMIN = "center_admin"
    STAFF = "staff"


ADMIN_TIER = (AccountKind.ADMIN, AccountKind.CENTER_ADMIN)


class Account(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "accounts"

    kind: Mapped[AccountKind] = mapped_column(Enum(AccountKind), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    permissions: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Foreign keys
    branch_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("branches.id", ondelete="SET NULL"), index=True
    )
    # Lookup-only back reference to the creating account
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), index=True
    )

    # Relationships
    branch = relationship("Branch", back_populates="accounts", lazy="raise")

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_superadmin(self) -> bool:
        return self.kind == AccountKind.SUPERADMIN

    @property
    def is_admin_tier(self) -> bool:
        return self.kind in ADMIN_TIER

    @property
    def role(self) -> str:
        return AccountKind(self.kind).value

    def __repr__(self) -> str:
        return f"<Account {self.kind} {self.email}>"
