"""Branch model."""

from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from laundry_rbac.db.base import Base
from laundry_rbac.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Branch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    accounts = relationship("Account", back_populates="branch", lazy="raise")

    def __repr__(self) -> str:
        return f"<Branch {self.code}: {self.name}>"
