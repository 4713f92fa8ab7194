"""Identity store: persistence of account records.

``IdentityStore`` is the interface the hierarchy service depends on;
``SqlAlchemyIdentityStore`` implements it on an ``AsyncSession``. Every
account row is versioned, so a concurrent write fails with
ConcurrentModification instead of silently overwriting (which could widen a
staff set past its admin's).
"""

import logging
from typing import Protocol
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from laundry_rbac.models.account import Account, AccountKind
from laundry_rbac.models.branch import Branch
from laundry_rbac.rbac.errors import ConcurrentModification, DuplicateEmail, DuplicatePhone

logger = logging.getLogger(__name__)


class IdentityStore(Protocol):
    async def find_by_id(self, account_id: UUID) -> Account | None: ...

    async def find_by_email(self, email: str) -> Account | None: ...

    async def find_by_phone(self, phone: str) -> Account | None: ...

    async def create(self, account: Account) -> Account: ...

    async def save(self, account: Account) -> Account: ...

    async def deactivate_cascade(self, account: Account) -> int:
        """Deactivate ``account`` and every active account it created, atomically.

        Returns the number of created accounts that were deactivated.
        """
        ...

    async def list_accounts(
        self,
        kinds: tuple[AccountKind, ...],
        created_by_id: UUID | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Account], int]: ...

    async def branch_exists(self, branch_id: UUID) -> bool: ...


class SqlAlchemyIdentityStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, account_id: UUID) -> Account | None:
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Account | None:
        result = await self.db.execute(select(Account).where(Account.email == email.lower()))
        return result.scalar_one_or_none()

    async def find_by_phone(self, phone: str) -> Account | None:
        result = await self.db.execute(select(Account).where(Account.phone == phone))
        return result.scalar_one_or_none()

    async def create(self, account: Account) -> Account:
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against another insert; report which unique index hit
            await self.db.rollback()
            if await self.find_by_email(account.email):
                raise DuplicateEmail()
            if await self.find_by_phone(account.phone):
                raise DuplicatePhone()
            raise
        await self.db.refresh(account)
        return account

    async def save(self, account: Account) -> Account:
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"Version conflict while saving account {account.id}")
            raise ConcurrentModification()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicatePhone()
        await self.db.refresh(account)
        return account

    async def deactivate_cascade(self, account: Account) -> int:
        account.is_active = False
        try:
            # Parent first (version checked), then children, one transaction
            await self.db.flush()
            result = await self.db.execute(
                update(Account)
                .where(Account.created_by_id == account.id, Account.is_active == True)  # noqa: E712
                .values(is_active=False, version_id=Account.version_id + 1)
                .execution_options(synchronize_session="fetch")
            )
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"Version conflict while deactivating account {account.id}")
            raise ConcurrentModification()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(account)
        return result.rowcount or 0

    async def list_accounts(
        self,
        kinds: tuple[AccountKind, ...],
        created_by_id: UUID | None = None,
        search: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Account], int]:
        query = select(Account).where(Account.kind.in_(kinds))

        if created_by_id is not None:
            query = query.where(Account.created_by_id == created_by_id)
        if search:
            query = query.where(
                or_(
                    Account.name.ilike(f"%{search}%"),
                    Account.email.ilike(f"%{search}%"),
                    Account.phone.ilike(f"%{search}%"),
                )
            )
        if is_active is not None:
            query = query.where(Account.is_active == is_active)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar_one()

        query = query.offset(offset).limit(limit).order_by(Account.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def branch_exists(self, branch_id: UUID) -> bool:
        result = await self.db.execute(select(Branch.id).where(Branch.id == branch_id))
        return result.scalar_one_or_none() is not None
