"""Seed the root SuperAdmin account.

Runs at startup when SUPERADMIN_EMAIL and SUPERADMIN_PASSWORD are both set.
The SuperAdmin needs no stored permissions (authorization bypasses them),
but gets the full set so permission listings read sensibly.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laundry_rbac.core.config import Settings, settings
from laundry_rbac.core.security import hash_password
from laundry_rbac.models.account import Account, AccountKind
from laundry_rbac.rbac.permission_set import full_set

logger = logging.getLogger(__name__)


async def seed_superadmin(db: AsyncSession, config: Settings = settings) -> Account | None:
    """Create the SuperAdmin if configured and missing. Idempotent."""
    if not config.SUPERADMIN_EMAIL or not config.SUPERADMIN_PASSWORD:
        logger.info("SUPERADMIN_EMAIL/SUPERADMIN_PASSWORD not set, skipping SuperAdmin seed")
        return None

    email = config.SUPERADMIN_EMAIL.lower()
    result = await db.execute(select(Account).where(Account.email == email))
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    account = Account(
        id=uuid.uuid4(),
        kind=AccountKind.SUPERADMIN,
        name=config.SUPERADMIN_NAME,
        email=email,
        phone=config.SUPERADMIN_PHONE,
        hashed_password=hash_password(config.SUPERADMIN_PASSWORD),
        permissions=full_set(),
        is_active=True,
        is_email_verified=True,
    )
    db.add(account)
    await db.commit()
    logger.info(f"Seeded SuperAdmin {email}")
    return account
