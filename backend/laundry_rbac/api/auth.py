"""Authentication endpoints: login + current account profile."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from laundry_rbac.core.deps import get_current_principal, rate_limit_sensitive
from laundry_rbac.core.security import create_access_token, verify_password
from laundry_rbac.db.base import get_db
from laundry_rbac.rbac.errors import AccountNotFound, Forbidden, Unauthorized
from laundry_rbac.schemas.account import AccountResponse
from laundry_rbac.schemas.auth import LoginRequest, Principal, TokenResponse
from laundry_rbac.services.identity_store import SqlAlchemyIdentityStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(rate_limit_sensitive)])
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate via email + password, return JWT."""
    store = SqlAlchemyIdentityStore(db)
    account = await store.find_by_email(body.email)

    if not account or not verify_password(body.password, account.hashed_password):
        raise Unauthorized("Invalid email or password")

    if not account.is_active:
        raise Forbidden("Account is deactivated")

    account.last_login_at = datetime.now(timezone.utc)
    account = await store.save(account)
    logger.info(f"{account.role} {account.id} logged in")

    token = create_access_token(
        account_id=account.id,
        role=account.role,
        branch_id=account.branch_id,
    )
    return TokenResponse(
        access_token=token,
        account_id=account.id,
        role=account.role,
        branch_id=account.branch_id,
    )


@router.get("/me", response_model=AccountResponse)
async def get_me(
    current: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Return the full profile of the current authenticated account."""
    account = await SqlAlchemyIdentityStore(db).find_by_id(current.id)
    if not account:
        raise AccountNotFound()
    return AccountResponse.model_validate(account)
