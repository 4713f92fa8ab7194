"""Dependency injection: authentication, permission enforcement, services."""

import logging
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from laundry_rbac.core.security import decode_access_token
from laundry_rbac.db.base import AsyncSessionLocal, get_db
from laundry_rbac.models.account import AccountKind
from laundry_rbac.rbac import authorization
from laundry_rbac.rbac.authorization import Decision
from laundry_rbac.rbac.errors import Forbidden, Unauthorized
from laundry_rbac.rbac.taxonomy import Action, Module
from laundry_rbac.schemas.auth import Principal
from laundry_rbac.services.accounts import AccountHierarchyService
from laundry_rbac.services.audit import AuditEvent, AuditSink, DatabaseAuditSink, record_safely
from laundry_rbac.services.identity_store import SqlAlchemyIdentityStore
from laundry_rbac.services.rate_limit import RateLimiter, build_rate_limiter

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

_audit_sink: AuditSink = DatabaseAuditSink(AsyncSessionLocal)
_rate_limiter: RateLimiter = build_rate_limiter()


def get_audit_sink() -> AuditSink:
    return _audit_sink


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


async def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Decode the JWT and reload the account. Raises Unauthorized on any failure.

    The principal carries the *stored* permission set, so a change made by an
    admin applies from the next request on.
    """
    if not token:
        raise Unauthorized()
    try:
        payload = decode_access_token(token)
        account_id = UUID(payload["sub"])
    except (JWTError, KeyError, ValueError, TypeError):
        raise Unauthorized("Could not validate credentials")

    account = await SqlAlchemyIdentityStore(db).find_by_id(account_id)
    if account is None or not account.is_active:
        raise Unauthorized("Account not found or deactivated")
    return Principal.from_account(account)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
) -> AccountHierarchyService:
    return AccountHierarchyService(SqlAlchemyIdentityStore(db), audit)


async def rate_limit_sensitive(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Limit attempts per client address and route."""
    client = request.client.host if request.client else "unknown"
    await limiter.hit(f"{request.url.path}:{client}")


async def _enforce(
    decision: Decision,
    principal: Principal,
    request: Request,
    audit: AuditSink,
    required: list[str],
) -> Principal:
    if decision.allowed:
        return principal

    logger.info(
        f"Denied {request.method} {request.url.path} for {principal.role} {principal.id}: "
        f"{decision.code.value if decision.code else 'DENIED'} {list(decision.missing)}"
    )
    await record_safely(
        audit,
        AuditEvent(
            actor_id=principal.id,
            actor_type=principal.role,
            action="unauthorized_access",
            category="security",
            description=f"Denied access to {request.method} {request.url.path}",
            resource_type="endpoint",
            resource_id=request.url.path,
            status="failure",
            risk_level="medium",
            metadata={
                "required": required,
                "missing": list(decision.missing),
                "code": decision.code.value if decision.code else None,
            },
        ),
    )
    decision.raise_for_denial()
    return principal


def _label(module: Module | str, action: Action | str) -> str:
    return f"{getattr(module, 'value', module)}.{getattr(action, 'value', action)}"


def require_permission(module: Module | str, action: Action | str):
    """Dependency factory: the principal must hold ``module.action``."""

    async def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        audit: AuditSink = Depends(get_audit_sink),
    ) -> Principal:
        decision = authorization.authorize(principal, module, action)
        return await _enforce(decision, principal, request, audit, [_label(module, action)])

    return checker


def require_permissions(*required: tuple[Module | str, Action | str]):
    """Dependency factory: the principal must hold ALL of the given pairs."""

    async def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        audit: AuditSink = Depends(get_audit_sink),
    ) -> Principal:
        decision = authorization.require_all(principal, required)
        return await _enforce(decision, principal, request, audit, [_label(m, a) for m, a in required])

    return checker


def require_any_permission(*options: tuple[Module | str, Action | str]):
    """Dependency factory: the principal must hold at least one of the given pairs."""

    async def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        audit: AuditSink = Depends(get_audit_sink),
    ) -> Principal:
        decision = authorization.require_any(principal, options)
        return await _enforce(decision, principal, request, audit, [_label(m, a) for m, a in options])

    return checker


def require_module_access(module: Module | str):
    """Dependency factory: the principal must hold any action on ``module``."""

    async def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        audit: AuditSink = Depends(get_audit_sink),
    ) -> Principal:
        decision = authorization.require_module_access(principal, module)
        return await _enforce(decision, principal, request, audit, [_label(module, "*")])

    return checker


def require_kind(*kinds: AccountKind):
    """Dependency factory: the principal's account kind must be one of ``kinds``."""
    allowed = {AccountKind(kind).value for kind in kinds}

    async def checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        audit: AuditSink = Depends(get_audit_sink),
    ) -> Principal:
        if principal.role in allowed:
            return principal
        await record_safely(
            audit,
            AuditEvent(
                actor_id=principal.id,
                actor_type=principal.role,
                action="unauthorized_access",
                category="security",
                description=f"Role '{principal.role}' denied {request.method} {request.url.path}",
                resource_type="endpoint",
                resource_id=request.url.path,
                status="failure",
                risk_level="medium",
                metadata={"allowed_kinds": sorted(allowed)},
            ),
        )
        raise Forbidden(f"Role '{principal.role}' not allowed. Required: {', '.join(sorted(allowed))}")

    return checker
