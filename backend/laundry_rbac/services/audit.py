"""Audit sink: records permission grants, denials and account changes.

Recording is fire-and-forget from the caller's point of view. Every
sensitive mutation attempts a record, but a failing sink is logged and never
fails the operation that triggered it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Literal, Protocol
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from laundry_rbac.models.audit import AuditLog

logger = logging.getLogger(__name__)

RiskLevel = Literal["low", "medium", "high"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    actor_id: UUID | None
    actor_type: str
    action: str
    category: str = "users"
    description: str
    resource_type: str | None = None
    resource_id: str | None = None
    status: Literal["success", "failure"] = "success"
    risk_level: RiskLevel = "low"
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class AuditSink(Protocol):
    async def record(self, event: AuditEvent) -> None: ...


class LoggingAuditSink:
    """Writes events to the application log only."""

    async def record(self, event: AuditEvent) -> None:
        logger.info(
            f"Audit: actor={event.actor_type}:{event.actor_id} action={event.action} "
            f"resource={event.resource_type}:{event.resource_id} status={event.status}"
        )


class DatabaseAuditSink:
    """Persists events to ``audit_logs`` using its own session.

    A separate session keeps a failed audit insert from rolling back the
    caller's transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def record(self, event: AuditEvent) -> None:
        # JSON columns need plain values (UUIDs and datetimes as strings)
        snapshot = event.model_dump(mode="json", include={"before", "after", "metadata"})
        async with self._session_factory() as session:
            session.add(
                AuditLog(
                    actor_id=event.actor_id,
                    actor_type=event.actor_type,
                    action=event.action,
                    category=event.category,
                    description=event.description,
                    resource_type=event.resource_type,
                    resource_id=event.resource_id,
                    status=event.status,
                    risk_level=event.risk_level,
                    before=snapshot["before"],
                    after=snapshot["after"],
                    details=snapshot["metadata"],
                    occurred_at=event.timestamp,
                )
            )
            await session.commit()
        logger.debug(f"Audit recorded: {event.action} on {event.resource_type}:{event.resource_id}")


async def record_safely(sink: AuditSink, event: AuditEvent) -> bool:
    """Record ``event``; log and swallow sink failures. Returns True on success."""
    try:
        await sink.record(event)
    except Exception:
        logger.exception(f"Failed to record audit event {event.action} for {event.resource_id}")
        return False
    return True
