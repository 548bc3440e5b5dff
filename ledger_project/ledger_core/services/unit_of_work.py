"""
Transaction handle passed explicitly to every helper that must run inside
an open database transaction.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from ..exceptions import SerializationConflict
from ..models import Membership, Tenant, User

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


@dataclass(frozen=True)
class LedgerContext:
    """Who is acting, on behalf of which tenant."""

    tenant: Tenant
    user: Optional[User] = None
    role: Optional[str] = None

    @classmethod
    def for_user(cls, tenant, user):
        role = (
            Membership.objects.filter(tenant=tenant, user=user, is_active=True)
            .values_list("role", flat=True)
            .first()
        )
        return cls(tenant=tenant, user=user, role=role)

    @property
    def tenant_id(self):
        return self.tenant.pk

    @property
    def user_id(self):
        return self.user.pk if self.user else None


@dataclass(frozen=True)
class UnitOfWork:
    ctx: LedgerContext
    using: str = DEFAULT_DB_ALIAS

    def require_active(self):
        if not transaction.get_connection(self.using).in_atomic_block:
            raise RuntimeError("This operation must run inside unit_of_work()")
        return self


def is_serialization_failure(exc):
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    # SQLite reports writer contention this way
    return "database is locked" in str(exc)


@contextmanager
def unit_of_work(ctx, using=DEFAULT_DB_ALIAS):
    """
    Open one atomic block for a ledger operation and yield its handle.

    Serialization failures from the database surface as
    ``SerializationConflict``; the caller decides whether to retry.
    """
    try:
        with transaction.atomic(using=using):
            yield UnitOfWork(ctx=ctx, using=using)
    except OperationalError as exc:
        if is_serialization_failure(exc):
            logger.info("Serialization conflict for tenant %s: %s",
                        ctx.tenant_id, exc)
            raise SerializationConflict(
                "The ledger was modified concurrently; retry the operation",
                details={"tenantId": ctx.tenant_id},
            ) from exc
        raise
