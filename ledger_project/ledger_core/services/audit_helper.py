from typing import Optional

from ..models import AuditLog


def log_action(
    uow,
    *,
    action: str,
    model: str,
    record_id,
    entity_id=None,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
):
    """
    Central audit writer.
    Runs inside the caller's transaction so the record rolls back with a
    failed operation.
    """
    uow.require_active()
    return AuditLog.objects.using(uow.using).create(
        tenant=uow.ctx.tenant,
        user=uow.ctx.user,
        entity_id=entity_id,
        action=action,
        model=model,
        record_id=str(record_id),
        before=before,
        after=after,
    )
