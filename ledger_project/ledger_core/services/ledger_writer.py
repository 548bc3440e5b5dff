"""
Steps every posting orchestrator shares once its lines are built:
idempotency lookup, numbering, the write-once snapshot, the insert, the
audit record and the post-commit cache invalidation.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Tuple

from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction
from django.utils import timezone

from ..cache import invalidate_reports_quietly
from ..exceptions import AlreadyPosted, InvalidInput, SerializationConflict
from ..models import JournalEntry, JournalLine
from ..models.journal import POSTED
from .audit_helper import log_action
from .line_builder import check_balance
from .sequencer import next_entry_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingResult:
    journal_entry_id: int
    entry_number: str
    amount: int
    lines: Tuple = field(default_factory=tuple)

    def as_dict(self):
        return {
            "journalEntryId": self.journal_entry_id,
            "entryNumber": self.entry_number,
            "amount": self.amount,
            "lines": [line.as_dict() for line in self.lines],
        }


def make_snapshot(**fields):
    """JSON-ready copy of the document fields a posting relied on."""
    fields["captured_at"] = timezone.now()
    return json.loads(json.dumps(fields, cls=DjangoJSONEncoder))


def ensure_not_posted(uow, entity_id, source_type, source_id):
    uow.require_active()
    existing = (
        JournalEntry.objects.using(uow.using)
        .active_for_source(entity_id, source_type, source_id)
        .values("pk", "entry_number")
        .first()
    )
    if existing:
        raise AlreadyPosted(
            f"{source_type} {source_id} is already posted as {existing['entry_number']}",
            details={
                "journalEntryId": existing["pk"],
                "entryNumber": existing["entry_number"],
                "sourceType": source_type,
                "sourceId": str(source_id),
            },
        )


def persist_entry(
    uow,
    *,
    entity,
    date,
    memo,
    lines,
    source_type,
    source_id=None,
    source_document=None,
    status=POSTED,
    linked_entry=None,
):
    """Insert the header and all of its lines; returns the entry."""
    uow.require_active()
    if len(lines) < 2:
        raise InvalidInput("A journal entry needs at least two non-zero lines",
                           details={"lineCount": len(lines)})
    check_balance(lines)

    entry_number = next_entry_number(uow, entity.pk)
    try:
        # savepoint: a constraint violation must not poison the outer block
        with transaction.atomic(using=uow.using):
            entry = JournalEntry.objects.using(uow.using).create(
                entity=entity,
                entry_number=entry_number,
                date=date,
                memo=memo or "",
                source_type=source_type,
                source_id=None if source_id is None else str(source_id),
                source_document=source_document,
                status=status,
                created_by=uow.ctx.user,
                linked_entry=linked_entry,
            )
    except IntegrityError as exc:
        if source_id is not None:
            ensure_not_posted(uow, entity.pk, source_type, source_id)
        raise SerializationConflict(
            f"Entry number {entry_number} was taken concurrently; retry the operation",
            details={"entityId": entity.pk, "entryNumber": entry_number},
        ) from exc

    JournalLine.objects.using(uow.using).bulk_create([
        JournalLine(
            entry=entry,
            gl_account_id=line.gl_account_id,
            position=position,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            memo=line.memo or "",
            currency=line.currency,
            exchange_rate=line.exchange_rate,
            base_currency_debit=line.base_currency_debit,
            base_currency_credit=line.base_currency_credit,
        )
        for position, line in enumerate(lines)
    ])
    return entry


def invalidate_after_commit(uow):
    tenant_id = uow.ctx.tenant_id
    transaction.on_commit(
        lambda: invalidate_reports_quietly(tenant_id), using=uow.using)


def finish_posting(uow, entry, lines, amount, audit_after=None):
    """Audit inside the transaction, cache after commit, build the result."""
    after = {
        "entryNumber": entry.entry_number,
        "status": entry.status,
        "sourceType": entry.source_type,
        "sourceId": entry.source_id,
        "date": entry.date,
        "amount": amount,
        "lineCount": len(lines),
    }
    after.update(audit_after or {})
    log_action(uow, action="CREATE", model="JournalEntry", record_id=entry.pk,
               entity_id=entry.entity_id, after=after)
    invalidate_after_commit(uow)
    logger.info("Posted %s %s as %s (entity %s, amount %s)",
                entry.source_type, entry.source_id, entry.entry_number,
                entry.entity_id, amount)
    return PostingResult(
        journal_entry_id=entry.pk,
        entry_number=entry.entry_number,
        amount=amount,
        lines=tuple(lines),
    )
