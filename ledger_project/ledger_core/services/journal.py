"""
Manual journal entries and the entry state machine:

    DRAFT --approve--> POSTED --void--> VOIDED (a reversal entry is created)
    DRAFT --delete---> soft-deleted
"""
import logging
from decimal import Decimal, InvalidOperation

from django.utils import timezone

from ..exceptions import (AlreadyPosted, AlreadyVoided, EntityNotFound,
                          ImmutablePostedEntry, InvalidInput, RecordNotFound,
                          SeparationOfDuties, UnbalancedEntry)
from ..models import BankTransaction, Entity, JournalEntry, Membership
from ..models.journal import (DRAFT, POSTED, SOURCE_ADJUSTMENT, SOURCE_MANUAL,
                              SOURCE_TYPES, VOIDED)
from .audit_helper import log_action
from .gl_resolver import resolve_entity_accounts
from .ledger_writer import (ensure_not_posted, invalidate_after_commit,
                            make_snapshot, persist_entry)
from .line_builder import BuiltLine, check_balance, reverse_lines
from .periods import assert_period_open
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

REVERSAL_PREFIX = "REVERSAL: "
_SOURCE_TYPE_VALUES = {value for value, _ in SOURCE_TYPES}


def _entries(uow):
    return JournalEntry.objects.for_tenant(uow.ctx.tenant).live()


def _load_locked(uow, entry_id):
    entry = (
        _entries(uow)
        .select_related("entity")
        .select_for_update(of=("self",))
        .filter(pk=entry_id)
        .first()
    )
    if entry is None:
        raise RecordNotFound("Journal entry not found",
                             details={"journalEntryId": entry_id})
    return entry


def _amount(value, field, index):
    if value in (None, ""):
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"Line {index}: {field} must be an integer amount in minor units",
                           details={"line": index, "field": field})
    if value < 0:
        raise InvalidInput(f"Line {index}: {field} must not be negative",
                           details={"line": index, "field": field})
    return value


def _parse_line(raw, index):
    """Validate one input line and turn it into a BuiltLine."""
    if not raw.get("gl_account_id"):
        raise InvalidInput(f"Line {index}: gl_account_id is required",
                           details={"line": index})
    debit = _amount(raw.get("debit_amount"), "debit_amount", index)
    credit = _amount(raw.get("credit_amount"), "credit_amount", index)
    if (debit > 0) == (credit > 0):
        raise InvalidInput(
            f"Line {index}: exactly one of debit_amount or credit_amount must be positive",
            details={"line": index})

    currency = raw.get("currency") or None
    rate = None
    base_debit = base_credit = None
    if currency:
        if raw.get("exchange_rate") in (None, ""):
            raise InvalidInput(
                f"Line {index}: exchange_rate is required for foreign-currency lines",
                details={"line": index})
        try:
            rate = Decimal(str(raw["exchange_rate"]))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInput(f"Line {index}: exchange_rate must be a number",
                               details={"line": index}) from exc
        if rate <= 0:
            raise InvalidInput(f"Line {index}: exchange_rate must be positive",
                               details={"line": index})
        side = "base_currency_debit" if debit else "base_currency_credit"
        if raw.get(side) is None:
            raise InvalidInput(
                f"Line {index}: {side} is required for foreign-currency lines",
                details={"line": index})
        base_debit = _amount(raw.get("base_currency_debit"), "base_currency_debit", index)
        base_credit = _amount(raw.get("base_currency_credit"), "base_currency_credit", index)

    return BuiltLine(
        gl_account_id=int(raw["gl_account_id"]),
        debit_amount=debit,
        credit_amount=credit,
        memo=raw.get("memo") or "",
        currency=currency,
        exchange_rate=rate,
        base_currency_debit=base_debit,
        base_currency_credit=base_credit,
    )


# ----------------------------
# Create (DRAFT)
# ----------------------------
def create_entry(ctx, data):
    """
    Create a DRAFT entry from ``data``:
    ``entity_id``, ``date``, ``memo``, optional ``source_type`` /
    ``source_id`` / ``source_document`` and ``lines`` (dicts with
    ``gl_account_id``, ``debit_amount``, ``credit_amount``, ``memo`` and,
    for foreign-currency lines, ``currency``, ``exchange_rate``,
    ``base_currency_debit``, ``base_currency_credit``).
    """
    raw_lines = data.get("lines") or []
    if len(raw_lines) < 2:
        raise InvalidInput("A journal entry needs at least two lines",
                           details={"lineCount": len(raw_lines)})
    lines = [_parse_line(raw, index) for index, raw in enumerate(raw_lines, start=1)]

    source_type = data.get("source_type") or SOURCE_MANUAL
    if source_type not in _SOURCE_TYPE_VALUES:
        raise InvalidInput(f"Unknown source type {source_type}")
    source_id = data.get("source_id")

    with unit_of_work(ctx) as uow:
        entity = Entity.objects.for_tenant(ctx.tenant).filter(pk=data.get("entity_id")).first()
        if entity is None:
            raise EntityNotFound("Entity not found",
                                 details={"entityId": data.get("entity_id")})

        assert_period_open(uow, entity.pk, data["date"])
        resolve_entity_accounts(uow, entity.pk, [line.gl_account_id for line in lines])
        # minor and base-currency columns must each balance
        check_balance(lines)
        if source_id is not None:
            ensure_not_posted(uow, entity.pk, source_type, source_id)

        entry = persist_entry(
            uow,
            entity=entity,
            date=data["date"],
            memo=data.get("memo", ""),
            lines=lines,
            source_type=source_type,
            source_id=source_id,
            source_document=data.get("source_document"),
            status=DRAFT,
        )
        log_action(uow, action="CREATE", model="JournalEntry", record_id=entry.pk,
                   entity_id=entity.pk,
                   after={"entryNumber": entry.entry_number, "status": DRAFT,
                          "date": entry.date, "memo": entry.memo,
                          "lineCount": len(lines)})
        logger.info("Created draft %s for entity %s", entry.entry_number, entity.pk)
        return entry


# ----------------------------
# Approve: DRAFT → POSTED
# ----------------------------
def approve_entry(ctx, entry_id):
    with unit_of_work(ctx) as uow:
        entry = _load_locked(uow, entry_id)
        if entry.status != DRAFT:
            raise AlreadyPosted(
                f"Journal entry is {entry.status}, only DRAFT entries can be approved",
                details={"journalEntryId": entry.pk, "status": entry.status},
            )
        assert_period_open(uow, entry.entity_id, entry.date)

        if ctx.user is None:
            raise SeparationOfDuties("Approving a journal entry requires a user")
        if entry.created_by_id == ctx.user_id and ctx.role != Membership.OWNER:
            raise SeparationOfDuties(
                "You cannot approve a journal entry you created",
                details={"journalEntryId": entry.pk, "userId": ctx.user_id},
            )
        if not entry.is_balanced():
            debits, credits = entry.compute_totals()
            raise UnbalancedEntry(
                f"Journal entry is unbalanced: debits={debits}, credits={credits}",
                details={"journalEntryId": entry.pk})

        entry.status = POSTED
        entry.updated_by = ctx.user
        entry.save(update_fields=["status", "updated_by", "updated_at"])
        log_action(uow, action="UPDATE", model="JournalEntry", record_id=entry.pk,
                   entity_id=entry.entity_id,
                   before={"status": DRAFT}, after={"status": POSTED})
        invalidate_after_commit(uow)
        logger.info("Approved %s (entity %s)", entry.entry_number, entry.entity_id)
        return entry


# ----------------------------
# Void: POSTED → VOIDED via reversal entry
# ----------------------------
def void_entry(ctx, entry_id):
    """
    Create a reversal (debits and credits swapped, linked back to the
    original) and mark the original VOIDED. Rows are never deleted.
    """
    with unit_of_work(ctx) as uow:
        entry = _load_locked(uow, entry_id)
        existing = entry.linked_from.values_list("pk", flat=True).first()
        if existing:
            raise AlreadyVoided("Journal entry already has a reversal",
                                details={"journalEntryId": entry.pk,
                                         "reversalEntryId": existing})
        if entry.status == VOIDED:
            raise AlreadyVoided("Journal entry is already voided",
                                details={"journalEntryId": entry.pk})
        if entry.status != POSTED:
            raise ImmutablePostedEntry(
                "Only POSTED journal entries can be voided; delete drafts instead",
                details={"journalEntryId": entry.pk, "status": entry.status},
            )
        assert_period_open(uow, entry.entity_id, entry.date)

        original_lines = [
            BuiltLine(
                gl_account_id=line.gl_account_id,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                memo=f"{REVERSAL_PREFIX}{line.memo}" if line.memo else "",
                currency=line.currency,
                exchange_rate=line.exchange_rate,
                base_currency_debit=line.base_currency_debit,
                base_currency_credit=line.base_currency_credit,
            )
            for line in entry.lines.order_by("position", "id")
        ]
        reversal = persist_entry(
            uow,
            entity=entry.entity,
            date=entry.date,
            memo=f"{REVERSAL_PREFIX}{entry.memo}",
            lines=reverse_lines(original_lines),
            source_type=SOURCE_ADJUSTMENT,
            source_id=entry.pk,
            source_document=make_snapshot(
                type=SOURCE_ADJUSTMENT,
                reversalOf=entry.pk,
                reversedEntryNumber=entry.entry_number,
                originalSourceType=entry.source_type,
                originalSourceId=entry.source_id,
            ),
            status=POSTED,
            linked_entry=entry,
        )

        entry.status = VOIDED
        entry.updated_by = ctx.user
        entry.save(update_fields=["status", "updated_by", "updated_at"])
        # a voided bank posting frees its transaction for re-posting
        BankTransaction.objects.filter(journal_entry=entry).update(journal_entry=None)

        log_action(uow, action="UPDATE", model="JournalEntry", record_id=entry.pk,
                   entity_id=entry.entity_id, before={"status": POSTED},
                   after={"status": VOIDED, "reversalId": reversal.pk})
        log_action(uow, action="CREATE", model="JournalEntry", record_id=reversal.pk,
                   entity_id=entry.entity_id,
                   after={"memo": reversal.memo, "status": POSTED,
                          "entryNumber": reversal.entry_number,
                          "linkedEntryId": entry.pk})
        invalidate_after_commit(uow)
        logger.info("Voided %s with reversal %s", entry.entry_number,
                    reversal.entry_number)
        return {
            "voidedEntryId": entry.pk,
            "reversalEntryId": reversal.pk,
            "reversalEntryNumber": reversal.entry_number,
        }


# ----------------------------
# Delete (DRAFT only, soft)
# ----------------------------
def delete_entry(ctx, entry_id):
    with unit_of_work(ctx) as uow:
        entry = _load_locked(uow, entry_id)
        if entry.status != DRAFT:
            raise ImmutablePostedEntry(
                f"Cannot delete a {entry.status} journal entry; void it instead",
                details={"journalEntryId": entry.pk, "status": entry.status},
            )
        entry.deleted_at = timezone.now()
        entry.updated_by = ctx.user
        entry.save(update_fields=["deleted_at", "updated_by", "updated_at"])
        log_action(uow, action="DELETE", model="JournalEntry", record_id=entry.pk,
                   entity_id=entry.entity_id,
                   before={"entryNumber": entry.entry_number, "status": DRAFT})
        return entry


# ----------------------------
# Queries
# ----------------------------
def get_entry(ctx, entry_id):
    entry = (
        JournalEntry.objects.for_tenant(ctx.tenant).live()
        .select_related("entity", "linked_entry")
        .prefetch_related("lines__gl_account")
        .filter(pk=entry_id)
        .first()
    )
    if entry is None:
        raise RecordNotFound("Journal entry not found",
                             details={"journalEntryId": entry_id})
    return entry


def list_entries(ctx, entity_id, status=None, date_from=None, date_to=None):
    qs = JournalEntry.objects.for_tenant(ctx.tenant).live().filter(entity_id=entity_id)
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    return list(qs.order_by("-date", "-created_at"))
