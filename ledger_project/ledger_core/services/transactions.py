"""
Bank-feed posting: single-category, split and bulk.
"""
import logging

from ..exceptions import (AlreadyPosted, BankAccountNotMapped,
                          CrossEntityReference, GLAccountInactive,
                          GLAccountNotFound, InvalidInput, RecordNotFound,
                          SplitAmountMismatch)
from ..models import BankTransaction, GLAccount, TransactionSplit
from ..models.journal import SOURCE_BANK_FEED
from . import line_builder
from .audit_helper import log_action
from .fx import rate_for
from .gl_resolver import resolve_entity_accounts
from .ledger_writer import (ensure_not_posted, finish_posting,
                            invalidate_after_commit, make_snapshot,
                            persist_entry)
from .periods import assert_period_open
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def _transactions(uow):
    return (
        BankTransaction.objects.for_tenant(uow.ctx.tenant)
        .filter(deleted_at__isnull=True)
        .select_related("bank_account__entity")
        .select_for_update(of=("self",))
    )


def _load_transaction(uow, transaction_id):
    txn = _transactions(uow).filter(pk=transaction_id).first()
    if txn is None:
        raise RecordNotFound("Transaction not found",
                             details={"transactionId": transaction_id})
    if txn.journal_entry_id:
        raise AlreadyPosted(
            "Transaction is already posted to the general ledger",
            details={"transactionId": txn.pk,
                     "journalEntryId": txn.journal_entry_id},
        )
    if txn.amount == 0:
        raise InvalidInput("Cannot post a zero-amount transaction",
                           details={"transactionId": txn.pk})
    return txn


def _bank_gl_account_id(txn):
    bank_account = txn.bank_account
    if not bank_account.gl_account_id:
        raise BankAccountNotMapped(
            "Bank account is not mapped to a GL account; map it first via account settings",
            details={"bankAccountId": bank_account.pk},
        )
    return bank_account.gl_account_id


def _target_account(uow, gl_account_id, entity_id):
    account = GLAccount.objects.for_tenant(uow.ctx.tenant).filter(pk=gl_account_id).first()
    if account is None:
        raise GLAccountNotFound("Target GL account not found",
                                details={"glAccountId": gl_account_id})
    if not account.is_active:
        raise GLAccountInactive("Target GL account is inactive",
                                details={"glAccountId": account.pk})
    if account.entity_id != entity_id:
        raise CrossEntityReference(
            "Transaction and GL account belong to different entities",
            details={"glAccountId": account.pk, "entityId": entity_id},
        )
    return account


def _snapshot(txn, rate, **extra):
    return make_snapshot(
        type=SOURCE_BANK_FEED,
        id=txn.pk,
        date=txn.date,
        description=txn.description,
        amount=txn.amount,
        currency=txn.currency,
        bankAccountId=txn.bank_account_id,
        bankAccountName=txn.bank_account.name,
        exchangeRate=rate,
        **extra,
    )


def _post_one(uow, txn, target, manual_rate):
    """Build, persist and link one single-category transaction posting."""
    entity = txn.bank_account.entity
    bank_gl_id = _bank_gl_account_id(txn)
    ensure_not_posted(uow, entity.pk, SOURCE_BANK_FEED, txn.pk)
    assert_period_open(uow, entity.pk, txn.date)

    rate = rate_for(uow, txn.currency, entity.functional_currency, txn.date,
                    manual_rate)
    lines = line_builder.build_lines(
        line_builder.transaction_specs(bank_gl_id, target.pk, txn.amount,
                                       txn.description),
        currency=txn.currency if rate is not None else None,
        rate=rate,
    )
    entry = persist_entry(
        uow, entity=entity, date=txn.date, memo=txn.description, lines=lines,
        source_type=SOURCE_BANK_FEED, source_id=txn.pk,
        source_document=_snapshot(txn, rate, targetGlAccountId=target.pk),
    )
    txn.journal_entry = entry
    txn.save(update_fields=["journal_entry"])
    return entry, lines


def post_transaction(ctx, transaction_id, target_gl_account_id, manual_rate=None):
    """Inflow: DR bank / CR target. Outflow: DR target / CR bank."""
    with unit_of_work(ctx) as uow:
        txn = _load_transaction(uow, transaction_id)
        _bank_gl_account_id(txn)
        target = _target_account(uow, target_gl_account_id,
                                 txn.bank_account.entity_id)
        entry, lines = _post_one(uow, txn, target, manual_rate)
        return finish_posting(uow, entry, lines, abs(txn.amount),
                              {"transactionId": txn.pk})


def post_bulk_transactions(ctx, transaction_ids, target_gl_account_id,
                           manual_rate=None):
    """
    Post many transactions to one category in a single transaction:
    either every one of them is posted or none is.
    """
    ids = list(dict.fromkeys(transaction_ids))
    if not ids:
        raise InvalidInput("No transactions given")

    with unit_of_work(ctx) as uow:
        found = {
            txn.pk: txn
            for txn in _transactions(uow).filter(
                pk__in=ids, journal_entry__isnull=True)
        }
        missing = [pk for pk in ids if pk not in found]
        if missing:
            raise GLAccountNotFound(
                f"{len(missing)} transaction(s) not found, already posted, "
                "or belong to a different tenant",
                status_code=400,
                details={"missingIds": missing},
            )

        entity_ids = {txn.bank_account.entity_id for txn in found.values()}
        if len(entity_ids) > 1:
            raise CrossEntityReference(
                "Bulk posting cannot span entities",
                details={"entityIds": sorted(entity_ids)})
        entity_id = entity_ids.pop()
        target = _target_account(uow, target_gl_account_id, entity_id)

        results = []
        for pk in ids:
            txn = found[pk]
            if txn.amount == 0:
                raise InvalidInput("Cannot post a zero-amount transaction",
                                   details={"transactionId": txn.pk})
            entry, lines = _post_one(uow, txn, target, manual_rate)
            results.append({
                "transactionId": txn.pk,
                "journalEntryId": entry.pk,
                "entryNumber": entry.entry_number,
                "amount": abs(txn.amount),
            })

        log_action(uow, action="CREATE", model="JournalEntry", record_id="batch",
                   entity_id=entity_id,
                   after={"batchSize": len(results),
                          "journalEntryIds": [r["journalEntryId"] for r in results]})
        invalidate_after_commit(uow)
        logger.info("Bulk posted %d transactions for entity %s",
                    len(results), entity_id)
        return {"posted": len(results), "entries": results}


def post_split_transaction(ctx, transaction_id, splits, manual_rate=None):
    """
    Post one transaction across several category accounts.

    ``splits`` is a list of ``{"gl_account_id", "amount", "memo"}`` with
    positive amounts that must add up to ``abs(transaction.amount)``.
    """
    if not splits:
        raise InvalidInput("At least one split is required")
    for split in splits:
        if split.get("amount") is None or split["amount"] <= 0:
            raise InvalidInput("Split amounts must be positive",
                               details={"split": split})

    with unit_of_work(ctx) as uow:
        txn = _load_transaction(uow, transaction_id)
        entity = txn.bank_account.entity
        bank_gl_id = _bank_gl_account_id(txn)

        split_total = sum(split["amount"] for split in splits)
        if split_total != abs(txn.amount):
            raise SplitAmountMismatch(
                f"Split amounts ({split_total}) must equal the transaction amount ({abs(txn.amount)})",
                details={"splitTotal": split_total,
                         "transactionAmount": abs(txn.amount)},
            )
        stored = _stored_splits(txn, splits)

        accounts = resolve_entity_accounts(
            uow, entity.pk, [split["gl_account_id"] for split in splits])
        ensure_not_posted(uow, entity.pk, SOURCE_BANK_FEED, txn.pk)
        assert_period_open(uow, entity.pk, txn.date)

        rate = rate_for(uow, txn.currency, entity.functional_currency,
                        txn.date, manual_rate)
        lines = line_builder.build_lines(
            line_builder.split_specs(
                bank_gl_id,
                [(accounts[int(s["gl_account_id"])].pk, s["amount"], s.get("memo", ""))
                 for s in splits],
                txn.amount,
                txn.description,
            ),
            currency=txn.currency if rate is not None else None,
            rate=rate,
        )

        entry = persist_entry(
            uow, entity=entity, date=txn.date, memo=txn.description,
            lines=lines, source_type=SOURCE_BANK_FEED, source_id=txn.pk,
            source_document=_snapshot(txn, rate, splits=[
                {"glAccountId": int(s["gl_account_id"]), "amount": s["amount"],
                 "memo": s.get("memo", "")}
                for s in splits
            ]),
        )
        txn.journal_entry = entry
        txn.save(update_fields=["journal_entry"])
        _record_split_accounts(txn, stored, splits)

        return finish_posting(uow, entry, lines, abs(txn.amount),
                              {"transactionId": txn.pk, "splitCount": len(splits)})


def _stored_splits(txn, splits):
    """
    Split rows already saved for the transaction, in creation order. When
    there are any, the posted splits must repeat their amounts one for one.
    """
    stored = list(txn.splits.order_by("created_at", "id"))
    if stored and [row.amount for row in stored] != [s["amount"] for s in splits]:
        raise SplitAmountMismatch(
            "Splits must match the split rows stored for the transaction",
            details={"storedAmounts": [row.amount for row in stored],
                     "postedAmounts": [s["amount"] for s in splits]},
        )
    return stored


def _record_split_accounts(txn, stored, splits):
    """Write each split's account onto its stored row, or create the rows."""
    if not stored:
        TransactionSplit.objects.bulk_create([
            TransactionSplit(transaction=txn, amount=split["amount"],
                             memo=split.get("memo", ""),
                             gl_account_id=int(split["gl_account_id"]))
            for split in splits
        ])
        return
    for row, split in zip(stored, splits):
        row.gl_account_id = int(split["gl_account_id"])
        row.save(update_fields=["gl_account"])
