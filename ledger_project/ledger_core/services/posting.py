"""
Document posting: invoices, bills, payment allocations and opening
balances become POSTED journal entries.

Each public function runs in one unit of work:
load → status check → idempotency → fiscal period → GL + FX → lines →
number → snapshot → insert → audit → cache (after commit).
"""
import logging
from dataclasses import dataclass
from datetime import date as Date

from ..conf import WellKnownAccount as WK
from ..exceptions import DocumentNotPostable, GLAccountNotFound, RecordNotFound
from ..lifecycle import CANCELLED, DRAFT
from ..models import (BankAccount, Bill, Entity, GLAccount, Invoice,
                      JournalEntry, PaymentAllocation)
from ..models.banking import CREDIT_NORMAL_ACCOUNT_TYPES
from ..models.journal import (SOURCE_BILL, SOURCE_INVOICE,
                              SOURCE_OPENING_BALANCE, SOURCE_PAYMENT)
from . import line_builder
from .fx import rate_for
from .gl_resolver import resolve_entity_accounts, resolve_well_known
from .ledger_writer import (ensure_not_posted, finish_posting, make_snapshot,
                            persist_entry)
from .periods import assert_period_open
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def _load_locked(uow, model, pk, label):
    doc = (
        model.objects.for_tenant(uow.ctx.tenant)
        .select_related("entity")
        .select_for_update(of=("self",))
        .filter(pk=pk)
        .first()
    )
    if doc is None:
        raise RecordNotFound(f"{label} not found", details={"id": pk})
    return doc


def _require_postable(doc, label, hint):
    if doc.status == DRAFT:
        raise DocumentNotPostable(
            f"Cannot post DRAFT {label}: {hint}",
            details={"id": doc.pk, "status": doc.status},
        )
    if doc.status == CANCELLED:
        raise DocumentNotPostable(
            f"Cannot post CANCELLED {label}",
            details={"id": doc.pk, "status": doc.status},
        )


def _net_lines(uow, entity_id, doc_lines, default_account):
    """(gl_account_id, amount - tax, memo) for every line with a net amount."""
    accounts = resolve_entity_accounts(
        uow, entity_id, [line.gl_account_id for line in doc_lines])
    result = []
    for line in doc_lines:
        net = line.amount - line.tax_amount
        if net > 0:
            account = accounts.get(line.gl_account_id, default_account)
            result.append((account.pk, net, line.description))
    return result


def _line_snapshot(doc_lines):
    return [
        {
            "description": line.description,
            "amount": line.amount,
            "taxAmount": line.tax_amount,
            "glAccountId": line.gl_account_id,
        }
        for line in doc_lines
    ]


# ----------------------------
# Invoice → DR AR / CR revenue / CR tax
# ----------------------------
def post_invoice(ctx, invoice_id, manual_rate=None, gl_codes=None):
    with unit_of_work(ctx) as uow:
        invoice = _load_locked(uow, Invoice, invoice_id, "Invoice")
        _require_postable(invoice, "invoice", "send it first")
        entity = invoice.entity

        ensure_not_posted(uow, entity.pk, SOURCE_INVOICE, invoice.pk)
        assert_period_open(uow, entity.pk, invoice.issue_date)

        doc_lines = list(invoice.lines.all())
        if not doc_lines:
            raise DocumentNotPostable("Invoice has no line items",
                                      details={"id": invoice.pk})

        keys = [WK.AR, WK.REVENUE] + ([WK.TAX] if invoice.tax_amount else [])
        targets = resolve_well_known(uow, entity.pk, keys, gl_codes)
        revenue = _net_lines(uow, entity.pk, doc_lines, targets[WK.REVENUE])
        tax_account = targets.get(WK.TAX)

        rate = rate_for(uow, invoice.currency, entity.functional_currency,
                        invoice.issue_date, manual_rate)
        memo = f"Invoice {invoice.invoice_number}"
        lines = line_builder.build_lines(
            line_builder.invoice_specs(
                targets[WK.AR].pk, invoice.total, revenue,
                tax_account.pk if tax_account else None, invoice.tax_amount,
                memo),
            currency=invoice.currency if rate is not None else None,
            rate=rate,
        )

        snapshot = make_snapshot(
            type=SOURCE_INVOICE,
            id=invoice.pk,
            number=invoice.invoice_number,
            customerId=invoice.customer_id,
            customerName=invoice.customer.name,
            issueDate=invoice.issue_date,
            dueDate=invoice.due_date,
            currency=invoice.currency,
            subtotal=invoice.subtotal,
            taxAmount=invoice.tax_amount,
            total=invoice.total,
            exchangeRate=rate,
            lines=_line_snapshot(doc_lines),
        )
        entry = persist_entry(
            uow, entity=entity, date=invoice.issue_date, memo=memo,
            lines=lines, source_type=SOURCE_INVOICE, source_id=invoice.pk,
            source_document=snapshot,
        )
        return finish_posting(uow, entry, lines, invoice.total)


# ----------------------------
# Bill → DR expense / DR tax / CR AP
# ----------------------------
def post_bill(ctx, bill_id, manual_rate=None, gl_codes=None):
    with unit_of_work(ctx) as uow:
        bill = _load_locked(uow, Bill, bill_id, "Bill")
        _require_postable(bill, "bill", "approve it first")
        entity = bill.entity

        ensure_not_posted(uow, entity.pk, SOURCE_BILL, bill.pk)
        assert_period_open(uow, entity.pk, bill.bill_date)

        doc_lines = list(bill.lines.all())
        if not doc_lines:
            raise DocumentNotPostable("Bill has no line items",
                                      details={"id": bill.pk})

        keys = [WK.AP, WK.EXPENSE] + ([WK.TAX] if bill.tax_amount else [])
        targets = resolve_well_known(uow, entity.pk, keys, gl_codes)
        expenses = _net_lines(uow, entity.pk, doc_lines, targets[WK.EXPENSE])
        tax_account = targets.get(WK.TAX)

        rate = rate_for(uow, bill.currency, entity.functional_currency,
                        bill.bill_date, manual_rate)
        memo = f"Bill {bill.bill_number}"
        lines = line_builder.build_lines(
            line_builder.bill_specs(
                targets[WK.AP].pk, bill.total, expenses,
                tax_account.pk if tax_account else None, bill.tax_amount,
                memo),
            currency=bill.currency if rate is not None else None,
            rate=rate,
        )

        snapshot = make_snapshot(
            type=SOURCE_BILL,
            id=bill.pk,
            number=bill.bill_number,
            vendorId=bill.vendor_id,
            vendorName=bill.vendor.name,
            billDate=bill.bill_date,
            dueDate=bill.due_date,
            currency=bill.currency,
            subtotal=bill.subtotal,
            taxAmount=bill.tax_amount,
            total=bill.total,
            exchangeRate=rate,
            lines=_line_snapshot(doc_lines),
        )
        entry = persist_entry(
            uow, entity=entity, date=bill.bill_date, memo=memo,
            lines=lines, source_type=SOURCE_BILL, source_id=bill.pk,
            source_document=snapshot,
        )
        return finish_posting(uow, entry, lines, bill.total)


# ----------------------------
# Payment allocation → DR bank / CR AR, or DR AP / CR bank
# ----------------------------
def _bank_gl_account(uow, entity_id, gl_account_id):
    account = (
        GLAccount.objects.for_tenant(uow.ctx.tenant)
        .filter(pk=gl_account_id, entity_id=entity_id, is_active=True)
        .first()
    )
    if account is None:
        raise GLAccountNotFound(
            "Bank GL account not found, inactive, or in another entity",
            details={"glAccountId": gl_account_id, "entityId": entity_id},
        )
    return account


def post_payment_allocation(ctx, allocation_id, bank_gl_account_id,
                            manual_rate=None, gl_codes=None):
    with unit_of_work(ctx) as uow:
        allocation = (
            PaymentAllocation.objects.for_tenant(ctx.tenant)
            .select_related("payment__entity", "invoice", "bill")
            .select_for_update(of=("self",))
            .filter(pk=allocation_id)
            .first()
        )
        if allocation is None:
            raise RecordNotFound("Payment allocation not found",
                                 details={"id": allocation_id})
        if not allocation.invoice_id and not allocation.bill_id:
            raise DocumentNotPostable(
                "Payment allocation must link an invoice or a bill",
                details={"id": allocation.pk})

        payment = allocation.payment
        entity = payment.entity
        ensure_not_posted(uow, entity.pk, SOURCE_PAYMENT, allocation.pk)
        assert_period_open(uow, entity.pk, payment.date)

        bank = _bank_gl_account(uow, entity.pk, bank_gl_account_id)
        is_receivable = allocation.invoice_id is not None
        control_key = WK.AR if is_receivable else WK.AP
        control = resolve_well_known(uow, entity.pk, [control_key], gl_codes)[control_key]

        if is_receivable:
            memo = f"Payment for invoice {allocation.invoice.invoice_number}"
            specs = line_builder.ar_payment_specs(
                bank.pk, control.pk, allocation.amount, memo)
        else:
            memo = f"Payment for bill {allocation.bill.bill_number}"
            specs = line_builder.ap_payment_specs(
                control.pk, bank.pk, allocation.amount, memo)

        rate = rate_for(uow, payment.currency, entity.functional_currency,
                        payment.date, manual_rate)
        lines = line_builder.build_lines(
            specs,
            currency=payment.currency if rate is not None else None,
            rate=rate,
        )

        snapshot = make_snapshot(
            type=SOURCE_PAYMENT,
            id=allocation.pk,
            paymentId=payment.pk,
            paymentDate=payment.date,
            paymentMethod=payment.payment_method,
            reference=payment.reference,
            currency=payment.currency,
            amount=allocation.amount,
            invoiceId=allocation.invoice_id,
            billId=allocation.bill_id,
            bankGlAccountId=bank.pk,
            exchangeRate=rate,
        )
        entry = persist_entry(
            uow, entity=entity, date=payment.date, memo=memo, lines=lines,
            source_type=SOURCE_PAYMENT, source_id=allocation.pk,
            source_document=snapshot,
        )
        return finish_posting(uow, entry, lines, allocation.amount)


# ----------------------------
# Opening balance of a bank/card/loan account
# ----------------------------
@dataclass(frozen=True)
class OpeningBalance:
    account_id: int  # BankAccount
    entity_id: int
    gl_account_id: int
    opening_balance: int
    opening_balance_date: Date
    account_type: str


def post_opening_balance(uow, data, gl_codes=None):
    """
    Post an account's opening balance against Opening Balance Equity.

    Runs inside the caller's unit of work (typically account creation).
    Returns ``None`` without writing when the balance is zero or the account
    already has an active opening-balance entry.
    """
    uow.require_active()
    if not data.opening_balance:
        return None

    entity = Entity.objects.for_tenant(uow.ctx.tenant).filter(pk=data.entity_id).first()
    if entity is None:
        raise RecordNotFound("Entity not found", details={"entityId": data.entity_id})

    already = (
        JournalEntry.objects.using(uow.using)
        .active_for_source(entity.pk, SOURCE_OPENING_BALANCE, data.account_id)
        .exists()
    )
    if already:
        logger.info("Opening balance for account %s already posted; skipping",
                    data.account_id)
        return None

    assert_period_open(uow, entity.pk, data.opening_balance_date)
    account = resolve_entity_accounts(uow, entity.pk, [data.gl_account_id])[int(data.gl_account_id)]
    equity = resolve_well_known(
        uow, entity.pk, [WK.OPENING_BALANCE_EQUITY], gl_codes)[WK.OPENING_BALANCE_EQUITY]

    amount = abs(data.opening_balance)
    credit_normal = data.account_type in CREDIT_NORMAL_ACCOUNT_TYPES
    bank_name = (
        BankAccount.objects.using(uow.using).for_tenant(uow.ctx.tenant)
        .filter(pk=data.account_id)
        .values_list("name", flat=True).first()
    )
    memo = f"Opening balance: {bank_name or data.account_id}"
    lines = line_builder.build_lines(
        line_builder.opening_balance_specs(
            account.pk, equity.pk, amount, credit_normal, memo))

    snapshot = make_snapshot(
        type=SOURCE_OPENING_BALANCE,
        accountId=data.account_id,
        accountType=data.account_type,
        glAccountId=account.pk,
        openingBalance=data.opening_balance,
        openingBalanceDate=data.opening_balance_date,
    )
    entry = persist_entry(
        uow, entity=entity, date=data.opening_balance_date, memo=memo,
        lines=lines, source_type=SOURCE_OPENING_BALANCE,
        source_id=data.account_id, source_document=snapshot,
    )
    return finish_posting(uow, entry, lines, amount)
