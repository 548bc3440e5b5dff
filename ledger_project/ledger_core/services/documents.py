"""
Invoice and bill lifecycle operations.

Each call locks the document row, runs the shared state machine from
``ledger_core.lifecycle`` and records the change in the audit log.
"""
import datetime

from .. import lifecycle
from ..exceptions import RecordNotFound
from ..models import Bill, Invoice
from .audit_helper import log_action
from .unit_of_work import unit_of_work


def _locked(uow, model, pk):
    doc = (
        model.objects.for_tenant(uow.ctx.tenant)
        .select_for_update()
        .filter(pk=pk)
        .first()
    )
    if doc is None:
        raise RecordNotFound(f"{model.DOCUMENT_LABEL.capitalize()} not found",
                             details={"id": pk})
    return doc


def _change(ctx, model, pk, mutate):
    with unit_of_work(ctx) as uow:
        doc = _locked(uow, model, pk)
        before = {"status": doc.status, "paidAmount": doc.paid_amount}
        mutate(doc)
        doc.save(update_fields=["status", "paid_amount"])
        log_action(uow, action="UPDATE", model=model.__name__, record_id=doc.pk,
                   entity_id=doc.entity_id, before=before,
                   after={"status": doc.status, "paidAmount": doc.paid_amount})
        return doc


# ---------- status transitions ----------
def send_invoice(ctx, invoice_id):
    return _change(ctx, Invoice, invoice_id,
                   lambda doc: lifecycle.transition(doc, lifecycle.SENT))


def approve_bill(ctx, bill_id):
    return _change(ctx, Bill, bill_id,
                   lambda doc: lifecycle.transition(doc, lifecycle.PENDING))


def mark_invoice_overdue(ctx, invoice_id):
    return _change(ctx, Invoice, invoice_id,
                   lambda doc: lifecycle.transition(doc, lifecycle.OVERDUE))


def mark_bill_overdue(ctx, bill_id):
    return _change(ctx, Bill, bill_id,
                   lambda doc: lifecycle.transition(doc, lifecycle.OVERDUE))


def cancel_invoice(ctx, invoice_id):
    return _change(ctx, Invoice, invoice_id, lifecycle.cancel)


def cancel_bill(ctx, bill_id):
    return _change(ctx, Bill, bill_id, lifecycle.cancel)


# ---------- payments ----------
def apply_invoice_payment(ctx, invoice_id, amount):
    return _change(ctx, Invoice, invoice_id,
                   lambda doc: lifecycle.apply_payment(doc, amount))


def apply_bill_payment(ctx, bill_id, amount):
    return _change(ctx, Bill, bill_id,
                   lambda doc: lifecycle.apply_payment(doc, amount))


def reverse_invoice_payment(ctx, invoice_id, amount, today=None):
    today = today or datetime.date.today()
    return _change(ctx, Invoice, invoice_id,
                   lambda doc: lifecycle.reverse_payment(doc, amount, today))


def reverse_bill_payment(ctx, bill_id, amount, today=None):
    today = today or datetime.date.today()
    return _change(ctx, Bill, bill_id,
                   lambda doc: lifecycle.reverse_payment(doc, amount, today))
