"""
Invoice and bill lifecycle.

One transition table shape serves both document kinds; they differ only in
the name of the first live state (SENT for invoices, PENDING for bills).
The functions here mutate the document in memory and never save it, so the
caller decides the transaction and the audit trail.
"""
import datetime

from .exceptions import (InvalidInput, InvalidStatusTransition,
                         PaymentExceedsBalance)

DRAFT = "DRAFT"
SENT = "SENT"
PENDING = "PENDING"
PARTIALLY_PAID = "PARTIALLY_PAID"
PAID = "PAID"
OVERDUE = "OVERDUE"
CANCELLED = "CANCELLED"


def build_transition_table(first_state):
    """Map each status to the statuses it may move to."""
    return {
        DRAFT: [first_state, CANCELLED],
        first_state: [PARTIALLY_PAID, PAID, OVERDUE, CANCELLED],
        PARTIALLY_PAID: [PAID, OVERDUE],
        OVERDUE: [PARTIALLY_PAID, PAID],
        PAID: [],
        CANCELLED: [],
    }


INVOICE_TRANSITIONS = build_transition_table(SENT)
BILL_TRANSITIONS = build_transition_table(PENDING)


def can_transition(table, current, target):
    return target in table.get(current, [])


def assert_transition(table, current, target):
    if not can_transition(table, current, target):
        raise InvalidStatusTransition(
            f"Invalid status transition: {current} → {target}",
            details={"from": current, "to": target},
        )


def first_state(table):
    return table[DRAFT][0]


def transition(doc, target):
    assert_transition(doc.TRANSITIONS, doc.status, target)
    doc.status = target
    return doc


def apply_payment(doc, amount):
    """
    Add ``amount`` to ``doc.paid_amount`` and move the status to PAID or
    PARTIALLY_PAID. Leaves the document untouched on failure.
    """
    if amount is None or amount <= 0:
        raise InvalidInput("Payment amount must be positive",
                           details={"amount": amount})

    new_paid = doc.paid_amount + amount
    if new_paid > doc.total:
        raise PaymentExceedsBalance(
            f"Payment of {amount} would exceed {doc.DOCUMENT_LABEL} balance. "
            f"Outstanding: {doc.total - doc.paid_amount}",
            details={
                "amount": amount,
                "total": doc.total,
                "paidAmount": doc.paid_amount,
            },
        )

    target = PAID if new_paid == doc.total else PARTIALLY_PAID
    if target != doc.status:
        assert_transition(doc.TRANSITIONS, doc.status, target)
    doc.paid_amount = new_paid
    doc.status = target
    return doc


def reverse_payment(doc, amount, today=None):
    """
    Take ``amount`` back off ``doc.paid_amount`` (never below zero).

    Reversal corrects history, so it sets the status directly instead of
    walking the transition table.
    """
    if amount is None or amount <= 0:
        raise InvalidInput("Reversal amount must be positive",
                           details={"amount": amount})

    today = today or datetime.date.today()
    doc.paid_amount = max(0, doc.paid_amount - amount)
    if doc.paid_amount == 0:
        if doc.due_date and doc.due_date < today:
            doc.status = OVERDUE
        else:
            doc.status = first_state(doc.TRANSITIONS)
    else:
        doc.status = PARTIALLY_PAID
    return doc


def cancel(doc):
    assert_transition(doc.TRANSITIONS, doc.status, CANCELLED)
    if doc.paid_amount:
        raise InvalidStatusTransition(
            f"Cannot cancel {doc.DOCUMENT_LABEL} with existing payments",
            details={"paidAmount": doc.paid_amount},
        )
    doc.status = CANCELLED
    return doc
