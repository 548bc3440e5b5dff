import datetime

from django.test import SimpleTestCase

from ledger_core import lifecycle
from ledger_core.exceptions import (InvalidInput, InvalidStatusTransition,
                                    PaymentExceedsBalance)
from ledger_core.models import Bill, Invoice


class TransitionTableTests(SimpleTestCase):

    def test_invoice_and_bill_share_shape(self):
        self.assertEqual(lifecycle.INVOICE_TRANSITIONS[lifecycle.DRAFT],
                         [lifecycle.SENT, lifecycle.CANCELLED])
        self.assertEqual(lifecycle.BILL_TRANSITIONS[lifecycle.DRAFT],
                         [lifecycle.PENDING, lifecycle.CANCELLED])
        self.assertEqual(lifecycle.INVOICE_TRANSITIONS[lifecycle.OVERDUE],
                         lifecycle.BILL_TRANSITIONS[lifecycle.OVERDUE])

    def test_terminal_states(self):
        for status in (lifecycle.PAID, lifecycle.CANCELLED):
            self.assertEqual(lifecycle.INVOICE_TRANSITIONS[status], [])

    def test_invalid_transition_message(self):
        invoice = Invoice(status=lifecycle.PAID, total=100, paid_amount=100)
        with self.assertRaises(InvalidStatusTransition) as caught:
            lifecycle.transition(invoice, lifecycle.SENT)
        self.assertEqual(str(caught.exception), "Invalid status transition: PAID → SENT")


class ApplyPaymentTests(SimpleTestCase):

    """ 60000 against a 56500 bill is rejected and paid_amount stays 0 """
    def test_overpayment_is_rejected(self):
        bill = Bill(status=lifecycle.PENDING, total=56500, paid_amount=0)
        with self.assertRaises(PaymentExceedsBalance) as caught:
            lifecycle.apply_payment(bill, 60000)
        self.assertIn("exceed bill balance", str(caught.exception))
        self.assertEqual(bill.paid_amount, 0)
        self.assertEqual(bill.status, lifecycle.PENDING)

    def test_partial_then_full(self):
        invoice = Invoice(status=lifecycle.SENT, total=1000, paid_amount=0)
        lifecycle.apply_payment(invoice, 400)
        self.assertEqual((invoice.paid_amount, invoice.status), (400, lifecycle.PARTIALLY_PAID))
        lifecycle.apply_payment(invoice, 100)
        self.assertEqual(invoice.status, lifecycle.PARTIALLY_PAID)
        lifecycle.apply_payment(invoice, 500)
        self.assertEqual((invoice.paid_amount, invoice.status), (1000, lifecycle.PAID))

    def test_non_positive_amount(self):
        invoice = Invoice(status=lifecycle.SENT, total=1000, paid_amount=0)
        for amount in (0, -5):
            with self.assertRaises(InvalidInput):
                lifecycle.apply_payment(invoice, amount)

    def test_draft_cannot_take_payment(self):
        invoice = Invoice(status=lifecycle.DRAFT, total=1000, paid_amount=0)
        with self.assertRaises(InvalidStatusTransition):
            lifecycle.apply_payment(invoice, 1000)
        self.assertEqual(invoice.paid_amount, 0)


class ReversePaymentTests(SimpleTestCase):
    today = datetime.date(2025, 6, 1)

    def test_back_to_first_state_when_not_due(self):
        bill = Bill(status=lifecycle.PAID, total=1000, paid_amount=1000,
                    due_date=datetime.date(2025, 7, 1))
        lifecycle.reverse_payment(bill, 1000, self.today)
        self.assertEqual((bill.paid_amount, bill.status), (0, lifecycle.PENDING))

    def test_overdue_when_due_date_passed(self):
        invoice = Invoice(status=lifecycle.PARTIALLY_PAID, total=1000, paid_amount=300,
                          due_date=datetime.date(2025, 5, 1))
        lifecycle.reverse_payment(invoice, 500, self.today)
        self.assertEqual((invoice.paid_amount, invoice.status), (0, lifecycle.OVERDUE))

    def test_stays_partially_paid(self):
        invoice = Invoice(status=lifecycle.PAID, total=1000, paid_amount=1000)
        lifecycle.reverse_payment(invoice, 250, self.today)
        self.assertEqual((invoice.paid_amount, invoice.status), (750, lifecycle.PARTIALLY_PAID))


class CancelTests(SimpleTestCase):

    def test_cancel_from_first_state(self):
        invoice = Invoice(status=lifecycle.SENT, total=1000, paid_amount=0)
        lifecycle.cancel(invoice)
        self.assertEqual(invoice.status, lifecycle.CANCELLED)

    def test_cannot_cancel_with_payments(self):
        invoice = Invoice(status=lifecycle.SENT, total=1000, paid_amount=10)
        with self.assertRaises(InvalidStatusTransition):
            lifecycle.cancel(invoice)

    def test_cannot_cancel_partially_paid(self):
        bill = Bill(status=lifecycle.PARTIALLY_PAID, total=1000, paid_amount=10)
        with self.assertRaisesMessage(InvalidStatusTransition, "PARTIALLY_PAID → CANCELLED"):
            lifecycle.cancel(bill)
