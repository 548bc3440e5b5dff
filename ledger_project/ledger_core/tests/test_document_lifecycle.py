import datetime

from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core import lifecycle
from ledger_core.exceptions import (InvalidStatusTransition,
                                    PaymentExceedsBalance, RecordNotFound)
from ledger_core.models import AuditLog, Bill, Invoice
from ledger_core.services import (apply_bill_payment, apply_invoice_payment,
                                  approve_bill, cancel_bill, cancel_invoice,
                                  mark_invoice_overdue, reverse_bill_payment,
                                  reverse_invoice_payment, send_invoice)

from .factories import make_bill, make_invoice, make_tenant


class InvoiceLifecycleTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()

    def test_send_then_pay_in_two_steps(self):
        invoice = make_invoice(self.entity, [(1000, 0)], status=lifecycle.DRAFT)
        send_invoice(self.ctx, invoice.pk)
        apply_invoice_payment(self.ctx, invoice.pk, 400)
        invoice.refresh_from_db()
        self.assertEqual((invoice.status, invoice.paid_amount),
                         (lifecycle.PARTIALLY_PAID, 400))

        apply_invoice_payment(self.ctx, invoice.pk, 600)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, lifecycle.PAID)
        self.assertEqual(
            AuditLog.objects.filter(model="Invoice", record_id=str(invoice.pk)).count(), 3)

    def test_sent_invoice_cannot_be_resent(self):
        invoice = make_invoice(self.entity, [(1000, 0)])
        with self.assertRaisesMessage(InvalidStatusTransition,
                                      "Invalid status transition: SENT → SENT"):
            send_invoice(self.ctx, invoice.pk)

    def test_overdue_then_reversal(self):
        invoice = make_invoice(self.entity, [(1000, 0)],
                               due_date=datetime.date(2025, 4, 1))
        mark_invoice_overdue(self.ctx, invoice.pk)
        apply_invoice_payment(self.ctx, invoice.pk, 1000)
        reverse_invoice_payment(self.ctx, invoice.pk, 1000,
                                today=datetime.date(2025, 5, 1))
        invoice.refresh_from_db()
        self.assertEqual((invoice.status, invoice.paid_amount), (lifecycle.OVERDUE, 0))

    def test_cancel(self):
        invoice = make_invoice(self.entity, [(1000, 0)])
        cancel_invoice(self.ctx, invoice.pk)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, lifecycle.CANCELLED)

    def test_other_tenant(self):
        _, _, other_ctx = make_tenant("other")
        invoice = make_invoice(self.entity, [(1000, 0)])
        with self.assertRaises(RecordNotFound):
            send_invoice(other_ctx, invoice.pk)

    def test_paid_invoice_cannot_be_deleted(self):
        invoice = make_invoice(self.entity, [(1000, 0)])
        apply_invoice_payment(self.ctx, invoice.pk, 500)
        with self.assertRaises(ValidationError):
            Invoice.objects.get(pk=invoice.pk).delete()


class BillLifecycleTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()

    """ 60000 against a 56500 bill: rejected, nothing stored """
    def test_overpayment_leaves_bill_untouched(self):
        bill = make_bill(self.entity, [(56500, 6500)])
        with self.assertRaisesMessage(PaymentExceedsBalance, "exceed bill balance"):
            apply_bill_payment(self.ctx, bill.pk, 60000)
        bill.refresh_from_db()
        self.assertEqual((bill.paid_amount, bill.status), (0, lifecycle.PENDING))
        self.assertFalse(AuditLog.objects.filter(model="Bill").exists())

    def test_approve_then_pay(self):
        bill = make_bill(self.entity, [(56500, 6500)], status=lifecycle.DRAFT)
        approve_bill(self.ctx, bill.pk)
        apply_bill_payment(self.ctx, bill.pk, 56500)
        bill.refresh_from_db()
        self.assertEqual((bill.status, bill.paid_amount), (lifecycle.PAID, 56500))

    def test_reversal_returns_to_pending(self):
        bill = make_bill(self.entity, [(1000, 0)], due_date=datetime.date(2099, 1, 1))
        apply_bill_payment(self.ctx, bill.pk, 300)
        reverse_bill_payment(self.ctx, bill.pk, 300)
        bill.refresh_from_db()
        self.assertEqual((bill.status, bill.paid_amount), (lifecycle.PENDING, 0))

    def test_cancel_with_payments(self):
        bill = make_bill(self.entity, [(1000, 0)])
        apply_bill_payment(self.ctx, bill.pk, 300)
        with self.assertRaises(InvalidStatusTransition):
            cancel_bill(self.ctx, bill.pk)
        self.assertEqual(Bill.objects.get(pk=bill.pk).status, lifecycle.PARTIALLY_PAID)

    def test_draft_totals_follow_lines(self):
        bill = make_bill(self.entity, [(1000, 100), (500, 0)], status=lifecycle.DRAFT)
        self.assertEqual((bill.subtotal, bill.tax_amount, bill.total), (1400, 100, 1500))
        bill.lines.first().delete()
        bill.refresh_from_db()
        self.assertEqual(bill.total, 500)
