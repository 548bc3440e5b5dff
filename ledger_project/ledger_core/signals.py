from django.core.exceptions import ValidationError
from django.db.models.signals import post_delete, post_save, pre_delete
from django.dispatch import receiver

from . import lifecycle
from .models import (Bill, BillLine, FiscalPeriod, Invoice, InvoiceLine,
                     JournalEntry, JournalLine, PaymentAllocation)
from .models.journal import DRAFT
from .models.period import OPEN

"""Posted and voided entries are permanent; only drafts may be removed."""


@receiver(pre_delete, sender=JournalEntry)
def prevent_delete_non_draft_entry(sender, instance, **kwargs):
    if instance.status != DRAFT:
        raise ValidationError(
            f"Cannot delete a {instance.status} journal entry; void it instead.")


@receiver(pre_delete, sender=JournalLine)
def prevent_delete_line_of_non_draft_entry(sender, instance, **kwargs):
    status = (
        JournalEntry.objects.filter(pk=instance.entry_id)
        .values_list("status", flat=True)
        .first()
    )
    if status is not None and status != DRAFT:
        raise ValidationError("Cannot delete lines of a posted journal entry.")


@receiver(pre_delete, sender=FiscalPeriod)
def prevent_delete_non_open_period(sender, instance, **kwargs):
    if instance.status != OPEN:
        raise ValidationError("Only open fiscal periods can be deleted.")


"""Block document deletion once payments are applied."""


@receiver(pre_delete, sender=Invoice)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if instance.paid_amount or PaymentAllocation.objects.filter(invoice=instance).exists():
        raise ValidationError("Cannot delete invoice with applied payments.")


@receiver(pre_delete, sender=Bill)
def prevent_delete_bill_with_payments(sender, instance, **kwargs):
    if instance.paid_amount or PaymentAllocation.objects.filter(bill=instance).exists():
        raise ValidationError("Cannot delete bill with applied payments.")


"""
    Recalculate document totals when a line is added/updated/removed.
    Only drafts follow their lines; a sent document keeps the totals it
    was issued with.
"""


def _refresh_totals(model, pk):
    doc = model.objects.filter(pk=pk).first()
    if doc is None or doc.status != lifecycle.DRAFT:
        return
    doc.recalc_totals()
    doc.save(update_fields=["subtotal", "tax_amount", "total"])


@receiver((post_save, post_delete), sender=InvoiceLine)
def invoice_line_changed(sender, instance, **kwargs):
    _refresh_totals(Invoice, instance.invoice_id)


@receiver((post_save, post_delete), sender=BillLine)
def bill_line_changed(sender, instance, **kwargs):
    _refresh_totals(Bill, instance.bill_id)
