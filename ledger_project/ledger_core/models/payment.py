from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .bill import Bill
from .customer import Customer
from .entitymembership import Entity
from .invoice import Invoice
from .vendor import Vendor

PAYMENT_METHODS = [
    ("CASH", "Cash"),
    ("CHEQUE", "Cheque"),
    ("BANK_TRANSFER", "Bank Transfer"),
    ("CARD", "Card"),
    ("OTHER", "Other"),
]


# ---------- Payment received from a customer or made to a vendor ----------
class Payment(models.Model):
    entity = models.ForeignKey(
        Entity, on_delete=models.PROTECT, related_name="payments")
    customer = models.ForeignKey(
        Customer, null=True, blank=True, on_delete=models.PROTECT,
        related_name="payments")
    vendor = models.ForeignKey(
        Vendor, null=True, blank=True, on_delete=models.PROTECT,
        related_name="payments")
    date = models.DateField()
    amount = models.BigIntegerField()  # minor units
    currency = models.CharField(max_length=3, default="USD")
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="BANK_TRANSFER")
    reference = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    def __str__(self):
        return f"Payment {self.pk} {self.date} {self.amount} {self.currency}"


# Bridge row: "X of this payment settles this invoice (or bill)"
class PaymentAllocation(models.Model):
    payment = models.ForeignKey(
        Payment, on_delete=models.CASCADE, related_name="allocations")
    invoice = models.ForeignKey(
        Invoice, null=True, blank=True, on_delete=models.PROTECT,
        related_name="allocations")
    bill = models.ForeignKey(
        Bill, null=True, blank=True, on_delete=models.PROTECT,
        related_name="allocations")
    amount = models.BigIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "payment__entity__tenant"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="allocation_amount_positive"),
        ]

    def __str__(self):
        target = f"invoice {self.invoice_id}" if self.invoice_id else f"bill {self.bill_id}"
        return f"{self.amount} of payment {self.payment_id} → {target}"

    def clean(self):
        if self.invoice_id and self.bill_id:
            raise ValidationError(
                "An allocation settles an invoice or a bill, not both.")
