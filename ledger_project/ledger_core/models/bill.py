from django.core.exceptions import ValidationError
from django.db import models
from .. import lifecycle
from ..managers import TenantManager
from .account import GLAccount
from .vendor import Vendor
from .entitymembership import Entity

BILL_STATUS = [
    (lifecycle.DRAFT, "Draft"),
    (lifecycle.PENDING, "Pending"),
    (lifecycle.PARTIALLY_PAID, "Partially paid"),
    (lifecycle.PAID, "Paid"),
    (lifecycle.OVERDUE, "Overdue"),
    (lifecycle.CANCELLED, "Cancelled"),
]


# ---------- Bill (AP document) ----------
class Bill(models.Model):
    TRANSITIONS = lifecycle.BILL_TRANSITIONS
    DOCUMENT_LABEL = "bill"

    entity = models.ForeignKey(
        Entity, on_delete=models.PROTECT, related_name="bills")
    vendor = models.ForeignKey(
        Vendor, on_delete=models.PROTECT, related_name="bills")
    bill_number = models.CharField(max_length=50)
    bill_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    currency = models.CharField(max_length=3, default="USD")

    # Integer minor units (cents)
    subtotal = models.BigIntegerField(default=0)
    tax_amount = models.BigIntegerField(default=0)
    total = models.BigIntegerField(default=0)
    paid_amount = models.BigIntegerField(default=0)

    status = models.CharField(
        max_length=20, choices=BILL_STATUS, default=lifecycle.DRAFT)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["entity", "status"], name="ix_bill_entity_status"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "bill_number"],
                name="uq_entity_bill_number"),
            models.CheckConstraint(
                condition=(
                    models.Q(paid_amount__gte=0)
                    & models.Q(paid_amount__lte=models.F("total"))
                ),
                name="bill_paid_within_total",
            ),
        ]

    def __str__(self):
        return f"Bill {self.bill_number} ({self.status})"

    @property
    def outstanding(self):
        return self.total - self.paid_amount

    def recalc_totals(self):
        """Recompute subtotal/tax/total from the lines (not saved)."""
        aggs = self.lines.aggregate(
            amount=models.Sum("amount"), tax=models.Sum("tax_amount"))
        gross = aggs["amount"] or 0
        self.tax_amount = aggs["tax"] or 0
        self.subtotal = gross - self.tax_amount
        self.total = gross
        return self.total

    def clean(self):
        if self.vendor_id and self.vendor.entity_id != self.entity_id:
            raise ValidationError(
                "Vendor must belong to the same entity as the bill.")

    def transition_to(self, new_status):
        lifecycle.transition(self, new_status)
        self.save(update_fields=["status"])
        return self


class BillLine(models.Model):
    bill = models.ForeignKey(
        Bill, on_delete=models.CASCADE, related_name="lines")
    description = models.CharField(max_length=400, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=4, default=1)
    unit_price = models.BigIntegerField(default=0)
    tax_amount = models.BigIntegerField(default=0)
    # Tax-inclusive line total; expense recognised is amount - tax_amount
    amount = models.BigIntegerField(default=0)
    # Expense account; falls back to the entity's default expense code
    gl_account = models.ForeignKey(
        GLAccount, null=True, blank=True, on_delete=models.PROTECT,
        related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = models.Manager()

    class Meta:
        ordering = ("bill", "id")

    def __str__(self):
        return f"{self.description or 'Line'}: {self.amount}"

    def clean(self):
        if self.tax_amount < 0 or self.amount < 0:
            raise ValidationError("Line amounts must be >= 0")
        if self.gl_account_id and self.gl_account.entity_id != self.bill.entity_id:
            raise ValidationError(
                "Expense account must belong to the bill's entity.")
