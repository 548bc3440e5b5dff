import json

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from ..managers import TenantQuerySet
from .account import GLAccount
from .entitymembership import Entity

DRAFT = "DRAFT"
POSTED = "POSTED"
VOIDED = "VOIDED"

JOURNAL_STATUS = [
    (DRAFT, "Draft"),  # manually authored, awaiting approval
    (POSTED, "Posted"),  # part of the ledger
    (VOIDED, "Voided"),  # cancelled by a reversal entry, never deleted
]

SOURCE_INVOICE = "INVOICE"
SOURCE_BILL = "BILL"
SOURCE_PAYMENT = "PAYMENT"
SOURCE_BANK_FEED = "BANK_FEED"
SOURCE_MANUAL = "MANUAL"
SOURCE_ADJUSTMENT = "ADJUSTMENT"
SOURCE_OPENING_BALANCE = "OPENING_BALANCE"

SOURCE_TYPES = [
    (SOURCE_INVOICE, "Invoice"),
    (SOURCE_BILL, "Bill"),
    (SOURCE_PAYMENT, "Payment"),
    (SOURCE_BANK_FEED, "Bank feed"),
    (SOURCE_MANUAL, "Manual"),
    (SOURCE_ADJUSTMENT, "Adjustment"),
    (SOURCE_OPENING_BALANCE, "Opening balance"),
]


def _as_json(value):
    # the stored snapshot comes back as plain JSON (dates as strings)
    return json.loads(json.dumps(value, cls=DjangoJSONEncoder))


class JournalEntryQuerySet(TenantQuerySet):
    def live(self):
        return self.filter(deleted_at__isnull=True)

    def active_for_source(self, entity_id, source_type, source_id):
        """The (at most one) non-voided entry posted for a document."""
        return self.live().filter(
            entity_id=entity_id,
            source_type=source_type,
            source_id=str(source_id),
        ).exclude(status=VOIDED)


class JournalEntryManager(models.Manager.from_queryset(JournalEntryQuerySet)):
    pass


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # One balanced accounting transaction
    entity = models.ForeignKey(
        Entity, on_delete=models.PROTECT, related_name="journal_entries"
    )
    # "JE-007"; sequential per entity, assigned once
    entry_number = models.CharField(max_length=32)
    date = models.DateField()
    memo = models.TextField(blank=True, default="")

    # Originating document, if any (idempotency key with entity)
    source_type = models.CharField(
        max_length=20, choices=SOURCE_TYPES, default=SOURCE_MANUAL)
    source_id = models.CharField(max_length=64, null=True, blank=True)
    # Write-once snapshot of the document as it was when posted
    source_document = models.JSONField(
        null=True, blank=True, encoder=DjangoJSONEncoder)

    status = models.CharField(
        max_length=10, choices=JOURNAL_STATUS, default=DRAFT)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    # Set on a reversal: the entry it reverses
    linked_entry = models.ForeignKey(
        "self",
        null=True, blank=True, on_delete=models.PROTECT,
        related_name="linked_from",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)  # soft delete

    tenant_lookup = "entity__tenant"
    objects = JournalEntryManager()

    class Meta:
        indexes = [
            models.Index(fields=["entity", "date"], name="ix_je_entity_date"),
            models.Index(
                fields=["entity", "status"], name="ix_je_entity_status"),
            models.Index(
                fields=["entity", "created_at"], name="ix_je_entity_created"),
            models.Index(
                fields=["source_type", "source_id"], name="ix_je_source"),
        ]
        constraints = [
            # no number is ever handed out twice within an entity
            models.UniqueConstraint(
                fields=["entity", "entry_number"],
                name="uq_je_entity_entry_number",
            ),
            # at most one active posting per source document
            models.UniqueConstraint(
                fields=["entity", "source_type", "source_id"],
                condition=(
                    models.Q(source_id__isnull=False)
                    & models.Q(deleted_at__isnull=True)
                    & ~models.Q(status=VOIDED)
                ),
                name="uq_je_active_source",
            ),
        ]
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"{self.entry_number} {self.date} [{self.status}]"

    def compute_totals(self):
        """Return (debits, credits) summed over the lines, in minor units."""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit_amount"),
            total_credit=models.Sum("credit_amount"),
        )
        return aggs["total_debit"] or 0, aggs["total_credit"] or 0

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def save(self, *args, **kwargs):
        if self.pk:  # Does this row already exist in DB?
            orig = JournalEntry.objects.filter(pk=self.pk).values(
                "entry_number", "source_document", "status", "entity_id"
            ).first()
            if orig:
                if orig["entry_number"] != self.entry_number:
                    raise ValidationError("Entry numbers are immutable.")
                if orig["entity_id"] != self.entity_id:
                    raise ValidationError(
                        "An entry cannot move between entities.")
                if (orig["source_document"] is not None
                        and orig["source_document"] != _as_json(self.source_document)):
                    raise ValidationError(
                        "The source document snapshot is write-once.")
                if orig["status"] == VOIDED and self.status != VOIDED:
                    raise ValidationError("A voided entry stays voided.")
                if orig["status"] == POSTED and self.status == DRAFT:
                    raise ValidationError("Cannot unpost a posted entry.")
        super().save(*args, **kwargs)


class JournalLine(models.Model):  # one debit or one credit
    """
    Belongs to exactly one entry and points at one GL account of the
    same entity. Amounts are integer minor units.
    """

    entry = models.ForeignKey(
        JournalEntry, on_delete=models.CASCADE, related_name="lines"
    )
    # can't delete an account that carries lines
    gl_account = models.ForeignKey(
        GLAccount, on_delete=models.PROTECT, related_name="journal_lines"
    )
    position = models.PositiveSmallIntegerField(default=0)
    debit_amount = models.BigIntegerField(default=0)
    credit_amount = models.BigIntegerField(default=0)
    memo = models.CharField(max_length=400, blank=True, default="")

    # Only set when the line's currency differs from the functional currency
    currency = models.CharField(max_length=3, null=True, blank=True)
    # Snapshot of the rate used; never a live reference
    exchange_rate = models.DecimalField(
        max_digits=18, decimal_places=8, null=True, blank=True)
    base_currency_debit = models.BigIntegerField(null=True, blank=True)
    base_currency_credit = models.BigIntegerField(null=True, blank=True)

    objects = models.Manager()

    class Meta:
        indexes = [
            models.Index(fields=["gl_account"], name="ix_jl_account"),
        ]
        ordering = ("entry", "position", "id")
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(debit_amount__gte=0) &
                    models.Q(credit_amount__gte=0)
                ),
                name="jl_non_negative_amounts",
            ),
            # exactly one side carries the amount
            models.CheckConstraint(
                condition=(
                    (models.Q(debit_amount__gt=0) & models.Q(credit_amount=0))
                    | (models.Q(debit_amount=0) & models.Q(credit_amount__gt=0))
                ),
                name="jl_debit_xor_credit",
            ),
        ]

    def __str__(self):
        side = f"DR {self.debit_amount}" if self.debit_amount else f"CR {self.credit_amount}"
        return f"{self.gl_account_id} {side}"

    @property
    def base_debit(self):
        """Functional-currency debit (falls back to the transaction amount)."""
        if self.base_currency_debit is None:
            return self.debit_amount
        return self.base_currency_debit

    @property
    def base_credit(self):
        if self.base_currency_credit is None:
            return self.credit_amount
        return self.base_currency_credit

    def save(self, *args, **kwargs):
        if self.pk:
            orig_rate = JournalLine.objects.filter(pk=self.pk).values_list(
                "exchange_rate", flat=True).first()
            if orig_rate is not None and orig_rate != self.exchange_rate:
                raise ValidationError("exchange_rate is immutable once stored.")
        super().save(*args, **kwargs)
