from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Entity

# Choice Lists
ASSET = "ASSET"
LIABILITY = "LIABILITY"
EQUITY = "EQUITY"
INCOME = "INCOME"
EXPENSE = "EXPENSE"

AC_TYPES = [
    (ASSET, "Asset"),
    (LIABILITY, "Liability"),
    (EQUITY, "Equity"),
    (INCOME, "Income"),
    (EXPENSE, "Expense"),
]

DEBIT = "DEBIT"
CREDIT = "CREDIT"

# Whether the account normally increases on the debit or the credit side
NORMAL_BALANCE = [
    (DEBIT, "Debit"),
    (CREDIT, "Credit"),
]


class GLAccount(models.Model):
    """
    Node in an entity's chart of accounts.
    - code is unique per entity
    - normal_balance never changes after creation
    - parent (if any) lives in the same entity
    """

    entity = models.ForeignKey(
        Entity, on_delete=models.CASCADE, related_name="gl_accounts"
    )
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)  # "Accounts Receivable"
    account_type = models.CharField(max_length=10, choices=AC_TYPES)
    normal_balance = models.CharField(
        max_length=6, choices=NORMAL_BALANCE, default=DEBIT
    )
    # Optional hierarchy, e.g. 1000 Cash → 1010 Petty Cash
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # can't delete a parent if children exist
        related_name="children",
    )
    description = models.TextField(blank=True, default="")
    # soft deactivate: stop new postings without deleting history
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["entity", "account_type"], name="ix_glaccount_entity_type"),
            models.Index(fields=["entity", "parent"], name="ix_glaccount_entity_parent"),
        ]
        # Codes repeat across entities but must be unique within one
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "code"], name="uq_entity_account_code"
            )
        ]
        ordering = ("entity", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        if self.parent_id and self.parent.entity_id != self.entity_id:
            raise ValidationError(
                "Parent account must belong to the same entity.")

    def save(self, *args, **kwargs):
        if self.pk:
            orig = GLAccount.objects.filter(pk=self.pk).values(
                "normal_balance", "entity_id").first()
            if orig and orig["normal_balance"] != self.normal_balance:
                raise ValidationError(
                    "normal_balance cannot change after creation.")
            if orig and orig["entity_id"] != self.entity_id:
                raise ValidationError("An account cannot move between entities.")
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
