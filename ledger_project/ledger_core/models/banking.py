from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import GLAccount
from .entitymembership import Entity

BANK = "BANK"
CREDIT_CARD = "CREDIT_CARD"
LOAN = "LOAN"
MORTGAGE = "MORTGAGE"
INVESTMENT = "INVESTMENT"
OTHER = "OTHER"

ACCOUNT_TYPES = [
    (BANK, "Bank"),
    (CREDIT_CARD, "Credit card"),
    (LOAN, "Loan"),
    (MORTGAGE, "Mortgage"),
    (INVESTMENT, "Investment"),
    (OTHER, "Other"),
]

# Balances on these accounts are owed, so they sit on the credit side
CREDIT_NORMAL_ACCOUNT_TYPES = frozenset({CREDIT_CARD, LOAN, MORTGAGE})


# ---------- Banking ----------
class BankAccount(models.Model):  # account the entity holds at a bank
    entity = models.ForeignKey(
        Entity, on_delete=models.CASCADE, related_name="bank_accounts")
    name = models.CharField(max_length=200)  # e.g. "Checking Account"
    account_type = models.CharField(
        max_length=20, choices=ACCOUNT_TYPES, default=BANK)
    currency = models.CharField(max_length=3, default="USD")
    # Chart-of-accounts node that mirrors this account; required to post
    gl_account = models.ForeignKey(
        GLAccount, null=True, blank=True, on_delete=models.PROTECT,
        related_name="bank_accounts")
    is_active = models.BooleanField(default=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "name"], name="uq_entity_bankaccount_name"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.gl_account_id and self.gl_account.entity_id != self.entity_id:
            raise ValidationError(
                "Mapped GL account must belong to the same entity.")


class BankTransaction(models.Model):  # single inflow/outflow on an account
    bank_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, related_name="transactions")
    date = models.DateField()
    description = models.CharField(max_length=500, blank=True, default="")
    # positive = inflow (deposit), negative = outflow (payment); minor units
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, default="USD")
    # Entry this transaction was posted as (cleared again when it is voided)
    journal_entry = models.ForeignKey(
        "JournalEntry", null=True, blank=True, on_delete=models.SET_NULL,
        related_name="bank_transactions")
    created_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    tenant_lookup = "bank_account__entity__tenant"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["bank_account", "date"], name="ix_banktx_account_date"),
        ]

    def __str__(self):
        return f"{self.bank_account.name} - {self.date} - {self.amount} {self.currency}"

    @property
    def is_inflow(self):
        return self.amount > 0


class TransactionSplit(models.Model):
    """Part of a bank transaction assigned to its own category account."""

    transaction = models.ForeignKey(
        BankTransaction, on_delete=models.CASCADE, related_name="splits")
    amount = models.BigIntegerField()  # positive, minor units
    memo = models.CharField(max_length=400, blank=True, default="")
    gl_account = models.ForeignKey(
        GLAccount, null=True, blank=True, on_delete=models.PROTECT,
        related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = models.Manager()

    class Meta:
        ordering = ("transaction", "created_at", "id")

    def __str__(self):
        return f"split {self.amount} of tx {self.transaction_id}"
