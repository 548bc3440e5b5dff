from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from ..managers import TenantManager


# ---------- Tenant ----------
class Tenant(models.Model):

    """Customer organisation. Owns one or more legal entities."""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two tenants can have the same slug
    )

    # Creator / primary admin of the tenant
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="owned_tenants",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# ---------- Entity ----------
class Entity(models.Model):
    """
    Legal/business unit with its own chart of accounts, fiscal calendar and
    functional currency. Every ledger row hangs off an entity.
    """

    tenant = models.ForeignKey(
        Tenant, on_delete=models.CASCADE, related_name="entities"
    )
    name = models.CharField(max_length=200)
    # ISO 4217 code; all base-currency mirrors are expressed in it
    functional_currency = models.CharField(max_length=3, default="USD")
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "tenant"
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "entities"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "name"], name="uq_tenant_entity_name"
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.functional_currency})"


# ---------- Custom User ----------
class User(AbstractUser):
    """
    AUTH_USER_MODEL = "ledger_core.User" must be set before the first migrate.
    """
    default_tenant = models.ForeignKey(
        "Tenant",
        # user might exist before being assigned a tenant
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    class Meta:
        indexes = [models.Index(fields=["default_tenant"], name="ix_user_default_tenant")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- Membership ----------
class Membership(models.Model):  # join model between User and Tenant

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    VIEWER = "VIEWER"

    ROLE_CHOICES = [
        (OWNER, "Owner"),  # full control; may self-approve journal entries
        (ADMIN, "Admin"),
        (ACCOUNTANT, "Accountant"),
        (VIEWER, "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    tenant = models.ForeignKey(
        Tenant, on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=VIEWER)

    # Suspend access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "tenant"
    objects = TenantManager()

    class Meta:
        # one user can only have one membership per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["user", "tenant"], name="uq_user_tenant_membership"
            ),
        ]
        indexes = [models.Index(fields=["tenant", "user"], name="ix_membership_tenant_user")]

    def __str__(self):
        return f"{self.user} @ {self.tenant} ({self.role})"
