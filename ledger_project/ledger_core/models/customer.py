from django.db import models
from ..managers import TenantManager
from .entitymembership import Entity


# ---------- Customer (AR counterparty) ----------
class Customer(models.Model):
    entity = models.ForeignKey(
        Entity, on_delete=models.CASCADE, related_name="customers")
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "name"], name="uq_entity_customer_name"),
        ]

    def __str__(self):
        return self.name
