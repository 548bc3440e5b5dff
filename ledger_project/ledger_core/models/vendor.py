from django.db import models
from ..managers import TenantManager
from .entitymembership import Entity


# ---------- Vendor (AP counterparty) ----------
class Vendor(models.Model):
    entity = models.ForeignKey(
        Entity, on_delete=models.CASCADE, related_name="vendors")
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "name"], name="uq_entity_vendor_name"),
        ]

    def __str__(self):
        return self.name
