from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from ..managers import TenantManager
from .entitymembership import Entity, Tenant


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # who changed what, with before/after images
    tenant = models.ForeignKey(
        Tenant, on_delete=models.CASCADE, related_name="audit_logs")
    entity = models.ForeignKey(
        Entity, null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+")
    # Nullable for automated actions (imports, background jobs)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    # Common choices: CREATE, UPDATE, DELETE
    action = models.CharField(max_length=50)
    # What kind of object was affected ("JournalEntry", "FiscalPeriod", ...)
    model = models.CharField(max_length=100)
    record_id = models.CharField(max_length=100)
    before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "tenant"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["tenant", "created_at"], name="ix_audit_tenant_created"),
            models.Index(
                fields=["model", "record_id"], name="ix_audit_record"),
        ]

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.model}({self.record_id})"
