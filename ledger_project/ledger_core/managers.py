from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a tenant
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def _tenant_filter(self, tenant):
        # Each model declares how it reaches its tenant
        # (e.g. "entity__tenant" for ledger rows, "tenant" for Entity)
        lookup = getattr(self.model, "tenant_lookup", "tenant")
        return {lookup: tenant}

    def for_tenant(self, tenant):
        return self.filter(**self._tenant_filter(tenant))

    def active(self, tenant):
        return self.filter(
            is_active=True,  # only fetch active records
            **self._tenant_filter(tenant),  # enforce tenant scoping
        )
    # Enables query:
    # GLAccount.objects.active(ctx.tenant).filter(code="1200")


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    pass

