from django.db import models


# ---------- FX rates ----------
class FXRate(models.Model):
    """
    Daily conversion rate: 1 unit of ``from_currency`` = ``rate`` units of
    ``to_currency``. Reference data shared by all tenants.
    """

    from_currency = models.CharField(max_length=3)
    to_currency = models.CharField(max_length=3)
    date = models.DateField()
    rate = models.DecimalField(max_digits=18, decimal_places=8)
    source = models.CharField(max_length=50, blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["from_currency", "to_currency", "date"],
                name="uq_fx_pair_date"),
            models.CheckConstraint(
                condition=models.Q(rate__gt=0), name="fx_rate_positive"),
        ]
        # Serves "latest rate on or before a date"
        indexes = [
            models.Index(
                fields=["from_currency", "to_currency", "-date"],
                name="ix_fx_pair_latest"),
        ]

    def __str__(self):
        return f"{self.from_currency}/{self.to_currency} {self.date}: {self.rate}"
