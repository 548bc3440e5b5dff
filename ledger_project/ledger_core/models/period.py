from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Entity

OPEN = "OPEN"
LOCKED = "LOCKED"
CLOSED = "CLOSED"

PERIOD_STATUS = [
    (OPEN, "Open"),  # postings allowed
    (LOCKED, "Locked"),  # no new postings, can still be reopened for review
    (CLOSED, "Closed"),  # books are final
]


class FiscalCalendar(models.Model):
    """One fiscal year of an entity, split into monthly periods."""

    entity = models.ForeignKey(
        Entity, on_delete=models.PROTECT, related_name="fiscal_calendars"
    )
    year = models.PositiveIntegerField()
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["entity", "year"], name="uq_entity_fiscal_year"),
        ]
        ordering = ("entity", "start_date")

    def __str__(self):
        return f"FY{self.year} ({self.entity.name})"


# ---------- FiscalPeriod ----------
class FiscalPeriod(models.Model):
    """
    Dated accounting window. Journal entries dated inside a LOCKED or CLOSED
    period cannot be created, approved or voided.
    """

    calendar = models.ForeignKey(
        FiscalCalendar, on_delete=models.CASCADE, related_name="periods"
    )
    # Denormalised from calendar for the date lookup on every posting
    entity = models.ForeignKey(
        Entity, on_delete=models.PROTECT, related_name="fiscal_periods"
    )
    period_number = models.PositiveSmallIntegerField()  # 1..12
    name = models.CharField(max_length=50)  # "January 2025"
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=PERIOD_STATUS, default=OPEN)

    tenant_lookup = "entity__tenant"
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["entity", "start_date", "end_date"],
                name="ix_period_entity_dates"),
            models.Index(fields=["entity", "status"], name="ix_period_entity_status"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["calendar", "period_number"],
                name="uq_calendar_period_number"),
        ]
        ordering = ("entity", "start_date")

    def __str__(self):
        return f"{self.name} [{self.status}]"

    @property
    def is_open(self):
        return self.status == OPEN

    def clean(self):
        if self.start_date > self.end_date:
            raise ValidationError("start_date must not be after end_date")
        if self.calendar_id and self.calendar.entity_id != self.entity_id:
            raise ValidationError(
                "Period must belong to the same entity as its calendar.")

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
